"""
Scheduler - The container presence loop and the resource metrics loop

Each loop runs its ticks strictly one after the other. A tick that fails
is logged and the next tick runs on schedule.
"""

import logging
import threading
import time
from typing import Callable, Dict, List, Optional

from .alert_classes import MISSING_CONTAINERS
from .containers import list_running_containers, missing_containers
from .dispatcher import AlertDispatcher
from .errors import ContainerRuntimeError, StateError
from .metrics import read_metrics
from .presence_tracker import PresenceTracker
from .snooze import SnoozeController
from .thresholds import ThresholdConfig, evaluate_thresholds

logger = logging.getLogger(__name__)


class PeriodicLoop:
    """Runs tick() every interval seconds until stopped"""

    name = 'loop'

    def __init__(self, interval: int, clock: Callable[[], float] = time.time):
        self.interval = interval
        self.clock = clock
        self.last_tick: Optional[int] = None
        self._stop = threading.Event()

    def now(self) -> int:
        return int(self.clock())

    def tick(self, now: Optional[int] = None):
        raise NotImplementedError

    def run_forever(self):
        logger.info("Initialised %s (every %ds)", self.name, self.interval)
        while not self._stop.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("%s tick failed", self.name)
            self._stop.wait(self.interval)

    def stop(self):
        self._stop.set()

    def start_thread(self) -> threading.Thread:
        thread = threading.Thread(target=self.run_forever, name=self.name, daemon=True)
        thread.start()
        return thread


class PresenceLoop(PeriodicLoop):
    """Checks that every configured container is running"""

    name = 'presence-loop'

    def __init__(self, network: str, containers: List[str], tracker: PresenceTracker,
                 dispatcher: AlertDispatcher, interval: int,
                 list_running: Callable[[str], set] = list_running_containers,
                 clock: Callable[[], float] = time.time):
        super().__init__(interval, clock)
        self.network = network
        self.containers = list(containers)
        self.tracker = tracker
        self.dispatcher = dispatcher
        self.list_running = list_running
        self.last_missing: List[str] = []

    def find_missing(self) -> List[str]:
        """Configured containers not running; all of them if the runtime fails"""
        logger.info("Looking for containers in %r network ...", self.network)
        try:
            running = self.list_running(self.network)
        except ContainerRuntimeError as e:
            logger.error("Cannot get running containers: %s", e)
            logger.info("Taking it as, all the containers are missing ...")
            return list(self.containers)
        return missing_containers(self.containers, running)

    def tick(self, now: Optional[int] = None):
        missing = self.find_missing()
        now = self.now() if now is None else now
        self.last_tick = now
        self.last_missing = missing
        state_path = self.tracker.store.path

        if missing:
            logger.info("Missing containers: %s", ', '.join(missing))

        try:
            decision = self.tracker.evaluate(missing, now)
        except StateError as e:
            self.dispatcher.report_error(
                f"Cannot get the state file at '{state_path}'. Because: '{e.reason}'", now
            )
            return

        if not decision.missing:
            self._commit(
                decision, now,
                "Containers are running fine. But, cannot write to the state file"
            )
            logger.info("Everything looks good!")
            return

        if not decision.notify:
            logger.info("Snoozing missing containers alert ...")
            self._commit(decision, now, "Cannot write to the state file")
            return

        if decision.newly_missing:
            logger.info("Newly missing containers: %s", ', '.join(decision.newly_missing))

        previous = dict(self.tracker.last_state)
        if not self._commit(decision, now, "Cannot write to the state file"):
            logger.warning("Holding the missing containers alert until the state file is writable")
            return

        if not self.dispatcher.dispatch(MISSING_CONTAINERS, decision.missing, now):
            logger.warning("Restoring the previous state so the next check retries")
            self._restore(previous, now)

    def _commit(self, decision, now: int, failure: str) -> bool:
        try:
            self.tracker.commit(decision)
        except StateError as e:
            self.dispatcher.report_error(
                f"{failure} at '{self.tracker.store.path}'. Because: '{e.reason}'", now
            )
            return False
        return True

    def _restore(self, previous: Dict[str, int], now: int):
        try:
            self.tracker.restore(previous)
        except StateError as e:
            self.dispatcher.report_error(
                f"Cannot restore the state file at '{self.tracker.store.path}'. Because: '{e.reason}'", now
            )


class ResourceLoop(PeriodicLoop):
    """Checks host metrics against the configured thresholds"""

    name = 'resource-loop'

    def __init__(self, thresholds: ThresholdConfig, controller: SnoozeController,
                 dispatcher: AlertDispatcher, interval: int,
                 collect: Callable = read_metrics,
                 clock: Callable[[], float] = time.time):
        super().__init__(interval, clock)
        self.thresholds = thresholds
        self.controller = controller
        self.dispatcher = dispatcher
        self.collect = collect
        self.last_messages: List[str] = []

    def tick(self, now: Optional[int] = None):
        th = self.thresholds
        snapshot = self.collect(th.cpu_stat_interval, th.mounts(), th.directories())
        messages = evaluate_thresholds(snapshot, th)

        now = self.now() if now is None else now
        self.last_tick = now
        self.last_messages = messages

        if not messages:
            logger.debug("System resources are within thresholds")
            return

        logger.info("System resources reached threshold: %s", '; '.join(messages))
        self.dispatcher.notify(self.controller, messages, now)
