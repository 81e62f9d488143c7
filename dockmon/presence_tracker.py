"""
Presence Tracker - Compares missing containers now against the persisted record
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .snooze import window_elapsed
from .state_store import PresenceStore

logger = logging.getLogger(__name__)


@dataclass
class PresenceDecision:
    """Outcome of one presence evaluation"""
    missing: List[str]
    new_state: Dict[str, int]
    notify: bool
    newly_missing: List[str] = field(default_factory=list)


def current_state(missing: List[str], now: int) -> Dict[str, int]:
    """Map every currently missing container to now"""
    return {name: now for name in missing}


def compare_states(snooze_seconds: int, last_state: Dict[str, int],
                   current: Dict[str, int]) -> Tuple[Dict[str, int], bool]:
    """
    Decide the next presence record and whether to notify

    Args:
        snooze_seconds: Minimum seconds between two notifications of an
            unchanged missing set
        last_state: Persisted record (name -> first-missing epoch)
        current: Containers missing now (name -> now)

    Returns:
        Tuple of (new_state, notify)

    A container missing now but absent from last_state always notifies.
    Containers still missing keep their persisted timestamp in that case.
    When the missing set has no newcomers, the earliest persisted timestamp
    among the still-missing containers gates the whole batch: once its
    snooze window elapsed every timestamp is refreshed to now and the batch
    notifies, otherwise the persisted record is kept and nothing is sent.
    Containers that recovered simply drop out of the record.
    """
    newly_missing = {}
    still_missing = {}

    for name, seen_at in current.items():
        if name in last_state:
            still_missing[name] = (last_state[name], seen_at)
        else:
            newly_missing[name] = seen_at

    if newly_missing:
        updated = {name: last for name, (last, _) in still_missing.items()}
        updated.update(newly_missing)
        return updated, True

    if not still_missing:
        return {}, False

    earliest = min(last for last, _ in still_missing.values())
    now = max(seen_at for _, seen_at in still_missing.values())

    if window_elapsed(earliest, now, snooze_seconds):
        return {name: seen_at for name, (_, seen_at) in still_missing.items()}, True

    return {name: last for name, (last, _) in still_missing.items()}, False


class PresenceTracker:
    """Stateful wrapper of compare_states around the presence store"""

    def __init__(self, store: PresenceStore, snooze_seconds: int):
        self.store = store
        self.snooze_seconds = snooze_seconds
        self.last_state: Dict[str, int] = {}

    def evaluate(self, missing: List[str], now: int) -> PresenceDecision:
        """
        Evaluate the containers missing at now

        Raises:
            StateError: If the persisted record cannot be read
        """
        if not missing:
            return PresenceDecision(missing=[], new_state={}, notify=False)

        last_state = self.store.load()
        self.last_state = last_state

        new_state, notify = compare_states(
            self.snooze_seconds, last_state, current_state(missing, now)
        )
        newly = [name for name in missing if name not in last_state]
        return PresenceDecision(
            missing=list(missing),
            new_state=new_state,
            notify=notify,
            newly_missing=newly
        )

    def commit(self, decision: PresenceDecision):
        """
        Persist the decided record

        Raises:
            StateError: If the record cannot be written
        """
        self.store.save(decision.new_state)
        self.last_state = dict(decision.new_state)

    def restore(self, state: Dict[str, int]):
        """
        Write back a previous record after an undelivered alert

        Raises:
            StateError: If the record cannot be written
        """
        self.store.save(state)
        self.last_state = dict(state)
