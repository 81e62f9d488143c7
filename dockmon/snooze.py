"""
Snooze Controller - Decides whether an alert class should notify now

One controller exists per alert class for the life of the process. The
resource class keeps its record in memory; the delivery-error class backs
its record with a file so the debounce survives restarts.
"""

import hashlib
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Hashable, List, Optional, Sequence

from .errors import StateError

logger = logging.getLogger(__name__)

Fingerprint = Callable[[Sequence[str]], Hashable]


def count_fingerprint(messages: Sequence[str]) -> Hashable:
    """
    Number of violation messages

    Two different message sets of the same size look unchanged. Use
    content_fingerprint when that matters.
    """
    return len(messages)


def content_fingerprint(messages: Sequence[str]) -> Hashable:
    """Digest of the sorted message contents"""
    digest = hashlib.sha256()
    for message in sorted(messages):
        digest.update(message.encode('utf-8'))
        digest.update(b'\0')
    return digest.hexdigest()


FINGERPRINTS = {
    'count': count_fingerprint,
    'content': content_fingerprint,
}


def window_elapsed(last: int, now: int, snooze_seconds: int) -> bool:
    """True once now is at or beyond last + snooze_seconds"""
    return now >= last + snooze_seconds


@dataclass
class SnoozeRecord:
    """Debounce state of one alert class"""
    last_notified: Optional[int] = None
    notified_since_start: bool = False  # reported by the status endpoint
    fingerprint: Any = None

    def next_notification(self, snooze_seconds: int) -> Optional[int]:
        if self.last_notified is None:
            return None
        return self.last_notified + snooze_seconds


class SnoozeController:
    """Time-window debounce for one alert class"""

    def __init__(self, alert_class, snooze_seconds: int, store=None):
        """
        Args:
            alert_class: AlertClass whose fingerprint policy applies
            snooze_seconds: Minimum seconds between two notifications of an
                unchanged condition
            store: Optional ErrorStore-like object (load() / save(ts)) used to
                restore and persist last_notified
        """
        self.alert_class = alert_class
        self.snooze_seconds = snooze_seconds
        self.store = store
        self.record = SnoozeRecord()
        self._lock = threading.Lock()

        if store is not None:
            try:
                self.record.last_notified = store.load()
            except StateError as e:
                logger.error("Cannot restore %s snooze state: %s", alert_class.key, e)

    @property
    def lock(self) -> threading.Lock:
        """Held by callers that check, send and mark as one step"""
        return self._lock

    def should_notify(self, messages: List[str], now: int) -> bool:
        """
        Decide whether a violation seen at now should be sent

        Args:
            messages: Current violation messages (must be non-empty)
            now: Evaluation time in epoch seconds

        Returns:
            True to notify, False to snooze
        """
        if not messages:
            return False

        record = self.record
        if record.last_notified is None:
            return True
        if window_elapsed(record.last_notified, now, self.snooze_seconds):
            return True
        if self.alert_class.tracks_fingerprint:
            return self.alert_class.fingerprint(messages) != record.fingerprint
        return False

    def mark_notified(self, messages: List[str], now: int):
        """
        Advance the record after a confirmed delivery

        The backing file write is best-effort: a failure is logged and the
        in-memory record still debounces the next ticks.
        """
        self.record.last_notified = now
        self.record.notified_since_start = True
        self.record.fingerprint = self.alert_class.fingerprint(messages)

        if self.store is not None:
            try:
                self.store.save(now)
            except StateError as e:
                logger.error("Cannot persist %s snooze state: %s", self.alert_class.key, e)

    def snooze_until(self) -> Optional[int]:
        return self.record.next_notification(self.snooze_seconds)
