"""
State Store - Durable JSON records that survive daemon restarts

Two files live in the configuration directory:
- the presence record: container name -> epoch seconds first seen missing
- the last-error record: epoch seconds of the last reported delivery error

Both are rewritten whole on every update through a temporary file and
os.replace, so a reader never sees a half-written record.
"""

import json
import logging
import os
import tempfile
import threading
from typing import Any, Dict, Optional

from .errors import StateError

logger = logging.getLogger(__name__)

STATE_FILE = '.dockmon.state'
LAST_ERROR_FILE = '.dockmon.lasterror'


class JsonFileStore:
    """Serialized read / atomic write access to a single JSON file"""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _read(self) -> Optional[Any]:
        """
        Read and decode the file

        Returns:
            Decoded JSON value, or None when the file does not exist

        Raises:
            StateError: If the file exists but cannot be read or decoded
        """
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                raw = f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StateError(self.path, f"cannot read: {e}") from e

        try:
            return json.loads(raw)
        except ValueError as e:
            raise StateError(self.path, f"cannot decode: {e}") from e

    def _write(self, value: Any):
        """
        Replace the file content with the JSON encoding of value

        Raises:
            StateError: If the temporary file cannot be written or moved
        """
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(
                prefix=os.path.basename(self.path) + '.',
                suffix='.tmp',
                dir=directory
            )
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(value, f)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StateError(self.path, f"cannot write: {e}") from e


class PresenceStore(JsonFileStore):
    """Persisted mapping of missing container name -> first-missing epoch"""

    def load(self) -> Dict[str, int]:
        """
        Load the presence record

        Returns:
            Mapping of container name to epoch seconds. Empty when the
            file has never been written.

        Raises:
            StateError: If the file is unreadable or not a name -> int object
        """
        with self._lock:
            data = self._read()

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise StateError(self.path, "expected a JSON object")

        record = {}
        for name, stamp in data.items():
            if isinstance(stamp, bool) or not isinstance(stamp, int):
                raise StateError(self.path, f"timestamp for {name!r} is not an integer")
            record[str(name)] = stamp
        return record

    def save(self, record: Dict[str, int]):
        """Write the presence record (an empty dict resets it)"""
        with self._lock:
            self._write({name: int(stamp) for name, stamp in record.items()})


class ErrorStore(JsonFileStore):
    """Persisted epoch of the last delivery-error notification"""

    def load(self) -> Optional[int]:
        with self._lock:
            data = self._read()

        if data is None:
            return None
        if isinstance(data, bool) or not isinstance(data, int):
            raise StateError(self.path, "expected a JSON integer")
        return data

    def save(self, timestamp: int):
        with self._lock:
            self._write(int(timestamp))


def presence_store_for(config_dir: str) -> PresenceStore:
    return PresenceStore(os.path.join(config_dir, STATE_FILE))


def error_store_for(config_dir: str) -> ErrorStore:
    return ErrorStore(os.path.join(config_dir, LAST_ERROR_FILE))
