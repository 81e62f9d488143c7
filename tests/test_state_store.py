from __future__ import annotations

import json
import os

import pytest

from dockmon.errors import StateError
from dockmon.state_store import (
    LAST_ERROR_FILE,
    STATE_FILE,
    ErrorStore,
    PresenceStore,
    error_store_for,
    presence_store_for,
)


@pytest.mark.parametrize("record", [
    {},
    {'web': 1700000000},
    {'web': 1, 'db-primary': 1700000000, 'name with spaces': 0, 'ünïcode': 42},
])
def test_presence_record_survives_write_and_read(tmp_path, record: dict) -> None:
    store = PresenceStore(str(tmp_path / STATE_FILE))

    store.save(record)

    assert store.load() == record


def test_missing_files_read_as_no_record(tmp_path) -> None:
    assert presence_store_for(str(tmp_path)).load() == {}
    assert error_store_for(str(tmp_path)).load() is None


def test_file_locations(tmp_path) -> None:
    assert presence_store_for(str(tmp_path)).path == os.path.join(str(tmp_path), STATE_FILE)
    assert error_store_for(str(tmp_path)).path == os.path.join(str(tmp_path), LAST_ERROR_FILE)


def test_error_record_is_a_json_integer(tmp_path) -> None:
    store = ErrorStore(str(tmp_path / LAST_ERROR_FILE))

    store.save(1700000000)

    assert json.loads((tmp_path / LAST_ERROR_FILE).read_text()) == 1700000000
    assert store.load() == 1700000000


def test_save_replaces_whole_file_without_leftovers(tmp_path) -> None:
    store = PresenceStore(str(tmp_path / STATE_FILE))
    store.save({'a': 1, 'b': 2})
    store.save({'c': 3})

    assert store.load() == {'c': 3}
    assert sorted(os.listdir(tmp_path)) == [STATE_FILE]


@pytest.mark.parametrize("content", ['not json', '[1, 2]', '{"web": "yesterday"}', '{"web": true}'])
def test_malformed_presence_record_raises(tmp_path, content: str) -> None:
    (tmp_path / STATE_FILE).write_text(content)

    with pytest.raises(StateError):
        PresenceStore(str(tmp_path / STATE_FILE)).load()


def test_malformed_error_record_raises(tmp_path) -> None:
    (tmp_path / LAST_ERROR_FILE).write_text('{"at": 1}')

    with pytest.raises(StateError):
        ErrorStore(str(tmp_path / LAST_ERROR_FILE)).load()


def test_write_into_missing_directory_raises(tmp_path) -> None:
    store = PresenceStore(str(tmp_path / 'gone' / STATE_FILE))

    with pytest.raises(StateError) as excinfo:
        store.save({'web': 1})

    assert 'cannot write' in excinfo.value.reason
