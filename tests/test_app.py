from __future__ import annotations

import pytest
import yaml

import app
from dockmon.config_loader import CONFIG_FILE
from dockmon.errors import ContainerRuntimeError
from dockmon.snooze import content_fingerprint
from dockmon.state_store import LAST_ERROR_FILE


def test_parse_args_defaults() -> None:
    args = app.parse_args([])

    assert args.configdir == ''
    assert args.network == 'all'
    assert args.run is False


def test_parse_args_short_flags() -> None:
    args = app.parse_args(['-c', '/etc/dockmon', '-n', 'backend', '-r'])

    assert (args.configdir, args.network, args.run) == ('/etc/dockmon', 'backend', True)


def test_config_dir_from_flag_env_or_cwd(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv(app.CONFIG_DIR_ENV, raising=False)
    assert app.resolve_config_dir('') == '.'

    monkeypatch.setenv(app.CONFIG_DIR_ENV, str(tmp_path))
    assert app.resolve_config_dir('') == str(tmp_path)
    assert app.resolve_config_dir(str(tmp_path)) == str(tmp_path)


def test_config_dir_must_be_a_directory(tmp_path) -> None:
    file_path = tmp_path / 'file'
    file_path.write_text('')

    with pytest.raises(NotADirectoryError):
        app.resolve_config_dir(str(file_path))
    with pytest.raises(FileNotFoundError):
        app.resolve_config_dir(str(tmp_path / 'missing'))


def test_initialize_writes_default_config_once(tmp_path) -> None:
    calls = []

    def running(network):
        calls.append(network)
        return {'web', 'db'}

    assert app.initialize(str(tmp_path), 'backend', list_running=running) is True
    assert app.initialize(str(tmp_path), 'backend', list_running=running) is False

    data = yaml.safe_load((tmp_path / CONFIG_FILE).read_text())
    assert data['containers'] == ['db', 'web']
    assert data['network'] == 'backend'
    assert calls == ['backend']


def test_initialize_propagates_runtime_errors(tmp_path) -> None:
    def unreachable(network):
        raise ContainerRuntimeError("no daemon")

    with pytest.raises(ContainerRuntimeError):
        app.initialize(str(tmp_path), 'all', list_running=unreachable)


def test_main_without_run_exits_cleanly(tmp_path, config_dict, monkeypatch) -> None:
    (tmp_path / CONFIG_FILE).write_text(yaml.safe_dump(config_dict))
    monkeypatch.setattr(app.ConfigLoader, 'load', lambda self: pytest.fail("must not load"))

    assert app.main(['-c', str(tmp_path)]) == 0


def test_main_rejects_missing_directory(tmp_path) -> None:
    assert app.main(['-c', str(tmp_path / 'missing')]) == 1


def test_main_rejects_invalid_config(tmp_path) -> None:
    (tmp_path / CONFIG_FILE).write_text('network: all\n')

    assert app.main(['-c', str(tmp_path), '-r']) == 1


def test_main_exits_after_generating_config(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(app, 'initialize', lambda config_dir, network: True)

    assert app.main(['-c', str(tmp_path), '-r']) == 0


def test_build_daemon_wires_controllers(config, sender, tmp_path) -> None:
    (tmp_path / LAST_ERROR_FILE).write_text('1700000000')

    daemon = app.build_daemon(config, sender=sender)

    assert daemon.error_controller.record.last_notified == 1700000000
    assert daemon.error_controller.snooze_seconds == 600
    assert daemon.resource_controller.snooze_seconds == 300
    assert daemon.resource_controller.alert_class.key == 'resource-alerts'
    assert daemon.presence_loop.containers == ['web', 'db', 'cache']
    assert daemon.presence_loop.interval == 60
    assert daemon.resource_loop.interval == 30
    assert daemon.presence_loop.dispatcher.error_controller is daemon.error_controller


def test_build_daemon_selects_content_fingerprint(config, sender) -> None:
    config.config['system']['fingerprint'] = 'content'

    daemon = app.build_daemon(config, sender=sender)

    assert daemon.resource_controller.alert_class.fingerprint is content_fingerprint
