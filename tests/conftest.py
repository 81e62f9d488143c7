"""Shared test fixtures and dummy classes."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from dockmon.alert_classes import DELIVERY_ERRORS
from dockmon.config_loader import ConfigLoader
from dockmon.dispatcher import AlertDispatcher
from dockmon.errors import DeliveryError
from dockmon.snooze import SnoozeController
from dockmon.state_store import error_store_for

BASE_CONFIG: dict[str, Any] = {
    'network': 'backend',
    'server_address': '10.0.0.5',
    'chat_webhook_url': 'https://chat.example.com/team',
    'containers': ['web', 'db', 'cache'],
    'containers_check': {'check_interval': 60, 'snooze_time': 300},
    'errors': {'snooze_time': 600},
    'system': {
        'cpu_stat_interval': 1,
        'cpu_threshold': 90,
        'mem_threshold': 80,
        'disk_threshold': {'/': 85},
        'dir_threshold': {'/var/log': 1024},
        'check_interval': 30,
        'snooze_time': 300,
        'fingerprint': 'count',
    },
    'smtp': {
        'server': 'smtp.example.com',
        'port': 587,
        'username': 'dockmon',
        'password': 'secret',
        'sender': 'dockmon@example.com',
        'sender_name': 'Dockmon',
        'receivers': ['ops@example.com', 'dev@example.com'],
        'email_subject': 'Containers down',
        'sys_alert_subject': 'Resources high',
        'error_subject': 'Dockmon error',
        'auth_enabled': True,
        'use_tls': True,
        'timeout': 5,
    },
}


class DummySender:
    """Records payloads; fails while `fail` is set."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list = []
        self.attempts = 0

    def send(self, payload) -> None:
        self.attempts += 1
        if self.fail:
            raise DeliveryError("smtp down")
        self.sent.append(payload)

    def templates(self) -> list[str]:
        return [p.template for p in self.sent]


class DummyContainer:
    def __init__(self, name: str) -> None:
        self.name = name


class DummyContainers:
    def __init__(self, names: list[str]) -> None:
        self.names = names
        self.filters: dict | None = None

    def list(self, filters: dict | None = None) -> list[DummyContainer]:
        self.filters = filters
        return [DummyContainer(n) for n in self.names]


class DummyDockerClient:
    """Minimal stand-in for docker.DockerClient."""

    def __init__(self, names: list[str]) -> None:
        self.containers = DummyContainers(names)
        self.closed = False

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def config_dict() -> dict[str, Any]:
    return copy.deepcopy(BASE_CONFIG)


@pytest.fixture
def config(tmp_path, config_dict) -> ConfigLoader:
    loader = ConfigLoader(str(tmp_path))
    loader.load_dict(config_dict)
    return loader


@pytest.fixture
def sender() -> DummySender:
    return DummySender()


@pytest.fixture
def error_controller(tmp_path) -> SnoozeController:
    return SnoozeController(DELIVERY_ERRORS, 600, store=error_store_for(str(tmp_path)))


@pytest.fixture
def dispatcher(sender, config, error_controller) -> AlertDispatcher:
    return AlertDispatcher(sender, config, error_controller)
