from __future__ import annotations

import pytest
from docker.errors import DockerException
from requests.exceptions import ConnectionError as RequestsConnectionError

from dockmon import containers
from dockmon.containers import list_running_containers, missing_containers
from dockmon.errors import ContainerRuntimeError

from conftest import DummyDockerClient


def test_lists_running_names_on_network() -> None:
    client = DummyDockerClient(['/web', 'db'])

    names = list_running_containers('backend', client=client)

    assert names == {'web', 'db'}
    assert client.containers.filters == {'status': 'running', 'network': 'backend'}
    assert client.closed is False


def test_all_network_does_not_filter_by_network() -> None:
    client = DummyDockerClient(['web'])

    list_running_containers('all', client=client)

    assert client.containers.filters == {'status': 'running'}


def test_no_running_containers_is_an_error() -> None:
    with pytest.raises(ContainerRuntimeError):
        list_running_containers('backend', client=DummyDockerClient([]))


def test_docker_failure_is_wrapped_and_client_closed(monkeypatch) -> None:
    client = DummyDockerClient(['web'])

    def explode(filters=None):
        raise DockerException("socket gone")

    client.containers.list = explode
    monkeypatch.setattr(containers.docker, 'from_env', lambda: client)

    with pytest.raises(ContainerRuntimeError):
        list_running_containers('backend')

    assert client.closed is True


def test_unreachable_daemon_is_wrapped(monkeypatch) -> None:
    def refuse():
        raise DockerException("Error while fetching server API version")

    monkeypatch.setattr(containers.docker, 'from_env', refuse)

    with pytest.raises(ContainerRuntimeError):
        list_running_containers('backend')


def test_connection_lost_while_listing_is_wrapped() -> None:
    client = DummyDockerClient(['web'])

    def drop(filters=None):
        raise RequestsConnectionError("Connection aborted")

    client.containers.list = drop

    with pytest.raises(ContainerRuntimeError):
        list_running_containers('backend', client=client)


def test_missing_containers_keeps_expected_order() -> None:
    assert missing_containers(['web', 'db', 'cache'], {'db'}) == ['web', 'cache']
    assert missing_containers(['web'], ['web', 'other']) == []
