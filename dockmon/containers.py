"""
Container enumeration through the Docker SDK
"""

import logging
from typing import Iterable, List, Set

import docker
from docker.errors import DockerException
from requests.exceptions import RequestException

from .errors import ContainerRuntimeError

logger = logging.getLogger(__name__)

ALL_NETWORKS = 'all'


def list_running_containers(network: str, client=None) -> Set[str]:
    """
    Names of the containers running on a network

    Args:
        network: Network name, or 'all' for every network
        client: Docker client. A client from the environment is created
            (and closed) when None.

    Returns:
        Set of running container names

    Raises:
        ContainerRuntimeError: If the Docker API cannot be reached or no
            running container is found
    """
    filters = {'status': 'running'}
    if network != ALL_NETWORKS:
        filters['network'] = network

    owns_client = client is None
    try:
        if owns_client:
            client = docker.from_env()
        containers = client.containers.list(filters=filters)
    except (DockerException, RequestException) as e:
        raise ContainerRuntimeError(f"Cannot list running containers: {e}") from e
    finally:
        if owns_client and client is not None:
            client.close()

    names = {container.name.lstrip('/') for container in containers}
    if not names:
        raise ContainerRuntimeError(f"No running containers found in the {network!r} network")
    return names


def missing_containers(expected: Iterable[str], running: Iterable[str]) -> List[str]:
    """Expected container names not in running, in expected order"""
    running = set(running)
    return [name for name in expected if name not in running]
