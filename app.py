#!/usr/bin/env python3
"""
Dockmon entry point

Monitors the running containers and the system resources of the local
machine and sends alerts. Meant to be run under a process supervisor; it
only exits on its own when the configuration cannot be read.
"""

import argparse
import logging
import os
import sys
from dataclasses import dataclass
from typing import Callable, List, Optional

import yaml

from dockmon import __version__
from dockmon.alert_classes import DELIVERY_ERRORS, RESOURCE_ALERTS
from dockmon.config_loader import CONFIG_FILE, ConfigLoader, write_default_config
from dockmon.containers import list_running_containers
from dockmon.dispatcher import AlertDispatcher
from dockmon.email_sender import EmailSender, SmtpSettings
from dockmon.errors import ConfigError, ContainerRuntimeError
from dockmon.logger import setup_logging
from dockmon.presence_tracker import PresenceTracker
from dockmon.scheduler import PresenceLoop, ResourceLoop
from dockmon.snooze import FINGERPRINTS, SnoozeController
from dockmon.state_store import error_store_for, presence_store_for
from dockmon.status import create_app, start_status_server

logger = logging.getLogger('dockmon')

CONFIG_DIR_ENV = 'DOCKMON_CONFIGDIR'


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='dockmon',
        description='Monitors the running containers and system resources '
                    'in the local machine and sends alerts'
    )
    parser.add_argument('-c', '--configdir', default='',
                        help=f'Configuration directory (default: ${CONFIG_DIR_ENV} or .)')
    parser.add_argument('-n', '--network', default='all',
                        help='Container network name (default: all)')
    parser.add_argument('-r', '--run', action='store_true',
                        help='Runs the daemon')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser.parse_args(argv)


def resolve_config_dir(configdir: str) -> str:
    """
    Pick the configuration directory: flag, then environment, then cwd

    Raises:
        NotADirectoryError: If the chosen path is not a directory
        FileNotFoundError: If the chosen path does not exist
    """
    path = configdir.strip() or os.environ.get(CONFIG_DIR_ENV, '').strip() or '.'
    if not os.path.exists(path):
        raise FileNotFoundError(f"cannot find / access the directory {path!r}")
    if not os.path.isdir(path):
        raise NotADirectoryError(f"the path {path!r} is not a directory")
    return path


def initialize(config_dir: str, network: str,
               list_running: Callable[[str], set] = list_running_containers) -> bool:
    """
    Write a default configuration when none exists yet

    Returns:
        True if a new configuration file was written

    Raises:
        ContainerRuntimeError: If the running containers cannot be listed
    """
    config = ConfigLoader(config_dir)
    if config.exists():
        return False

    running = list_running(network)
    path = write_default_config(config_dir, sorted(running), network)
    logger.info("Config file initiated successfully!")
    logger.info("Edit the config file at '%s'", path)
    return True


@dataclass
class Daemon:
    """Every long-lived component, built once at startup"""
    config: ConfigLoader
    presence_loop: PresenceLoop
    resource_loop: ResourceLoop
    resource_controller: SnoozeController
    error_controller: SnoozeController

    def status_app(self):
        return create_app(
            self.presence_loop,
            self.resource_loop,
            self.resource_controller,
            self.error_controller
        )


def build_daemon(config: ConfigLoader, sender=None) -> Daemon:
    """Wire the loops, controllers and dispatcher from a loaded config"""
    if sender is None:
        sender = EmailSender(SmtpSettings.from_config(config))

    error_controller = SnoozeController(
        DELIVERY_ERRORS,
        config.error_snooze_time,
        store=error_store_for(config.config_dir)
    )
    resource_controller = SnoozeController(
        RESOURCE_ALERTS.with_fingerprint(FINGERPRINTS[config.fingerprint_mode]),
        config.system_snooze_time
    )
    dispatcher = AlertDispatcher(sender, config, error_controller)

    tracker = PresenceTracker(presence_store_for(config.config_dir), config.container_snooze_time)
    presence_loop = PresenceLoop(
        network=config.network,
        containers=config.containers,
        tracker=tracker,
        dispatcher=dispatcher,
        interval=config.container_check_interval
    )
    resource_loop = ResourceLoop(
        thresholds=config.thresholds(),
        controller=resource_controller,
        dispatcher=dispatcher,
        interval=config.system_check_interval
    )
    return Daemon(config, presence_loop, resource_loop, resource_controller, error_controller)


def main(argv: Optional[List[str]] = None) -> int:
    setup_logging()
    args = parse_args(argv)

    try:
        config_dir = resolve_config_dir(args.configdir)
    except OSError as e:
        logger.error("%s", e)
        return 1

    try:
        if initialize(config_dir, args.network):
            return 0
    except ContainerRuntimeError as e:
        logger.error("%s", e)
        return 1
    except OSError as e:
        logger.error("Cannot write config file: %s", e)
        return 1

    if not args.run:
        logger.info("Pass the '-r' flag to run the daemon!")
        logger.info("Pass the '-h' flag to see help")
        return 0

    config = ConfigLoader(config_dir)
    try:
        config.load()
    except (ConfigError, FileNotFoundError, yaml.YAMLError) as e:
        logger.error("Cannot load %s: %s", CONFIG_FILE, e)
        return 1

    daemon = build_daemon(config)

    if config.get('status.enabled', False):
        start_status_server(
            daemon.status_app(),
            config.get('status.host', '127.0.0.1'),
            int(config.get('status.port', 5001))
        )

    daemon.resource_loop.start_thread()
    daemon.presence_loop.run_forever()
    return 0


if __name__ == '__main__':
    sys.exit(main())
