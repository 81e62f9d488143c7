"""
Configuration loader and validator for Dockmon
"""

import logging
import os
import re
import socket
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError
from .snooze import FINGERPRINTS
from .thresholds import ThresholdConfig

logger = logging.getLogger(__name__)

CONFIG_FILE = 'dockmon.yml'

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'

DEFAULT_CHECK_INTERVAL = 60
DEFAULT_SNOOZE_TIME = 360


class ConfigLoader:
    """Loads and validates the daemon configuration from a YAML file"""

    def __init__(self, config_dir: str = '.', file_name: str = CONFIG_FILE):
        """
        Initialize config loader

        Args:
            config_dir: Directory holding the configuration and state files
            file_name: Configuration file name inside config_dir
        """
        self.config_dir = config_dir
        self.config_path = os.path.join(config_dir, file_name)
        self.config = None

    def exists(self) -> bool:
        return os.path.exists(self.config_path)

    def load(self) -> Dict[str, Any]:
        """
        Load configuration from YAML file

        Returns:
            Dict containing configuration

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML is invalid
            ConfigError: If configuration validation fails
        """
        if not self.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path}\n"
                f"Run without --run to generate a default one."
            )

        with open(self.config_path, 'r', encoding='utf-8') as f:
            self.config = yaml.safe_load(f)

        # Expand environment variables
        self.config = self._expand_env_vars(self.config)

        self._validate()

        return self.config

    def load_dict(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Validate an already parsed configuration (used by tests and tools)"""
        self.config = self._expand_env_vars(config)
        self._validate()
        return self.config

    def _expand_env_vars(self, config: Any) -> Any:
        """
        Recursively expand environment variables in config
        Supports ${VAR_NAME} syntax

        Args:
            config: Configuration dict or value

        Returns:
            Config with expanded environment variables
        """
        if isinstance(config, dict):
            return {key: self._expand_env_vars(value) for key, value in config.items()}
        elif isinstance(config, list):
            return [self._expand_env_vars(item) for item in config]
        elif isinstance(config, str):
            pattern = r'\$\{([^}]+)\}'

            def replace_env(match):
                var_name = match.group(1)
                return os.environ.get(var_name, match.group(0))

            return re.sub(pattern, replace_env, config)
        else:
            return config

    def _validate(self):
        """
        Validate configuration structure and values

        Raises:
            ConfigError: If configuration is invalid
        """
        if not self.config:
            raise ConfigError("Configuration is empty")
        if not isinstance(self.config, dict):
            raise ConfigError("Configuration must be a mapping")

        containers = self.config.get('containers') or []
        if not isinstance(containers, list) or not all(isinstance(c, str) for c in containers):
            raise ConfigError("containers must be a list of container names")

        self._validate_interval('containers_check.check_interval')
        self._validate_interval('system.check_interval')
        for key in ('containers_check.snooze_time', 'system.snooze_time', 'errors.snooze_time'):
            if self._number(key, 0) < 0:
                raise ConfigError(f"{key} must not be negative")

        self._validate_thresholds()

        if self.get('system.fingerprint', 'count') not in FINGERPRINTS:
            raise ConfigError(
                f"system.fingerprint must be one of: {', '.join(sorted(FINGERPRINTS))}"
            )

        self._validate_smtp()

    def _validate_interval(self, key: str):
        if self._number(key, DEFAULT_CHECK_INTERVAL) < 1:
            raise ConfigError(f"{key} must be at least 1")

    def _number(self, key: str, default: float) -> float:
        value = self.get(key, default)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"{key} must be a number")
        return value

    def _validate_thresholds(self):
        for key in ('system.cpu_threshold', 'system.mem_threshold'):
            value = self._number(key, 0)
            if value < 0 or value > 100:
                raise ConfigError(f"{key} must be between 0 and 100")

        for key in ('system.disk_threshold', 'system.dir_threshold'):
            if not isinstance(self.get(key) or {}, dict):
                raise ConfigError(f"{key} must be a mapping")

        for mount, value in (self.get('system.disk_threshold') or {}).items():
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0 or value > 100:
                raise ConfigError(f"disk threshold for {mount!r} must be between 0 and 100")

        for path, value in (self.get('system.dir_threshold') or {}).items():
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigError(f"directory threshold for {path!r} must be a byte count")

    def _validate_smtp(self):
        smtp = self.config.get('smtp')
        if not isinstance(smtp, dict):
            raise ConfigError("Missing required configuration section: smtp")

        for field in ('server', 'port', 'sender', 'receivers'):
            if field not in smtp:
                raise ConfigError(f"Missing required smtp field: {field}")

        if smtp.get('auth_enabled', True):
            for field in ('username', 'password'):
                if field not in smtp:
                    raise ConfigError(f"Missing required smtp field: {field}")

        if not smtp['receivers']:
            raise ConfigError("At least one receiver email is required")

        if not re.match(EMAIL_PATTERN, str(smtp['sender'])):
            raise ConfigError(f"Invalid sender email format: {smtp['sender']}")

        for receiver in smtp['receivers']:
            if not re.match(EMAIL_PATTERN, str(receiver)):
                raise ConfigError(f"Invalid receiver email format: {receiver}")

        port = smtp['port']
        if isinstance(port, bool) or not isinstance(port, int) or port < 1 or port > 65535:
            raise ConfigError("smtp.port must be between 1 and 65535")

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-separated key path

        Args:
            key_path: Dot-separated path (e.g., 'smtp.server')
            default: Default value if key not found

        Returns:
            Configuration value

        Example:
            config.get('system.cpu_threshold')  # Returns 90
            config.get('smtp.server')            # Returns 'smtp.gmail.com'
        """
        if not self.config:
            return default

        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    @property
    def network(self) -> str:
        return self.get('network', 'all')

    @property
    def containers(self) -> List[str]:
        return list(self.get('containers') or [])

    @property
    def recipients(self) -> List[str]:
        return list(self.get('smtp.receivers') or [])

    @property
    def server_address(self) -> str:
        return self.get('server_address') or '0.0.0.0'

    @property
    def chat_webhook_url(self) -> Optional[str]:
        return self.get('chat_webhook_url') or None

    @property
    def container_check_interval(self) -> int:
        return int(self.get('containers_check.check_interval', DEFAULT_CHECK_INTERVAL))

    @property
    def container_snooze_time(self) -> int:
        return int(self.get('containers_check.snooze_time', DEFAULT_SNOOZE_TIME))

    @property
    def system_check_interval(self) -> int:
        return int(self.get('system.check_interval', DEFAULT_CHECK_INTERVAL))

    @property
    def system_snooze_time(self) -> int:
        return int(self.get('system.snooze_time', DEFAULT_SNOOZE_TIME))

    @property
    def error_snooze_time(self) -> int:
        """Delivery-error snooze, falls back to the container snooze"""
        return int(self.get('errors.snooze_time', self.container_snooze_time))

    @property
    def fingerprint_mode(self) -> str:
        return self.get('system.fingerprint', 'count')

    def thresholds(self) -> ThresholdConfig:
        """Build the resource thresholds from the system section"""
        return ThresholdConfig(
            cpu=float(self.get('system.cpu_threshold', 0) or 0),
            mem=float(self.get('system.mem_threshold', 0) or 0),
            disk={str(k): float(v) for k, v in (self.get('system.disk_threshold') or {}).items()},
            dirs={str(k): int(v) for k, v in (self.get('system.dir_threshold') or {}).items()},
            cpu_stat_interval=int(self.get('system.cpu_stat_interval', 1) or 1),
        )


def get_outbound_ip() -> str:
    """
    Local address used for outbound traffic

    No packet is sent; connecting a UDP socket only selects a route.
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(('8.8.8.8', 80))
            return sock.getsockname()[0]
    except OSError as e:
        logger.error("Cannot get the outbound IP: %s", e)
        logger.error("Please set server_address manually in the '%s' file!", CONFIG_FILE)
        return '0.0.0.0'


def default_config(running_containers: List[str], network: str,
                   server_address: Optional[str] = None) -> Dict[str, Any]:
    """
    Default configuration listing the containers running right now

    Args:
        running_containers: Names that become the watched containers
        network: Container network name
        server_address: Address shown in alert mails (outbound IP if None)
    """
    return {
        'network': network,
        'server_address': server_address or get_outbound_ip(),
        'chat_webhook_url': '',
        'containers': sorted(running_containers),
        'containers_check': {
            'check_interval': DEFAULT_CHECK_INTERVAL,
            'snooze_time': DEFAULT_SNOOZE_TIME,
        },
        'errors': {
            'snooze_time': DEFAULT_SNOOZE_TIME,
        },
        'system': {
            'cpu_stat_interval': 1,
            'cpu_threshold': 0,
            'mem_threshold': 0,
            'disk_threshold': {'/': 0, '/root': 0},
            'dir_threshold': {},
            'check_interval': DEFAULT_CHECK_INTERVAL,
            'snooze_time': DEFAULT_SNOOZE_TIME,
            'fingerprint': 'count',
        },
        'smtp': {
            'server': 'smtp.example.com',
            'port': 587,
            'username': 'dockmon',
            'password': '${DOCKMON_SMTP_PASSWORD}',
            'sender': 'dockmon@example.com',
            'sender_name': 'Dockmon',
            'receivers': ['ops@example.com'],
            'email_subject': '[ALERT] Containers Not Running | Dockmon',
            'sys_alert_subject': '[ALERT] Server Resources Reached Threshold | Dockmon',
            'error_subject': '[ERROR] Dockmon Cannot Track State | Dockmon',
            'auth_enabled': True,
            'use_tls': True,
            'timeout': 30,
        },
        'status': {
            'enabled': False,
            'host': '127.0.0.1',
            'port': 5001,
        },
    }


def write_default_config(config_dir: str, running_containers: List[str], network: str,
                         server_address: Optional[str] = None,
                         file_name: str = CONFIG_FILE) -> str:
    """
    Write the default configuration file

    Returns:
        Path of the written file
    """
    path = os.path.join(config_dir, file_name)
    data = default_config(running_containers, network, server_address)
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    return path
