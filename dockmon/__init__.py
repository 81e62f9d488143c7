"""
Dockmon - Container presence and host resource monitoring daemon

This package sends debounced email alerts when:
- Configured containers are not running on the watched network
- CPU, memory, disk or directory size reach their thresholds
- The daemon itself cannot persist its state
"""

__version__ = '1.0.0'

from .alert_classes import ALERT_CLASSES, DELIVERY_ERRORS, MISSING_CONTAINERS, RESOURCE_ALERTS, AlertClass
from .config_loader import ConfigLoader
from .dispatcher import AlertDispatcher
from .email_sender import AlertPayload, EmailSender, SmtpSettings
from .errors import ConfigError, ContainerRuntimeError, DeliveryError, DockmonError, StateError
from .presence_tracker import PresenceTracker, compare_states
from .scheduler import PresenceLoop, ResourceLoop
from .snooze import SnoozeController, SnoozeRecord
from .thresholds import MetricSnapshot, ThresholdConfig, evaluate_thresholds

__all__ = [
    'ALERT_CLASSES',
    'DELIVERY_ERRORS',
    'MISSING_CONTAINERS',
    'RESOURCE_ALERTS',
    'AlertClass',
    'AlertDispatcher',
    'AlertPayload',
    'ConfigError',
    'ConfigLoader',
    'ContainerRuntimeError',
    'DeliveryError',
    'DockmonError',
    'EmailSender',
    'MetricSnapshot',
    'PresenceLoop',
    'PresenceTracker',
    'ResourceLoop',
    'SmtpSettings',
    'SnoozeController',
    'SnoozeRecord',
    'StateError',
    'ThresholdConfig',
    'compare_states',
    'evaluate_thresholds',
]
