"""
Alert Classes - The three independently debounced notification categories
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict

from .snooze import Fingerprint, count_fingerprint


class AlertPriority(Enum):
    """Alert priority levels"""
    CRITICAL = "critical"
    WARNING = "warning"


@dataclass(frozen=True)
class AlertClass:
    """Static description of one alert category"""
    key: str
    template: str
    subject_key: str
    default_subject: str
    priority: AlertPriority
    tracks_fingerprint: bool = False
    fingerprint: Fingerprint = count_fingerprint

    def with_fingerprint(self, fingerprint: Fingerprint) -> 'AlertClass':
        return replace(self, fingerprint=fingerprint)


MISSING_CONTAINERS = AlertClass(
    key='missing-containers',
    template='container-alert',
    subject_key='smtp.email_subject',
    default_subject='[ALERT] Containers Not Running | Dockmon',
    priority=AlertPriority.CRITICAL,
)

RESOURCE_ALERTS = AlertClass(
    key='resource-alerts',
    template='resource-alert',
    subject_key='smtp.sys_alert_subject',
    default_subject='[ALERT] Server Resources Reached Threshold | Dockmon',
    priority=AlertPriority.WARNING,
    tracks_fingerprint=True,
)

DELIVERY_ERRORS = AlertClass(
    key='delivery-errors',
    template='error-alert',
    subject_key='smtp.error_subject',
    default_subject='[ERROR] Dockmon Cannot Track State | Dockmon',
    priority=AlertPriority.CRITICAL,
)

ALERT_CLASSES: Dict[str, AlertClass] = {
    alert_class.key: alert_class
    for alert_class in (MISSING_CONTAINERS, RESOURCE_ALERTS, DELIVERY_ERRORS)
}
