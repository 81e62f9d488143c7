"""
Alert Dispatcher - Turns a notify decision into an email
"""

import logging
import time
from datetime import datetime
from typing import List, Optional

from .alert_classes import AlertClass
from .email_sender import AlertPayload
from .errors import DeliveryError
from .snooze import SnoozeController

logger = logging.getLogger(__name__)


class AlertDispatcher:
    """Sends alerts of any class through the email sender"""

    def __init__(self, sender, config, error_controller: SnoozeController):
        """
        Args:
            sender: Object with send(AlertPayload); raises DeliveryError
            config: Loaded ConfigLoader
            error_controller: Debounce for the delivery-error class, shared
                by every loop
        """
        self.sender = sender
        self.config = config
        self.error_controller = error_controller

    def payload_for(self, alert_class: AlertClass, messages: List[str],
                    now: Optional[int] = None) -> AlertPayload:
        timestamp = datetime.fromtimestamp(now) if now is not None else datetime.now()
        return AlertPayload(
            template=alert_class.template,
            subject=self.config.get(alert_class.subject_key) or alert_class.default_subject,
            recipients=self.config.recipients,
            messages=list(messages),
            server_address=self.config.server_address,
            timestamp=timestamp,
            chat_webhook_url=self.config.chat_webhook_url,
        )

    def dispatch(self, alert_class: AlertClass, messages: List[str],
                 now: Optional[int] = None) -> bool:
        """
        Send one alert

        Returns:
            True if the email was delivered, False if delivery failed
        """
        logger.info("Trying to send the %s email ...", alert_class.key)
        try:
            self.sender.send(self.payload_for(alert_class, messages, now))
        except DeliveryError as e:
            logger.error("%s", e)
            return False
        return True

    def notify(self, controller: SnoozeController, messages: List[str],
               now: Optional[int] = None) -> bool:
        """
        Check the controller, send when due, mark on success

        Returns:
            True if an email was delivered
        """
        if now is None:
            now = int(time.time())

        with controller.lock:
            if not controller.should_notify(messages, now):
                logger.info(
                    "Snoozing %s until %s",
                    controller.alert_class.key,
                    _format_epoch(controller.snooze_until())
                )
                return False

            if not self.dispatch(controller.alert_class, messages, now):
                return False

            controller.mark_notified(messages, now)
            return True

    def report_error(self, message: str, now: Optional[int] = None) -> bool:
        """Route a persistence failure through the delivery-error class"""
        logger.error("%s", message)
        return self.notify(self.error_controller, [message], now)


def _format_epoch(epoch: Optional[int]) -> str:
    if epoch is None:
        return '-'
    return datetime.fromtimestamp(epoch).strftime('%Y-%m-%dT%H:%M:%S')
