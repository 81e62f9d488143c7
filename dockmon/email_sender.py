"""
Email Sender - Renders alert templates and sends them via SMTP
"""

import html
import logging
import smtplib
from dataclasses import dataclass, field
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Callable, Dict, List, Optional, Tuple

from .errors import DeliveryError

logger = logging.getLogger(__name__)


@dataclass
class AlertPayload:
    """Everything needed to render and send one alert email"""
    template: str
    subject: str
    recipients: List[str]
    messages: List[str]
    server_address: str
    timestamp: datetime = field(default_factory=datetime.now)
    chat_webhook_url: Optional[str] = None


@dataclass
class SmtpSettings:
    """SMTP connection parameters"""
    server: str
    port: int
    sender: str
    sender_name: str = 'Dockmon'
    username: Optional[str] = None
    password: Optional[str] = None
    auth_enabled: bool = True
    use_tls: bool = True
    timeout: float = 30

    @classmethod
    def from_config(cls, config) -> 'SmtpSettings':
        return cls(
            server=config.get('smtp.server'),
            port=config.get('smtp.port'),
            sender=config.get('smtp.sender'),
            sender_name=config.get('smtp.sender_name', 'Dockmon'),
            username=config.get('smtp.username'),
            password=config.get('smtp.password'),
            auth_enabled=config.get('smtp.auth_enabled', True),
            use_tls=config.get('smtp.use_tls', True),
            timeout=config.get('smtp.timeout', 30),
        )


# template name -> (title, intro line, accent color)
TEMPLATES: Dict[str, Tuple[str, str, str]] = {
    'container-alert': (
        'Containers Not Running',
        'The following containers are not running.',
        '#ef4444',
    ),
    'resource-alert': (
        'Server Resources Reached Threshold',
        'The following system resources reached their threshold.',
        '#f59e0b',
    ),
    'error-alert': (
        'Something Went Wrong',
        'Dockmon cannot keep track of the container state on this server.',
        '#ef4444',
    ),
}


class EmailSender:
    """Handles sending alert emails"""

    def __init__(self, settings: SmtpSettings,
                 smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP):
        """
        Initialize email sender

        Args:
            settings: SMTP connection parameters
            smtp_factory: Callable returning an SMTP connection; swapped in tests
        """
        self.settings = settings
        self.smtp_factory = smtp_factory

    def _render_items(self, payload: AlertPayload, color: str) -> str:
        items = ""
        for message in payload.messages:
            items += f"""
                <li style="margin: 8px 0; padding: 10px 14px; background: #1e293b;
                           border-left: 4px solid {color}; border-radius: 6px; color: #e2e8f0;">
                    {html.escape(message)}
                </li>"""
        return items

    def render_html(self, payload: AlertPayload) -> str:
        """
        Create HTML content for an alert email

        Args:
            payload: Alert to render

        Returns:
            HTML string

        Raises:
            DeliveryError: If the template name is unknown
        """
        title, intro, color = self._template(payload.template)

        webhook = ""
        if payload.chat_webhook_url:
            url = html.escape(payload.chat_webhook_url, quote=True)
            webhook = f"""
            <a href="{url}"
               style="display: inline-block; background: #3b82f6; color: white;
                      padding: 8px 16px; text-decoration: none; border-radius: 6px;
                      font-size: 14px;">
                → Open Team Channel
            </a>"""

        return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Dockmon - {title}</title>
</head>
<body style="margin: 0; padding: 0; font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;
             background: #0f172a; color: #e2e8f0;">
    <div style="max-width: 800px; margin: 0 auto; padding: 40px 20px;">

        <!-- Header -->
        <div style="text-align: center; margin-bottom: 30px;">
            <h1 style="color: #3b82f6; font-size: 32px; margin: 0 0 10px 0;">Dockmon</h1>
            <p style="color: #94a3b8; font-size: 16px; margin: 0;">
                Server {html.escape(payload.server_address)}
            </p>
        </div>

        <!-- Alert Title -->
        <div style="border: 2px solid {color}; border-radius: 12px; padding: 20px;
                    margin-bottom: 30px; text-align: center;">
            <h2 style="margin: 0; color: {color}; font-size: 24px;">{title}</h2>
            <p style="margin: 10px 0 0 0; color: #94a3b8; font-size: 14px;">
                {payload.timestamp.strftime('%Y-%m-%d %H:%M:%S')}
            </p>
        </div>

        <!-- Alerts Content -->
        <p style="color: #e2e8f0;">{intro}</p>
        <ul style="list-style: none; padding: 0;">{self._render_items(payload, color)}
        </ul>

        <!-- Footer -->
        <div style="text-align: center; margin-top: 30px; padding-top: 20px;
                    border-top: 1px solid #334155;">
            <p style="color: #64748b; font-size: 14px; margin: 0 0 10px 0;">
                Dockmon Alert System
            </p>{webhook}
        </div>
    </div>
</body>
</html>
        """

    def render_text(self, payload: AlertPayload) -> str:
        """Plain text version of the email (fallback)"""
        title, intro, _ = self._template(payload.template)

        text = f"Dockmon - {title}\n"
        text += "=" * (len(text) - 1) + "\n\n"
        text += f"Server: {payload.server_address}\n"
        text += f"Time: {payload.timestamp.strftime('%Y-%m-%d %H:%M:%S')}\n\n"
        text += f"{intro}\n\n"
        for message in payload.messages:
            text += f"- {message}\n"
        if payload.chat_webhook_url:
            text += f"\nTeam channel: {payload.chat_webhook_url}\n"
        text += "\n---\nDockmon Alert System\n"
        return text

    def _template(self, name: str) -> Tuple[str, str, str]:
        try:
            return TEMPLATES[name]
        except KeyError:
            raise DeliveryError(f"Unknown email template: {name}") from None

    def build_message(self, payload: AlertPayload) -> MIMEMultipart:
        """Build the multipart/alternative message for a payload"""
        msg = MIMEMultipart('alternative')
        msg['Subject'] = payload.subject
        msg['From'] = formataddr((self.settings.sender_name, self.settings.sender))
        msg['To'] = ', '.join(payload.recipients)

        msg.attach(MIMEText(self.render_text(payload), 'plain', 'utf-8'))
        msg.attach(MIMEText(self.render_html(payload), 'html', 'utf-8'))
        return msg

    def send(self, payload: AlertPayload):
        """
        Render and send one alert email

        Args:
            payload: Alert to send

        Raises:
            DeliveryError: If rendering or any SMTP step fails
        """
        if not payload.recipients:
            raise DeliveryError("No recipients configured")

        msg = self.build_message(payload)
        settings = self.settings

        try:
            with self.smtp_factory(settings.server, settings.port, timeout=settings.timeout) as server:
                if settings.use_tls:
                    server.starttls()
                if settings.auth_enabled:
                    server.login(settings.username, settings.password)
                server.send_message(msg, to_addrs=payload.recipients)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"Failed to send {payload.template} email: {e}") from e

        logger.info("Email sent to %d recipient(s): %s", len(payload.recipients), payload.subject)
