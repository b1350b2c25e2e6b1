"""Outbound notification channels: chat webhook and email.

Each channel's ``send`` returns True when the message was delivered and
False otherwise. Delivery errors are logged here and never raised, so one
channel failing cannot stop another from being tried.
"""

import smtplib
from email.message import EmailMessage
from typing import Callable, Optional

import httpx

from pollstats.logging_config import get_logger

logger = get_logger(__name__)


class SlackNotifier:
    """Posts messages to a Slack-compatible incoming webhook.

    Usage:
        notifier = SlackNotifier("https://hooks.slack.com/services/...")
        notifier.send("New submission!", channel="#general")
    """

    def __init__(
        self,
        webhook_url: Optional[str],
        username: str = "VendFinder Poll Bot",
        icon_emoji: str = ":bar_chart:",
        timeout: float = 10.0,
        http_client: Optional[httpx.Client] = None,
    ):
        """Initialize the notifier.

        Args:
            webhook_url: Incoming webhook URL, or None to disable chat alerts
            username: Display name for posted messages
            icon_emoji: Icon for posted messages
            timeout: Request timeout in seconds
            http_client: Preconfigured client (tests pass a mock transport)
        """
        self.webhook_url = webhook_url
        self.username = username
        self.icon_emoji = icon_emoji
        self._http = http_client or httpx.Client(timeout=httpx.Timeout(timeout))

    @property
    def configured(self) -> bool:
        """Whether a webhook URL is set."""
        return bool(self.webhook_url)

    def send(self, message: str, channel: str) -> bool:
        """Post a message to a channel.

        Args:
            message: Message text
            channel: Target channel (e.g., "#general")

        Returns:
            True if the webhook accepted the message, False otherwise
        """
        if not self.webhook_url:
            logger.warning("Slack webhook URL not configured")
            return False

        logger.info(f"Sending Slack notification to {channel}: {message[:50]}...")

        payload = {
            "channel": channel,
            "username": self.username,
            "icon_emoji": self.icon_emoji,
            "text": message,
        }
        try:
            response = self._http.post(self.webhook_url, json=payload)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Failed to send Slack notification: {e}")
            return False

        logger.info(
            f"Slack notification sent successfully to {channel}, "
            f"response: {response.status_code}"
        )
        return True

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._http.close()


class EmailNotifier:
    """Sends HTML alert emails over SMTP with STARTTLS.

    Usage:
        notifier = EmailNotifier(
            host="smtp.gmail.com", port=587,
            user="alerts@example.com", password="app-password",
            sender="Poll System <noreply@example.com>",
            recipient="team@example.com",
        )
        notifier.send("Alert", "<h2>Hello</h2>")
    """

    def __init__(
        self,
        host: str,
        port: int,
        user: Optional[str],
        password: Optional[str],
        sender: str,
        recipient: str,
        timeout: float = 10.0,
        smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender
        self.recipient = recipient
        self.timeout = timeout
        self._smtp_factory = smtp_factory

    @property
    def configured(self) -> bool:
        """Whether SMTP credentials are set."""
        return bool(self.user and self.password)

    def build_message(self, subject: str, html_content: str, to: Optional[str] = None) -> EmailMessage:
        """Build a multipart message with a plain-text fallback."""
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.sender
        message["To"] = to or self.recipient
        message.set_content("This alert is best viewed in an HTML-capable mail client.")
        message.add_alternative(html_content, subtype="html")
        return message

    def send(self, subject: str, html_content: str, to: Optional[str] = None) -> bool:
        """Send an HTML email.

        Args:
            subject: Subject line
            html_content: HTML body
            to: Recipient (defaults to the configured alert inbox)

        Returns:
            True if the SMTP server accepted the message, False otherwise
        """
        if not self.configured:
            logger.warning("Email credentials not configured, skipping email notification")
            return False

        message = self.build_message(subject, html_content, to)
        try:
            with self._smtp_factory(self.host, self.port, timeout=self.timeout) as smtp:
                smtp.starttls()
                smtp.login(self.user, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email notification: {e}")
            return False

        logger.info(f"Email notification sent to {message['To']}: {subject}")
        return True
