"""Notification dispatcher for newly recorded poll responses.

This module decides which alerts a submission deserves and sends them.
Trigger evaluation is a pure function of the submitted fields; delivery
goes through the chat and email notifiers, each attempted independently.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from pollstats.logging_config import get_logger
from pollstats.services.cache import AggregateCache, DAILY_SUBMISSIONS_PREFIX
from pollstats.services.notifiers import EmailNotifier, SlackNotifier
from pollstats.services.template_renderer import (
    TemplateRenderer,
    TemplateRenderError,
    get_template_renderer,
)

logger = get_logger(__name__)

VERY_INTERESTED = "very-interested"

HIGH_VALUE_CHAT_TEMPLATE = (
    "🎉 High-value user alert!\n"
    "💰 Willing to pay: ${{ price_willing }}/month\n"
    "⭐ Interest level: {{ interest }}\n"
    "🎯 Use cases: {{ use_cases | join(', ') }}\n"
    "📧 Email: {{ email or 'Not provided' }}\n"
    "⏱️ Completion time: {{ completion_seconds }}s\n"
    "🔄 Interactions: {{ interaction_count }}"
)

HIGH_INTEREST_CHAT_TEMPLATE = (
    "⭐ Very interested user!\n"
    "💰 Price point: ${{ price_willing }}/month\n"
    "📧 Email: {{ email or 'Not provided' }}\n"
    "🎯 Use cases: {{ use_cases | join(', ') }}"
)

HIGH_VALUE_EMAIL_SUBJECT = "🎉 High-Value User Alert - VendFinder Poll"

HIGH_VALUE_EMAIL_TEMPLATE = """
<h2>🎉 High-Value User Alert</h2>
<p>A user has expressed willingness to pay <strong>${{ price_willing }}/month</strong>!</p>
<ul>
    <li><strong>Interest Level:</strong> {{ interest }}</li>
    <li><strong>Use Cases:</strong> {{ use_cases | join(', ') }}</li>
    <li><strong>Email:</strong> {{ email or 'Not provided' }}</li>
    <li><strong>Completion Time:</strong> {{ completion_seconds }} seconds</li>
    <li><strong>Engagement Score:</strong> {{ interaction_count }} interactions</li>
</ul>
"""


@dataclass(frozen=True)
class SubmissionSummary:
    """Fields of a recorded response that notifications care about."""

    interest: Optional[str]
    price_willing: Optional[int]
    use_cases: List[str] = field(default_factory=list)
    email: Optional[str] = None
    time_to_complete: Optional[int] = None
    interaction_count: Optional[int] = None
    submitted_at: Optional[datetime] = None

    @property
    def completion_seconds(self) -> Optional[int]:
        """Completion time in whole seconds, half rounded up."""
        if self.time_to_complete is None:
            return None
        return (self.time_to_complete + 500) // 1000

    def template_context(self) -> dict:
        return {
            "interest": self.interest or "not specified",
            "price_willing": self.price_willing if self.price_willing is not None else "n/a",
            "use_cases": self.use_cases or ["none"],
            "email": self.email,
            "completion_seconds": (
                self.completion_seconds if self.completion_seconds is not None else "n/a"
            ),
            "interaction_count": (
                self.interaction_count if self.interaction_count is not None else "n/a"
            ),
        }


@dataclass(frozen=True)
class NotificationTriggers:
    """Which alert conditions a submission meets.

    Attributes:
        high_value: Price above the high-value threshold
        high_interest: Respondent is very interested
    """

    high_value: bool
    high_interest: bool


@dataclass
class DispatchResult:
    """Outcome of one dispatch, for logging and tests."""

    triggers: NotificationTriggers
    chat_sent: int = 0
    email_sent: bool = False
    daily_count: Optional[int] = None


def evaluate_triggers(
    price_willing: Optional[int],
    interest: Optional[str],
    high_value_threshold: int = 20,
) -> NotificationTriggers:
    """Evaluate alert conditions for a submission.

    Args:
        price_willing: Monthly price the respondent would pay
        interest: Interest level
        high_value_threshold: Price strictly above which a response is high value

    Returns:
        NotificationTriggers with each condition evaluated independently

    Example:
        >>> evaluate_triggers(21, "curious")
        NotificationTriggers(high_value=True, high_interest=False)
        >>> evaluate_triggers(20, "very-interested")
        NotificationTriggers(high_value=False, high_interest=True)
    """
    return NotificationTriggers(
        high_value=price_willing is not None and price_willing > high_value_threshold,
        high_interest=interest == VERY_INTERESTED,
    )


def daily_counter_key(moment: datetime) -> str:
    """Cache key of the submission counter for the UTC day of ``moment``."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return f"{DAILY_SUBMISSIONS_PREFIX}{moment.date().isoformat()}"


class NotificationDispatcher:
    """Sends alerts for qualifying submissions and counts daily submissions.

    Nothing in ``notify`` raises: every channel is attempted on its own
    and failures are logged, so a submission is never reported as failed
    because of a notification.
    """

    def __init__(
        self,
        chat: SlackNotifier,
        email: EmailNotifier,
        cache: AggregateCache,
        renderer: Optional[TemplateRenderer] = None,
        channel: str = "#general",
        high_value_threshold: int = 20,
        daily_counter_ttl: int = 86400,
    ):
        self.chat = chat
        self.email = email
        self.cache = cache
        self.renderer = renderer or get_template_renderer()
        self.channel = channel
        self.high_value_threshold = high_value_threshold
        self.daily_counter_ttl = daily_counter_ttl

    def notify(self, summary: SubmissionSummary) -> DispatchResult:
        """Send the alerts a submission qualifies for.

        Flow:
        1. Evaluate high-value and high-interest triggers
        2. High value: chat alert and email alert
        3. High interest: chat alert
        4. Increment the daily submission counter

        Args:
            summary: Fields of the recorded response

        Returns:
            DispatchResult describing what was delivered
        """
        triggers = evaluate_triggers(
            summary.price_willing, summary.interest, self.high_value_threshold
        )
        result = DispatchResult(triggers=triggers)
        context = summary.template_context()

        if triggers.high_value:
            if self._send_chat(HIGH_VALUE_CHAT_TEMPLATE, context):
                result.chat_sent += 1
            result.email_sent = self._send_email(
                HIGH_VALUE_EMAIL_SUBJECT, HIGH_VALUE_EMAIL_TEMPLATE, context
            )

        if triggers.high_interest:
            if self._send_chat(HIGH_INTEREST_CHAT_TEMPLATE, context):
                result.chat_sent += 1

        moment = summary.submitted_at or datetime.now(timezone.utc)
        result.daily_count = self.cache.increment(
            daily_counter_key(moment), self.daily_counter_ttl
        )

        logger.info(
            f"Dispatched notifications: high_value={triggers.high_value}, "
            f"high_interest={triggers.high_interest}, chat_sent={result.chat_sent}, "
            f"email_sent={result.email_sent}"
        )
        return result

    def _send_chat(self, template: str, context: dict) -> bool:
        try:
            message = self.renderer.render(template, context)
        except TemplateRenderError as e:
            logger.error(f"Could not render chat alert: {e}")
            return False
        try:
            return self.chat.send(message, self.channel)
        except Exception as e:
            # Notifiers are expected to return False rather than raise
            logger.error(f"Chat notifier raised: {e}", exc_info=True)
            return False

    def _send_email(self, subject: str, template: str, context: dict) -> bool:
        try:
            html = self.renderer.render(template, context, html=True)
        except TemplateRenderError as e:
            logger.error(f"Could not render email alert: {e}")
            return False
        try:
            return self.email.send(subject, html)
        except Exception as e:
            logger.error(f"Email notifier raised: {e}", exc_info=True)
            return False
