"""Process-wide services and their FastAPI dependency providers.

Services are built once at startup by ``build_services`` and stored on
``app.state.services``. Routes receive them (and the pipelines built from
them) through ``Depends``, never through module globals.
"""

from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from pollstats.config import Settings
from pollstats.models.database import get_db
from pollstats.services.analytics import AnalyticsReader
from pollstats.services.cache import AggregateCache
from pollstats.services.dispatcher import NotificationDispatcher
from pollstats.services.interactions import InteractionPipeline
from pollstats.services.metrics import PollMetrics
from pollstats.services.notifiers import EmailNotifier, SlackNotifier
from pollstats.services.submission import SubmissionPipeline


@dataclass
class ServiceContainer:
    """Long-lived collaborators shared by every request."""

    settings: Settings
    metrics: PollMetrics
    cache: AggregateCache
    chat: SlackNotifier
    email: EmailNotifier
    dispatcher: NotificationDispatcher
    analytics: AnalyticsReader

    def close(self) -> None:
        """Release pooled connections."""
        self.chat.close()
        self.cache.close()


def build_services(settings: Settings) -> ServiceContainer:
    """Construct the service container from settings.

    Args:
        settings: Application settings

    Returns:
        ServiceContainer ready to be attached to ``app.state``
    """
    metrics = PollMetrics()
    cache = AggregateCache.from_url(settings.redis_url, settings.redis_socket_timeout)
    chat = SlackNotifier(
        settings.slack_webhook_url,
        username=settings.slack_username,
        icon_emoji=settings.slack_icon_emoji,
        timeout=settings.webhook_timeout,
    )
    email = EmailNotifier(
        host=settings.email_smtp_host,
        port=settings.email_smtp_port,
        user=settings.email_user,
        password=settings.email_password,
        sender=settings.email_sender,
        recipient=settings.email_recipient,
        timeout=settings.webhook_timeout,
    )
    dispatcher = NotificationDispatcher(
        chat=chat,
        email=email,
        cache=cache,
        channel=settings.slack_channel,
        high_value_threshold=settings.high_value_price_threshold,
        daily_counter_ttl=settings.daily_counter_ttl,
    )
    analytics = AnalyticsReader(
        cache,
        ttl=settings.analytics_cache_ttl,
        window_days=settings.analytics_window_days,
    )
    return ServiceContainer(
        settings=settings,
        metrics=metrics,
        cache=cache,
        chat=chat,
        email=email,
        dispatcher=dispatcher,
        analytics=analytics,
    )


def get_services(request: Request) -> ServiceContainer:
    """Dependency returning the service container of the running app."""
    return request.app.state.services


def get_submission_pipeline(
    db: Session = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> SubmissionPipeline:
    """Dependency building a submission pipeline for the request."""
    return SubmissionPipeline(
        db,
        services.cache,
        services.metrics,
        services.dispatcher,
        stats_ttl=services.settings.stats_cache_ttl,
    )


def get_interaction_pipeline(
    db: Session = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> InteractionPipeline:
    """Dependency building an interaction pipeline for the request."""
    return InteractionPipeline(db, services.metrics)
