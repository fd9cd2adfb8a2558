# ================================================================
# services/notification_service.py: Post-commit notification dispatch
# ================================================================
"""
Notification sink for manual payment transitions.

Services build `NotificationEvent`s while handling a transition and hand them
to a `Notifier` only after the transition has committed. Delivery (an in-app
`Notification` row plus an email) happens later, typically on FastAPI
`BackgroundTasks`, and every failure is logged and dropped: a lost
notification never undoes a payment transition.
"""
import json
import logging
from typing import Any, Callable, Dict, List, Optional

from fastapi import BackgroundTasks
from pydantic import BaseModel, Field
from sqlmodel import Session

from core.config import settings
from core.database import engine
from models.models import Notification, NotificationPriority, User
from services.email_service import EmailService, email_service

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)


class NotificationEvent(BaseModel):
    user_id: int
    type: str
    title: str
    message: str
    action_url: Optional[str] = None
    priority: str = NotificationPriority.MEDIUM.value
    metadata: Dict[str, Any] = Field(default_factory=dict)
    related_id: Optional[int] = None
    related_type: Optional[str] = None


Notifier = Callable[[List[NotificationEvent]], None]


def emit(notify: Optional[Notifier], events: List[NotificationEvent]) -> None:
    """Hand events to the notifier; never raises."""
    if notify is None or not events:
        return
    try:
        notify(events)
    except Exception as e:
        logger.exception("❌ Failed to emit %d notification(s): %s", len(events), e)


class NotificationService:
    def __init__(
        self,
        session_factory: Optional[Callable[[], Session]] = None,
        mailer: Optional[EmailService] = None,
    ):
        self.session_factory = session_factory or (lambda: Session(engine))
        self.mailer = mailer or email_service

    def notify(self, event: NotificationEvent) -> Notification:
        """Persist one in-app notification and send its email copy."""
        with self.session_factory() as session:
            notification = Notification(
                user_id=event.user_id,
                type=event.type,
                title=event.title,
                message=event.message,
                action_url=event.action_url,
                priority=event.priority,
                metadata_json=json.dumps(event.metadata, default=str),
                related_id=event.related_id,
                related_type=event.related_type,
            )
            session.add(notification)
            session.commit()
            session.refresh(notification)
            user = session.get(User, event.user_id)
            to_email = user.email if user and user.is_active else None

        if to_email:
            link = settings.frontend_link(event.action_url) if event.action_url else None
            self.mailer.send_notification_email(to_email, event.title, event.message, link)
        return notification

    def dispatch(self, events: List[NotificationEvent]) -> int:
        """Deliver each event independently; returns how many were delivered."""
        delivered = 0
        for event in events:
            try:
                self.notify(event)
                delivered += 1
            except Exception as e:
                logger.exception(
                    "❌ Failed to deliver %s notification to user %s: %s", event.type, event.user_id, e
                )
        if delivered:
            logger.info("🔔 Delivered %d/%d notification(s)", delivered, len(events))
        return delivered


# ============================================================
# ✅ Global instance for app-wide import
# ============================================================
notification_service = NotificationService()


def get_notifier(background_tasks: BackgroundTasks) -> Notifier:
    """FastAPI dependency: schedules delivery after the response is sent."""

    def schedule(events: List[NotificationEvent]) -> None:
        background_tasks.add_task(notification_service.dispatch, events)

    return schedule
