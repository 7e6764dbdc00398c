"""Notification sink.

The core records notifications; delivering them (push, email, in-app) is the
collaborator's job. DbNotificationSink writes through the caller's session
so a notification commits or rolls back together with the state change it
describes.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Protocol

from loguru import logger
from sqlalchemy.orm import Session

from evalcore.db.models import Notification


class NotificationType(StrEnum):
    EVALUATION_REQUESTED = "EVALUATION_REQUESTED"
    EVALUATION_ACCEPTED = "EVALUATION_ACCEPTED"
    EVALUATION_SCHEDULED = "EVALUATION_SCHEDULED"
    EVALUATION_REJECTED = "EVALUATION_REJECTED"
    EVALUATION_COMPLETED = "EVALUATION_COMPLETED"


class NotificationSink(Protocol):
    def notify(
        self,
        recipient_id: str,
        type: NotificationType,
        title: str,
        message: str,
        payload: dict[str, Any],
        *,
        actor_id: str | None = None,
    ) -> None: ...


class DbNotificationSink:
    """Persist notifications in the notifications table."""

    def __init__(self, session: Session):
        self.session = session

    def notify(
        self,
        recipient_id: str,
        type: NotificationType,
        title: str,
        message: str,
        payload: dict[str, Any],
        *,
        actor_id: str | None = None,
    ) -> None:
        self.session.add(
            Notification(
                recipient_id=recipient_id,
                actor_id=actor_id,
                type=type.value,
                title=title,
                message=message,
                payload=payload,
            )
        )
        logger.debug(f"[NOTIFY] Queued {type.value} notification", recipient_id=recipient_id)
