import logging
from collections.abc import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from classroom.models.activity_log import ActivityLog
from classroom.models.notification import Notification

logger = logging.getLogger(__name__)


def log_activity(
    db: Session,
    teacher_id: int | None,
    action: str,
    entity_type: str,
    entity_id: int | str | None = None,
    description: str | None = None,
) -> None:
    """
    Audit trail entry, written after the main action is committed.
    A failure here is logged and does not undo the main action.
    """
    db.add(
        ActivityLog(
            teacher_id=teacher_id,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            description=description,
        )
    )
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("could not write activity log %s/%s", entity_type, action)


def notify_users(
    db: Session,
    user_ids: Iterable[int],
    title: str,
    message: str,
    link: str | None = None,
) -> int:
    """Queue one notification per user. Returns how many were written."""
    notifications = [
        Notification(user_id=user_id, title=title, message=message, link=link)
        for user_id in user_ids
    ]
    if not notifications:
        return 0

    db.add_all(notifications)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("could not write %d notification(s): %s", len(notifications), title)
        return 0

    return len(notifications)
