from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from classroom.core.current_user import get_current_user
from classroom.core.deps import PageParams, get_db
from classroom.models.notification import Notification
from classroom.models.user import User
from classroom.schemas.notification import NotificationRead
from classroom.schemas.pagination import Page
from classroom.services.pagination import paginate

router = APIRouter()


@router.get("/me", response_model=Page[NotificationRead])
def my_notifications(
    unread_only: bool = False,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    query = db.query(Notification).filter(Notification.user_id == me.id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))

    notifications = query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()
    return paginate(notifications, paging.page, paging.page_size).to_dict()


@router.post("/{notification_id}/read", response_model=NotificationRead)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == me.id)
        .first()
    )
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")

    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification


@router.post("/read-all")
def mark_all_read(
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == me.id, Notification.is_read.is_(False))
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return {"updated": updated}
