import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from classroom.core.config import UNKNOWN_LABEL
from classroom.core.current_user import get_current_user
from classroom.core.deps import PageParams, get_db
from classroom.core.permissions import require_teacher
from classroom.models.news_item import STATUS_ARCHIVED, STATUS_PUBLISHED, NewsItem
from classroom.models.user import ROLE_STUDENT, User
from classroom.schemas.newsroom import (
    NewsCreate,
    NewsRead,
    NewsStatistics,
    NewsStatus,
    NewsType,
    NewsUpdate,
)
from classroom.schemas.pagination import Page
from classroom.services.activity import log_activity
from classroom.services.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()

PAST_TENSE = {
    "create": "Created",
    "update": "Updated",
    "publish": "Published",
    "archive": "Archived",
}


def _audiences_for(user: User) -> tuple[str, ...]:
    return ("all", "students") if user.role == ROLE_STUDENT else ("all", "teachers")


def _ensure_item(db: Session, item_id: int) -> NewsItem:
    item = (
        db.query(NewsItem)
        .options(joinedload(NewsItem.author))
        .filter(NewsItem.id == item_id)
        .first()
    )
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="News item not found")
    return item


def _news_row(item: NewsItem) -> dict:
    row = {c: getattr(item, c) for c in NewsRead.model_fields if c != "author_name"}
    row["author_name"] = item.author.full_name if item.author else UNKNOWN_LABEL
    return row


def _save(db: Session, item: NewsItem, teacher: User, action: str) -> dict:
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(item)
    log_activity(
        db, teacher.id, action, "newsroom", item.id,
        f"{PAST_TENSE[action]} {item.type}: {item.title}",
    )
    return _news_row(item)


@router.get("/", response_model=Page[NewsRead])
def list_items(
    type: NewsType | None = None,
    status_filter: NewsStatus | None = Query(None, alias="status"),
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    query = db.query(NewsItem).options(joinedload(NewsItem.author))
    if type is not None:
        query = query.filter(NewsItem.type == type)
    if status_filter is not None:
        query = query.filter(NewsItem.status == status_filter)
    items = query.order_by(NewsItem.created_at.desc(), NewsItem.id.desc()).all()

    page = paginate(items, paging.page, paging.page_size).to_dict()
    page["items"] = [_news_row(item) for item in page["items"]]
    return page


@router.get("/published", response_model=Page[NewsRead])
def published_items(
    type: NewsType | None = None,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = (
        db.query(NewsItem)
        .options(joinedload(NewsItem.author))
        .filter(
            NewsItem.status == STATUS_PUBLISHED,
            NewsItem.target_audience.in_(_audiences_for(current_user)),
        )
    )
    if type is not None:
        query = query.filter(NewsItem.type == type)
    items = query.order_by(NewsItem.published_at.desc(), NewsItem.id.desc()).all()

    page = paginate(items, paging.page, paging.page_size).to_dict()
    page["items"] = [_news_row(item) for item in page["items"]]
    return page


@router.get("/statistics", response_model=NewsStatistics)
def newsroom_statistics(
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    by_status = dict(db.query(NewsItem.status, func.count(NewsItem.id)).group_by(NewsItem.status).all())
    by_type = dict(db.query(NewsItem.type, func.count(NewsItem.id)).group_by(NewsItem.type).all())
    return {
        "total": sum(by_status.values()),
        "published": by_status.get("published", 0),
        "draft": by_status.get("draft", 0),
        "archived": by_status.get("archived", 0),
        "announcements": by_type.get("announcement", 0),
        "news": by_type.get("news", 0),
    }


@router.get("/{item_id}", response_model=NewsRead)
def get_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    item = _ensure_item(db, item_id)
    if current_user.role == ROLE_STUDENT and (
        item.status != STATUS_PUBLISHED or item.target_audience not in _audiences_for(current_user)
    ):
        # unpublished items do not exist for readers
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="News item not found")
    return _news_row(item)


@router.post("/", response_model=NewsRead, status_code=status.HTTP_201_CREATED)
def create_item(
    payload: NewsCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    item = NewsItem(**payload.model_dump(), created_by=teacher.id, updated_by=teacher.id)
    if item.status == STATUS_PUBLISHED:
        item.published_at = datetime.now(timezone.utc)
    db.add(item)
    return _save(db, item, teacher, "create")


@router.patch("/{item_id}", response_model=NewsRead)
def update_item(
    item_id: int,
    payload: NewsUpdate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    item = _ensure_item(db, item_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        # required columns are never cleared
        if value is None and field in {"title", "content", "type", "priority", "target_audience"}:
            continue
        setattr(item, field, value)
    item.updated_by = teacher.id
    return _save(db, item, teacher, "update")


@router.post("/{item_id}/publish", response_model=NewsRead)
def publish_item(
    item_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    item = _ensure_item(db, item_id)
    item.status = STATUS_PUBLISHED
    item.published_at = datetime.now(timezone.utc)
    item.updated_by = teacher.id
    return _save(db, item, teacher, "publish")


@router.post("/{item_id}/archive", response_model=NewsRead)
def archive_item(
    item_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    item = _ensure_item(db, item_id)
    item.status = STATUS_ARCHIVED
    item.updated_by = teacher.id
    return _save(db, item, teacher, "archive")


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(
    item_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    item = _ensure_item(db, item_id)
    summary = f"{item.type}: {item.title}"

    db.delete(item)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    log_activity(db, teacher.id, "delete", "newsroom", item_id, f"Deleted {summary}")
    logger.info("news item %s deleted by teacher %s", item_id, teacher.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
