import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from classroom.core.deps import PageParams, get_db
from classroom.core.permissions import require_teacher
from classroom.models.activity_log import ActivityLog
from classroom.models.user import User
from classroom.schemas.activity import (
    ActivityRead,
    ActivityStatisticsRead,
    PurgeResult,
    TeacherActivityRead,
)
from classroom.schemas.pagination import Page
from classroom.services import activity_stats
from classroom.services.activity import log_activity
from classroom.services.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()


def _logs(db: Session):
    return db.query(ActivityLog).options(joinedload(ActivityLog.teacher))


def _newest_first(query):
    return query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())


def _utc(ts: datetime) -> datetime:
    return ts.astimezone(timezone.utc) if ts.tzinfo is not None else ts


def _in_range(query, start_date: datetime | None, end_date: datetime | None):
    if start_date is not None:
        query = query.filter(ActivityLog.created_at >= _utc(start_date))
    if end_date is not None:
        query = query.filter(ActivityLog.created_at <= _utc(end_date))
    return query


def activity_row(log: ActivityLog) -> dict:
    return {
        "id": log.id,
        "teacher_id": log.teacher_id,
        "teacher_name": activity_stats.teacher_name(log),
        "action": log.action,
        "entity_type": log.entity_type,
        "entity_id": log.entity_id,
        "description": log.description,
        "summary": activity_stats.describe(log.action, log.entity_type, log.description),
        "created_at": log.created_at,
    }


@router.get("/", response_model=Page[ActivityRead])
def list_activities(
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    logs = _newest_first(_in_range(_logs(db), start_date, end_date)).all()
    page = paginate(logs, paging.page, paging.page_size).to_dict()
    page["items"] = [activity_row(log) for log in page["items"]]
    return page


@router.get("/recent", response_model=list[ActivityRead])
def recent_activities(
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    return [activity_row(log) for log in _newest_first(_logs(db)).limit(limit).all()]


@router.get("/teachers/{teacher_id}", response_model=list[ActivityRead])
def teacher_activities(
    teacher_id: int,
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    logs = _newest_first(_logs(db).filter(ActivityLog.teacher_id == teacher_id)).limit(limit).all()
    return [activity_row(log) for log in logs]


@router.get("/entities/{entity_type}/{entity_id}", response_model=list[ActivityRead])
def entity_activities(
    entity_type: str,
    entity_id: str,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    logs = _newest_first(
        _logs(db).filter(ActivityLog.entity_type == entity_type, ActivityLog.entity_id == entity_id)
    ).all()
    return [activity_row(log) for log in logs]


@router.get("/statistics", response_model=ActivityStatisticsRead)
def activity_statistics(
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    return activity_stats.activity_statistics(_in_range(_logs(db), start_date, end_date).all())


@router.get("/most-active", response_model=list[TeacherActivityRead])
def most_active_teachers(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    return activity_stats.most_active_teachers(_logs(db).all(), limit=limit)


@router.get("/timeline", response_model=dict[str, list[ActivityRead]])
def activity_timeline(
    days: int = Query(7, ge=1, le=365),
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    end = datetime.now(timezone.utc)
    logs = (
        _in_range(_logs(db), end - timedelta(days=days), end)
        .order_by(ActivityLog.created_at.asc(), ActivityLog.id.asc())
        .all()
    )
    return {
        day: [activity_row(log) for log in entries]
        for day, entries in activity_stats.timeline(logs).items()
    }


@router.get("/search", response_model=list[ActivityRead])
def search_activities(
    q: str = Query(..., min_length=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    pattern = f"%{q.strip()}%"
    logs = _newest_first(
        _logs(db).filter(
            or_(
                ActivityLog.description.ilike(pattern),
                ActivityLog.action.ilike(pattern),
                ActivityLog.entity_type.ilike(pattern),
            )
        )
    ).limit(limit).all()
    return [activity_row(log) for log in logs]


@router.delete("/old", response_model=PurgeResult)
def delete_old_activities(
    days: int = Query(90, ge=1),
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    cutoff = datetime.now(timezone.utc) - timedelta(days=days)
    deleted = (
        db.query(ActivityLog)
        .filter(ActivityLog.created_at < cutoff)
        .delete(synchronize_session=False)
    )
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    log_activity(
        db, teacher.id, "delete", "activity_log", None,
        f"Deleted {deleted} activity log(s) older than {days} days",
    )
    logger.info("purged %d activity log(s) older than %s", deleted, cutoff.isoformat())
    return {"deleted": deleted}
