import datetime as dt
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session, joinedload

from classroom.core.access import enrolled_student_ids, ensure_class_owner
from classroom.core.config import UNKNOWN_LABEL
from classroom.core.deps import PageParams, get_db
from classroom.core.permissions import require_student, require_teacher
from classroom.models.attendance import Attendance
from classroom.models.user import User
from classroom.schemas.attendance import (
    AttendanceBatch,
    AttendanceBulk,
    AttendanceMark,
    AttendanceRead,
    AttendanceReport,
    CalendarDay,
    ClassAttendanceStats,
    SessionStats,
    StudentAttendanceRead,
)
from classroom.schemas.pagination import Page
from classroom.services import attendance_stats
from classroom.services.activity import log_activity
from classroom.services.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["attendance"])

CONFLICT_KEY = ("class_id", "date", "student_id")


def _attendance_row(a: Attendance) -> dict:
    return {
        "id": a.id,
        "class_id": a.class_id,
        "student_id": a.student_id,
        "student_name": a.student.full_name if a.student else UNKNOWN_LABEL,
        "date": a.date,
        "status": a.status,
        "notes": a.notes,
        "marked_by": a.marked_by,
        "created_at": a.created_at,
    }


def _class_records(
    db: Session,
    class_id: int,
    start_date: dt.date | None = None,
    end_date: dt.date | None = None,
):
    query = db.query(Attendance).filter(Attendance.class_id == class_id)
    if start_date:
        query = query.filter(Attendance.date >= start_date)
    if end_date:
        query = query.filter(Attendance.date <= end_date)
    return query


def _ensure_students_enrolled(db: Session, class_id: int, student_ids: list[int]) -> None:
    enrolled = set(enrolled_student_ids(db, class_id))
    missing = sorted(set(student_ids) - enrolled)
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Students not enrolled in this class: {missing}",
        )


def _upsert_attendance(db: Session, rows: list[dict]) -> None:
    """INSERT .. ON CONFLICT (class_id, date, student_id) DO UPDATE."""
    dialect = db.get_bind().dialect.name

    if dialect in ("sqlite", "postgresql"):
        insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
        stmt = insert(Attendance).values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(CONFLICT_KEY),
            set_={
                "status": stmt.excluded.status,
                "marked_by": stmt.excluded.marked_by,
            },
        )
        db.execute(stmt)
        return

    # other backends: read-modify-write inside the same session
    for row in rows:
        existing = (
            db.query(Attendance)
            .filter(*(getattr(Attendance, key) == row[key] for key in CONFLICT_KEY))
            .first()
        )
        if existing:
            existing.status = row["status"]
            existing.marked_by = row["marked_by"]
        else:
            db.add(Attendance(**row))


@router.get("/classes/{class_id}/attendance", response_model=list[AttendanceRead])
def attendance_by_date(
    class_id: int,
    on: dt.date | None = Query(None, alias="date", description="defaults to today"),
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    ensure_class_owner(db, class_id, teacher)

    day = on or dt.date.today()
    records = (
        db.query(Attendance)
        .options(joinedload(Attendance.student))
        .filter(Attendance.class_id == class_id, Attendance.date == day)
        .order_by(Attendance.created_at.asc(), Attendance.id.asc())
        .all()
    )
    return [_attendance_row(a) for a in records]


@router.get("/classes/{class_id}/attendance/history", response_model=Page[AttendanceRead])
def attendance_history(
    class_id: int,
    start_date: dt.date | None = None,
    end_date: dt.date | None = None,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    ensure_class_owner(db, class_id, teacher)

    records = (
        _class_records(db, class_id, start_date, end_date)
        .options(joinedload(Attendance.student))
        .order_by(Attendance.date.desc(), Attendance.id.asc())
        .all()
    )
    page = paginate(records, paging.page, paging.page_size)
    page.items = [_attendance_row(a) for a in page.items]
    return page.to_dict()


@router.post(
    "/classes/{class_id}/attendance",
    response_model=AttendanceRead,
    status_code=status.HTTP_201_CREATED,
)
def mark_attendance(
    class_id: int,
    payload: AttendanceMark,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    ensure_class_owner(db, class_id, teacher)
    _ensure_students_enrolled(db, class_id, [payload.student_id])

    record = Attendance(
        class_id=class_id,
        student_id=payload.student_id,
        date=payload.date,
        status=payload.status,
        notes=payload.notes,
        marked_by=teacher.id,
    )
    db.add(record)

    # a duplicate (class, date, student) surfaces as IntegrityError -> 409
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(record)
    log_activity(
        db, teacher.id, "mark_attendance", "attendance", class_id,
        f"Marked attendance for {payload.date.isoformat()}",
    )
    return _attendance_row(record)


@router.put("/classes/{class_id}/attendance/batch", response_model=list[AttendanceRead])
def replace_attendance_for_date(
    class_id: int,
    payload: AttendanceBatch,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    """Delete every record of the class on payload.date, then insert the new set."""
    ensure_class_owner(db, class_id, teacher)

    student_ids = [r.student_id for r in payload.records]
    if len(set(student_ids)) != len(student_ids):
        raise HTTPException(status_code=400, detail="Duplicate student in batch")
    _ensure_students_enrolled(db, class_id, student_ids)

    db.query(Attendance).filter(
        Attendance.class_id == class_id,
        Attendance.date == payload.date,
    ).delete(synchronize_session=False)

    records = [
        Attendance(
            class_id=class_id,
            date=payload.date,
            student_id=r.student_id,
            status=r.status,
            notes=r.notes or None,
            marked_by=teacher.id,
        )
        for r in payload.records
    ]
    db.add_all(records)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    log_activity(
        db, teacher.id, "mark_attendance", "attendance", class_id,
        f"Marked attendance for {payload.date.isoformat()}",
    )
    logger.info("class %s: %d attendance record(s) replaced for %s", class_id, len(records), payload.date)

    saved = (
        db.query(Attendance)
        .options(joinedload(Attendance.student))
        .filter(Attendance.class_id == class_id, Attendance.date == payload.date)
        .order_by(Attendance.id.asc())
        .all()
    )
    return [_attendance_row(a) for a in saved]


@router.post("/classes/{class_id}/attendance/bulk", response_model=list[AttendanceRead])
def bulk_mark_attendance(
    class_id: int,
    payload: AttendanceBulk,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    """Set one status for many students on a date (upsert, other students untouched)."""
    ensure_class_owner(db, class_id, teacher)

    student_ids = list(dict.fromkeys(payload.student_ids))
    _ensure_students_enrolled(db, class_id, student_ids)

    rows = [
        {
            "class_id": class_id,
            "date": payload.date,
            "student_id": sid,
            "status": payload.status,
            "marked_by": teacher.id,
        }
        for sid in student_ids
    ]

    try:
        _upsert_attendance(db, rows)
        db.commit()
    except Exception:
        db.rollback()
        raise

    log_activity(
        db, teacher.id, "bulk_mark_attendance", "attendance", class_id,
        f"Bulk marked {payload.status} for {len(student_ids)} students on {payload.date.isoformat()}",
    )

    saved = (
        db.query(Attendance)
        .options(joinedload(Attendance.student))
        .filter(
            Attendance.class_id == class_id,
            Attendance.date == payload.date,
            Attendance.student_id.in_(student_ids),
        )
        .order_by(Attendance.id.asc())
        .all()
    )
    return [_attendance_row(a) for a in saved]


@router.get("/classes/{class_id}/attendance/statistics", response_model=ClassAttendanceStats)
def class_attendance_statistics(
    class_id: int,
    start_date: dt.date | None = None,
    end_date: dt.date | None = None,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    ensure_class_owner(db, class_id, teacher)
    records = _class_records(db, class_id, start_date, end_date).all()
    return attendance_stats.class_statistics(records)


@router.get("/classes/{class_id}/attendance/calendar", response_model=dict[dt.date, CalendarDay])
def attendance_calendar(
    class_id: int,
    year: int = Query(..., ge=1900, le=9999),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    ensure_class_owner(db, class_id, teacher)
    first_day, last_day = attendance_stats.month_bounds(year, month)
    records = _class_records(db, class_id, first_day, last_day).all()
    return attendance_stats.calendar_view(records)


@router.get("/classes/{class_id}/attendance/sessions", response_model=SessionStats)
def attendance_session_stats(
    class_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    ensure_class_owner(db, class_id, teacher)
    return attendance_stats.session_stats(_class_records(db, class_id).all())


@router.get("/classes/{class_id}/attendance/export", response_model=AttendanceReport)
def export_attendance(
    class_id: int,
    start_date: dt.date | None = None,
    end_date: dt.date | None = None,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    ensure_class_owner(db, class_id, teacher)

    records = (
        _class_records(db, class_id, start_date, end_date)
        .order_by(Attendance.date.desc(), Attendance.id.asc())
        .all()
    )
    student_ids = attendance_stats.unique_students(records)
    students = {
        s.id: s for s in db.query(User).filter(User.id.in_(student_ids)).all()
    } if student_ids else {}

    return attendance_stats.export_report(records, students)


@router.get(
    "/classes/{class_id}/attendance/students/{student_id}",
    response_model=StudentAttendanceRead,
)
def student_attendance_in_class(
    class_id: int,
    student_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    ensure_class_owner(db, class_id, teacher)

    records = (
        _class_records(db, class_id)
        .options(joinedload(Attendance.student))
        .filter(Attendance.student_id == student_id)
        .order_by(Attendance.date.desc())
        .all()
    )
    return {
        "records": [_attendance_row(a) for a in records],
        "statistics": attendance_stats.student_summary(records),
    }


@router.get("/attendance/me", response_model=StudentAttendanceRead)
def my_attendance(
    class_id: int | None = None,
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    query = (
        db.query(Attendance)
        .options(joinedload(Attendance.student))
        .filter(Attendance.student_id == me.id)
    )
    if class_id is not None:
        query = query.filter(Attendance.class_id == class_id)

    records = query.order_by(Attendance.date.desc()).all()
    return {
        "records": [_attendance_row(a) for a in records],
        "statistics": attendance_stats.student_summary(records),
    }
