import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status
from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from classroom.core.access import grade_student_ids
from classroom.core.deps import PageParams, get_db
from classroom.core.permissions import require_teacher
from classroom.core.security import hash_password
from classroom.models.assignment import Assignment
from classroom.models.attendance import Attendance
from classroom.models.class_student import ClassStudent
from classroom.models.notification import Notification
from classroom.models.school_class import SchoolClass
from classroom.models.submission import STATUS_GRADED, Submission
from classroom.models.user import ROLE_STUDENT, User
from classroom.schemas.pagination import Page
from classroom.schemas.school_class import Grade
from classroom.schemas.student import (
    ImportResult,
    PasswordReset,
    StudentCreate,
    StudentDetail,
    StudentListRow,
    StudentPerformance,
    StudentUpdate,
)
from classroom.schemas.user import StudentBrief, UserRead
from classroom.services import gradebook as gradebook_service
from classroom.services.activity import log_activity
from classroom.services.gradebook import SubmissionScore
from classroom.services.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()

INITIAL_PASSWORD_FORMAT = "%d%m%Y"


def _ensure_student(db: Session, student_id: int) -> User:
    student = (
        db.query(User)
        .filter(User.id == student_id, User.role == ROLE_STUDENT)
        .first()
    )
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return student


def _email_taken(db: Session, email: str, exclude_id: int | None = None) -> bool:
    query = db.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def _commit(db: Session) -> None:
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


def _create_student(db: Session, payload: StudentCreate, teacher: User) -> User:
    password = payload.password or payload.birth_date.strftime(INITIAL_PASSWORD_FORMAT)
    student = User(
        email=payload.email,
        full_name=payload.full_name,
        role=ROLE_STUDENT,
        phone=payload.phone,
        birth_date=payload.birth_date,
        hashed_password=hash_password(password),
    )
    db.add(student)
    _commit(db)
    db.refresh(student)

    log_activity(db, teacher.id, "create", "student", student.id, f"Created student {student.full_name}")
    return student


def _set_active(db: Session, student_id: int, teacher: User, active: bool) -> User:
    student = _ensure_student(db, student_id)
    student.is_active = active
    _commit(db)
    db.refresh(student)

    if active:
        log_activity(db, teacher.id, "activate", "student", student.id, f"Activated student {student.full_name}")
    else:
        log_activity(db, teacher.id, "deactivate", "student", student.id, f"Deactivated student {student.full_name}")
    return student


@router.get("/", response_model=Page[StudentListRow])
def list_students(
    is_active: bool = True,
    q: str | None = Query(None, description="case-insensitive name/email search"),
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    query = db.query(User).filter(User.role == ROLE_STUDENT, User.is_active.is_(is_active))
    if q:
        pattern = f"%{q.strip()}%"
        query = query.filter(User.full_name.ilike(pattern) | User.email.ilike(pattern))
    students = query.order_by(User.created_at.desc(), User.id.desc()).all()

    page = paginate(students, paging.page, paging.page_size).to_dict()

    ids = [s.id for s in page["items"]]
    counts = {}
    if ids:
        rows = (
            db.query(ClassStudent.student_id, func.count(ClassStudent.id).label("n"))
            .filter(ClassStudent.student_id.in_(ids))
            .group_by(ClassStudent.student_id)
            .all()
        )
        counts = {r.student_id: int(r.n) for r in rows}

    items = []
    for s in page["items"]:
        row = UserRead.model_validate(s).model_dump()
        row["class_count"] = counts.get(s.id, 0)
        items.append(row)
    page["items"] = items
    return page


@router.post(
    "/",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Email already registered"}},
)
def create_student(
    payload: StudentCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    if _email_taken(db, payload.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    return _create_student(db, payload, teacher)


@router.post("/import", response_model=ImportResult)
def import_students(
    rows: list[dict[str, Any]] = Body(...),
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    """
    Create students from a list of rows. Rows are handled one at a time,
    so a bad row is reported in ``errors`` without blocking the others.
    """
    created: list[User] = []
    errors: list[dict] = []

    for position, row in enumerate(rows, start=1):
        email = row.get("email")
        try:
            payload = StudentCreate.model_validate(row)
        except ValidationError as exc:
            message = "; ".join(
                f"{'.'.join(str(part) for part in e['loc'])}: {e['msg']}" for e in exc.errors()
            )
            errors.append({"row": position, "email": email, "error": message})
            continue

        if _email_taken(db, payload.email):
            errors.append({"row": position, "email": email, "error": "Email already registered"})
            continue

        created.append(_create_student(db, payload, teacher))

    logger.info("imported %d student(s), %d row(s) rejected", len(created), len(errors))
    return {"results": created, "errors": errors}


@router.get("/by-grade/{grade}", response_model=list[StudentBrief])
def students_by_grade(
    grade: Grade,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    return (
        db.query(User)
        .filter(User.id.in_(grade_student_ids(db, grade)))
        .order_by(User.full_name.asc(), User.id.asc())
        .all()
    )


@router.get("/{student_id}", response_model=StudentDetail)
def get_student(
    student_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    student = _ensure_student(db, student_id)

    enrollments = (
        db.query(ClassStudent)
        .options(joinedload(ClassStudent.school_class))
        .filter(ClassStudent.student_id == student_id)
        .order_by(ClassStudent.enrolled_at.asc(), ClassStudent.id.asc())
        .all()
    )

    detail = UserRead.model_validate(student).model_dump()
    detail["classes"] = [
        {
            "id": e.school_class.id,
            "name": e.school_class.name,
            "grade": e.school_class.grade,
            "subject": e.school_class.subject,
            "enrolled_at": e.enrolled_at,
        }
        for e in enrollments
        if e.school_class is not None
    ]
    return detail


@router.patch("/{student_id}", response_model=UserRead)
def update_student(
    student_id: int,
    payload: StudentUpdate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    student = _ensure_student(db, student_id)

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("email") and _email_taken(db, changes["email"], exclude_id=student.id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    for field, value in changes.items():
        # email and name cannot be cleared
        if value is None and field in {"email", "full_name"}:
            continue
        setattr(student, field, value)

    _commit(db)
    db.refresh(student)

    log_activity(db, teacher.id, "update", "student", student.id, f"Updated student {student.full_name}")
    return student


@router.put("/{student_id}/password", status_code=status.HTTP_204_NO_CONTENT)
def reset_password(
    student_id: int,
    payload: PasswordReset,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    student = _ensure_student(db, student_id)
    student.hashed_password = hash_password(payload.password)
    _commit(db)

    log_activity(
        db, teacher.id, "update_password", "student", student.id,
        f"Updated password for student {student.full_name}",
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{student_id}/deactivate", response_model=UserRead)
def deactivate_student(
    student_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    return _set_active(db, student_id, teacher, active=False)


@router.post("/{student_id}/activate", response_model=UserRead)
def activate_student(
    student_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    return _set_active(db, student_id, teacher, active=True)


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_student(
    student_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    student = _ensure_student(db, student_id)
    full_name = student.full_name

    # rows without an ORM cascade from users
    db.query(Attendance).filter(Attendance.student_id == student_id).delete(synchronize_session=False)
    db.query(Notification).filter(Notification.user_id == student_id).delete(synchronize_session=False)
    db.delete(student)
    _commit(db)

    log_activity(db, teacher.id, "delete", "student", student_id, f"Deleted student {full_name}")
    logger.info("student %s deleted by teacher %s", student_id, teacher.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{student_id}/performance", response_model=StudentPerformance)
def student_performance(
    student_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    _ensure_student(db, student_id)

    subs = (
        db.query(Submission)
        .options(joinedload(Submission.assignment).joinedload(Assignment.school_class))
        .filter(Submission.student_id == student_id, Submission.status == STATUS_GRADED)
        .order_by(Submission.graded_at.desc(), Submission.id.desc())
        .all()
    )

    rows = []
    scores = []
    for s in subs:
        assignment = s.assignment
        school_class: SchoolClass | None = assignment.school_class
        rows.append(
            {
                "submission": s,
                "assignment_title": assignment.title,
                "total_points": assignment.total_points,
                "assignment_type": assignment.assignment_type,
                "class_name": school_class.name if school_class else None,
                "subject": school_class.subject if school_class else None,
            }
        )
        scores.append(
            SubmissionScore(
                student_id=s.student_id,
                status=s.status,
                grade=s.grade,
                total_points=assignment.total_points,
            )
        )

    return {
        "submissions": rows,
        "metrics": gradebook_service.performance_metrics(scores),
    }
