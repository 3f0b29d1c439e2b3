import logging
import secrets
import string

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from classroom.core.access import ensure_can_view_class, ensure_class_owner
from classroom.core.config import CLASS_CODE_LENGTH, UNKNOWN_LABEL
from classroom.core.current_user import get_current_user
from classroom.core.deps import PageParams, get_db
from classroom.core.permissions import require_student, require_teacher
from classroom.models.class_student import ClassStudent
from classroom.models.school_class import SchoolClass
from classroom.models.user import ROLE_STUDENT, User
from classroom.schemas.pagination import Page
from classroom.schemas.school_class import (
    ClassCreate,
    ClassDetail,
    ClassRead,
    ClassUpdate,
    EnrollmentCreate,
    EnrollmentRead,
)
from classroom.schemas.user import StudentBrief
from classroom.services.activity import log_activity
from classroom.services.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()

CODE_ALPHABET = string.ascii_uppercase + string.digits
REQUIRED_FIELDS = {"name", "grade", "is_active"}


def generate_class_code(length: int = CLASS_CODE_LENGTH) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def _unique_class_code(db: Session, attempts: int = 10) -> str:
    for _ in range(attempts):
        code = generate_class_code()
        if not db.query(SchoolClass.id).filter(SchoolClass.class_code == code).first():
            return code
    raise HTTPException(status_code=503, detail="Could not allocate a class code")


def _student_counts(db: Session, class_ids: list[int]) -> dict[int, int]:
    if not class_ids:
        return {}
    rows = (
        db.query(ClassStudent.class_id, func.count(ClassStudent.id).label("n"))
        .filter(ClassStudent.class_id.in_(class_ids))
        .group_by(ClassStudent.class_id)
        .all()
    )
    return {r.class_id: int(r.n) for r in rows}


def _class_row(school_class: SchoolClass, student_count: int) -> dict:
    teacher = school_class.teacher
    return {
        "id": school_class.id,
        "name": school_class.name,
        "grade": school_class.grade,
        "subject": school_class.subject,
        "description": school_class.description,
        "class_code": school_class.class_code,
        "is_active": school_class.is_active,
        "created_by": school_class.created_by,
        "created_at": school_class.created_at,
        "student_count": student_count,
        "teacher_name": teacher.full_name if teacher else UNKNOWN_LABEL,
    }


@router.get("/", response_model=list[ClassRead])
def list_classes(
    is_active: bool = True,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    classes = (
        db.query(SchoolClass)
        .filter(SchoolClass.is_active.is_(is_active))
        .order_by(SchoolClass.created_at.desc(), SchoolClass.id.desc())
        .all()
    )

    counts = _student_counts(db, [c.id for c in classes])
    return [_class_row(c, counts.get(c.id, 0)) for c in classes]


@router.get("/me", response_model=list[ClassRead])
def my_classes(
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    classes = (
        db.query(SchoolClass)
        .join(ClassStudent, ClassStudent.class_id == SchoolClass.id)
        .filter(ClassStudent.student_id == me.id)
        .order_by(SchoolClass.name.asc())
        .all()
    )
    counts = _student_counts(db, [c.id for c in classes])
    return [_class_row(c, counts.get(c.id, 0)) for c in classes]


@router.post("/", response_model=ClassRead, status_code=status.HTTP_201_CREATED)
def create_class(
    payload: ClassCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    school_class = SchoolClass(
        name=payload.name,
        grade=payload.grade,
        subject=payload.subject,
        description=payload.description,
        class_code=payload.class_code or _unique_class_code(db),
        created_by=teacher.id,
    )
    db.add(school_class)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Class code already in use")

    db.refresh(school_class)
    log_activity(db, teacher.id, "create", "class", school_class.id, f"Created class {school_class.name}")
    return _class_row(school_class, 0)


@router.get("/{class_id}", response_model=ClassDetail)
def get_class(
    class_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    school_class = ensure_can_view_class(db, class_id, current_user)

    students = [cs.student for cs in school_class.students if cs.student is not None]
    row = _class_row(school_class, len(students))
    row["students"] = sorted(students, key=lambda s: s.full_name.lower())
    return row


@router.patch("/{class_id}", response_model=ClassRead)
def update_class(
    class_id: int,
    payload: ClassUpdate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    school_class = ensure_class_owner(db, class_id, teacher)

    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field in REQUIRED_FIELDS:
            continue
        setattr(school_class, field, value)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(school_class)
    log_activity(db, teacher.id, "update", "class", class_id, f"Updated class {school_class.name}")
    return _class_row(school_class, _student_counts(db, [class_id]).get(class_id, 0))


@router.delete("/{class_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_class(
    class_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    school_class = ensure_class_owner(db, class_id, teacher)
    db.delete(school_class)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    log_activity(db, teacher.id, "delete", "class", class_id, "Deleted class")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{class_id}/students", response_model=Page[StudentBrief])
def list_class_students(
    class_id: int,
    q: str | None = Query(None, description="case-insensitive name/email search"),
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_can_view_class(db, class_id, current_user)

    query = (
        db.query(User)
        .join(ClassStudent, ClassStudent.student_id == User.id)
        .filter(ClassStudent.class_id == class_id)
    )
    if q:
        pattern = f"%{q.strip()}%"
        query = query.filter(User.full_name.ilike(pattern) | User.email.ilike(pattern))

    students = query.order_by(User.full_name.asc(), User.id.asc()).all()
    return paginate(students, paging.page, paging.page_size).to_dict()


@router.post(
    "/{class_id}/students",
    response_model=EnrollmentRead,
    status_code=status.HTTP_201_CREATED,
)
def enroll_student(
    class_id: int,
    payload: EnrollmentCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    ensure_class_owner(db, class_id, teacher)

    student = db.query(User).filter(User.id == payload.student_id).first()
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    if student.role != ROLE_STUDENT:
        raise HTTPException(status_code=400, detail="Only students can be enrolled")

    enrollment = ClassStudent(class_id=class_id, student_id=student.id, enrolled_by=teacher.id)
    db.add(enrollment)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Already enrolled")

    db.refresh(enrollment)
    logger.info("student %s enrolled in class %s", student.id, class_id)
    return enrollment


@router.delete("/{class_id}/students/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
def unenroll_student(
    class_id: int,
    student_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    ensure_class_owner(db, class_id, teacher)

    deleted = (
        db.query(ClassStudent)
        .filter(ClassStudent.class_id == class_id, ClassStudent.student_id == student_id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise HTTPException(status_code=404, detail="Student is not enrolled in this class")

    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
