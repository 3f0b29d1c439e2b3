import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from classroom.core.access import (
    assignment_student_ids,
    ensure_assignment_exists,
    ensure_assignment_manager,
    ensure_can_view_assignment,
    ensure_can_view_class,
    ensure_class_owner,
    grade_student_ids,
)
from classroom.core.current_user import get_current_user
from classroom.core.deps import PageParams, get_db
from classroom.core.permissions import require_student, require_teacher
from classroom.models.assignment import TYPE_CLASS, TYPE_GRADE_LEVEL, Assignment
from classroom.models.class_student import ClassStudent
from classroom.models.question import Question
from classroom.models.school_class import SchoolClass
from classroom.models.user import ROLE_STUDENT, User
from classroom.schemas.assignment import (
    AssignmentCreate,
    AssignmentDetail,
    AssignmentRead,
    AssignmentUpdate,
)
from classroom.schemas.pagination import Page
from classroom.schemas.school_class import Grade
from classroom.services.activity import log_activity, notify_users
from classroom.services.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()


def _create_assignment(
    db: Session,
    teacher: User,
    payload: AssignmentCreate,
    class_id: int | None = None,
    target_grade: str | None = None,
) -> Assignment:
    a = Assignment(
        class_id=class_id,
        target_grade=target_grade,
        title=payload.title,
        description=payload.description,
        deadline=payload.deadline,
        total_points=payload.total_points,
        assignment_type=TYPE_CLASS if class_id is not None else TYPE_GRADE_LEVEL,
        created_by=teacher.id,
    )
    for position, q in enumerate(payload.questions, start=1):
        a.questions.append(
            Question(
                question_text=q.question_text,
                question_type=q.question_type,
                points=q.points,
                order_number=q.order_number or position,
            )
        )
    db.add(a)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(a)

    log_activity(db, teacher.id, "create", "assignment", a.id, f"Created assignment {a.title}")
    notified = notify_users(
        db,
        assignment_student_ids(db, a),
        title="Tugas Baru",
        message=f'Tugas "{a.title}" telah diberikan',
        link=f"/student/assignments/{a.id}",
    )
    logger.info("assignment %s (%s) sent to %d student(s)", a.id, a.assignment_type, notified)
    return a


@router.get("/classes/{class_id}/assignments", response_model=Page[AssignmentRead])
def list_assignments(
    class_id: int,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_can_view_class(db, class_id, current_user)

    assignments = (
        db.query(Assignment)
        .filter(Assignment.class_id == class_id)
        .order_by(Assignment.deadline.asc(), Assignment.id.asc())
        .all()
    )
    return paginate(assignments, paging.page, paging.page_size).to_dict()


@router.post(
    "/classes/{class_id}/assignments",
    response_model=AssignmentDetail,
    status_code=status.HTTP_201_CREATED,
)
def create_assignment(
    class_id: int,
    payload: AssignmentCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    ensure_class_owner(db, class_id, teacher)
    return _create_assignment(db, teacher, payload, class_id=class_id)


@router.get("/grade-levels/{grade}/assignments", response_model=Page[AssignmentRead])
def list_grade_assignments(
    grade: Grade,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if current_user.role == ROLE_STUDENT and current_user.id not in grade_student_ids(db, grade):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not in this grade level")

    assignments = (
        db.query(Assignment)
        .filter(Assignment.class_id.is_(None), Assignment.target_grade == grade)
        .order_by(Assignment.deadline.asc(), Assignment.id.asc())
        .all()
    )
    return paginate(assignments, paging.page, paging.page_size).to_dict()


@router.post(
    "/grade-levels/{grade}/assignments",
    response_model=AssignmentDetail,
    status_code=status.HTTP_201_CREATED,
)
def create_grade_assignment(
    grade: Grade,
    payload: AssignmentCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    return _create_assignment(db, teacher, payload, target_grade=grade)


@router.get("/assignments/me", response_model=Page[AssignmentRead])
def my_assignments(
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    enrolled = (
        db.query(SchoolClass.id, SchoolClass.grade)
        .join(ClassStudent, ClassStudent.class_id == SchoolClass.id)
        .filter(ClassStudent.student_id == me.id)
        .all()
    )
    class_ids = [row.id for row in enrolled]
    grades = sorted({row.grade for row in enrolled})

    assignments = (
        db.query(Assignment)
        .filter(
            or_(
                Assignment.class_id.in_(class_ids),
                and_(Assignment.class_id.is_(None), Assignment.target_grade.in_(grades)),
            )
        )
        .order_by(Assignment.deadline.asc(), Assignment.id.asc())
        .all()
    )
    return paginate(assignments, paging.page, paging.page_size).to_dict()


@router.get("/assignments/{assignment_id}", response_model=AssignmentDetail)
def get_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    assignment = ensure_assignment_exists(db, assignment_id)
    ensure_can_view_assignment(db, assignment, current_user)
    return assignment


@router.patch("/assignments/{assignment_id}", response_model=AssignmentDetail)
def update_assignment(
    assignment_id: int,
    payload: AssignmentUpdate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    assignment = ensure_assignment_exists(db, assignment_id)
    ensure_assignment_manager(db, assignment, teacher)

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("total_points") is not None:
        highest = max(
            (s.grade for s in assignment.submissions if s.grade is not None),
            default=None,
        )
        if highest is not None and changes["total_points"] < highest:
            raise HTTPException(
                status_code=400,
                detail=f"total_points cannot be below an existing grade ({highest})",
            )

    for field, value in changes.items():
        if value is not None:
            setattr(assignment, field, value)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(assignment)
    log_activity(db, teacher.id, "update", "assignment", assignment.id, f"Updated assignment {assignment.title}")
    return assignment


@router.delete("/assignments/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    assignment = ensure_assignment_exists(db, assignment_id)
    ensure_assignment_manager(db, assignment, teacher)
    audience = (
        f"class {assignment.class_id}"
        if assignment.class_id is not None
        else f"grade {assignment.target_grade}"
    )

    db.delete(assignment)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    log_activity(db, teacher.id, "delete", "assignment", assignment_id, "Deleted assignment")
    logger.info("assignment %s deleted from %s", assignment_id, audience)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
