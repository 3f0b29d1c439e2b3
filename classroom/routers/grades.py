from fastapi import APIRouter, Depends
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, joinedload

from classroom.core.access import ensure_can_view_class, ensure_class_owner, grade_student_ids
from classroom.core.config import UNKNOWN_LABEL
from classroom.core.current_user import get_current_user
from classroom.core.deps import get_db
from classroom.core.permissions import require_student, require_teacher
from classroom.models.assignment import Assignment
from classroom.models.class_student import ClassStudent
from classroom.models.school_class import SchoolClass
from classroom.models.submission import STATUS_GRADED, Submission
from classroom.models.user import ROLE_STUDENT, User
from classroom.schemas.gradebook import (
    ClassGradeStats,
    GradeAnalyticsRead,
    GradebookRead,
    GradeExport,
    GradeLevelGradebookRead,
    LeaderboardRead,
    StudentGradesRead,
)
from classroom.schemas.school_class import Grade
from classroom.services import gradebook as gradebook_service
from classroom.services.gradebook import AnalyticsScore, SubmissionScore

router = APIRouter(tags=["grades"])


def _build_gradebook(
    db: Session,
    students: list[User],
    assignments: list[Assignment],
) -> gradebook_service.Gradebook:
    assignment_ids = [a.id for a in assignments]
    student_ids = [s.id for s in students]
    submissions = []
    if assignment_ids and student_ids:
        submissions = (
            db.query(Submission)
            .filter(
                Submission.assignment_id.in_(assignment_ids),
                Submission.student_id.in_(student_ids),
            )
            .all()
        )

    return gradebook_service.build_gradebook(students, assignments, submissions)


def _load_gradebook(db: Session, class_id: int) -> gradebook_service.Gradebook:
    students = (
        db.query(User)
        .join(ClassStudent, ClassStudent.student_id == User.id)
        .filter(ClassStudent.class_id == class_id)
        .order_by(User.full_name.asc(), User.id.asc())
        .all()
    )
    assignments = (
        db.query(Assignment)
        .filter(Assignment.class_id == class_id)
        .order_by(Assignment.created_at.asc(), Assignment.id.asc())
        .all()
    )
    return _build_gradebook(db, students, assignments)


def _gradebook_payload(book: gradebook_service.Gradebook) -> dict:
    return {
        "students": book.students,
        "assignments": book.assignments,
        "grades": {
            student_id: {
                assignment_id: {
                    "submission": cell.submission,
                    "grade": cell.grade,
                    "status": cell.status,
                }
                for assignment_id, cell in row.items()
            }
            for student_id, row in book.grades.items()
        },
    }


def _class_scores(db: Session, class_id: int) -> list[SubmissionScore]:
    rows = (
        db.query(
            Submission.student_id,
            Submission.status,
            Submission.grade,
            Assignment.total_points,
        )
        .join(Assignment, Assignment.id == Submission.assignment_id)
        .filter(Assignment.class_id == class_id)
        .all()
    )
    return [
        SubmissionScore(
            student_id=r.student_id,
            status=r.status,
            grade=r.grade,
            total_points=r.total_points,
        )
        for r in rows
    ]


@router.get("/classes/{class_id}/gradebook", response_model=GradebookRead)
def class_gradebook(
    class_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    ensure_class_owner(db, class_id, teacher)
    return _gradebook_payload(_load_gradebook(db, class_id))


@router.get("/classes/{class_id}/gradebook/statistics", response_model=ClassGradeStats)
def class_grade_statistics(
    class_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    ensure_class_owner(db, class_id, teacher)
    return gradebook_service.class_statistics(_class_scores(db, class_id))


@router.get("/classes/{class_id}/gradebook/leaderboard", response_model=LeaderboardRead)
def class_leaderboard(
    class_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_can_view_class(db, class_id, current_user)
    return gradebook_service.leaderboard(
        _load_gradebook(db, class_id),
        include_email=current_user.role != ROLE_STUDENT,
    )


@router.get("/classes/{class_id}/gradebook/export", response_model=GradeExport)
def export_gradebook(
    class_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    ensure_class_owner(db, class_id, teacher)
    return gradebook_service.export_rows(_load_gradebook(db, class_id))


@router.get("/grades/me", response_model=StudentGradesRead)
def my_grades(
    class_id: int | None = None,
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    query = (
        db.query(Submission)
        .options(joinedload(Submission.assignment))
        .filter(Submission.student_id == me.id)
    )
    if class_id is not None:
        query = query.join(Assignment, Assignment.id == Submission.assignment_id).filter(
            Assignment.class_id == class_id
        )
    subs = query.order_by(Submission.created_at.desc(), Submission.id.desc()).all()

    rows = []
    scores = []
    for s in subs:
        assignment = s.assignment
        rows.append(
            {
                "submission": s,
                "assignment_title": assignment.title if assignment else UNKNOWN_LABEL,
                "total_points": assignment.total_points if assignment else 0,
                "class_id": assignment.class_id if assignment else None,
                "target_grade": assignment.target_grade if assignment else None,
            }
        )
        scores.append(
            SubmissionScore(
                student_id=s.student_id,
                status=s.status,
                grade=s.grade,
                total_points=assignment.total_points if assignment else 0,
            )
        )

    return {
        "submissions": rows,
        "statistics": gradebook_service.student_summary(scores),
    }


def analytics_scores(db: Session) -> list[AnalyticsScore]:
    rows = (
        db.query(
            Submission.grade,
            Assignment.total_points,
            Assignment.target_grade,
            SchoolClass.grade.label("class_grade"),
            SchoolClass.subject,
        )
        .join(Assignment, Assignment.id == Submission.assignment_id)
        .outerjoin(SchoolClass, SchoolClass.id == Assignment.class_id)
        .filter(Submission.status == STATUS_GRADED)
        .all()
    )
    return [
        AnalyticsScore(
            grade_level=r.class_grade or r.target_grade,
            subject=r.subject,
            grade=r.grade,
            total_points=r.total_points,
        )
        for r in rows
    ]


@router.get("/grades/analytics", response_model=GradeAnalyticsRead)
def grade_analytics(
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    return gradebook_service.grade_analytics(analytics_scores(db))


@router.get("/grade-levels/{grade}/gradebook", response_model=GradeLevelGradebookRead)
def grade_level_gradebook(
    grade: Grade,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    """Every class of a grade level in one matrix, grade level assignments included."""
    classes = (
        db.query(SchoolClass)
        .filter(SchoolClass.grade == grade)
        .order_by(SchoolClass.name.asc(), SchoolClass.id.asc())
        .all()
    )
    class_ids = [c.id for c in classes]

    students = (
        db.query(User)
        .filter(User.id.in_(grade_student_ids(db, grade)))
        .order_by(User.full_name.asc(), User.id.asc())
        .all()
    )
    assignments = (
        db.query(Assignment)
        .filter(
            or_(
                Assignment.class_id.in_(class_ids),
                and_(Assignment.class_id.is_(None), Assignment.target_grade == grade),
            )
        )
        .order_by(Assignment.created_at.asc(), Assignment.id.asc())
        .all()
    )

    payload = _gradebook_payload(_build_gradebook(db, students, assignments))
    payload["classes"] = classes
    return payload
