import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import and_
from sqlalchemy.orm import Session, joinedload

from classroom.core.access import (
    assignment_student_ids,
    ensure_assignment_exists,
    ensure_assignment_manager,
)
from classroom.core.config import UNKNOWN_LABEL
from classroom.core.current_user import get_current_user
from classroom.core.deps import get_db
from classroom.core.permissions import require_student, require_teacher
from classroom.models.answer import Answer
from classroom.models.assignment import Assignment
from classroom.models.submission import STATUS_GRADED, STATUS_SUBMITTED, Submission
from classroom.models.user import ROLE_STUDENT, User
from classroom.schemas.submission import (
    AnswerCreate,
    SubmissionCreate,
    SubmissionDetail,
    SubmissionGradeUpdate,
    SubmissionRead,
    SubmissionWithStudent,
)
from classroom.services.activity import log_activity, notify_users

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_submission_exists(db: Session, submission_id: int) -> Submission:
    sub = (
        db.query(Submission)
        .options(joinedload(Submission.assignment))
        .filter(Submission.id == submission_id)
        .first()
    )
    if not sub:
        raise HTTPException(status_code=404, detail="Submission not found")
    return sub


def _clear_grading(sub: Submission) -> None:
    sub.grade = None
    sub.feedback = None
    sub.graded_at = None
    sub.graded_by = None
    for answer in sub.answers:
        answer.points_earned = None
        answer.feedback = None


def _check_answers(assignment: Assignment, answers: list[AnswerCreate]) -> None:
    question_ids = {q.id for q in assignment.questions}
    seen: set[int] = set()
    for answer in answers:
        if answer.question_id not in question_ids:
            raise HTTPException(
                status_code=400,
                detail=f"Question {answer.question_id} does not belong to this assignment",
            )
        if answer.question_id in seen:
            raise HTTPException(status_code=400, detail=f"Question {answer.question_id} answered twice")
        seen.add(answer.question_id)


@router.post(
    "/assignments/{assignment_id}/submissions",
    response_model=SubmissionDetail,
    status_code=status.HTTP_201_CREATED,
)
def submit_assignment(
    assignment_id: int,
    payload: SubmissionCreate,
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    assignment = ensure_assignment_exists(db, assignment_id)
    if me.id not in assignment_student_ids(db, assignment):
        raise HTTPException(status_code=403, detail="Assignment not given to this student")
    _check_answers(assignment, payload.answers)

    now = datetime.now(timezone.utc)

    # resubmission updates the existing row
    existing = (
        db.query(Submission)
        .filter(
            and_(
                Submission.assignment_id == assignment_id,
                Submission.student_id == me.id,
            )
        )
        .first()
    )

    if existing:
        sub = existing
        sub.content = payload.content
        sub.submitted_at = now
        sub.status = STATUS_SUBMITTED
        # a new version invalidates the previous grade
        _clear_grading(sub)
        # old answers must be gone before the new ones hit the unique key
        sub.answers.clear()
        db.flush()
    else:
        sub = Submission(
            assignment_id=assignment_id,
            student_id=me.id,
            content=payload.content,
            submitted_at=now,
            status=STATUS_SUBMITTED,
        )
        db.add(sub)

    for answer in payload.answers:
        sub.answers.append(
            Answer(
                question_id=answer.question_id,
                answer_text=answer.answer_text,
                file_url=answer.file_url,
                file_name=answer.file_name,
            )
        )

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(sub)
    logger.info("student %s submitted assignment %s", me.id, assignment_id)
    return sub


@router.get(
    "/assignments/{assignment_id}/submissions",
    response_model=list[SubmissionWithStudent],
)
def list_submissions_for_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    assignment = ensure_assignment_exists(db, assignment_id)
    ensure_assignment_manager(db, assignment, teacher)

    subs = (
        db.query(Submission)
        .options(joinedload(Submission.student))
        .filter(Submission.assignment_id == assignment_id)
        .order_by(Submission.submitted_at.desc(), Submission.id.asc())
        .all()
    )

    result: list[dict] = []
    for s in subs:
        row = SubmissionRead.model_validate(s).model_dump()
        row["student_name"] = s.student.full_name if s.student else UNKNOWN_LABEL
        row["student_email"] = s.student.email if s.student else UNKNOWN_LABEL
        result.append(row)
    return result


@router.get("/submissions/me", response_model=list[SubmissionRead])
def my_submissions(
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    return (
        db.query(Submission)
        .filter(Submission.student_id == me.id)
        .order_by(Submission.created_at.desc(), Submission.id.desc())
        .all()
    )


@router.get("/submissions/{submission_id}", response_model=SubmissionDetail)
def get_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    sub = _ensure_submission_exists(db, submission_id)
    if sub.student_id != current_user.id:
        if current_user.role == ROLE_STUDENT:
            raise HTTPException(status_code=403, detail="Not your submission")
        ensure_assignment_manager(db, sub.assignment, current_user)
    return sub


@router.patch("/submissions/{submission_id}/grade", response_model=SubmissionDetail)
def grade_submission(
    submission_id: int,
    payload: SubmissionGradeUpdate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    sub = _ensure_submission_exists(db, submission_id)
    assignment = sub.assignment
    ensure_assignment_manager(db, assignment, teacher)

    answers = {a.question_id: a for a in sub.answers}
    for scored in payload.answers:
        answer = answers.get(scored.question_id)
        if answer is None:
            raise HTTPException(status_code=400, detail=f"No answer for question {scored.question_id}")
        if scored.points_earned > answer.question.points:
            raise HTTPException(
                status_code=400,
                detail=f"points_earned must be between 0 and {answer.question.points:g}",
            )
        answer.points_earned = scored.points_earned
        answer.feedback = scored.feedback

    grade = payload.grade
    if grade is None:
        if not payload.answers:
            raise HTTPException(status_code=400, detail="grade or scored answers required")
        grade = sum(a.points_earned or 0 for a in sub.answers)

    if grade > assignment.total_points:
        raise HTTPException(
            status_code=400,
            detail=f"grade must be between 0 and {assignment.total_points}",
        )

    sub.grade = grade
    sub.feedback = payload.feedback
    sub.status = STATUS_GRADED
    sub.graded_at = datetime.now(timezone.utc)
    sub.graded_by = teacher.id

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(sub)

    notify_users(
        db,
        [sub.student_id],
        title="Tugas Dinilai",
        message=f'Tugas "{assignment.title}" telah dinilai',
        link=f"/student/assignments/{assignment.id}",
    )
    log_activity(
        db, teacher.id, "grade", "submission", sub.id,
        f"Graded submission with score {grade:g}",
    )
    return sub


@router.post("/submissions/{submission_id}/cancel-grading", response_model=SubmissionRead)
def cancel_grading(
    submission_id: int,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    sub = _ensure_submission_exists(db, submission_id)
    ensure_assignment_manager(db, sub.assignment, teacher)

    if sub.status != STATUS_GRADED:
        raise HTTPException(status_code=400, detail="Submission is not graded")

    _clear_grading(sub)
    sub.status = STATUS_SUBMITTED

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(sub)
    log_activity(db, teacher.id, "cancel_grading", "submission", sub.id, "Teacher cancelled grading for submission")
    return sub


@router.delete("/submissions/{submission_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_submission(
    submission_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(require_student),
):
    sub = _ensure_submission_exists(db, submission_id)
    if sub.student_id != me.id:
        raise HTTPException(status_code=403, detail="Not your submission")
    if sub.status == STATUS_GRADED:
        raise HTTPException(status_code=400, detail="Graded submissions cannot be cancelled")

    db.delete(sub)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    log_activity(db, None, "cancel_submission", "submission", submission_id, "Student cancelled submission")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
