from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, joinedload

from classroom.core.deps import get_db
from classroom.core.permissions import require_teacher
from classroom.models.activity_log import ActivityLog
from classroom.models.assignment import Assignment
from classroom.models.notification import Notification
from classroom.models.school_class import SchoolClass
from classroom.models.submission import STATUS_SUBMITTED, Submission
from classroom.models.user import ROLE_STUDENT, User
from classroom.routers.activity import activity_row
from classroom.routers.grades import analytics_scores
from classroom.schemas.dashboard import TeacherDashboard
from classroom.services import gradebook as gradebook_service

router = APIRouter()

RECENT_DAYS = 7
RECENT_ACTIVITY_LIMIT = 10


@router.get("/teacher", response_model=TeacherDashboard)
def teacher_dashboard(
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    since = datetime.now(timezone.utc) - timedelta(days=RECENT_DAYS)
    analytics = gradebook_service.grade_analytics(analytics_scores(db))

    activities = (
        db.query(ActivityLog)
        .options(joinedload(ActivityLog.teacher))
        .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )

    return {
        "total_classes": db.query(SchoolClass).filter(SchoolClass.is_active.is_(True)).count(),
        "total_students": db.query(User)
        .filter(User.role == ROLE_STUDENT, User.is_active.is_(True))
        .count(),
        "total_assignments": db.query(Assignment).count(),
        "pending_reviews": db.query(Submission).filter(Submission.status == STATUS_SUBMITTED).count(),
        "recent_submissions": db.query(Submission).filter(Submission.submitted_at >= since).count(),
        "average_grade": gradebook_service.overall_average(analytics),
        "unread_notifications": db.query(Notification)
        .filter(Notification.user_id == teacher.id, Notification.is_read.is_(False))
        .count(),
        "recent_activities": [activity_row(log) for log in activities],
    }
