from pydantic import BaseModel

from classroom.schemas.activity import ActivityRead


class TeacherDashboard(BaseModel):
    total_classes: int
    total_students: int
    total_assignments: int
    # submitted, waiting for a grade
    pending_reviews: int
    # submitted in the last 7 days
    recent_submissions: int
    average_grade: float
    unread_notifications: int
    recent_activities: list[ActivityRead]
