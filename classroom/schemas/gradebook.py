from datetime import datetime
from typing import Any

from pydantic import BaseModel

from classroom.schemas.submission import SubmissionRead
from classroom.schemas.user import StudentBrief


class GradebookAssignment(BaseModel):
    id: int
    title: str
    total_points: float
    assignment_type: str
    deadline: datetime
    class_id: int | None = None

    class Config:
        from_attributes = True


class GradebookCell(BaseModel):
    submission: SubmissionRead | None = None
    grade: float | None = None
    status: str  # "not_submitted" | "submitted" | "graded"


class GradebookRead(BaseModel):
    students: list[StudentBrief]
    assignments: list[GradebookAssignment]
    # student_id -> assignment_id -> cell
    grades: dict[int, dict[int, GradebookCell]]


class GradeDistribution(BaseModel):
    A: int = 0
    B: int = 0
    C: int = 0
    D: int = 0
    F: int = 0


class ClassGradeStats(BaseModel):
    total_students: int
    submitted_count: int
    graded_count: int
    submission_rate: float
    grading_rate: float
    average_grade: float
    average_percentage: float
    grade_distribution: GradeDistribution


class StudentGradeSummary(BaseModel):
    total_assignments: int
    submitted_assignments: int
    graded_assignments: int
    total_points: float
    max_points: float
    average_grade: float
    average_percentage: float


class StudentGradeRow(BaseModel):
    submission: SubmissionRead
    assignment_title: str
    total_points: float
    class_id: int | None = None
    target_grade: str | None = None


class StudentGradesRead(BaseModel):
    submissions: list[StudentGradeRow]
    statistics: StudentGradeSummary


class LeaderboardEntry(BaseModel):
    rank: int
    student_id: int
    full_name: str
    email: str | None = None
    total_assignments: int
    completed_assignments: int
    total_points: float
    earned_points: float
    average_score: int
    letter: str


class LeaderboardRead(BaseModel):
    entries: list[LeaderboardEntry]
    class_average_score: float


class GradeExport(BaseModel):
    headers: list[str]
    rows: list[list[Any]]


class GradeLevelClass(BaseModel):
    id: int
    name: str
    subject: str | None = None

    class Config:
        from_attributes = True


class GradeLevelGradebookRead(GradebookRead):
    classes: list[GradeLevelClass]


class GradeLevelAnalytics(BaseModel):
    grade: str
    average: float
    percentage: float
    total_submissions: int


class SubjectAnalytics(BaseModel):
    subject: str
    average: float
    percentage: float
    total_submissions: int


class GradeAnalyticsRead(BaseModel):
    by_grade: list[GradeLevelAnalytics]
    by_subject: list[SubjectAnalytics]
