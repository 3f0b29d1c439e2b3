from datetime import date, datetime

from pydantic import BaseModel, EmailStr, Field

from classroom.schemas.submission import SubmissionRead
from classroom.schemas.user import UserRead


class StudentCreate(BaseModel):
    email: EmailStr
    full_name: str = Field(min_length=1, max_length=255)
    birth_date: date
    phone: str | None = None
    # defaults to the birth date as DDMMYYYY
    password: str | None = Field(default=None, min_length=8, max_length=72)


class StudentUpdate(BaseModel):
    email: EmailStr | None = None
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    birth_date: date | None = None
    phone: str | None = None


class PasswordReset(BaseModel):
    password: str = Field(min_length=8, max_length=72)


class StudentListRow(UserRead):
    class_count: int = 0


class StudentClass(BaseModel):
    id: int
    name: str
    grade: str
    subject: str | None = None
    enrolled_at: datetime


class StudentDetail(UserRead):
    classes: list[StudentClass] = []


class ImportRowError(BaseModel):
    row: int
    email: str | None = None
    error: str


class ImportResult(BaseModel):
    results: list[UserRead]
    errors: list[ImportRowError]


class PerformanceRow(BaseModel):
    submission: SubmissionRead
    assignment_title: str
    total_points: float
    assignment_type: str
    class_name: str | None = None
    subject: str | None = None


class PerformanceMetrics(BaseModel):
    total_assignments: int
    total_points: float
    max_points: float
    average_grade: float
    average_percentage: float


class StudentPerformance(BaseModel):
    submissions: list[PerformanceRow]
    metrics: PerformanceMetrics
