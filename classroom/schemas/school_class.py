from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from classroom.schemas.user import StudentBrief

Grade = Literal["10", "11", "12"]


class ClassCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    grade: Grade
    subject: str | None = None
    description: str | None = None
    # generated when omitted
    class_code: str | None = Field(default=None, min_length=4, max_length=16)


class ClassUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    grade: Grade | None = None
    subject: str | None = None
    description: str | None = None
    is_active: bool | None = None


class ClassRead(BaseModel):
    id: int
    name: str
    grade: str
    subject: str | None = None
    description: str | None = None
    class_code: str
    is_active: bool
    created_by: int | None = None
    created_at: datetime
    student_count: int = 0
    teacher_name: str

    class Config:
        from_attributes = True


class ClassDetail(ClassRead):
    students: list[StudentBrief] = []


class EnrollmentCreate(BaseModel):
    student_id: int


class EnrollmentRead(BaseModel):
    id: int
    class_id: int
    student_id: int
    enrolled_by: int | None = None
    enrolled_at: datetime

    class Config:
        from_attributes = True
