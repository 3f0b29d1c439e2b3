from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

QuestionType = Literal["essay", "file_upload"]


class QuestionCreate(BaseModel):
    question_text: str = Field(min_length=1)
    question_type: QuestionType = "essay"
    points: float = Field(default=0, ge=0)
    # position in the list when omitted
    order_number: int | None = Field(default=None, ge=1)


class QuestionRead(BaseModel):
    id: int
    question_text: str
    question_type: str
    points: float
    order_number: int

    class Config:
        from_attributes = True


class AssignmentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    deadline: datetime
    total_points: float = Field(default=100, gt=0)
    questions: list[QuestionCreate] = []


class AssignmentUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    deadline: datetime | None = None
    total_points: float | None = Field(default=None, gt=0)


class AssignmentRead(BaseModel):
    id: int
    class_id: int | None = None
    target_grade: str | None = None
    title: str
    description: str | None
    deadline: datetime
    total_points: float
    assignment_type: str
    created_by: int | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class AssignmentDetail(AssignmentRead):
    questions: list[QuestionRead] = []
