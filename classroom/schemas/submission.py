from datetime import datetime

from pydantic import BaseModel, Field


class AnswerCreate(BaseModel):
    question_id: int
    answer_text: str | None = None
    file_url: str | None = Field(default=None, max_length=1024)
    file_name: str | None = Field(default=None, max_length=255)


class AnswerRead(BaseModel):
    id: int
    question_id: int
    answer_text: str | None = None
    file_url: str | None = None
    file_name: str | None = None
    points_earned: float | None = None
    feedback: str | None = None

    class Config:
        from_attributes = True


class SubmissionCreate(BaseModel):
    content: str | None = None
    answers: list[AnswerCreate] = []


class SubmissionRead(BaseModel):
    id: int
    assignment_id: int
    student_id: int
    status: str
    content: str | None = None
    submitted_at: datetime | None = None
    grade: float | None = None
    feedback: str | None = None
    graded_at: datetime | None = None
    graded_by: int | None = None

    class Config:
        from_attributes = True


class SubmissionDetail(SubmissionRead):
    answers: list[AnswerRead] = []


class SubmissionWithStudent(SubmissionRead):
    student_name: str
    student_email: str


class AnswerGrade(BaseModel):
    question_id: int
    points_earned: float = Field(ge=0)
    feedback: str | None = None


class SubmissionGradeUpdate(BaseModel):
    # summed from the graded answers when omitted
    grade: float | None = Field(default=None, ge=0)
    feedback: str | None = None
    answers: list[AnswerGrade] = []
