from datetime import datetime

from pydantic import BaseModel


class ActivityRead(BaseModel):
    id: int
    teacher_id: int | None = None
    teacher_name: str
    action: str
    entity_type: str
    entity_id: str | None = None
    description: str | None = None
    summary: str
    created_at: datetime


class ActivityStatisticsRead(BaseModel):
    total_activities: int
    action_stats: dict[str, int]
    entity_stats: dict[str, int]
    teacher_stats: dict[str, int]
    # ISO date -> count
    daily_stats: dict[str, int]


class TeacherActivityRead(BaseModel):
    teacher_id: int
    full_name: str
    email: str
    count: int


class PurgeResult(BaseModel):
    deleted: int
