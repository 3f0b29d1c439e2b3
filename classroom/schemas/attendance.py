import datetime as dt
from typing import Literal

from pydantic import BaseModel, Field

AttendanceStatus = Literal["present", "absent", "sick", "permission"]


class AttendanceMark(BaseModel):
    student_id: int
    date: dt.date
    status: AttendanceStatus
    notes: str | None = None


class AttendanceBatchItem(BaseModel):
    student_id: int
    status: AttendanceStatus
    notes: str | None = None


class AttendanceBatch(BaseModel):
    """Replaces every record of the class on `date`."""

    date: dt.date
    records: list[AttendanceBatchItem]


class AttendanceBulk(BaseModel):
    """Same status for many students; upserts on (class, date, student)."""

    date: dt.date
    status: AttendanceStatus
    student_ids: list[int] = Field(min_length=1)


class AttendanceRead(BaseModel):
    id: int
    class_id: int
    student_id: int
    student_name: str
    date: dt.date
    status: str
    notes: str | None = None
    marked_by: int | None = None
    created_at: dt.datetime


class StudentAttendanceRate(BaseModel):
    student_id: int
    total_days: int
    present_days: int
    attendance_rate: float


class ClassAttendanceStats(BaseModel):
    total_students: int
    total_days: int
    class_average: float
    student_stats: list[StudentAttendanceRate]


class StudentAttendanceSummary(BaseModel):
    total_days: int
    present_days: int
    absent_days: int
    sick_days: int
    permission_days: int
    attendance_rate: float


class StudentAttendanceRead(BaseModel):
    records: list[AttendanceRead]
    statistics: StudentAttendanceSummary


class CalendarDay(BaseModel):
    present: int
    total: int


class SessionStats(BaseModel):
    total_sessions: int
    total_records: int
    present_records: int
    absent_records: int
    attendance_rate: int


class AttendanceReport(BaseModel):
    headers: list[str]
    rows: list[list[str]]
    statistics: ClassAttendanceStats
