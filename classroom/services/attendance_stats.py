"""
Attendance aggregation over flat (date, student_id, status) rows.

Rows can be Attendance models, query result rows or any object exposing
`date`, `student_id` and `status` attributes.
"""
import calendar
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from classroom.core.config import UNKNOWN_LABEL
from classroom.services.percent import rate, round_half_up

PRESENT = "present"
ABSENT = "absent"
SICK = "sick"
PERMISSION = "permission"

NOT_MARKED = "Not Marked"


@dataclass
class StudentAttendanceRate:
    student_id: int
    total_days: int
    present_days: int
    attendance_rate: float


@dataclass
class ClassAttendanceStats:
    total_students: int
    total_days: int
    class_average: float
    student_stats: list[StudentAttendanceRate] = field(default_factory=list)


@dataclass
class StudentAttendanceSummary:
    total_days: int = 0
    present_days: int = 0
    absent_days: int = 0
    sick_days: int = 0
    permission_days: int = 0
    attendance_rate: float = 0.0


@dataclass
class CalendarDay:
    present: int = 0
    total: int = 0


@dataclass
class SessionStats:
    total_sessions: int
    total_records: int
    present_records: int
    absent_records: int
    attendance_rate: int


@dataclass
class AttendanceReport:
    headers: list[str]
    rows: list[list[str]]
    statistics: ClassAttendanceStats


def unique_dates(records: Iterable[Any]) -> list[date]:
    return list(dict.fromkeys(r.date for r in records))


def unique_students(records: Iterable[Any]) -> list[int]:
    return list(dict.fromkeys(r.student_id for r in records))


def class_statistics(records: Sequence[Any]) -> ClassAttendanceStats:
    """
    Per-student rate = present days / number of distinct dates in `records`.
    Class average = plain mean of the per-student rates (not weighted by
    how many rows each student has).
    """
    total_days = len(unique_dates(records))
    students = unique_students(records)

    present_by_student: dict[int, int] = {sid: 0 for sid in students}
    for r in records:
        if r.status == PRESENT:
            present_by_student[r.student_id] += 1

    student_stats = [
        StudentAttendanceRate(
            student_id=sid,
            total_days=total_days,
            present_days=present_by_student[sid],
            attendance_rate=rate(present_by_student[sid], total_days),
        )
        for sid in students
    ]

    if student_stats:
        class_average = sum(s.attendance_rate for s in student_stats) / len(student_stats)
    else:
        class_average = 0.0

    return ClassAttendanceStats(
        total_students=len(students),
        total_days=total_days,
        class_average=class_average,
        student_stats=student_stats,
    )


def student_summary(records: Sequence[Any]) -> StudentAttendanceSummary:
    """Counts by status for one student's rows; rate is 0 with no rows."""
    counts = {PRESENT: 0, ABSENT: 0, SICK: 0, PERMISSION: 0}
    for r in records:
        if r.status in counts:
            counts[r.status] += 1

    total = len(records)
    return StudentAttendanceSummary(
        total_days=total,
        present_days=counts[PRESENT],
        absent_days=counts[ABSENT],
        sick_days=counts[SICK],
        permission_days=counts[PERMISSION],
        attendance_rate=rate(counts[PRESENT], total),
    )


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def calendar_view(records: Iterable[Any]) -> dict[date, CalendarDay]:
    days: dict[date, CalendarDay] = {}
    for r in records:
        day = days.setdefault(r.date, CalendarDay())
        day.total += 1
        if r.status == PRESENT:
            day.present += 1
    return days


def session_stats(records: Sequence[Any]) -> SessionStats:
    total_records = len(records)
    present = sum(1 for r in records if r.status == PRESENT)
    absent = sum(1 for r in records if r.status == ABSENT)

    return SessionStats(
        total_sessions=len(unique_dates(records)),
        total_records=total_records,
        present_records=present,
        absent_records=absent,
        attendance_rate=round_half_up(rate(present, total_records)),
    )


def export_report(records: Sequence[Any], students: Mapping[int, Any]) -> AttendanceReport:
    """
    Student x date grid of statuses. `students` maps student_id to an
    object with `full_name` and `email`; ids missing from it are shown
    as Unknown.
    """
    dates = sorted(unique_dates(records))
    student_ids = unique_students(records)

    status_by_cell = {(r.student_id, r.date): r.status for r in records}

    rows: list[list[str]] = []
    for sid in student_ids:
        student = students.get(sid)
        row = [
            getattr(student, "full_name", None) or UNKNOWN_LABEL,
            getattr(student, "email", None) or UNKNOWN_LABEL,
        ]
        row.extend(status_by_cell.get((sid, d), NOT_MARKED) for d in dates)
        rows.append(row)

    return AttendanceReport(
        headers=["Student Name", "Email", *(d.isoformat() for d in dates)],
        rows=rows,
        statistics=class_statistics(records),
    )
