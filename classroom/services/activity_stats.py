"""
Read side of the activity log.

Entries are anything shaped like ActivityLog with its ``teacher`` loaded.
Days are UTC calendar dates in ISO form; timestamps stored without a zone
are taken as UTC already.
"""
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from classroom.core.config import UNKNOWN_LABEL

ACTION_LABELS = {
    "create": "Created",
    "update": "Updated",
    "delete": "Deleted",
    "grade": "Graded",
    "mark_attendance": "Marked attendance",
    "bulk_mark_attendance": "Bulk marked attendance",
    "enroll": "Enrolled student",
    "unenroll": "Unenrolled student",
    "submit": "Submitted",
    "activate": "Activated",
    "deactivate": "Deactivated",
}


@dataclass
class ActivityStatistics:
    total_activities: int = 0
    action_stats: dict[str, int] = field(default_factory=dict)
    entity_stats: dict[str, int] = field(default_factory=dict)
    teacher_stats: dict[str, int] = field(default_factory=dict)
    daily_stats: dict[str, int] = field(default_factory=dict)


@dataclass
class TeacherActivity:
    teacher_id: int
    full_name: str
    email: str
    count: int


def day_of(ts: datetime) -> str:
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    return ts.date().isoformat()


def teacher_name(entry: Any) -> str:
    teacher = getattr(entry, "teacher", None)
    return getattr(teacher, "full_name", None) or UNKNOWN_LABEL


def describe(action: str, entity_type: str, description: str | None = None) -> str:
    """Human readable line for an entry; a stored description wins."""
    if description:
        return description
    return f"{ACTION_LABELS.get(action, action)} {entity_type}"


def activity_statistics(entries: Iterable[Any]) -> ActivityStatistics:
    actions: Counter[str] = Counter()
    entities: Counter[str] = Counter()
    teachers: Counter[str] = Counter()
    days: Counter[str] = Counter()

    total = 0
    for entry in entries:
        total += 1
        actions[entry.action] += 1
        entities[entry.entity_type] += 1
        teachers[teacher_name(entry)] += 1
        days[day_of(entry.created_at)] += 1

    return ActivityStatistics(
        total_activities=total,
        action_stats=dict(actions),
        entity_stats=dict(entities),
        teacher_stats=dict(teachers),
        daily_stats=dict(sorted(days.items())),
    )


def most_active_teachers(entries: Iterable[Any], limit: int = 10) -> list[TeacherActivity]:
    """
    Teachers ordered by how many entries they wrote, busiest first, ties
    by name. Entries without a teacher (student actions) are not counted.
    """
    by_teacher: dict[int, TeacherActivity] = {}
    for entry in entries:
        if entry.teacher_id is None:
            continue
        row = by_teacher.get(entry.teacher_id)
        if row is None:
            teacher = getattr(entry, "teacher", None)
            row = TeacherActivity(
                teacher_id=entry.teacher_id,
                full_name=teacher_name(entry),
                email=getattr(teacher, "email", None) or "",
                count=0,
            )
            by_teacher[entry.teacher_id] = row
        row.count += 1

    ranked = sorted(by_teacher.values(), key=lambda r: (-r.count, r.full_name))
    return ranked[:limit]


def timeline(entries: Iterable[Any]) -> dict[str, list[Any]]:
    """Group entries by day. Input order is kept inside each day."""
    grouped: dict[str, list[Any]] = {}
    for entry in entries:
        grouped.setdefault(day_of(entry.created_at), []).append(entry)
    return dict(sorted(grouped.items()))
