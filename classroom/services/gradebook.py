"""
Gradebook aggregation.

The gradebook is a dense student x assignment matrix built from sparse
submission rows. It has no storage of its own and is rebuilt on every
read.

Two different averages live here and must not be merged:
- weighted percentage: sum(points) / sum(max points)  (class_statistics,
  student_summary)
- average of per-student percentages                   (leaderboard)
"""
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from classroom.core.config import GRADE_LEVELS, UNKNOWN_LABEL
from classroom.models.submission import STATUS_GRADED, STATUS_NOT_SUBMITTED, STATUS_SUBMITTED
from classroom.services.percent import rate, round_half_up

GRADE_BANDS = (
    ("A", 90),
    ("B", 80),
    ("C", 70),
    ("D", 60),
)
FAILING_LETTER = "F"


@dataclass
class GradeCell:
    submission: Any = None
    grade: float | None = None
    status: str = STATUS_NOT_SUBMITTED


@dataclass
class Gradebook:
    students: list[Any]
    assignments: list[Any]
    grades: dict[int, dict[int, GradeCell]]

    def cell(self, student_id: int, assignment_id: int) -> GradeCell:
        return self.grades[student_id][assignment_id]


@dataclass
class SubmissionScore:
    """One submission joined with the max points of its assignment."""

    student_id: int
    status: str
    grade: float | None
    total_points: float


@dataclass
class ClassGradeStats:
    total_students: int
    submitted_count: int
    graded_count: int
    submission_rate: float
    grading_rate: float
    average_grade: float
    average_percentage: float
    grade_distribution: dict[str, int]


@dataclass
class StudentGradeSummary:
    total_assignments: int
    submitted_assignments: int
    graded_assignments: int
    total_points: float
    max_points: float
    average_grade: float
    average_percentage: float


@dataclass
class PerformanceMetrics:
    total_assignments: int
    total_points: float
    max_points: float
    average_grade: float
    average_percentage: float


@dataclass
class LeaderboardEntry:
    student_id: int
    full_name: str
    email: str | None
    total_assignments: int
    completed_assignments: int
    total_points: float
    earned_points: float
    average_score: int
    letter: str
    rank: int = 0


@dataclass
class Leaderboard:
    entries: list[LeaderboardEntry] = field(default_factory=list)
    class_average_score: float = 0.0


@dataclass
class GradeExport:
    headers: list[str]
    rows: list[list[Any]]


def letter_grade(percentage: float) -> str:
    for letter, floor in GRADE_BANDS:
        if percentage >= floor:
            return letter
    return FAILING_LETTER


def empty_distribution() -> dict[str, int]:
    return {letter: 0 for letter, _ in GRADE_BANDS} | {FAILING_LETTER: 0}


def build_gradebook(
    students: Sequence[Any],
    assignments: Sequence[Any],
    submissions: Iterable[Any],
) -> Gradebook:
    """
    Every (student, assignment) pair starts as not_submitted; submissions
    are overlaid on top. Submissions outside the roster or the assignment
    list are ignored.
    """
    grades: dict[int, dict[int, GradeCell]] = {
        student.id: {assignment.id: GradeCell() for assignment in assignments}
        for student in students
    }

    for submission in submissions:
        row = grades.get(submission.student_id)
        if row is None or submission.assignment_id not in row:
            continue
        row[submission.assignment_id] = GradeCell(
            submission=submission,
            grade=submission.grade,
            status=submission.status,
        )

    return Gradebook(students=list(students), assignments=list(assignments), grades=grades)


def grade_distribution(scores: Iterable[SubmissionScore]) -> dict[str, int]:
    """Bucket graded submissions by percentage of their assignment's points."""
    distribution = empty_distribution()
    for s in scores:
        if s.status != STATUS_GRADED:
            continue
        distribution[letter_grade(rate(s.grade or 0, s.total_points))] += 1
    return distribution


def class_statistics(scores: Sequence[SubmissionScore]) -> ClassGradeStats:
    graded = [s for s in scores if s.status == STATUS_GRADED]

    total_students = len({s.student_id for s in scores})
    submitted_count = sum(1 for s in scores if s.status != STATUS_NOT_SUBMITTED)
    graded_count = len(graded)

    points = sum(s.grade or 0 for s in graded)
    max_points = sum(s.total_points for s in graded)

    return ClassGradeStats(
        total_students=total_students,
        submitted_count=submitted_count,
        graded_count=graded_count,
        submission_rate=rate(submitted_count, total_students),
        grading_rate=rate(graded_count, submitted_count),
        average_grade=points / graded_count if graded_count else 0.0,
        average_percentage=rate(points, max_points),
        grade_distribution=grade_distribution(graded),
    )


def student_summary(scores: Sequence[SubmissionScore]) -> StudentGradeSummary:
    graded = [s for s in scores if s.status == STATUS_GRADED]
    total_points = sum(s.grade or 0 for s in graded)
    max_points = sum(s.total_points for s in graded)

    return StudentGradeSummary(
        total_assignments=len(scores),
        submitted_assignments=sum(1 for s in scores if s.status != STATUS_NOT_SUBMITTED),
        graded_assignments=len(graded),
        total_points=total_points,
        max_points=max_points,
        average_grade=total_points / len(graded) if graded else 0.0,
        average_percentage=rate(total_points, max_points),
    )


def performance_metrics(scores: Sequence[SubmissionScore]) -> PerformanceMetrics:
    """Totals over graded work only; pending submissions do not count."""
    summary = student_summary([s for s in scores if s.status == STATUS_GRADED])
    return PerformanceMetrics(
        total_assignments=summary.graded_assignments,
        total_points=summary.total_points,
        max_points=summary.max_points,
        average_grade=summary.average_grade,
        average_percentage=summary.average_percentage,
    )


def leaderboard(gradebook: Gradebook, include_email: bool = True) -> Leaderboard:
    """
    Rank students by earned points over the points of all assignments in
    the gradebook. Ties keep roster order. Emails are left out when the
    board is shown to classmates.
    """
    max_points = sum(a.total_points for a in gradebook.assignments)

    entries: list[LeaderboardEntry] = []
    for student in gradebook.students:
        cells = gradebook.grades[student.id].values()
        graded = [c for c in cells if c.status == STATUS_GRADED]
        earned = sum(c.grade or 0 for c in graded)
        score = round_half_up(rate(earned, max_points))

        entries.append(
            LeaderboardEntry(
                student_id=student.id,
                full_name=getattr(student, "full_name", None) or UNKNOWN_LABEL,
                email=(getattr(student, "email", None) or UNKNOWN_LABEL) if include_email else None,
                total_assignments=len(gradebook.assignments),
                completed_assignments=len(graded),
                total_points=max_points,
                earned_points=earned,
                average_score=score,
                letter=letter_grade(score),
            )
        )

    entries.sort(key=lambda e: e.average_score, reverse=True)
    for position, entry in enumerate(entries, start=1):
        entry.rank = position

    class_average = sum(e.average_score for e in entries) / len(entries) if entries else 0.0
    return Leaderboard(entries=entries, class_average_score=class_average)


def export_rows(gradebook: Gradebook) -> GradeExport:
    headers = ["Student Name", "Email", *(a.title or UNKNOWN_LABEL for a in gradebook.assignments)]

    rows: list[list[Any]] = []
    for student in gradebook.students:
        row: list[Any] = [
            getattr(student, "full_name", None) or UNKNOWN_LABEL,
            getattr(student, "email", None) or UNKNOWN_LABEL,
        ]
        for assignment in gradebook.assignments:
            cell = gradebook.cell(student.id, assignment.id)
            if cell.status == STATUS_GRADED:
                row.append(cell.grade)
            elif cell.status == STATUS_SUBMITTED:
                row.append("Submitted")
            else:
                row.append("Not Submitted")
        rows.append(row)

    return GradeExport(headers=headers, rows=rows)


@dataclass
class AnalyticsScore:
    """One graded submission with the grade level and subject it counts toward."""

    grade_level: str | None
    subject: str | None
    grade: float | None
    total_points: float


@dataclass
class GradeLevelAnalytics:
    grade: str
    average: float
    percentage: float
    total_submissions: int


@dataclass
class SubjectAnalytics:
    subject: str
    average: float
    percentage: float
    total_submissions: int


@dataclass
class GradeAnalytics:
    by_grade: list[GradeLevelAnalytics]
    by_subject: list[SubjectAnalytics]


def _totals(scores: list[AnalyticsScore]) -> tuple[float, float, int]:
    points = sum(s.grade or 0 for s in scores)
    max_points = sum(s.total_points for s in scores)
    average = points / len(scores) if scores else 0.0
    return average, rate(points, max_points), len(scores)


def grade_analytics(scores: Iterable[AnalyticsScore]) -> GradeAnalytics:
    """
    School wide averages over graded submissions. Every grade level is
    reported even when empty; subjects only when they have submissions.
    """
    by_level: dict[str, list[AnalyticsScore]] = {level: [] for level in GRADE_LEVELS}
    by_subject: dict[str, list[AnalyticsScore]] = {}

    for s in scores:
        if s.grade_level in by_level:
            by_level[s.grade_level].append(s)
        by_subject.setdefault(s.subject or UNKNOWN_LABEL, []).append(s)

    return GradeAnalytics(
        by_grade=[
            GradeLevelAnalytics(level, *_totals(rows)) for level, rows in by_level.items()
        ],
        by_subject=[
            SubjectAnalytics(subject, *_totals(rows)) for subject, rows in sorted(by_subject.items())
        ],
    )


def overall_average(analytics: GradeAnalytics) -> float:
    """Mean of the per grade level averages, over levels that have submissions."""
    levels = [g.average for g in analytics.by_grade if g.total_submissions]
    return sum(levels) / len(levels) if levels else 0.0
