from types import SimpleNamespace

import pytest

from classroom.services import gradebook
from classroom.services.gradebook import AnalyticsScore, SubmissionScore


def student(sid, name):
    return SimpleNamespace(id=sid, full_name=name, email=f"{name.lower()}@example.com")


def assignment(aid, points, title=None):
    return SimpleNamespace(id=aid, total_points=points, title=title or f"Tugas {aid}")


def submission(student_id, assignment_id, status, grade=None):
    return SimpleNamespace(
        student_id=student_id, assignment_id=assignment_id, status=status, grade=grade
    )


@pytest.fixture()
def book():
    students = [student(1, "Ani"), student(2, "Budi"), student(3, "Citra")]
    assignments = [assignment(10, 50), assignment(11, 150)]
    submissions = [
        submission(1, 10, "graded", 40),
        submission(1, 11, "graded", 120),
        submission(2, 10, "submitted"),
        submission(3, 11, "graded", 150),
        # not on the roster
        submission(42, 10, "graded", 50),
    ]
    return gradebook.build_gradebook(students, assignments, submissions)


def test_missing_cells_default_to_not_submitted(book):
    cell = book.cell(2, 11)
    assert cell.status == "not_submitted"
    assert cell.grade is None
    assert cell.submission is None

    assert set(book.grades) == {1, 2, 3}
    assert all(set(row) == {10, 11} for row in book.grades.values())


def test_submissions_overlay_the_matrix(book):
    assert book.cell(1, 10).status == "graded"
    assert book.cell(1, 10).grade == 40
    assert book.cell(2, 10).status == "submitted"
    assert 42 not in book.grades


@pytest.mark.parametrize(
    "percentage,letter",
    [(100, "A"), (90, "A"), (89.9, "B"), (80, "B"), (70, "C"), (60, "D"), (59.9, "F"), (0, "F")],
)
def test_letter_grade_bands(percentage, letter):
    assert gradebook.letter_grade(percentage) == letter


def test_distribution_counts_each_graded_submission_once():
    scores = [
        SubmissionScore(student_id=1, status="graded", grade=95, total_points=100),
        SubmissionScore(student_id=1, status="graded", grade=8, total_points=10),
        SubmissionScore(student_id=2, status="graded", grade=25, total_points=50),
        SubmissionScore(student_id=2, status="submitted", grade=None, total_points=100),
    ]
    distribution = gradebook.grade_distribution(scores)

    assert distribution == {"A": 1, "B": 1, "C": 0, "D": 0, "F": 1}
    assert sum(distribution.values()) == 3


def test_class_statistics_uses_weighted_percentage():
    scores = [
        SubmissionScore(student_id=1, status="graded", grade=10, total_points=10),
        SubmissionScore(student_id=2, status="graded", grade=45, total_points=90),
        SubmissionScore(student_id=3, status="submitted", grade=None, total_points=10),
    ]
    stats = gradebook.class_statistics(scores)

    assert stats.total_students == 3
    assert stats.submitted_count == 3
    assert stats.graded_count == 2
    assert stats.grading_rate == pytest.approx(200 / 3)
    assert stats.average_grade == pytest.approx(27.5)
    # 55 / 100, not the mean of 100% and 50%
    assert stats.average_percentage == pytest.approx(55)


def test_class_statistics_without_submissions():
    stats = gradebook.class_statistics([])
    assert stats.submission_rate == 0
    assert stats.grading_rate == 0
    assert stats.average_percentage == 0
    assert stats.grade_distribution == {"A": 0, "B": 0, "C": 0, "D": 0, "F": 0}


def test_student_summary():
    summary = gradebook.student_summary(
        [
            SubmissionScore(student_id=1, status="graded", grade=40, total_points=50),
            SubmissionScore(student_id=1, status="submitted", grade=None, total_points=100),
        ]
    )
    assert summary.total_assignments == 2
    assert summary.submitted_assignments == 2
    assert summary.graded_assignments == 1
    assert summary.total_points == 40
    assert summary.max_points == 50
    assert summary.average_percentage == pytest.approx(80)


def test_leaderboard_ranks_by_score_over_all_assignments(book):
    board = gradebook.leaderboard(book)

    assert [e.student_id for e in board.entries] == [1, 3, 2]
    assert [e.rank for e in board.entries] == [1, 2, 3]

    first, second, third = board.entries
    # 160 / 200
    assert first.average_score == 80
    assert first.letter == "B"
    assert first.completed_assignments == 2
    # 150 / 200 = 75
    assert second.average_score == 75
    assert third.average_score == 0
    assert third.total_points == 200

    # mean of per-student percentages
    assert board.class_average_score == pytest.approx((80 + 75 + 0) / 3)


def test_leaderboard_ties_keep_roster_order():
    students = [student(1, "Ani"), student(2, "Budi")]
    book = gradebook.build_gradebook(students, [assignment(10, 100)], [])

    board = gradebook.leaderboard(book)
    assert [e.student_id for e in board.entries] == [1, 2]
    assert [e.rank for e in board.entries] == [1, 2]


def test_empty_gradebook_leaderboard():
    board = gradebook.leaderboard(gradebook.build_gradebook([], [], []))
    assert board.entries == []
    assert board.class_average_score == 0


def test_export_rows(book):
    export = gradebook.export_rows(book)

    assert export.headers == ["Student Name", "Email", "Tugas 10", "Tugas 11"]
    assert export.rows[0] == ["Ani", "ani@example.com", 40, 120]
    assert export.rows[1] == ["Budi", "budi@example.com", "Submitted", "Not Submitted"]


def test_performance_metrics_count_graded_work_only():
    metrics = gradebook.performance_metrics(
        [
            SubmissionScore(student_id=1, status="graded", grade=30, total_points=40),
            SubmissionScore(student_id=1, status="graded", grade=50, total_points=60),
            SubmissionScore(student_id=1, status="submitted", grade=None, total_points=100),
        ]
    )
    assert metrics.total_assignments == 2
    assert metrics.total_points == 80
    assert metrics.max_points == 100
    assert metrics.average_grade == 40
    assert metrics.average_percentage == 80


def test_grade_analytics_groups_by_level_and_subject():
    analytics = gradebook.grade_analytics(
        [
            AnalyticsScore("10", "Matematika", 80, 100),
            AnalyticsScore("10", "Fisika", 30, 50),
            AnalyticsScore("12", "Matematika", 45, 50),
            # grade level work has no subject
            AnalyticsScore("12", None, 10, 20),
            AnalyticsScore("13", "Kimia", 5, 10),
        ]
    )

    by_grade = {g.grade: (g.average, g.percentage, g.total_submissions) for g in analytics.by_grade}
    assert by_grade == {"10": (55, 110 / 150 * 100, 2), "11": (0, 0, 0), "12": (27.5, 55 / 70 * 100, 2)}

    assert [s.subject for s in analytics.by_subject] == ["Fisika", "Kimia", "Matematika", "Unknown"]
    math = analytics.by_subject[2]
    assert (math.average, math.percentage, math.total_submissions) == (62.5, 125 / 150 * 100, 2)


def test_overall_average_skips_empty_levels():
    analytics = gradebook.grade_analytics([AnalyticsScore("10", "Matematika", 80, 100)])
    assert gradebook.overall_average(analytics) == 80
    assert gradebook.overall_average(gradebook.grade_analytics([])) == 0
