import pytest

DEADLINE = "2030-01-01T08:00:00+00:00"


@pytest.fixture()
def quiz(client, seed_data, teacher_headers):
    r = client.post(
        f"/classes/{seed_data['class_id']}/assignments",
        headers=teacher_headers,
        json={
            "title": "Kuis 1",
            "deadline": DEADLINE,
            "total_points": 30,
            "questions": [
                {"question_text": "Jelaskan hukum Newton I", "points": 10},
                {"question_text": "Unggah laporan praktikum", "question_type": "file_upload", "points": 20},
            ],
        },
    )
    assert r.status_code == 201, r.text
    return r.json()


def test_questions_are_created_in_order(client, quiz, student_headers):
    assert [(q["order_number"], q["question_type"]) for q in quiz["questions"]] == [
        (1, "essay"),
        (2, "file_upload"),
    ]

    detail = client.get(f"/assignments/{quiz['id']}", headers=student_headers).json()
    assert [q["question_text"] for q in detail["questions"]] == [
        "Jelaskan hukum Newton I",
        "Unggah laporan praktikum",
    ]


def test_unknown_question_type_is_rejected(client, seed_data, teacher_headers):
    r = client.post(
        f"/classes/{seed_data['class_id']}/assignments",
        headers=teacher_headers,
        json={
            "title": "Kuis 2",
            "deadline": DEADLINE,
            "questions": [{"question_text": "?", "question_type": "multiple_choice"}],
        },
    )
    assert r.status_code == 422


def _answers(quiz):
    essay, upload = quiz["questions"]
    return [
        {"question_id": essay["id"], "answer_text": "Benda diam tetap diam"},
        {"question_id": upload["id"], "file_url": "https://files.example.com/lap.pdf", "file_name": "lap.pdf"},
    ]


def test_submit_answers(client, quiz, student_headers, teacher_headers):
    r = client.post(
        f"/assignments/{quiz['id']}/submissions",
        headers=student_headers,
        json={"answers": _answers(quiz)},
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert [a["file_name"] for a in body["answers"]] == [None, "lap.pdf"]

    detail = client.get(f"/submissions/{body['id']}", headers=teacher_headers)
    assert detail.status_code == 200, detail.text
    assert len(detail.json()["answers"]) == 2


def test_resubmission_replaces_answers(client, quiz, student_headers):
    url = f"/assignments/{quiz['id']}/submissions"
    client.post(url, headers=student_headers, json={"answers": _answers(quiz)})

    essay = quiz["questions"][0]
    r = client.post(url, headers=student_headers, json={"answers": [{"question_id": essay["id"], "answer_text": "v2"}]})
    assert r.status_code == 201, r.text
    assert [a["answer_text"] for a in r.json()["answers"]] == ["v2"]


def test_answers_must_match_the_assignment(client, seed_data, quiz, student_headers):
    # question of another assignment
    r = client.post(
        f"/assignments/{seed_data['assignment_id']}/submissions",
        headers=student_headers,
        json={"answers": [{"question_id": quiz["questions"][0]["id"], "answer_text": "x"}]},
    )
    assert r.status_code == 400

    essay = quiz["questions"][0]
    twice = client.post(
        f"/assignments/{quiz['id']}/submissions",
        headers=student_headers,
        json={"answers": [{"question_id": essay["id"]}, {"question_id": essay["id"]}]},
    )
    assert twice.status_code == 400


def test_grading_answers_sums_the_grade(client, quiz, student_headers, teacher_headers):
    sub = client.post(
        f"/assignments/{quiz['id']}/submissions",
        headers=student_headers,
        json={"answers": _answers(quiz)},
    ).json()
    essay, upload = quiz["questions"]

    too_many = client.patch(
        f"/submissions/{sub['id']}/grade",
        headers=teacher_headers,
        json={"answers": [{"question_id": essay["id"], "points_earned": 11}]},
    )
    assert too_many.status_code == 400

    r = client.patch(
        f"/submissions/{sub['id']}/grade",
        headers=teacher_headers,
        json={
            "feedback": "Cukup",
            "answers": [
                {"question_id": essay["id"], "points_earned": 8, "feedback": "Kurang contoh"},
                {"question_id": upload["id"], "points_earned": 17},
            ],
        },
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["status"] == "graded"
    assert body["grade"] == 25
    assert [a["points_earned"] for a in body["answers"]] == [8, 17]


def test_grade_needs_a_score(client, quiz, student_headers, teacher_headers):
    sub = client.post(
        f"/assignments/{quiz['id']}/submissions",
        headers=student_headers,
        json={"content": "tanpa jawaban"},
    ).json()
    r = client.patch(f"/submissions/{sub['id']}/grade", headers=teacher_headers, json={"feedback": "?"})
    assert r.status_code == 400


def test_submission_detail_is_private(client, quiz, student_headers, second_student_headers, other_teacher_headers):
    sub = client.post(
        f"/assignments/{quiz['id']}/submissions",
        headers=student_headers,
        json={"answers": _answers(quiz)},
    ).json()
    url = f"/submissions/{sub['id']}"

    assert client.get(url, headers=student_headers).status_code == 200
    assert client.get(url, headers=second_student_headers).status_code == 403
    assert client.get(url, headers=other_teacher_headers).status_code == 403
