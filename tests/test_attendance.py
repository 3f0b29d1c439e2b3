import pytest

DAY = "2024-03-04"
NEXT_DAY = "2024-03-05"


@pytest.fixture()
def attendance_url(seed_data):
    return f"/classes/{seed_data['class_id']}/attendance"


def batch(client, url, headers, date, records):
    r = client.put(f"{url}/batch", headers=headers, json={"date": date, "records": records})
    assert r.status_code == 200, r.text
    return r.json()


def test_mark_single_attendance(client, seed_data, teacher_headers, attendance_url):
    payload = {"student_id": seed_data["student_id"], "date": DAY, "status": "present"}

    r = client.post(attendance_url, headers=teacher_headers, json=payload)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["student_name"] == "Budi Santoso"
    assert body["marked_by"] == seed_data["teacher_id"]

    # one record per (class, date, student)
    dup = client.post(attendance_url, headers=teacher_headers, json=payload)
    assert dup.status_code == 409


def test_cannot_mark_unenrolled_student(client, seed_data, teacher_headers, attendance_url):
    r = client.post(
        attendance_url,
        headers=teacher_headers,
        json={"student_id": seed_data["outsider_id"], "date": DAY, "status": "present"},
    )
    assert r.status_code == 400


def test_invalid_status_is_rejected(client, seed_data, teacher_headers, attendance_url):
    r = client.post(
        attendance_url,
        headers=teacher_headers,
        json={"student_id": seed_data["student_id"], "date": DAY, "status": "late"},
    )
    assert r.status_code == 422


def test_batch_replaces_the_whole_date(client, seed_data, teacher_headers, attendance_url):
    batch(
        client, attendance_url, teacher_headers, DAY,
        [
            {"student_id": seed_data["student_id"], "status": "present"},
            {"student_id": seed_data["second_student_id"], "status": "sick", "notes": "demam"},
        ],
    )
    saved = batch(
        client, attendance_url, teacher_headers, DAY,
        [{"student_id": seed_data["student_id"], "status": "absent"}],
    )
    assert [(a["student_id"], a["status"]) for a in saved] == [(seed_data["student_id"], "absent")]

    r = client.get(f"{attendance_url}?date={DAY}", headers=teacher_headers)
    assert r.status_code == 200
    assert len(r.json()) == 1


def test_batch_rejects_duplicate_students(client, seed_data, teacher_headers, attendance_url):
    sid = seed_data["student_id"]
    r = client.put(
        f"{attendance_url}/batch",
        headers=teacher_headers,
        json={
            "date": DAY,
            "records": [
                {"student_id": sid, "status": "present"},
                {"student_id": sid, "status": "absent"},
            ],
        },
    )
    assert r.status_code == 400


def test_bulk_upserts_without_touching_others(client, seed_data, teacher_headers, attendance_url):
    batch(
        client, attendance_url, teacher_headers, DAY,
        [
            {"student_id": seed_data["student_id"], "status": "absent"},
            {"student_id": seed_data["second_student_id"], "status": "sick"},
        ],
    )

    r = client.post(
        f"{attendance_url}/bulk",
        headers=teacher_headers,
        json={"date": DAY, "status": "present", "student_ids": [seed_data["student_id"]]},
    )
    assert r.status_code == 200, r.text
    assert [a["status"] for a in r.json()] == ["present"]

    day = client.get(f"{attendance_url}?date={DAY}", headers=teacher_headers).json()
    statuses = {a["student_id"]: a["status"] for a in day}
    assert statuses == {
        seed_data["student_id"]: "present",
        seed_data["second_student_id"]: "sick",
    }


def test_bulk_requires_students(client, teacher_headers, attendance_url):
    r = client.post(
        f"{attendance_url}/bulk",
        headers=teacher_headers,
        json={"date": DAY, "status": "present", "student_ids": []},
    )
    assert r.status_code == 422


@pytest.fixture()
def two_days(client, seed_data, teacher_headers, attendance_url):
    batch(
        client, attendance_url, teacher_headers, DAY,
        [
            {"student_id": seed_data["student_id"], "status": "present"},
            {"student_id": seed_data["second_student_id"], "status": "absent"},
        ],
    )
    batch(
        client, attendance_url, teacher_headers, NEXT_DAY,
        [{"student_id": seed_data["student_id"], "status": "present"}],
    )


def test_class_statistics(client, seed_data, teacher_headers, attendance_url, two_days):
    r = client.get(f"{attendance_url}/statistics", headers=teacher_headers)
    assert r.status_code == 200, r.text
    stats = r.json()

    assert stats["total_days"] == 2
    assert stats["total_students"] == 2
    rates = {s["student_id"]: s["attendance_rate"] for s in stats["student_stats"]}
    assert rates[seed_data["student_id"]] == 100
    assert rates[seed_data["second_student_id"]] == 0
    assert stats["class_average"] == 50


def test_statistics_date_filter(client, teacher_headers, attendance_url, two_days):
    r = client.get(
        f"{attendance_url}/statistics?start_date={NEXT_DAY}&end_date={NEXT_DAY}",
        headers=teacher_headers,
    )
    assert r.json()["total_days"] == 1


def test_calendar_and_sessions(client, teacher_headers, attendance_url, two_days):
    cal = client.get(f"{attendance_url}/calendar?year=2024&month=3", headers=teacher_headers)
    assert cal.status_code == 200, cal.text
    assert cal.json() == {
        DAY: {"present": 1, "total": 2},
        NEXT_DAY: {"present": 1, "total": 1},
    }

    other_month = client.get(f"{attendance_url}/calendar?year=2024&month=4", headers=teacher_headers)
    assert other_month.json() == {}

    sessions = client.get(f"{attendance_url}/sessions", headers=teacher_headers).json()
    assert sessions["total_sessions"] == 2
    assert sessions["total_records"] == 3
    assert sessions["present_records"] == 2
    assert sessions["absent_records"] == 1
    assert sessions["attendance_rate"] == 67


def test_export(client, seed_data, teacher_headers, attendance_url, two_days):
    r = client.get(f"{attendance_url}/export", headers=teacher_headers)
    assert r.status_code == 200, r.text
    report = r.json()

    assert report["headers"] == ["Student Name", "Email", DAY, NEXT_DAY]
    rows = {row[0]: row for row in report["rows"]}
    assert rows["Ani Wijaya"] == ["Ani Wijaya", "student2@example.com", "absent", "Not Marked"]
    assert rows["Budi Santoso"][2:] == ["present", "present"]


def test_history_is_paginated(client, teacher_headers, attendance_url, two_days):
    page = client.get(f"{attendance_url}/history?page_size=2", headers=teacher_headers).json()
    assert page["total_items"] == 3
    assert page["total_pages"] == 2
    # newest date first
    assert page["items"][0]["date"] == NEXT_DAY


def test_student_views_own_attendance(client, seed_data, teacher_headers, student_headers, two_days):
    r = client.get(
        f"/attendance/me?class_id={seed_data['class_id']}", headers=student_headers
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert len(body["records"]) == 2
    assert body["statistics"]["present_days"] == 2
    assert body["statistics"]["attendance_rate"] == 100

    per_student = client.get(
        f"/classes/{seed_data['class_id']}/attendance/students/{seed_data['second_student_id']}",
        headers=teacher_headers,
    ).json()
    assert per_student["statistics"]["absent_days"] == 1


def test_attendance_requires_class_owner(
    client, attendance_url, other_teacher_headers, student_headers
):
    assert client.get(f"{attendance_url}/statistics", headers=other_teacher_headers).status_code == 403
    assert client.get(f"{attendance_url}/statistics", headers=student_headers).status_code == 403
