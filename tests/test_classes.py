from conftest import TestingSessionLocal

from classroom.models.class_student import ClassStudent
from classroom.models.school_class import SchoolClass


def test_teacher_lists_classes_with_student_count(client, teacher_headers):
    r = client.get("/classes/", headers=teacher_headers)
    assert r.status_code == 200, r.text
    classes = r.json()
    assert len(classes) == 1
    assert classes[0]["class_code"] == "MAT10A"
    assert classes[0]["student_count"] == 2
    assert classes[0]["teacher_name"] == "Teacher One"


def test_student_cannot_list_all_classes(client, student_headers):
    assert client.get("/classes/", headers=student_headers).status_code == 403


def test_student_lists_own_classes(client, student_headers, outsider_headers):
    mine = client.get("/classes/me", headers=student_headers)
    assert mine.status_code == 200
    assert [c["name"] for c in mine.json()] == ["X IPA 1"]

    none = client.get("/classes/me", headers=outsider_headers)
    assert none.json() == []


def test_create_class_generates_code(client, teacher_headers):
    r = client.post(
        "/classes/",
        headers=teacher_headers,
        json={"name": "XI IPS 2", "grade": "11", "subject": "Sejarah"},
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert len(body["class_code"]) == 6
    assert body["class_code"].isalnum()
    assert body["is_active"] is True
    assert body["student_count"] == 0


def test_create_class_with_taken_code(client, teacher_headers):
    r = client.post(
        "/classes/",
        headers=teacher_headers,
        json={"name": "Duplicate", "grade": "10", "class_code": "MAT10A"},
    )
    assert r.status_code == 409


def test_create_class_rejects_unknown_grade(client, teacher_headers):
    r = client.post("/classes/", headers=teacher_headers, json={"name": "Kelas 9", "grade": "9"})
    assert r.status_code == 422


def test_class_detail_lists_students_by_name(client, seed_data, student_headers):
    r = client.get(f"/classes/{seed_data['class_id']}", headers=student_headers)
    assert r.status_code == 200, r.text
    assert [s["full_name"] for s in r.json()["students"]] == ["Ani Wijaya", "Budi Santoso"]


def test_class_detail_hidden_from_outsiders(client, seed_data, outsider_headers, other_teacher_headers):
    url = f"/classes/{seed_data['class_id']}"
    assert client.get(url, headers=outsider_headers).status_code == 403
    assert client.get(url, headers=other_teacher_headers).status_code == 403


def test_unknown_class_is_404(client, teacher_headers):
    assert client.get("/classes/9999", headers=teacher_headers).status_code == 404


def test_update_class_keeps_required_fields(client, seed_data, teacher_headers):
    r = client.patch(
        f"/classes/{seed_data['class_id']}",
        headers=teacher_headers,
        json={"name": None, "subject": "Fisika", "is_active": False},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["name"] == "X IPA 1"
    assert body["subject"] == "Fisika"
    assert body["is_active"] is False

    # the listing filters on the exact active flag
    assert client.get("/classes/", headers=teacher_headers).json() == []
    listed = client.get("/classes/?is_active=false", headers=teacher_headers).json()
    assert [c["name"] for c in listed] == ["X IPA 1"]


def test_only_owner_updates_class(client, seed_data, other_teacher_headers):
    r = client.patch(
        f"/classes/{seed_data['class_id']}",
        headers=other_teacher_headers,
        json={"name": "Hijacked"},
    )
    assert r.status_code == 403


def test_delete_class(client, seed_data, teacher_headers):
    url = f"/classes/{seed_data['class_id']}"
    assert client.delete(url, headers=teacher_headers).status_code == 204
    assert client.get(url, headers=teacher_headers).status_code == 404


def test_roster_is_paginated_and_searchable(client, seed_data, teacher_headers):
    url = f"/classes/{seed_data['class_id']}/students"

    r = client.get(f"{url}?page_size=1&page=2", headers=teacher_headers)
    assert r.status_code == 200, r.text
    page = r.json()
    assert page["total_items"] == 2
    assert page["total_pages"] == 2
    assert page["current_page"] == 2
    assert page["start_item"] == 2
    assert [s["full_name"] for s in page["items"]] == ["Budi Santoso"]

    found = client.get(f"{url}?q=budi", headers=teacher_headers).json()
    assert [s["email"] for s in found["items"]] == ["student1@example.com"]


def test_enroll_and_unenroll_student(client, seed_data, teacher_headers):
    url = f"/classes/{seed_data['class_id']}/students"

    r = client.post(url, headers=teacher_headers, json={"student_id": seed_data["outsider_id"]})
    assert r.status_code == 201, r.text
    assert r.json()["enrolled_by"] == seed_data["teacher_id"]

    again = client.post(url, headers=teacher_headers, json={"student_id": seed_data["outsider_id"]})
    assert again.status_code == 409

    gone = client.delete(f"{url}/{seed_data['outsider_id']}", headers=teacher_headers)
    assert gone.status_code == 204
    missing = client.delete(f"{url}/{seed_data['outsider_id']}", headers=teacher_headers)
    assert missing.status_code == 404


def test_only_students_can_be_enrolled(client, seed_data, teacher_headers):
    url = f"/classes/{seed_data['class_id']}/students"

    teacher = client.post(url, headers=teacher_headers, json={"student_id": seed_data["other_teacher_id"]})
    assert teacher.status_code == 400

    unknown = client.post(url, headers=teacher_headers, json={"student_id": 9999})
    assert unknown.status_code == 404


def test_class_without_teacher_shows_unknown_teacher(client, seed_data, student_headers):
    db = TestingSessionLocal()
    try:
        orphan = SchoolClass(name="X IPS 2", grade="10", class_code="IPS10B", created_by=None)
        db.add(orphan)
        db.commit()
        db.add(ClassStudent(class_id=orphan.id, student_id=seed_data["student_id"]))
        db.commit()
    finally:
        db.close()

    classes = client.get("/classes/me", headers=student_headers).json()
    by_name = {c["name"]: c for c in classes}
    assert by_name["X IPS 2"]["teacher_name"] == "Unknown"
    assert by_name["X IPA 1"]["teacher_name"] == "Teacher One"
