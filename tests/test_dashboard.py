def test_teacher_dashboard(client, seed_data, teacher_headers, student_headers):
    aid = seed_data["assignment_id"]
    sub = client.post(f"/assignments/{aid}/submissions", headers=student_headers, json={"content": "x"}).json()
    client.patch(f"/submissions/{sub['id']}/grade", headers=teacher_headers, json={"grade": 90})

    r = client.get("/dashboard/teacher", headers=teacher_headers)
    assert r.status_code == 200, r.text
    body = r.json()

    assert body["total_classes"] == 1
    assert body["total_students"] == 3
    assert body["total_assignments"] == 1
    assert body["pending_reviews"] == 0
    assert body["recent_submissions"] == 1
    assert body["average_grade"] == 90
    assert body["unread_notifications"] == 0
    assert [a["action"] for a in body["recent_activities"]] == ["grade"]


def test_dashboard_is_teacher_only(client, student_headers):
    assert client.get("/dashboard/teacher", headers=student_headers).status_code == 403
