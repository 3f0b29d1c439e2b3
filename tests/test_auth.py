from conftest import PASSWORD, auth_header, login


def test_register_and_login(client):
    r = client.post(
        "/auth/register",
        json={
            "email": "new.student@example.com",
            "password": PASSWORD,
            "full_name": "Dewi Anggraini",
        },
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["role"] == "student"
    assert body["is_active"] is True
    assert "hashed_password" not in body

    token = login(client, "new.student@example.com")
    me = client.get("/auth/me", headers=auth_header(token))
    assert me.status_code == 200
    assert me.json()["email"] == "new.student@example.com"


def test_register_duplicate_email(client):
    r = client.post(
        "/auth/register",
        json={
            "email": "teacher1@example.com",
            "password": PASSWORD,
            "full_name": "Someone Else",
            "role": "teacher",
        },
    )
    assert r.status_code == 400


def test_register_cannot_claim_teacher_role(client):
    r = client.post(
        "/auth/register",
        json={
            "email": "fake.teacher@example.com",
            "password": PASSWORD,
            "full_name": "Fake Teacher",
            "role": "teacher",
        },
    )
    assert r.status_code == 201, r.text
    assert r.json()["role"] == "student"

    headers = auth_header(login(client, "fake.teacher@example.com"))
    assert client.get("/classes/", headers=headers).status_code == 403
    assert client.post("/classes/", headers=headers, json={"name": "X", "grade": "10"}).status_code == 403


def test_teacher_creates_teacher_account(client, teacher_headers):
    r = client.post(
        "/auth/teachers",
        headers=teacher_headers,
        json={
            "email": "teacher3@example.com",
            "password": PASSWORD,
            "full_name": "Teacher Three",
        },
    )
    assert r.status_code == 201, r.text
    assert r.json()["role"] == "teacher"

    headers = auth_header(login(client, "teacher3@example.com"))
    assert client.get("/classes/", headers=headers).status_code == 200


def test_student_cannot_create_teacher_account(client, student_headers):
    r = client.post(
        "/auth/teachers",
        headers=student_headers,
        json={
            "email": "teacher4@example.com",
            "password": PASSWORD,
            "full_name": "Teacher Four",
        },
    )
    assert r.status_code == 403


def test_login_with_wrong_password(client):
    r = client.post("/auth/login", json={"email": "teacher1@example.com", "password": "nope-nope"})
    assert r.status_code == 401


def test_me_requires_token(client):
    assert client.get("/auth/me").status_code == 401
    assert client.get("/auth/me", headers=auth_header("not-a-jwt")).status_code == 401


def test_inactive_user_cannot_log_in(client, seed_data):
    from conftest import TestingSessionLocal
    from classroom.models.user import User

    db = TestingSessionLocal()
    try:
        db.query(User).filter(User.id == seed_data["outsider_id"]).update({User.is_active: False})
        db.commit()
    finally:
        db.close()

    r = client.post("/auth/login", json={"email": "student3@example.com", "password": PASSWORD})
    assert r.status_code == 403


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
