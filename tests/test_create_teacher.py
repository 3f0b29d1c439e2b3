import pytest

from conftest import TestingSessionLocal, login

from classroom.create_teacher import create_teacher


def test_create_teacher_seeds_a_teacher_account(client):
    db = TestingSessionLocal()
    try:
        user = create_teacher(db, "kepala@example.com", "password123", "Kepala Sekolah")
        assert user.role == "teacher"
    finally:
        db.close()

    assert login(client, "kepala@example.com")


def test_create_teacher_refuses_existing_email():
    db = TestingSessionLocal()
    try:
        with pytest.raises(RuntimeError):
            create_teacher(db, "student1@example.com", "password123", "Budi")
    finally:
        db.close()
