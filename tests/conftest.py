import os
from datetime import datetime, timedelta, timezone

TEST_DB_FILE = "test_classroom.db"
TEST_DB_URL = f"sqlite:///./{TEST_DB_FILE}"

# must be set before classroom.core.config is imported
os.environ.setdefault("DATABASE_URL", TEST_DB_URL)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from classroom.core.deps import get_db  # noqa: E402
from classroom.core.security import hash_password  # noqa: E402
from classroom.db.base import Base  # noqa: E402
from classroom.main import app  # noqa: E402
from classroom.models.activity_log import ActivityLog  # noqa: E402
from classroom.models.answer import Answer  # noqa: E402
from classroom.models.assignment import Assignment  # noqa: E402
from classroom.models.attendance import Attendance  # noqa: E402
from classroom.models.class_student import ClassStudent  # noqa: E402
from classroom.models.material import Material  # noqa: E402
from classroom.models.news_item import NewsItem  # noqa: E402
from classroom.models.notification import Notification  # noqa: E402
from classroom.models.question import Question  # noqa: E402
from classroom.models.school_class import SchoolClass  # noqa: E402
from classroom.models.submission import Submission  # noqa: E402
from classroom.models.user import User  # noqa: E402

PASSWORD = "password123"

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create a fresh schema once for the whole test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


@pytest.fixture(autouse=True)
def seed_data():
    """
    Seed a clean minimal dataset for each test and hand back the ids:
    one class owned by teacher1 with student1 and student2 enrolled and
    one assignment worth 100 points. teacher2 and student3 own nothing.
    """
    db = TestingSessionLocal()
    try:
        # Clear tables (child -> parent)
        for model in (
            ActivityLog,
            NewsItem,
            Notification,
            Material,
            Answer,
            Submission,
            Question,
            Attendance,
            Assignment,
            ClassStudent,
            SchoolClass,
            User,
        ):
            db.query(model).delete()
        db.commit()

        # Users
        teacher = User(
            email="teacher1@example.com",
            full_name="Teacher One",
            role="teacher",
            hashed_password=hash_password(PASSWORD),
        )
        other_teacher = User(
            email="teacher2@example.com",
            full_name="Teacher Two",
            role="teacher",
            hashed_password=hash_password(PASSWORD),
        )
        student = User(
            email="student1@example.com",
            full_name="Budi Santoso",
            role="student",
            hashed_password=hash_password(PASSWORD),
        )
        second_student = User(
            email="student2@example.com",
            full_name="Ani Wijaya",
            role="student",
            hashed_password=hash_password(PASSWORD),
        )
        outsider = User(
            email="student3@example.com",
            full_name="Citra Lestari",
            role="student",
            hashed_password=hash_password(PASSWORD),
        )
        db.add_all([teacher, other_teacher, student, second_student, outsider])
        db.commit()

        # Class
        school_class = SchoolClass(
            name="X IPA 1",
            grade="10",
            subject="Matematika",
            class_code="MAT10A",
            created_by=teacher.id,
        )
        db.add(school_class)
        db.commit()

        # Roster
        db.add_all(
            [
                ClassStudent(class_id=school_class.id, student_id=student.id, enrolled_by=teacher.id),
                ClassStudent(class_id=school_class.id, student_id=second_student.id, enrolled_by=teacher.id),
            ]
        )
        db.commit()

        # Assignment
        assignment = Assignment(
            class_id=school_class.id,
            title="Tugas 1",
            deadline=datetime.now(timezone.utc) + timedelta(days=7),
            total_points=100,
            assignment_type="wajib",
            created_by=teacher.id,
        )
        db.add(assignment)
        db.commit()

        yield {
            "teacher_id": teacher.id,
            "other_teacher_id": other_teacher.id,
            "student_id": student.id,
            "second_student_id": second_student.id,
            "outsider_id": outsider.id,
            "class_id": school_class.id,
            "assignment_id": assignment.id,
        }
    finally:
        db.close()


@pytest.fixture()
def client():
    """Test client that uses the test DB session via dependency override."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def login(client, email: str, password: str = PASSWORD) -> str:
    r = client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def teacher_headers(client):
    return auth_header(login(client, "teacher1@example.com"))


@pytest.fixture()
def other_teacher_headers(client):
    return auth_header(login(client, "teacher2@example.com"))


@pytest.fixture()
def student_headers(client):
    return auth_header(login(client, "student1@example.com"))


@pytest.fixture()
def second_student_headers(client):
    return auth_header(login(client, "student2@example.com"))


@pytest.fixture()
def outsider_headers(client):
    return auth_header(login(client, "student3@example.com"))
