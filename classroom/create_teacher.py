"""Create the first teacher account.

Self-registration only creates students, so a fresh deployment needs one
teacher seeded out of band. Further teachers can then be added through
``POST /auth/teachers``.

    TEACHER_EMAIL=guru@example.com TEACHER_PASSWORD=... TEACHER_NAME="Guru" \
        python -m classroom.create_teacher
"""
import logging
import os

from classroom.core.config import LOG_LEVEL
from classroom.core.security import hash_password
from classroom.db.init_db import init_db
from classroom.db.session import SessionLocal
from classroom.models.user import ROLE_TEACHER, User

logger = logging.getLogger(__name__)


def create_teacher(db, email: str, password: str, full_name: str) -> User:
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        raise RuntimeError(f"{email} is already registered as {existing.role}.")

    user = User(
        email=email,
        full_name=full_name,
        role=ROLE_TEACHER,
        hashed_password=hash_password(password),
    )
    db.add(user)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    return user


def main():
    logging.basicConfig(level=LOG_LEVEL)

    email = (os.getenv("TEACHER_EMAIL") or "").strip()
    raw_password = os.getenv("TEACHER_PASSWORD") or ""
    full_name = (os.getenv("TEACHER_NAME") or "").strip() or email

    if not email:
        raise RuntimeError("TEACHER_EMAIL is required.")
    if len(raw_password) < 8:
        raise RuntimeError("TEACHER_PASSWORD must be at least 8 characters.")

    init_db()
    db = SessionLocal()
    try:
        user = create_teacher(db, email, raw_password, full_name)
    finally:
        db.close()

    logger.info("created teacher %s (%s)", user.id, user.email)


if __name__ == "__main__":
    main()
