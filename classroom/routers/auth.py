import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from classroom.core.config import ACCESS_TOKEN_EXPIRE
from classroom.core.current_user import get_current_user
from classroom.core.deps import get_db
from classroom.core.permissions import require_teacher
from classroom.core.security import create_access_token, hash_password, verify_password
from classroom.models.user import ROLE_STUDENT, ROLE_TEACHER, User
from classroom.schemas.auth import LoginRequest
from classroom.schemas.token import Token
from classroom.schemas.user import UserCreate, UserRead
from classroom.services.activity import log_activity

logger = logging.getLogger(__name__)

router = APIRouter()


def _create_user(db: Session, payload: UserCreate, role: str) -> User:
    existing_user = db.query(User).filter(User.email == payload.email).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )

    user = User(
        email=payload.email,
        full_name=payload.full_name,
        role=role,
        phone=payload.phone,
        birth_date=payload.birth_date,
        hashed_password=hash_password(payload.password),
    )
    db.add(user)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    return user


@router.post(
    "/register",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Email already registered"},
    },
)
def register(payload: UserCreate, db: Session = Depends(get_db)):
    # self-service accounts are always students
    user = _create_user(db, payload, ROLE_STUDENT)
    logger.info("registered %s user %s", user.role, user.id)
    return user


@router.post(
    "/teachers",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Email already registered"},
        403: {"description": "Teacher role required"},
    },
)
def create_teacher(
    payload: UserCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    user = _create_user(db, payload, ROLE_TEACHER)
    log_activity(db, teacher.id, "create", "teacher", user.id, f"Created teacher account {user.full_name}")
    logger.info("teacher %s created teacher account %s", teacher.id, user.id)
    return user


@router.post(
    "/login",
    response_model=Token,
    responses={
        401: {"description": "Invalid email or password"},
    },
)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )

    access_token = create_access_token(
        data={"sub": str(user.id), "role": user.role},
        expires_delta=ACCESS_TOKEN_EXPIRE,
    )

    return {
        "access_token": access_token,
        "token_type": "bearer",
    }


@router.get("/me", response_model=UserRead)
def me(current_user: User = Depends(get_current_user)):
    return current_user
