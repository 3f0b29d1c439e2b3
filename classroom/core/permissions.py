from fastapi import Depends, HTTPException, status

from classroom.core.current_user import get_current_user
from classroom.models.user import ROLE_STUDENT, ROLE_TEACHER, User


def require_teacher(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != ROLE_TEACHER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Teacher role required",
        )
    return current_user


def require_student(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != ROLE_STUDENT:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Student role required",
        )
    return current_user
