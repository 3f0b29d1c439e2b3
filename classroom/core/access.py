from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from classroom.models.assignment import Assignment
from classroom.models.class_student import ClassStudent
from classroom.models.school_class import SchoolClass
from classroom.models.user import ROLE_TEACHER, User


def ensure_class_exists(db: Session, class_id: int) -> SchoolClass:
    school_class = db.query(SchoolClass).filter(SchoolClass.id == class_id).first()
    if not school_class:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")
    return school_class


def ensure_class_owner(db: Session, class_id: int, teacher: User) -> SchoolClass:
    school_class = ensure_class_exists(db, class_id)
    if school_class.created_by != teacher.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not the class teacher")
    return school_class


def is_enrolled(db: Session, class_id: int, student_id: int) -> bool:
    return (
        db.query(ClassStudent)
        .filter(ClassStudent.class_id == class_id, ClassStudent.student_id == student_id)
        .first()
        is not None
    )


def ensure_can_view_class(db: Session, class_id: int, user: User) -> SchoolClass:
    # class teacher or an enrolled student
    school_class = ensure_class_exists(db, class_id)
    if school_class.created_by == user.id:
        return school_class
    if not is_enrolled(db, class_id, user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enrolled in this class")
    return school_class


def ensure_assignment_exists(db: Session, assignment_id: int) -> Assignment:
    assignment = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not assignment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
    return assignment


def enrolled_student_ids(db: Session, class_id: int) -> list[int]:
    return [
        row.student_id
        for row in db.query(ClassStudent.student_id).filter(ClassStudent.class_id == class_id).all()
    ]


def grade_student_ids(db: Session, grade: str) -> list[int]:
    """Students enrolled in any class of the grade level, each once."""
    rows = (
        db.query(ClassStudent.student_id)
        .join(SchoolClass, SchoolClass.id == ClassStudent.class_id)
        .filter(SchoolClass.grade == grade)
        .distinct()
        .order_by(ClassStudent.student_id.asc())
        .all()
    )
    return [row.student_id for row in rows]


def assignment_student_ids(db: Session, assignment: Assignment) -> list[int]:
    if assignment.class_id is not None:
        return enrolled_student_ids(db, assignment.class_id)
    return grade_student_ids(db, assignment.target_grade)


def ensure_can_view_assignment(db: Session, assignment: Assignment, user: User) -> None:
    if assignment.class_id is not None:
        ensure_can_view_class(db, assignment.class_id, user)
        return
    # grade level assignments are open to every teacher
    if user.role == ROLE_TEACHER:
        return
    if user.id not in assignment_student_ids(db, assignment):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not in this grade level")


def ensure_assignment_manager(db: Session, assignment: Assignment, teacher: User) -> None:
    if assignment.class_id is not None:
        ensure_class_owner(db, assignment.class_id, teacher)
        return
    if assignment.created_by != teacher.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not the assignment author")
