from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from classroom.db.base_class import Base

ASSIGNMENT_TYPES = ("wajib", "tambahan")
TYPE_CLASS = ASSIGNMENT_TYPES[0]
TYPE_GRADE_LEVEL = ASSIGNMENT_TYPES[1]


class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True, index=True)
    # "wajib" assignments belong to a class; "tambahan" ones target a grade level
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=True, index=True)
    target_grade = Column(String(2), nullable=True, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    deadline = Column(DateTime(timezone=True), nullable=False)
    total_points = Column(Float, nullable=False, default=100)
    assignment_type = Column(String(20), nullable=False, default=TYPE_CLASS)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "class_id IS NOT NULL OR target_grade IS NOT NULL",
            name="ck_assignment_has_audience",
        ),
    )

    school_class = relationship("SchoolClass", back_populates="assignments")

    submissions = relationship("Submission", back_populates="assignment", cascade="all, delete-orphan")
    questions = relationship(
        "Question",
        back_populates="assignment",
        cascade="all, delete-orphan",
        order_by="Question.order_number",
    )
