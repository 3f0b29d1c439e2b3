from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from classroom.db.base_class import Base


class SchoolClass(Base):
    __tablename__ = "classes"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    grade: Mapped[str] = mapped_column(String(2), nullable=False, index=True)
    subject: Mapped[str | None] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text)
    class_code: Mapped[str] = mapped_column(String(16), unique=True, index=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_by: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    teacher = relationship("User", foreign_keys="SchoolClass.created_by")

    students = relationship(
        "ClassStudent", back_populates="school_class", cascade="all, delete-orphan"
    )
    assignments = relationship(
        "Assignment", back_populates="school_class", cascade="all, delete-orphan"
    )
    attendances = relationship(
        "Attendance", back_populates="school_class", cascade="all, delete-orphan"
    )
    materials = relationship(
        "Material", back_populates="school_class", cascade="all, delete-orphan"
    )
