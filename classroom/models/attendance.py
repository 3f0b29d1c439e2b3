from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from classroom.db.base_class import Base

ATTENDANCE_STATUSES = ("present", "absent", "sick", "permission")


class Attendance(Base):
    __tablename__ = "attendances"

    id = Column(Integer, primary_key=True, index=True)

    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)

    status = Column(String(20), nullable=False)
    notes = Column(Text, nullable=True)
    marked_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # (class_id, date, student_id) is also the upsert conflict target
    __table_args__ = (
        UniqueConstraint("class_id", "date", "student_id", name="uq_attendance_class_date_student"),
        CheckConstraint(
            "status IN (%s)" % ", ".join(f"'{s}'" for s in ATTENDANCE_STATUSES),
            name="ck_attendance_status",
        ),
    )

    school_class = relationship("SchoolClass", back_populates="attendances")
    student = relationship("User", foreign_keys=[student_id])
    marker = relationship("User", foreign_keys=[marked_by])
