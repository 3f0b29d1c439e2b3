from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from classroom.db.base_class import Base

NEWS_TYPES = ("announcement", "news")
NEWS_STATUSES = ("draft", "published", "archived")
NEWS_PRIORITIES = ("low", "normal", "high", "urgent")
NEWS_AUDIENCES = ("all", "teachers", "students")

STATUS_DRAFT, STATUS_PUBLISHED, STATUS_ARCHIVED = NEWS_STATUSES


class NewsItem(Base):
    __tablename__ = "newsroom"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    excerpt: Mapped[str | None] = mapped_column(Text)
    image_url: Mapped[str | None] = mapped_column(String(1024))

    type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=STATUS_DRAFT, index=True)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="normal")
    target_audience: Mapped[str] = mapped_column(String(20), nullable=False, default="all")
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    updated_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    author = relationship("User", foreign_keys=[created_by])
