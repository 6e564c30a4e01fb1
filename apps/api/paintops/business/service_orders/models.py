from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from paintops.core.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ServiceOrder(Base):
    __tablename__ = "service_order"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(Integer, ForeignKey("project.id", ondelete="CASCADE"), nullable=False)
    order_number: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_signature: Mapped[str | None] = mapped_column(Text, nullable=True)
    end_signature: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("app_user.id", ondelete="SET NULL"),
        nullable=True,
    )

    project = relationship("Project", back_populates="service_orders")

    __table_args__ = (
        Index("ix_service_order_project", "project_id"),
    )

    @property
    def status(self) -> str:
        if self.started_at is None:
            return "pending"
        if self.completed_at is None:
            return "in_progress"
        return "completed"
