from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from paintops.business.projects.status import PIPELINE
from paintops.core.database import Base


PRIORITIES = ("normal", "high", "urgent")
IMAGE_TYPES = ("before", "after")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _in_clause(column: str, values: tuple[str, ...]) -> str:
    quoted = ", ".join(f"'{value}'" for value in values)
    return f"{column} IN ({quoted})"


class Project(Base):
    __tablename__ = "project"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    client_id: Mapped[int] = mapped_column(Integer, ForeignKey("client.id", ondelete="RESTRICT"), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending_visit", server_default="pending_visit")
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default="normal", server_default="normal")
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    visit_date: Mapped[date | None] = mapped_column(Date(), nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date(), nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date(), nullable=True)
    value: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_by: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("app_user.id", ondelete="SET NULL"),
        nullable=True,
    )

    client = relationship("Client", back_populates="projects")
    quotes = relationship("Quote", back_populates="project", order_by="Quote.created_at.desc()")
    service_orders = relationship("ServiceOrder", back_populates="project", order_by="ServiceOrder.created_at.desc()")
    images = relationship(
        "ProjectImage",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="ProjectImage.uploaded_at.asc()",
    )
    assignments = relationship("ProjectAssignment", back_populates="project", order_by="ProjectAssignment.start_date.asc()")

    __table_args__ = (
        CheckConstraint(_in_clause("status", PIPELINE), name="ck_project_status"),
        CheckConstraint(_in_clause("priority", PRIORITIES), name="ck_project_priority"),
        Index("ix_project_status", "status"),
        Index("ix_project_client", "client_id"),
    )

    @property
    def client_name(self) -> str | None:
        return self.client.name if self.client is not None else None


class ProjectImage(Base):
    __tablename__ = "project_image"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(Integer, ForeignKey("project.id", ondelete="CASCADE"), nullable=False)
    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False, default="before", server_default="before")
    caption: Mapped[str | None] = mapped_column(Text, nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    uploaded_by: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("app_user.id", ondelete="SET NULL"),
        nullable=True,
    )

    project = relationship("Project", back_populates="images")

    __table_args__ = (
        CheckConstraint(_in_clause("type", IMAGE_TYPES), name="ck_project_image_type"),
    )
