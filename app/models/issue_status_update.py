# File: app/models/issue_status_update.py
from __future__ import annotations
from datetime import datetime
from sqlalchemy import String, Text, Boolean, DateTime, Enum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.base import Base, utcnow
from app.models.issue import IssueStatus
from app.models.user import UserRole

class IssueStatusUpdate(Base):
    """Append-only history of status transitions; rows are never edited."""
    __tablename__ = "issue_status_updates"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    issue_id: Mapped[int] = mapped_column(ForeignKey("issues.id", ondelete="CASCADE"), index=True, nullable=False)
    from_status: Mapped[IssueStatus | None] = mapped_column(Enum(IssueStatus), nullable=True)
    to_status: Mapped[IssueStatus] = mapped_column(Enum(IssueStatus), nullable=False)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    user_role: Mapped[UserRole | None] = mapped_column(Enum(UserRole), nullable=True)
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False, index=True)

    issue = relationship("Issue", back_populates="status_updates")
    user = relationship("User")
