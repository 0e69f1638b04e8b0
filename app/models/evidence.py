# File: app/models/evidence.py

from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Integer, String, DateTime, Enum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.base import Base, utcnow

class EvidenceType(PyEnum):
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"

class Evidence(Base):
    __tablename__ = "evidence"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    issue_id: Mapped[int] = mapped_column(ForeignKey("issues.id", ondelete="CASCADE"), index=True)
    type: Mapped[EvidenceType] = mapped_column(Enum(EvidenceType), default=EvidenceType.IMAGE)
    file_path: Mapped[str] = mapped_column(String(500))
    file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    mime_type: Mapped[str] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    issue = relationship("Issue", back_populates="evidence")
