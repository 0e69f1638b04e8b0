# File: app/models/user.py

from __future__ import annotations
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import String, Boolean, DateTime, Enum, Integer, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.base import Base, utcnow

class UserRole(PyEnum):
    CITIZEN = "CITIZEN"
    VERIFIED_CONTRIBUTOR = "VERIFIED_CONTRIBUTOR"
    MODERATOR = "MODERATOR"
    CITY_ADMIN = "CITY_ADMIN"
    AUTHORITY = "AUTHORITY"
    SUPER_ADMIN = "SUPER_ADMIN"

DEFAULT_CREDIBILITY = 50

class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    phone: Mapped[str] = mapped_column(String(15), unique=True, index=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255))
    role: Mapped[UserRole] = mapped_column(Enum(UserRole), nullable=False, default=UserRole.CITIZEN)

    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    is_phone_verified: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    is_suspended: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    credibility_score: Mapped[int] = mapped_column(Integer, default=DEFAULT_CREDIBILITY, server_default=str(DEFAULT_CREDIBILITY))

    # moderator jurisdiction
    assigned_city_id: Mapped[int | None] = mapped_column(ForeignKey("cities.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    last_login: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    assigned_city = relationship("City", foreign_keys=[assigned_city_id])
