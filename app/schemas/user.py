#app\schemas\user.py
from datetime import datetime
from pydantic import BaseModel, ConfigDict
from app.models.user import UserRole

class UserOut(BaseModel):
    """Public projection of a user; never carries the password hash."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    phone: str
    email: str | None = None
    role: UserRole
    is_verified: bool
    is_phone_verified: bool
    credibility_score: int
    assigned_city_id: int | None = None
    created_at: datetime | None = None
    last_login: datetime | None = None

class UserLite(BaseModel):
    """Lightweight user info embedded in issues and timelines."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    role: UserRole | None = None

class ReporterOut(UserLite):
    credibility_score: int | None = None
    is_verified: bool | None = None

class AdminUserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str | None = None
    phone: str
    role: UserRole
    is_verified: bool
    is_active: bool
    is_suspended: bool
    created_at: datetime | None = None
