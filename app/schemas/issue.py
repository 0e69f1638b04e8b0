# File: app/schemas/issue.py
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from app.models.issue import IssueStatus, IssueSeverity
from app.models.evidence import EvidenceType
from app.models.user import UserRole
from app.schemas.user import UserLite, ReporterOut

MAX_EVIDENCE = 5


class EvidenceIn(BaseModel):
    """Reference returned by POST /upload, attached to an issue afterwards."""
    url: Optional[str] = None
    path: Optional[str] = None
    filename: Optional[str] = None
    mimetype: str
    size: Optional[int] = Field(default=None, ge=0)

    @property
    def location(self) -> Optional[str]:
        return self.url or self.path


class IssueCreate(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    description: str = Field(min_length=1, max_length=5000)
    category_id: int
    city_id: int
    ward_id: Optional[int] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    address: Optional[str] = Field(default=None, max_length=300)
    expected_outcome: Optional[str] = Field(default=None, max_length=500)
    evidence: List[EvidenceIn] = Field(default_factory=list, max_length=MAX_EVIDENCE)

    @field_validator("title", "description", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class IssueUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    address: Optional[str] = Field(default=None, max_length=300)
    expected_outcome: Optional[str] = Field(default=None, max_length=500)

    @field_validator("title", "description", "address", "expected_outcome", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class EvidenceAttach(BaseModel):
    evidence: List[EvidenceIn] = Field(min_length=1, max_length=MAX_EVIDENCE)


class VerifyIn(BaseModel):
    department_id: int
    severity: Optional[IssueSeverity] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


class RejectIn(BaseModel):
    reason: str = ""
    notes: Optional[str] = Field(default=None, max_length=2000)


class EscalateIn(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class StatusChangeIn(BaseModel):
    status: IssueStatus
    reason: Optional[str] = Field(default=None, max_length=500)
    notes: Optional[str] = Field(default=None, max_length=2000)


class NamedRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class CategoryRef(NamedRef):
    slug: Optional[str] = None


class EvidenceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: EvidenceType
    file_path: str
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: str
    created_at: Optional[datetime] = None


class StatusUpdateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    from_status: Optional[IssueStatus] = None
    to_status: IssueStatus
    user_role: Optional[UserRole] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    is_public: bool
    created_at: datetime
    user: Optional[UserLite] = None


class IssueOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    expected_outcome: Optional[str] = None
    status: IssueStatus
    severity: IssueSeverity

    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None

    category_id: int
    city_id: int
    ward_id: Optional[int] = None
    department_id: Optional[int] = None
    reporter_id: int

    is_verified: bool
    verified_at: Optional[datetime] = None
    moderator_id: Optional[int] = None
    upvote_count: int
    view_count: int

    created_at: datetime
    updated_at: Optional[datetime] = None

    # Embedded objects for UI
    category: Optional[CategoryRef] = None
    city: Optional[NamedRef] = None
    ward: Optional[NamedRef] = None
    reporter: Optional[ReporterOut] = None
    evidence: List[EvidenceOut] = []


class IssueDetailOut(IssueOut):
    department: Optional[NamedRef] = None
    moderator: Optional[UserLite] = None
    moderator_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    rejected_by_id: Optional[int] = None
    status_updates: List[StatusUpdateOut] = []
