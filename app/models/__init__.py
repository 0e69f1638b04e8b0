# Importing every model registers its table on Base.metadata (used by alembic and tests).
from app.models.region import State, City, Ward, Department
from app.models.category import Category
from app.models.user import User, UserRole
from app.models.issue import Issue, IssueStatus, IssueSeverity
from app.models.evidence import Evidence, EvidenceType
from app.models.issue_status_update import IssueStatusUpdate
from app.models.upvote import IssueUpvote
from app.models.audit_log import AuditLog
from app.models.otp import OtpVerification
