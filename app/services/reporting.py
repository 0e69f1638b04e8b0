# app/services/reporting.py
"""Read-only aggregates for the admin dashboard."""
from collections import OrderedDict
from datetime import timedelta

from sqlalchemy.orm import Session, selectinload

from app.db.base import utcnow
from app.models.audit_log import AuditLog
from app.models.category import Category
from app.models.issue import Issue, IssueStatus
from app.models.region import City
from app.models.user import User

ACTIVITY_LIMIT = 10
TREND_DAYS = 7
USERS_LIMIT = 50


def month_start():
    now = utcnow()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def stats(db: Session) -> dict:
    return {
        "total_users": db.query(User).count(),
        "total_issues": db.query(Issue).count(),
        "pending_moderation": db.query(Issue).filter(Issue.status == IssueStatus.REPORTED).count(),
        "resolved_this_month": (
            db.query(Issue)
            .filter(Issue.status == IssueStatus.RESOLVED, Issue.updated_at >= month_start())
            .count()
        ),
        "active_categories": db.query(Category).filter(Category.is_active.is_(True)).count(),
        "cities_active": db.query(City).filter(City.is_active.is_(True)).count(),
    }


def activity(db: Session, limit: int = ACTIVITY_LIMIT) -> list[AuditLog]:
    return (
        db.query(AuditLog)
        .options(selectinload(AuditLog.user))
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(limit)
        .all()
    )


def trends(db: Session, days: int = TREND_DAYS) -> list[dict]:
    """Issues created in the last `days` days, bucketed by creation date.

    Each bucket counts issues of that day that are currently REPORTED and
    currently RESOLVED; days without issues are left out.
    """
    since = utcnow() - timedelta(days=days)
    rows = (
        db.query(Issue.status, Issue.created_at)
        .filter(Issue.created_at >= since)
        .order_by(Issue.created_at.asc())
        .all()
    )
    buckets: "OrderedDict[str, dict]" = OrderedDict()
    for status, created_at in rows:
        day = created_at.date().isoformat()
        bucket = buckets.setdefault(day, {"date": day, "reported": 0, "resolved": 0})
        if status == IssueStatus.REPORTED:
            bucket["reported"] += 1
        elif status == IssueStatus.RESOLVED:
            bucket["resolved"] += 1
    return sorted(buckets.values(), key=lambda b: b["date"])


def recent_users(db: Session, limit: int = USERS_LIMIT) -> list[User]:
    return (
        db.query(User)
        .order_by(User.created_at.desc(), User.id.desc())
        .limit(limit)
        .all()
    )
