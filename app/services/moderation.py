# File: app/services/moderation.py
"""Moderation queue and the jurisdiction rule shared by moderation actions.

A user with an assigned city only sees and acts on issues of that city.
A MODERATOR without an assignment sees every city unless
MODERATOR_REQUIRE_JURISDICTION is set, in which case they see nothing and
may not act until assigned. Admins without an assignment always see
everything.
"""
from typing import Iterable, List, Optional

from sqlalchemy import false, func
from sqlalchemy.orm import Query, Session, selectinload

from app.core.config import settings
from app.core.errors import BadRequest, Forbidden
from app.models.issue import Issue, IssueStatus
from app.models.user import User, UserRole

DEFAULT_QUEUE_STATUSES = (IssueStatus.REPORTED,)


def _unassigned_is_blocked(user: User) -> bool:
    return (
        user.assigned_city_id is None
        and user.role == UserRole.MODERATOR
        and settings.moderator_require_jurisdiction
    )


def scope_to_jurisdiction(q: Query, user: User) -> Query:
    if user.assigned_city_id is not None:
        return q.filter(Issue.city_id == user.assigned_city_id)
    if _unassigned_is_blocked(user):
        return q.filter(false())
    return q


def ensure_in_jurisdiction(user: User, issue: Issue) -> None:
    if _unassigned_is_blocked(user):
        raise Forbidden("No jurisdiction assigned to this moderator", "NO_JURISDICTION")
    if user.assigned_city_id is not None and issue.city_id != user.assigned_city_id:
        raise Forbidden("Issue is outside your assigned city", "OUTSIDE_JURISDICTION")


def parse_statuses(raw: Optional[str], default: Iterable[IssueStatus] = ()) -> List[IssueStatus]:
    if not raw:
        return list(default)
    out: List[IssueStatus] = []
    for part in raw.split(","):
        part = part.strip().upper()
        if not part:
            continue
        try:
            out.append(IssueStatus(part))
        except ValueError:
            raise BadRequest(f"Unknown status: {part}", "INVALID_STATUS")
    return out or list(default)


def queue(db: Session, user: User, statuses: Optional[List[IssueStatus]] = None) -> List[Issue]:
    statuses = statuses or list(DEFAULT_QUEUE_STATUSES)
    q = db.query(Issue).filter(Issue.status.in_(statuses))
    q = scope_to_jurisdiction(q, user)
    return (
        q.options(
            selectinload(Issue.category),
            selectinload(Issue.city),
            selectinload(Issue.ward),
            selectinload(Issue.reporter),
            selectinload(Issue.evidence),
        )
        # oldest first, approximate FIFO triage
        .order_by(Issue.created_at.asc(), Issue.id.asc())
        .all()
    )


def queue_stats(db: Session, user: User) -> dict:
    q = scope_to_jurisdiction(db.query(Issue.status, func.count(Issue.id)), user)
    counts = {status: n for status, n in q.group_by(Issue.status).all()}
    return {
        "pending": counts.get(IssueStatus.REPORTED, 0),
        "under_review": counts.get(IssueStatus.UNDER_REVIEW, 0),
        "verified": counts.get(IssueStatus.VERIFIED, 0),
        "total": sum(counts.values()),
    }
