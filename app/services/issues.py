# File: app/services/issues.py
"""Issue lifecycle: reporting, owner edits, upvotes and status transitions.

Every transition appends an IssueStatusUpdate row and an audit record in the
same transaction as the status change.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.errors import BadRequest, Conflict, Forbidden, InvalidState, InvalidType, NotFound
from app.core.security import Capability, RequestContext
from app.db.base import utcnow
from app.models.category import Category
from app.models.evidence import Evidence, EvidenceType
from app.models.issue import Issue, IssueSeverity, IssueStatus
from app.models.issue_status_update import IssueStatusUpdate
from app.models.region import City, Department, Ward
from app.models.upvote import IssueUpvote
from app.schemas.issue import EvidenceIn, IssueCreate, IssueUpdate
from app.services import audit, moderation
from app.services.storage import ALLOWED as ALLOWED_MIME_TYPES

logger = logging.getLogger(__name__)

TRANSITIONS: dict[IssueStatus, frozenset[IssueStatus]] = {
    IssueStatus.REPORTED: frozenset({
        IssueStatus.UNDER_REVIEW, IssueStatus.VERIFIED, IssueStatus.REJECTED, IssueStatus.ESCALATED,
    }),
    IssueStatus.UNDER_REVIEW: frozenset({IssueStatus.VERIFIED, IssueStatus.REJECTED, IssueStatus.ESCALATED}),
    IssueStatus.VERIFIED: frozenset({IssueStatus.ESCALATED, IssueStatus.ACTION_TAKEN}),
    IssueStatus.ESCALATED: frozenset({IssueStatus.ACTION_TAKEN}),
    IssueStatus.ACTION_TAKEN: frozenset({IssueStatus.CLOSED, IssueStatus.RESOLVED}),
    IssueStatus.REJECTED: frozenset(),
    IssueStatus.CLOSED: frozenset(),
    IssueStatus.RESOLVED: frozenset(),
}

# what citizens and anonymous visitors may see
PUBLIC_STATUSES = (
    IssueStatus.VERIFIED, IssueStatus.ESCALATED, IssueStatus.ACTION_TAKEN, IssueStatus.CLOSED,
)
# never verified; hidden from detail and timeline as well as the list
UNPUBLISHED_STATUSES = frozenset({IssueStatus.REPORTED, IssueStatus.UNDER_REVIEW, IssueStatus.REJECTED})
AUTHORITY_TARGETS = frozenset({IssueStatus.ACTION_TAKEN, IssueStatus.CLOSED, IssueStatus.RESOLVED})

SORTABLE_FIELDS = {
    "created_at": Issue.created_at,
    "updated_at": Issue.updated_at,
    "upvote_count": Issue.upvote_count,
    "view_count": Issue.view_count,
    "severity": Issue.severity,
    "status": Issue.status,
    "title": Issue.title,
}


@dataclass
class IssueFilters:
    city_id: Optional[int] = None
    ward_id: Optional[int] = None
    category_id: Optional[int] = None
    statuses: List[IssueStatus] = field(default_factory=list)
    severities: List[IssueSeverity] = field(default_factory=list)
    sort_by: str = "created_at"
    order: str = "desc"
    page: int = 1
    limit: int = 20


def _with_relations(q):
    return q.options(
        selectinload(Issue.category),
        selectinload(Issue.city),
        selectinload(Issue.ward),
        selectinload(Issue.reporter),
        selectinload(Issue.evidence),
    )


def get_issue_or_404(db: Session, issue_id: int) -> Issue:
    issue = db.get(Issue, issue_id)
    if not issue:
        raise NotFound("Issue not found", "NOT_FOUND")
    return issue


def _evidence_rows(refs: List[EvidenceIn]) -> List[Evidence]:
    rows = []
    for ref in refs:
        if ref.mimetype not in ALLOWED_MIME_TYPES:
            raise InvalidType()
        if not ref.location:
            raise BadRequest("Evidence needs a url or path", "INVALID_EVIDENCE")
        rows.append(Evidence(
            type=EvidenceType.VIDEO if ref.mimetype.startswith("video") else EvidenceType.IMAGE,
            file_path=ref.location,
            file_name=ref.filename,
            file_size=ref.size,
            mime_type=ref.mimetype,
        ))
    return rows


def _append_status(db: Session, ctx: RequestContext, issue: Issue, to_status: IssueStatus,
                   reason: Optional[str], notes: Optional[str] = None,
                   from_status: Optional[IssueStatus] = None, is_public: bool = True) -> IssueStatusUpdate:
    entry = IssueStatusUpdate(
        issue_id=issue.id,
        from_status=from_status,
        to_status=to_status,
        user_id=ctx.user.id,
        user_role=ctx.user.role,
        reason=reason,
        notes=notes,
        is_public=is_public,
    )
    db.add(entry)
    return entry


def _transition(db: Session, ctx: RequestContext, issue: Issue, to_status: IssueStatus,
                reason: Optional[str], notes: Optional[str] = None) -> IssueStatus:
    from_status = issue.status
    if to_status not in TRANSITIONS[from_status]:
        raise InvalidState(
            f"Cannot move issue from {from_status.value} to {to_status.value}", "INVALID_TRANSITION"
        )
    issue.status = to_status
    issue.updated_at = utcnow()
    _append_status(db, ctx, issue, to_status, reason, notes, from_status=from_status)
    return from_status


def _ensure_owner_editable(ctx: RequestContext, issue: Issue, verb: str) -> None:
    if issue.reporter_id != ctx.user.id:
        raise Forbidden(f"You can only {verb} your own issues", "FORBIDDEN")
    if issue.status != IssueStatus.REPORTED:
        raise InvalidState(f"Cannot {verb} issue after it has been reviewed", f"CANNOT_{verb.upper()}")


# ---------- reporter operations ----------

def create(db: Session, ctx: RequestContext, data: IssueCreate) -> Issue:
    category = db.get(Category, data.category_id)
    if not category or not category.is_active:
        raise BadRequest("Invalid category", "INVALID_CATEGORY")
    city = db.get(City, data.city_id)
    if not city or not city.is_active:
        raise BadRequest("Invalid city", "INVALID_CITY")
    if data.ward_id is not None:
        ward = db.get(Ward, data.ward_id)
        if not ward or ward.city_id != city.id:
            raise BadRequest("Invalid ward for this city", "INVALID_WARD")

    issue = Issue(
        title=data.title,
        description=data.description,
        category_id=category.id,
        city_id=city.id,
        ward_id=data.ward_id,
        latitude=data.latitude,
        longitude=data.longitude,
        address=(data.address or "").strip() or None,
        expected_outcome=data.expected_outcome,
        reporter_id=ctx.user.id,
        status=IssueStatus.REPORTED,
        severity=IssueSeverity.MEDIUM,
        is_verified=False,
    )
    issue.evidence = _evidence_rows(data.evidence)
    db.add(issue)
    db.flush()

    _append_status(db, ctx, issue, IssueStatus.REPORTED, "Issue reported")
    audit.record(db, ctx, "ISSUE_CREATE", "Issue", issue.id)
    db.commit()
    logger.info("Issue %s reported by user %s in city %s", issue.id, ctx.user.id, city.id)
    return load(db, issue.id)


def update_issue(db: Session, ctx: RequestContext, issue_id: int, data: IssueUpdate) -> Issue:
    issue = get_issue_or_404(db, issue_id)
    _ensure_owner_editable(ctx, issue, "edit")

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in changes.items():
        setattr(issue, key, value)
    issue.updated_at = utcnow()
    audit.record(db, ctx, "ISSUE_UPDATE", "Issue", issue.id, details={"fields": sorted(changes)})
    db.commit()
    return load(db, issue.id)


def delete_issue(db: Session, ctx: RequestContext, issue_id: int) -> None:
    issue = get_issue_or_404(db, issue_id)
    _ensure_owner_editable(ctx, issue, "delete")
    # evidence, upvotes and status history go with it
    db.delete(issue)
    audit.record(db, ctx, "ISSUE_DELETE", "Issue", issue_id)
    db.commit()
    logger.info("Issue %s deleted by reporter %s", issue_id, ctx.user.id)


def attach_evidence(db: Session, ctx: RequestContext, issue_id: int, refs: List[EvidenceIn]) -> Issue:
    issue = get_issue_or_404(db, issue_id)
    _ensure_owner_editable(ctx, issue, "edit")
    issue.evidence.extend(_evidence_rows(refs))
    issue.updated_at = utcnow()
    audit.record(db, ctx, "EVIDENCE_ATTACH", "Issue", issue.id, details={"count": len(refs)})
    db.commit()
    return load(db, issue.id)


# ---------- upvotes ----------

def _bump(db: Session, issue_id: int, column, delta: int) -> None:
    # counters change in SQL so concurrent bumps do not overwrite each other;
    # updated_at is pinned so a counter bump is not an edit
    db.execute(
        update(Issue)
        .where(Issue.id == issue_id)
        .values({column: column + delta, Issue.updated_at: Issue.updated_at})
    )


def _upvotable(db: Session, issue_id: int) -> Issue:
    issue = get_issue_or_404(db, issue_id)
    if not issue.is_verified:
        raise InvalidState("Can only upvote verified issues", "CANNOT_UPVOTE")
    return issue


def upvote(db: Session, ctx: RequestContext, issue_id: int) -> int:
    issue = _upvotable(db, issue_id)
    exists = (
        db.query(IssueUpvote.id)
        .filter(IssueUpvote.issue_id == issue.id, IssueUpvote.user_id == ctx.user.id)
        .first()
    )
    if exists:
        raise Conflict("Already upvoted", "ALREADY_UPVOTED")

    # join row and counter commit together or not at all
    try:
        db.add(IssueUpvote(issue_id=issue.id, user_id=ctx.user.id))
        db.flush()
        _bump(db, issue.id, Issue.upvote_count, 1)
        audit.record(db, ctx, "ISSUE_UPVOTE", "Issue", issue.id)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Already upvoted", "ALREADY_UPVOTED")
    db.refresh(issue)
    return issue.upvote_count


def remove_upvote(db: Session, ctx: RequestContext, issue_id: int) -> int:
    issue = _upvotable(db, issue_id)
    # only the call whose DELETE matched a row may decrement
    res = db.execute(
        delete(IssueUpvote)
        .where(IssueUpvote.issue_id == issue.id, IssueUpvote.user_id == ctx.user.id)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount == 0:
        raise NotFound("Upvote not found", "UPVOTE_NOT_FOUND")
    _bump(db, issue.id, Issue.upvote_count, -1)
    audit.record(db, ctx, "ISSUE_UPVOTE_REMOVE", "Issue", issue.id)
    db.commit()
    db.refresh(issue)
    return issue.upvote_count


# ---------- moderator transitions ----------

def verify(db: Session, ctx: RequestContext, issue_id: int, department_id: int,
           severity: Optional[IssueSeverity] = None, notes: Optional[str] = None) -> Issue:
    issue = get_issue_or_404(db, issue_id)
    moderation.ensure_in_jurisdiction(ctx.user, issue)
    department = db.get(Department, department_id)
    if not department or department.city_id != issue.city_id:
        raise BadRequest("Invalid department for this issue's city", "INVALID_DEPARTMENT")

    from_status = _transition(db, ctx, issue, IssueStatus.VERIFIED, "Issue verified by moderator", notes)
    now = utcnow()
    issue.is_verified = True
    issue.verified_at = now
    issue.moderator_id = ctx.user.id
    issue.moderator_notes = notes
    issue.department_id = department.id
    if severity is not None:
        issue.severity = severity
    audit.record(db, ctx, "ISSUE_VERIFY", "Issue", issue.id,
                 details={"from": from_status.value, "department_id": department.id})
    db.commit()
    logger.info("Issue %s verified by %s", issue.id, ctx.user.id)
    return load(db, issue.id)


def reject(db: Session, ctx: RequestContext, issue_id: int, reason: str,
           notes: Optional[str] = None) -> Issue:
    reason = (reason or "").strip()
    if not reason:
        raise BadRequest("Rejection reason is required", "REASON_REQUIRED")
    issue = get_issue_or_404(db, issue_id)
    moderation.ensure_in_jurisdiction(ctx.user, issue)

    from_status = _transition(db, ctx, issue, IssueStatus.REJECTED, reason, notes)
    issue.rejection_reason = reason
    issue.rejected_by_id = ctx.user.id
    issue.moderator_notes = notes
    audit.record(db, ctx, "ISSUE_REJECT", "Issue", issue.id,
                 details={"from": from_status.value, "reason": reason})
    db.commit()
    logger.info("Issue %s rejected by %s", issue.id, ctx.user.id)
    return load(db, issue.id)


def escalate(db: Session, ctx: RequestContext, issue_id: int, reason: Optional[str] = None) -> Issue:
    issue = get_issue_or_404(db, issue_id)
    moderation.ensure_in_jurisdiction(ctx.user, issue)

    reason = (reason or "").strip() or "Escalated by moderator"
    from_status = _transition(db, ctx, issue, IssueStatus.ESCALATED, reason)
    issue.severity = IssueSeverity.HIGH
    audit.record(db, ctx, "ISSUE_ESCALATE", "Issue", issue.id, details={"from": from_status.value})
    db.commit()
    logger.info("Issue %s escalated by %s", issue.id, ctx.user.id)
    return load(db, issue.id)


def start_review(db: Session, ctx: RequestContext, issue_id: int) -> Issue:
    issue = get_issue_or_404(db, issue_id)
    moderation.ensure_in_jurisdiction(ctx.user, issue)
    _transition(db, ctx, issue, IssueStatus.UNDER_REVIEW, "Review started")
    audit.record(db, ctx, "ISSUE_REVIEW_START", "Issue", issue.id)
    db.commit()
    return load(db, issue.id)


def advance(db: Session, ctx: RequestContext, issue_id: int, to_status: IssueStatus,
            reason: Optional[str] = None, notes: Optional[str] = None) -> Issue:
    """Authority-side progress: action taken, then closed or resolved."""
    if to_status not in AUTHORITY_TARGETS:
        raise BadRequest(
            "Status must be one of ACTION_TAKEN, CLOSED, RESOLVED", "INVALID_STATUS"
        )
    issue = get_issue_or_404(db, issue_id)
    moderation.ensure_in_jurisdiction(ctx.user, issue)
    default_reason = to_status.value.replace("_", " ").capitalize()
    from_status = _transition(db, ctx, issue, to_status, (reason or "").strip() or default_reason, notes)
    audit.record(db, ctx, "ISSUE_STATUS_CHANGE", "Issue", issue.id,
                 details={"from": from_status.value, "to": to_status.value})
    db.commit()
    return load(db, issue.id)


# ---------- reads ----------

def load(db: Session, issue_id: int) -> Issue:
    issue = (
        _with_relations(db.query(Issue))
        .options(
            selectinload(Issue.department),
            selectinload(Issue.moderator),
            selectinload(Issue.status_updates).selectinload(IssueStatusUpdate.user),
        )
        .filter(Issue.id == issue_id)
        .populate_existing()
        .first()
    )
    if not issue:
        raise NotFound("Issue not found", "NOT_FOUND")
    return issue


def is_visible_to(ctx: RequestContext, issue: Issue) -> bool:
    """Detail and timeline access. Only never-published issues are hidden."""
    if issue.status not in UNPUBLISHED_STATUSES:
        return True
    if ctx.can(Capability.VIEW_UNPUBLISHED):
        return True
    return ctx.user is not None and ctx.user.id == issue.reporter_id


def get(db: Session, ctx: RequestContext, issue_id: int) -> Issue:
    """Detail read. Also bumps view_count: a write that rides along with the fetch."""
    issue = get_issue_or_404(db, issue_id)
    if not is_visible_to(ctx, issue):
        raise NotFound("Issue not found", "NOT_FOUND")
    _bump(db, issue.id, Issue.view_count, 1)
    db.commit()
    return load(db, issue.id)


def timeline(db: Session, ctx: RequestContext, issue_id: int) -> List[IssueStatusUpdate]:
    issue = get_issue_or_404(db, issue_id)
    if not is_visible_to(ctx, issue):
        raise NotFound("Issue not found", "NOT_FOUND")
    return (
        db.query(IssueStatusUpdate)
        .options(selectinload(IssueStatusUpdate.user))
        .filter(IssueStatusUpdate.issue_id == issue.id, IssueStatusUpdate.is_public.is_(True))
        .order_by(IssueStatusUpdate.created_at.asc(), IssueStatusUpdate.id.asc())
        .all()
    )


def list_issues(db: Session, ctx: RequestContext, filters: IssueFilters) -> tuple[List[Issue], int]:
    sort_col = SORTABLE_FIELDS.get(filters.sort_by)
    if sort_col is None:
        raise BadRequest(f"Cannot sort by {filters.sort_by}", "INVALID_SORT")
    if filters.order not in ("asc", "desc"):
        raise BadRequest("order must be asc or desc", "INVALID_SORT")

    q = db.query(Issue)
    statuses = list(filters.statuses)
    if not ctx.can(Capability.VIEW_UNPUBLISHED):
        statuses = [s for s in statuses if s in PUBLIC_STATUSES] if statuses else list(PUBLIC_STATUSES)
    if statuses:
        q = q.filter(Issue.status.in_(statuses))
    elif filters.statuses:
        # every requested status is hidden from this viewer
        return [], 0

    if filters.city_id is not None:
        q = q.filter(Issue.city_id == filters.city_id)
    if filters.ward_id is not None:
        q = q.filter(Issue.ward_id == filters.ward_id)
    if filters.category_id is not None:
        q = q.filter(Issue.category_id == filters.category_id)
    if filters.severities:
        q = q.filter(Issue.severity.in_(filters.severities))

    total = q.count()
    ordering = sort_col.asc() if filters.order == "asc" else sort_col.desc()
    tiebreak = Issue.id.asc() if filters.order == "asc" else Issue.id.desc()
    items = (
        _with_relations(q)
        .order_by(ordering, tiebreak)
        .offset((filters.page - 1) * filters.limit)
        .limit(filters.limit)
        .all()
    )
    return items, total


def mine(db: Session, ctx: RequestContext) -> List[Issue]:
    return (
        _with_relations(db.query(Issue))
        .filter(Issue.reporter_id == ctx.user.id)
        .order_by(Issue.created_at.desc(), Issue.id.desc())
        .all()
    )
