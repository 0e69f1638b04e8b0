# File: app/routers/moderation.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.security import Capability, RequestContext, require_capability
from app.db.session import get_db
from app.schemas.common import ok
from app.schemas.issue import EscalateIn, IssueDetailOut, IssueOut, RejectIn, StatusChangeIn, VerifyIn
from app.services import issues as issue_service
from app.services import moderation

router = APIRouter(prefix="/moderation", tags=["moderation"])

moderator = require_capability(Capability.MODERATE)
authority = require_capability(Capability.ACT_ON_ISSUES)


def _detail(issue) -> dict:
    return IssueDetailOut.model_validate(issue).model_dump(mode="json")


@router.get("/queue")
def queue(status: Optional[str] = Query(None, description="Comma separated statuses"),
          ctx: RequestContext = Depends(moderator),
          db: Session = Depends(get_db)):
    statuses = moderation.parse_statuses(status, moderation.DEFAULT_QUEUE_STATUSES)
    items = moderation.queue(db, ctx.user, statuses)
    return ok([IssueOut.model_validate(i).model_dump(mode="json") for i in items],
              meta={"total": len(items)})


@router.get("/queue/stats")
def queue_stats(ctx: RequestContext = Depends(moderator), db: Session = Depends(get_db)):
    return ok(moderation.queue_stats(db, ctx.user))


@router.post("/{issue_id}/review")
def start_review(issue_id: int, ctx: RequestContext = Depends(moderator),
                 db: Session = Depends(get_db)):
    return ok(_detail(issue_service.start_review(db, ctx, issue_id)), "Review started")


@router.post("/{issue_id}/verify")
def verify(issue_id: int, body: VerifyIn, ctx: RequestContext = Depends(moderator),
           db: Session = Depends(get_db)):
    issue = issue_service.verify(db, ctx, issue_id, body.department_id, body.severity, body.notes)
    return ok(_detail(issue), "Issue verified successfully")


@router.post("/{issue_id}/reject")
def reject(issue_id: int, body: RejectIn, ctx: RequestContext = Depends(moderator),
           db: Session = Depends(get_db)):
    issue = issue_service.reject(db, ctx, issue_id, body.reason, body.notes)
    return ok(_detail(issue), "Issue rejected")


@router.post("/{issue_id}/escalate")
def escalate(issue_id: int, body: Optional[EscalateIn] = None,
             ctx: RequestContext = Depends(moderator),
             db: Session = Depends(get_db)):
    reason = body.reason if body else None
    return ok(_detail(issue_service.escalate(db, ctx, issue_id, reason)), "Issue escalated")


@router.post("/{issue_id}/status")
def change_status(issue_id: int, body: StatusChangeIn, ctx: RequestContext = Depends(authority),
                  db: Session = Depends(get_db)):
    issue = issue_service.advance(db, ctx, issue_id, body.status, body.reason, body.notes)
    return ok(_detail(issue), "Status updated")
