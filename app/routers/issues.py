# File: app/routers/issues.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from app.core.errors import BadRequest
from app.core.ratelimit import limiter
from app.core.security import RequestContext, get_context, get_optional_context
from app.db.session import get_db
from app.models.issue import IssueSeverity
from app.schemas.common import ok, page_meta
from app.schemas.issue import (
    EvidenceAttach,
    IssueCreate,
    IssueDetailOut,
    IssueOut,
    IssueUpdate,
    StatusUpdateOut,
)
from app.services import issues as issue_service
from app.services.moderation import parse_statuses

router = APIRouter(prefix="/issues", tags=["issues"])


def _out(issue) -> dict:
    return IssueOut.model_validate(issue).model_dump(mode="json")


def _detail(issue) -> dict:
    return IssueDetailOut.model_validate(issue).model_dump(mode="json")


def _parse_severities(raw: Optional[str]) -> List[IssueSeverity]:
    if not raw:
        return []
    out = []
    for part in raw.split(","):
        part = part.strip().upper()
        if not part:
            continue
        try:
            out.append(IssueSeverity(part))
        except ValueError:
            raise BadRequest(f"Unknown severity: {part}", "INVALID_SEVERITY")
    return out


@router.get("")
def list_issues(
    city_id: Optional[int] = Query(None),
    ward_id: Optional[int] = Query(None),
    category_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None, description="Comma separated statuses"),
    severity: Optional[str] = Query(None, description="Comma separated severities"),
    sort_by: str = Query("created_at"),
    order: str = Query("desc"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    ctx: RequestContext = Depends(get_optional_context),
    db: Session = Depends(get_db),
):
    filters = issue_service.IssueFilters(
        city_id=city_id,
        ward_id=ward_id,
        category_id=category_id,
        statuses=parse_statuses(status),
        severities=_parse_severities(severity),
        sort_by=sort_by,
        order=order.lower(),
        page=page,
        limit=limit,
    )
    items, total = issue_service.list_issues(db, ctx, filters)
    return ok([_out(i) for i in items], meta=page_meta(page, limit, total))


# must stay above /{issue_id}
@router.get("/my")
def my_issues(ctx: RequestContext = Depends(get_context), db: Session = Depends(get_db)):
    return ok([_out(i) for i in issue_service.mine(db, ctx)])


@router.post("", status_code=201)
@limiter.limit("10/minute")
def create_issue(request: Request, body: IssueCreate,
                 ctx: RequestContext = Depends(get_context),
                 db: Session = Depends(get_db)):
    issue = issue_service.create(db, ctx, body)
    return ok(_detail(issue), "Issue reported successfully")


@router.get("/{issue_id}")
def get_issue(issue_id: int, ctx: RequestContext = Depends(get_optional_context),
              db: Session = Depends(get_db)):
    return ok(_detail(issue_service.get(db, ctx, issue_id)))


@router.patch("/{issue_id}")
def update_issue(issue_id: int, body: IssueUpdate,
                 ctx: RequestContext = Depends(get_context),
                 db: Session = Depends(get_db)):
    issue = issue_service.update_issue(db, ctx, issue_id, body)
    return ok(_detail(issue), "Issue updated successfully")


@router.delete("/{issue_id}")
def delete_issue(issue_id: int, ctx: RequestContext = Depends(get_context),
                 db: Session = Depends(get_db)):
    issue_service.delete_issue(db, ctx, issue_id)
    return ok(message="Issue deleted successfully")


@router.post("/{issue_id}/evidence", status_code=201)
def attach_evidence(issue_id: int, body: EvidenceAttach,
                    ctx: RequestContext = Depends(get_context),
                    db: Session = Depends(get_db)):
    issue = issue_service.attach_evidence(db, ctx, issue_id, body.evidence)
    return ok(_detail(issue), "Evidence attached")


@router.post("/{issue_id}/upvote")
def upvote(issue_id: int, ctx: RequestContext = Depends(get_context),
           db: Session = Depends(get_db)):
    count = issue_service.upvote(db, ctx, issue_id)
    return ok({"upvote_count": count}, "Issue upvoted")


@router.delete("/{issue_id}/upvote")
def remove_upvote(issue_id: int, ctx: RequestContext = Depends(get_context),
                  db: Session = Depends(get_db)):
    count = issue_service.remove_upvote(db, ctx, issue_id)
    return ok({"upvote_count": count}, "Upvote removed")


@router.get("/{issue_id}/timeline")
def timeline(issue_id: int, ctx: RequestContext = Depends(get_optional_context),
             db: Session = Depends(get_db)):
    rows = issue_service.timeline(db, ctx, issue_id)
    return ok([StatusUpdateOut.model_validate(r).model_dump(mode="json") for r in rows])
