# File: app/services/audit.py
from typing import Any, Optional
from sqlalchemy.orm import Session
from app.core.security import RequestContext
from app.models.audit_log import AuditLog
from app.models.user import User


def record(
    db: Session,
    ctx: RequestContext,
    action: str,
    entity_type: str,
    entity_id: Any,
    details: Optional[dict] = None,
    actor: Optional[User] = None,
) -> AuditLog:
    """Stage an audit row in the caller's transaction; the caller commits."""
    actor = actor or ctx.user
    entry = AuditLog(
        user_id=actor.id if actor else None,
        user_role=actor.role if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        ip_address=ctx.ip_address,
        user_agent=(ctx.user_agent or "")[:500] or None,
        details=details,
    )
    db.add(entry)
    return entry
