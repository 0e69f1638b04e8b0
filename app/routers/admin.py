# File: app/routers/admin.py
# All routes need the administer capability (CITY_ADMIN, SUPER_ADMIN).
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.security import Capability, require_capability
from app.db.session import get_db
from app.schemas.common import ok
from app.schemas.user import AdminUserOut, UserLite
from app.services import reporting

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_capability(Capability.ADMINISTER))],
)


@router.get("/stats")
def stats(db: Session = Depends(get_db)):
    return ok(reporting.stats(db))


@router.get("/activity")
def activity(db: Session = Depends(get_db)):
    logs = reporting.activity(db)
    return ok([
        {
            "id": log.id,
            "action": log.action,
            "entity_type": log.entity_type,
            "entity_id": log.entity_id,
            "user_role": log.user_role.value if log.user_role else None,
            "ip_address": log.ip_address,
            "details": log.details,
            "created_at": log.created_at.isoformat() if log.created_at else None,
            "user": UserLite.model_validate(log.user).model_dump(mode="json") if log.user else None,
        }
        for log in logs
    ])


@router.get("/trends")
def trends(db: Session = Depends(get_db)):
    return ok(reporting.trends(db))


@router.get("/users")
def users(db: Session = Depends(get_db)):
    return ok([AdminUserOut.model_validate(u).model_dump(mode="json") for u in reporting.recent_users(db)])
