# app/core/security.py
from dataclasses import dataclass
from enum import Enum
from typing import Optional
import time, jwt
import logging
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from passlib.hash import bcrypt_sha256
from app.core.config import settings
from app.core.errors import Unauthorized, Forbidden
from app.db.session import get_db
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)

ALGO = "HS256"
bearer = HTTPBearer(auto_error=False)
_hasher = bcrypt_sha256.using(rounds=settings.bcrypt_rounds)


class Capability(str, Enum):
    VIEW_UNPUBLISHED = "view_unpublished"
    MODERATE = "moderate"
    ACT_ON_ISSUES = "act_on_issues"
    ADMINISTER = "administer"


# MODERATOR and AUTHORITY sit at the same level of the old rank table but do
# different jobs: moderators triage reports, authorities act on verified ones.
ROLE_CAPABILITIES: dict[UserRole, frozenset[Capability]] = {
    UserRole.CITIZEN: frozenset(),
    UserRole.VERIFIED_CONTRIBUTOR: frozenset(),
    UserRole.MODERATOR: frozenset({Capability.VIEW_UNPUBLISHED, Capability.MODERATE}),
    UserRole.AUTHORITY: frozenset({Capability.ACT_ON_ISSUES}),
    UserRole.CITY_ADMIN: frozenset(Capability),
    UserRole.SUPER_ADMIN: frozenset(Capability),
}


def has_capability(user: Optional[User], capability: Capability) -> bool:
    if user is None:
        return False
    return capability in ROLE_CAPABILITIES.get(user.role, frozenset())


@dataclass
class RequestContext:
    """Per-request session state handed to the services."""
    user: Optional[User] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @property
    def is_anonymous(self) -> bool:
        return self.user is None

    def can(self, capability: Capability) -> bool:
        return has_capability(self.user, capability)


def hash_password(raw: str) -> str:
    return _hasher.hash(raw)

def verify_password(raw: str, hashed: str) -> bool:
    try:
        return bcrypt_sha256.verify(raw, hashed)
    except ValueError:
        return False

def make_token(user: User) -> str:
    now = int(time.time())
    payload = {
        "sub": str(user.id),
        "role": user.role.value,
        "iat": now,
        "exp": now + settings.jwt_expires_minutes * 60,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGO)

def _decode_token(creds: Optional[HTTPAuthorizationCredentials]) -> dict:
    if not creds or not creds.credentials:
        raise Unauthorized("Authentication required", "AUTH_REQUIRED")
    try:
        return jwt.decode(creds.credentials, settings.jwt_secret, algorithms=[ALGO])
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token expired", "TOKEN_EXPIRED")
    except jwt.PyJWTError:
        raise Unauthorized("Invalid token", "INVALID_TOKEN")

def resolve_session(db: Session, creds: Optional[HTTPAuthorizationCredentials]) -> User:
    payload = _decode_token(creds)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise Unauthorized("Invalid token payload", "INVALID_TOKEN")
    user = db.get(User, user_id)
    if not user:
        raise Unauthorized("User not found", "USER_NOT_FOUND")
    if not user.is_active or user.is_suspended:
        raise Forbidden("Account is suspended", "ACCOUNT_SUSPENDED")
    return user

def _client_meta(request: Request) -> dict:
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }

def get_current_user(creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
                     db: Session = Depends(get_db)) -> User:
    return resolve_session(db, creds)

def get_optional_user(creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
                      db: Session = Depends(get_db)) -> Optional[User]:
    if not creds:
        return None
    try:
        return resolve_session(db, creds)
    except (Unauthorized, Forbidden) as e:
        logger.debug("Optional session ignored: %s", e.message)
        return None

def get_context(request: Request, user: User = Depends(get_current_user)) -> RequestContext:
    return RequestContext(user=user, **_client_meta(request))

def get_optional_context(request: Request, user: Optional[User] = Depends(get_optional_user)) -> RequestContext:
    return RequestContext(user=user, **_client_meta(request))

def get_anonymous_context(request: Request) -> RequestContext:
    return RequestContext(user=None, **_client_meta(request))

def require_capability(capability: Capability):
    def _dep(ctx: RequestContext = Depends(get_context)) -> RequestContext:
        if not ctx.can(capability):
            logger.warning(
                "Denied %s to user %s (%s)", capability.value, ctx.user.id, ctx.user.role.value
            )
            raise Forbidden("Insufficient permissions", "FORBIDDEN")
        return ctx
    return _dep
