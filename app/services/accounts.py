# File: app/services/accounts.py
"""Registration, login and logout."""
import logging
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.core.errors import Conflict, Forbidden, Unauthorized
from app.core.security import RequestContext, hash_password, verify_password, make_token
from app.db.base import utcnow
from app.models.user import User, UserRole, DEFAULT_CREDIBILITY
from app.services import audit

logger = logging.getLogger(__name__)


def register(db: Session, ctx: RequestContext, name: str, phone: str, password: str,
             email: Optional[str] = None) -> User:
    if db.query(User).filter(User.phone == phone).first():
        raise Conflict("Phone number already registered", "PHONE_EXISTS")

    user = User(
        name=name.strip(),
        phone=phone,
        email=email,
        hashed_password=hash_password(password),
        role=UserRole.CITIZEN,
        credibility_score=DEFAULT_CREDIBILITY,
        is_active=True,
        is_suspended=False,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        # lost a race with a concurrent registration for the same phone
        db.rollback()
        raise Conflict("Phone number already registered", "PHONE_EXISTS")
    audit.record(db, ctx, "USER_REGISTER", "User", user.id, actor=user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


def login(db: Session, ctx: RequestContext, phone: str, password: str) -> tuple[str, User]:
    user = db.query(User).filter(User.phone == phone).first()
    # same error for unknown phone and bad password
    if not user or not user.hashed_password or not verify_password(password, user.hashed_password):
        logger.warning("Failed login for phone ending %s", phone[-4:])
        raise Unauthorized("Invalid phone or password", "INVALID_CREDENTIALS")
    if not user.is_active:
        raise Forbidden("Account is deactivated", "ACCOUNT_INACTIVE")
    if user.is_suspended:
        raise Forbidden("Account is suspended", "ACCOUNT_SUSPENDED")

    token = make_token(user)
    user.last_login = utcnow()
    audit.record(db, ctx, "USER_LOGIN", "User", user.id, actor=user)
    db.commit()
    db.refresh(user)
    return token, user


def logout(db: Session, ctx: RequestContext) -> None:
    audit.record(db, ctx, "USER_LOGOUT", "User", ctx.user.id)
    db.commit()
