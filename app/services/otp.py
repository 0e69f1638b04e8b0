# File: app/services/otp.py
"""Phone verification codes.

Only the newest unused, unexpired code for a phone is valid: issuing a code
marks every earlier unused one as used. Sends are capped per phone over a
trailing hour, counted from the persisted rows.
"""
import logging
import secrets
from datetime import timedelta
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import AppError, InvalidOrExpired, NotFound, RateLimited
from app.core.security import RequestContext
from app.db.base import utcnow
from app.models.otp import OtpVerification
from app.models.user import User
from app.services import audit
from app.services.sms import SmsSender

logger = logging.getLogger(__name__)

OTP_LENGTH = 6
PURPOSE_PHONE_VERIFICATION = "PHONE_VERIFICATION"
RATE_WINDOW = timedelta(hours=1)


def generate_code(length: int = OTP_LENGTH) -> str:
    digits = "0123456789"
    return "".join(secrets.choice(digits) for _ in range(length))


def send(db: Session, phone: str, sender: SmsSender,
         purpose: str = PURPOSE_PHONE_VERIFICATION) -> Optional[str]:
    """Issue a fresh code. Returns the code outside production, else None."""
    user = db.query(User).filter(User.phone == phone).first()
    if not user:
        raise NotFound("No account found with this phone number", "USER_NOT_FOUND")

    now = utcnow()
    recent = (
        db.query(func.count(OtpVerification.id))
        .filter(OtpVerification.phone == phone, OtpVerification.created_at >= now - RATE_WINDOW)
        .scalar()
    )
    if recent >= settings.otp_max_per_hour:
        logger.warning("OTP rate limit reached for phone ending %s", phone[-4:])
        raise RateLimited("Too many OTP requests. Please try again after an hour.")

    db.execute(
        update(OtpVerification)
        .where(OtpVerification.phone == phone, OtpVerification.is_used.is_(False))
        .values(is_used=True)
    )
    code = generate_code()
    db.add(OtpVerification(
        phone=phone,
        code=code,
        purpose=purpose,
        expires_at=now + timedelta(minutes=settings.otp_expiry_minutes),
        created_at=now,
    ))
    db.commit()

    result = sender.send(phone, code)
    if not result.delivered:
        logger.error("OTP delivery failed for phone ending %s: %s", phone[-4:], result.error)
        raise AppError("Failed to send OTP", "OTP_SEND_FAILED")

    return None if settings.is_production else code


def verify(db: Session, ctx: RequestContext, phone: str, code: str) -> User:
    now = utcnow()
    record = (
        db.query(OtpVerification)
        .filter(
            OtpVerification.phone == phone,
            OtpVerification.code == code,
            OtpVerification.is_used.is_(False),
            OtpVerification.expires_at > now,
        )
        .order_by(OtpVerification.created_at.desc(), OtpVerification.id.desc())
        .first()
    )
    if not record:
        # counted, not enforced
        db.execute(
            update(OtpVerification)
            .where(OtpVerification.phone == phone, OtpVerification.is_used.is_(False))
            .values(attempts=OtpVerification.attempts + 1)
        )
        db.commit()
        raise InvalidOrExpired("Invalid or expired OTP")

    user = db.query(User).filter(User.phone == phone).first()
    if not user:
        raise NotFound("No account found with this phone number", "USER_NOT_FOUND")

    record.is_used = True
    record.verified_at = now
    user.is_phone_verified = True
    audit.record(db, ctx, "PHONE_VERIFIED", "User", user.id, details={"phone": phone}, actor=user)
    db.commit()
    db.refresh(user)
    return user
