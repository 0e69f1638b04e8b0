# File: app/routers/otp.py

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.core.ratelimit import limiter
from app.core.security import RequestContext, get_optional_context
from app.schemas.common import ok
from app.schemas.otp import PhoneIn, OtpVerifyIn
from app.schemas.user import UserOut
from app.services import otp as otp_service
from app.services.sms import SmsSender, get_sms_sender

router = APIRouter(prefix="/otp", tags=["otp"])


def _send(db: Session, phone: str, sender: SmsSender) -> dict:
    code = otp_service.send(db, phone, sender)
    data = {"phone": phone}
    if code is not None:
        data["otp"] = code
    return ok(data, "OTP sent successfully")


@router.post("/send")
@limiter.limit("5/minute")
def send(request: Request, body: PhoneIn,
         sender: SmsSender = Depends(get_sms_sender),
         db: Session = Depends(get_db)):
    return _send(db, body.phone, sender)


@router.post("/resend")
@limiter.limit("5/minute")
def resend(request: Request, body: PhoneIn,
           sender: SmsSender = Depends(get_sms_sender),
           db: Session = Depends(get_db)):
    return _send(db, body.phone, sender)


@router.post("/verify")
def verify(body: OtpVerifyIn,
           ctx: RequestContext = Depends(get_optional_context),
           db: Session = Depends(get_db)):
    user = otp_service.verify(db, ctx, body.phone, body.otp)
    return ok(UserOut.model_validate(user).model_dump(mode="json"), "Phone number verified successfully")
