# File: app/schemas/otp.py
from pydantic import BaseModel, Field, field_validator
from app.schemas.auth import PHONE_PATTERN

class PhoneIn(BaseModel):
    phone: str = Field(pattern=PHONE_PATTERN)

    @field_validator("phone", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

class OtpVerifyIn(PhoneIn):
    otp: str = Field(pattern=r"^\d{6}$")

    @field_validator("otp", mode="before")
    @classmethod
    def _strip_otp(cls, v):
        return v.strip() if isinstance(v, str) else v
