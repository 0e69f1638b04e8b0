# File: app/schemas/auth.py

from pydantic import BaseModel, EmailStr, Field, field_validator

PHONE_PATTERN = r"^[6-9]\d{9}$"

class RegisterIn(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    phone: str = Field(pattern=PHONE_PATTERN)
    password: str = Field(min_length=6, max_length=512)
    email: EmailStr | None = None

    @field_validator("name", "phone", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

class LoginIn(BaseModel):
    phone: str = Field(min_length=1)
    password: str = Field(min_length=1, max_length=512)

    @field_validator("phone", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v
