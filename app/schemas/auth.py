from datetime import date
from typing import Literal, Optional
from pydantic import Field, EmailStr, field_validator
from .base import BaseSchema
from .user import UserOut


class SignupIn(BaseSchema):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    date_of_birth: Optional[date] = None

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def _blank_birth_date(cls, v):
        # 프론트에서 빈 문자열로 오는 경우가 있음
        if isinstance(v, str) and not v.strip():
            return None
        return v


class VerifyOtpIn(BaseSchema):
    email: EmailStr
    otp: str = Field(..., min_length=6, max_length=6)

    @field_validator("otp")
    @classmethod
    def _digits_only(cls, v: str) -> str:
        if not v.isdigit():
            raise ValueError("OTP must be 6 digits")
        return v


class LoginEmailIn(BaseSchema):
    email: EmailStr


class GoogleTokenIn(BaseSchema):
    token: str = Field(..., min_length=1)


class GoogleStartIn(BaseSchema):
    mode: Literal["popup", "redirect"] = "popup"


class MessageOut(BaseSchema):
    message: str


class AuthOut(BaseSchema):
    token: str
    user: UserOut


class RedirectUrlOut(BaseSchema):
    redirect_url: str
