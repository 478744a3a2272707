# app/schemas/user.py
from datetime import datetime, date
from typing import Optional
from .base import BaseSchema


class UserOut(BaseSchema):
    """공개 프로필. 해시 등 민감 정보는 절대 포함하지 않음"""
    id: int
    email: str
    name: str
    date_of_birth: Optional[date] = None
    provider: str
    is_active: bool


class MeOut(UserOut):
    created_at: datetime


class MeEnvelope(BaseSchema):
    user: MeOut
