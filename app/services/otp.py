# app/services/otp.py
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from passlib.hash import argon2

from app.core.config import settings

OTP_LENGTH = 6

_hasher = argon2.using(
    time_cost=settings.OTP_HASH_TIME_COST,
    memory_cost=settings.OTP_HASH_MEMORY_COST,
    parallelism=1,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime) -> datetime:
    # sqlite는 tz 정보를 버리므로 naive 값은 UTC로 간주
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def generate_otp() -> str:
    return f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"


def hash_otp(code: str) -> str:
    return _hasher.hash(code)


def verify_otp(code: str, digest: str) -> bool:
    try:
        return argon2.verify(code, digest)
    except (ValueError, TypeError):
        # 손상된 해시는 불일치로 처리
        return False


def otp_expiry(now: Optional[datetime] = None) -> datetime:
    return (now or _utcnow()) + timedelta(minutes=settings.OTP_EXP_MINUTES)


def is_otp_expired(expires_at: datetime, now: Optional[datetime] = None) -> bool:
    return _as_utc(now or _utcnow()) > _as_utc(expires_at)
