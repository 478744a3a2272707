import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Response
from jose import jwt, JWTError, ExpiredSignatureError

from app.core.config import settings
from app.core.errors import bad_request, unauthorized

COOKIE_NAME = "token"
CLAIM_KEYS = ("userId", "email", "provider")

OAUTH_STATE_TYP = "oauth_state"
OAUTH_STATE_MODES = ("popup", "redirect")
OAUTH_STATE_MINUTES = 10


def token_lifetime() -> timedelta:
    return timedelta(days=settings.JWT_EXPIRES_DAYS)


def create_access_token(claims: dict, expires_delta: Optional[timedelta] = None) -> str:
    missing = [k for k in CLAIM_KEYS if not claims.get(k)]
    if missing:
        raise ValueError(f"missing token claims: {missing}")
    now = datetime.now(timezone.utc)
    payload = {k: str(claims[k]) for k in CLAIM_KEYS}
    payload["iat"] = now
    payload["exp"] = now + (expires_delta if expires_delta is not None else token_lifetime())
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def decode_access_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except ExpiredSignatureError:
        raise unauthorized("Token has expired", code="TOKEN_EXPIRED")
    except JWTError:
        raise unauthorized("Invalid token")
    if not all(payload.get(k) for k in CLAIM_KEYS):
        raise unauthorized("Invalid token payload")
    return {k: payload[k] for k in CLAIM_KEYS}


def create_oauth_state(mode: str) -> str:
    """구글 인가 요청에 실어 보낼 state. 서명 + 짧은 만료 + nonce"""
    if mode not in OAUTH_STATE_MODES:
        raise ValueError(f"unknown oauth mode: {mode}")
    now = datetime.now(timezone.utc)
    payload = {
        "typ": OAUTH_STATE_TYP,
        "mode": mode,
        "nonce": secrets.token_urlsafe(16),
        "iat": now,
        "exp": now + timedelta(minutes=OAUTH_STATE_MINUTES),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def decode_oauth_state(state: str) -> str:
    """콜백의 state를 검증하고 응답 방식(popup/redirect)을 돌려준다."""
    if not state:
        raise bad_request("INVALID_STATE", "OAuth state is missing")
    try:
        payload = jwt.decode(state, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except ExpiredSignatureError:
        raise bad_request("INVALID_STATE", "OAuth state has expired")
    except JWTError:
        raise bad_request("INVALID_STATE", "Invalid OAuth state")
    mode = payload.get("mode")
    if payload.get("typ") != OAUTH_STATE_TYP or not payload.get("nonce") or mode not in OAUTH_STATE_MODES:
        raise bad_request("INVALID_STATE", "Invalid OAuth state")
    return mode


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=int(token_lifetime().total_seconds()),
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=COOKIE_NAME,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )
