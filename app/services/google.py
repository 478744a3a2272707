# app/services/google.py
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx
from google.auth import exceptions as google_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token

from app.core.config import settings
from app.core.errors import unauthorized

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"


@dataclass(frozen=True)
class GoogleIdentity:
    email: Optional[str]
    email_verified: bool
    name: Optional[str]
    sub: Optional[str]


def _auth_failed(message: str = "Invalid Google token"):
    return unauthorized(message, code="GOOGLE_AUTH_FAILED")


def verify_google_id_token(token: str) -> GoogleIdentity:
    """ID 토큰 서명/aud 검증 후 필요한 클레임만 추린다."""
    if not token:
        raise _auth_failed()
    try:
        info = google_id_token.verify_oauth2_token(
            token, google_requests.Request(), audience=settings.GOOGLE_CLIENT_ID
        )
    except (ValueError, google_exceptions.GoogleAuthError) as e:
        logger.warning("[google] id token rejected: %s", e)
        raise _auth_failed()

    verified = info.get("email_verified", False)
    if isinstance(verified, str):
        verified = verified.strip().lower() == "true"
    return GoogleIdentity(
        email=info.get("email"),
        email_verified=bool(verified),
        name=info.get("name"),
        sub=info.get("sub"),
    )


def exchange_code(code: str) -> GoogleIdentity:
    data = {
        "code": code,
        "client_id": settings.GOOGLE_CLIENT_ID,
        "client_secret": settings.GOOGLE_CLIENT_SECRET,
        "redirect_uri": settings.OAUTH_REDIRECT_URL,
        "grant_type": "authorization_code",
    }
    try:
        with httpx.Client(timeout=10.0) as client:
            resp = client.post(GOOGLE_TOKEN_URL, data=data)
            resp.raise_for_status()
            tokens = resp.json()
    except httpx.HTTPStatusError as e:
        logger.warning("[google] code exchange failed status=%s body=%s", e.response.status_code, e.response.text)
        raise _auth_failed("OAuth failed")
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("[google] code exchange error: %r", e)
        raise _auth_failed("OAuth failed")

    raw_id_token = tokens.get("id_token") if isinstance(tokens, dict) else None
    if not raw_id_token:
        raise _auth_failed("OAuth failed")
    return verify_google_id_token(raw_id_token)


def build_authorize_url(state: str = "") -> str:
    params = {
        "client_id": settings.GOOGLE_CLIENT_ID,
        "redirect_uri": settings.OAUTH_REDIRECT_URL,
        "response_type": "code",
        "scope": "openid email profile",
        "access_type": "offline",
        "prompt": "consent",
    }
    if state:
        params["state"] = state
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"
