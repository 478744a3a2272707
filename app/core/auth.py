from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.core.errors import unauthorized
from app.core.security import COOKIE_NAME, decode_access_token
from app.models.user import User

bearer = HTTPBearer(auto_error=False)


def extract_token(request: Request, creds: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    """
    Authorization: Bearer 헤더가 우선, 없으면 세션 쿠키.
    둘 다 있으면 헤더 값을 사용한다.
    """
    if creds is not None and (creds.scheme or "").lower() == "bearer" and creds.credentials:
        return creds.credentials
    return request.cookies.get(COOKIE_NAME) or None


def get_current_user(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    token = extract_token(request, creds)
    if not token:
        raise unauthorized("Access token is required")

    claims = decode_access_token(token)
    try:
        user_id = int(claims["userId"])
    except (KeyError, ValueError):
        raise unauthorized("Invalid token payload")

    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise unauthorized("Invalid or inactive user")
    return user
