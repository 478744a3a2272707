import json
import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.core.config import settings
from app.core.db import get_db
from app.core.errors import bad_request
from app.core.security import (
    set_session_cookie,
    clear_session_cookie,
    create_oauth_state,
    decode_oauth_state,
)
from app.models.user import User
from app.schemas.auth import (
    SignupIn,
    VerifyOtpIn,
    LoginEmailIn,
    GoogleTokenIn,
    GoogleStartIn,
    MessageOut,
    AuthOut,
    RedirectUrlOut,
)
from app.schemas.base import ERROR_RESPONSES
from app.schemas.user import UserOut
from app.services import auth as auth_service
from app.services import google as google_service
from app.services.mailer import OtpSender, get_otp_sender

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"], responses=ERROR_RESPONSES)

POPUP_MODE = "popup"


def _auth_out(token: str, user: User) -> AuthOut:
    return AuthOut(token=token, user=UserOut.model_validate(user))


def _safe_json(data: dict) -> str:
    # <script> 안에 넣을 JSON이므로 HTML 특수문자는 유니코드 이스케이프
    return (
        json.dumps(data, default=str)
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
    )


def render_popup_page(out: AuthOut) -> str:
    message = {
        "type": "GOOGLE_AUTH_SUCCESS",
        "data": out.model_dump(mode="json", by_alias=True),
    }
    return f"""<!DOCTYPE html>
<html>
  <head>
    <title>Authentication Complete</title>
  </head>
  <body>
    <script>
      if (window.opener) {{
        window.opener.postMessage({_safe_json(message)}, {_safe_json(settings.CORS_ORIGIN)});
      }}
      window.close();
    </script>
  </body>
</html>
"""


@router.post("/signup", response_model=MessageOut, status_code=status.HTTP_200_OK)
@router.post("/signup-email", response_model=MessageOut, status_code=status.HTTP_200_OK, include_in_schema=False)
def signup(
    payload: SignupIn,
    db: Session = Depends(get_db),
    send_otp: OtpSender = Depends(get_otp_sender),
):
    message = auth_service.signup(
        db,
        email=payload.email,
        name=payload.name,
        date_of_birth=payload.date_of_birth,
        send_otp=send_otp,
    )
    return {"message": message}


@router.post("/verify-otp", response_model=AuthOut, status_code=status.HTTP_200_OK)
def verify_otp(payload: VerifyOtpIn, response: Response, db: Session = Depends(get_db)):
    token, user = auth_service.verify_otp(db, email=payload.email, code=payload.otp)
    set_session_cookie(response, token)
    return _auth_out(token, user)


@router.post("/login-email", response_model=MessageOut, status_code=status.HTTP_200_OK)
def login_email(
    payload: LoginEmailIn,
    db: Session = Depends(get_db),
    send_otp: OtpSender = Depends(get_otp_sender),
):
    message = auth_service.login_start(db, email=payload.email, send_otp=send_otp)
    return {"message": message}


@router.post("/google", response_model=AuthOut, status_code=status.HTTP_200_OK)
def google_login(payload: GoogleTokenIn, response: Response, db: Session = Depends(get_db)):
    """클라이언트가 이미 받은 구글 ID 토큰(One Tap 등)으로 로그인"""
    identity = google_service.verify_google_id_token(payload.token)
    token, user = auth_service.oauth_federate(db, identity)
    set_session_cookie(response, token)
    return _auth_out(token, user)


@router.post("/google/start", response_model=RedirectUrlOut, status_code=status.HTTP_200_OK)
def google_start(payload: GoogleStartIn = GoogleStartIn()):
    # 본문 없이 호출하면 팝업 방식 (SPA 기본 흐름)
    state = create_oauth_state(payload.mode)
    return {"redirectUrl": google_service.build_authorize_url(state=state)}


@router.get("/google/callback")
def google_callback(
    code: str = Query(""),
    state: str = Query(""),
    db: Session = Depends(get_db),
):
    if not code:
        raise bad_request("MISSING_CODE", "Authorization code not provided")
    mode = decode_oauth_state(state)

    identity = google_service.exchange_code(code)
    token, user = auth_service.oauth_federate(db, identity)
    out = _auth_out(token, user)

    if mode == POPUP_MODE:
        resp = HTMLResponse(render_popup_page(out))
    else:
        resp = RedirectResponse(
            url=f"{settings.CORS_ORIGIN.rstrip('/')}/?token={quote(token)}",
            status_code=status.HTTP_302_FOUND,
        )
    set_session_cookie(resp, token)
    logger.info("[auth] google callback user=%s mode=%s", user.id, mode)
    return resp


@router.post("/logout", response_model=MessageOut, status_code=status.HTTP_200_OK)
def logout(response: Response, current: User = Depends(get_current_user)):
    # 서버에 세션 상태가 없으므로 쿠키만 지움
    clear_session_cookie(response)
    return {"message": "Logged out successfully"}
