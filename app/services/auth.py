# app/services/auth.py
"""
이메일 OTP / 구글 연동 인증 흐름.

계정 상태(이메일 기준): 없음 -> 인증 대기(is_active=False) -> 활성.
구글 계정은 바로 활성 상태로 생성된다.
각 함수는 세션을 받아 자신의 작업 단위를 직접 commit 한다.
"""
import logging
from datetime import date, datetime, timezone
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import (
    bad_gateway,
    bad_request,
    conflict,
    internal,
    not_found,
    validation_error,
)
from app.core.security import create_access_token
from app.models.otp import OtpRecord
from app.models.user import User
from app.services import otp as otp_engine
from app.services.google import GoogleIdentity
from app.services.mailer import OtpSender, send_otp_email

logger = logging.getLogger(__name__)

OTP_SENT_MESSAGE = "OTP sent successfully"


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _mask_email(addr: str) -> str:
    try:
        local, domain = addr.split("@", 1)
    except ValueError:
        return addr
    local_mask = local[0] + "***" if len(local) > 1 else "*"
    dot = domain.rfind(".")
    dom_mask = (domain[0] + "***" + domain[dot:]) if dot > 0 else (domain[:1] + "***")
    return f"{local_mask}@{dom_mask}"


def _find_user(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == _normalize_email(email)).first()


def _latest_otp(db: Session, user_id: int) -> Optional[OtpRecord]:
    return (
        db.query(OtpRecord)
        .filter(OtpRecord.user_id == user_id)
        .order_by(OtpRecord.id.desc())
        .populate_existing()
        .first()
    )


def _delete_otps(db: Session, user_id: int) -> None:
    db.query(OtpRecord).filter(OtpRecord.user_id == user_id).delete(synchronize_session=False)


def _issue_otp(db: Session, user: User, send_otp: OtpSender) -> None:
    """기존 OTP를 지우고 새로 발급/저장한 뒤 메일로 보낸다."""
    _delete_otps(db, user.id)

    code = otp_engine.generate_otp()
    db.add(OtpRecord(
        user_id=user.id,
        hash=otp_engine.hash_otp(code),
        expires_at=otp_engine.otp_expiry(),
        attempts=0,
    ))
    # 발송 실패 시에도 사용자/OTP는 남겨 둔다 (재시도 가능)
    db.commit()

    if not send_otp(user.email, code, user.name):
        logger.error("[auth] OTP delivery failed for %s", _mask_email(user.email))
        raise internal("EMAIL_ERROR", "Failed to send OTP email")
    logger.info("[auth] OTP issued for user=%s email=%s", user.id, _mask_email(user.email))


def issue_session_token(user: User) -> str:
    return create_access_token({
        "userId": user.id,
        "email": user.email,
        "provider": user.provider,
    })


def signup(
    db: Session,
    email: str,
    name: str,
    date_of_birth: Optional[date] = None,
    send_otp: OtpSender = send_otp_email,
) -> str:
    email = _normalize_email(email)

    existing = _find_user(db, email)
    if existing:
        if existing.is_active:
            raise conflict("USER_EXISTS", "User already exists")
        # 인증을 끝내지 않은 이전 가입은 폐기하고 새로 시작
        logger.info("[auth] discarding pending signup user=%s", existing.id)
        _delete_otps(db, existing.id)
        db.delete(existing)
        db.flush()

    try:
        user = User(
            email=email,
            name=name,
            date_of_birth=date_of_birth,
            provider="email",
            is_active=False,
        )
    except ValueError as e:
        db.rollback()
        raise validation_error(str(e))

    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        # 동시에 같은 이메일로 가입한 경우 unique 제약에서 걸림
        db.rollback()
        raise conflict("USER_EXISTS", "User already exists")

    _issue_otp(db, user, send_otp)
    return OTP_SENT_MESSAGE


def verify_otp(db: Session, email: str, code: str) -> Tuple[str, User]:
    user = _find_user(db, email)
    if not user:
        raise not_found("USER_NOT_FOUND", "User not found")

    rec = _latest_otp(db, user.id)
    if not rec:
        raise not_found("OTP_NOT_FOUND", "OTP not found or expired")

    if otp_engine.is_otp_expired(rec.expires_at):
        db.delete(rec)
        db.commit()
        logger.info("[auth] expired OTP removed user=%s", user.id)
        raise bad_request("OTP_EXPIRED", "OTP has expired")

    if rec.attempts >= settings.OTP_MAX_ATTEMPTS:
        db.delete(rec)
        db.commit()
        logger.info("[auth] OTP attempts exhausted user=%s", user.id)
        raise bad_request("OTP_MAX_ATTEMPTS", "Too many OTP attempts")

    if not otp_engine.verify_otp(code or "", rec.hash):
        # read-modify-write 대신 SQL에서 증가시켜 카운터가 줄어들지 않게 함
        db.query(OtpRecord).filter(OtpRecord.id == rec.id).update(
            {OtpRecord.attempts: OtpRecord.attempts + 1},
            synchronize_session=False,
        )
        db.commit()
        logger.info("[auth] invalid OTP user=%s", user.id)
        raise bad_request("INVALID_OTP", "Invalid OTP")

    user.is_active = True
    db.delete(rec)
    db.commit()
    db.refresh(user)
    logger.info("[auth] OTP verified user=%s", user.id)
    return issue_session_token(user), user


def login_start(db: Session, email: str, send_otp: OtpSender = send_otp_email) -> str:
    user = (
        db.query(User)
        .filter(User.email == _normalize_email(email), User.provider == "email")
        .first()
    )
    if not user:
        raise not_found("USER_NOT_FOUND", "User not found")
    if not user.is_active:
        raise bad_request("ACCOUNT_INACTIVE", "Account not activated")

    _issue_otp(db, user, send_otp)
    return OTP_SENT_MESSAGE


def _create_google_user(db: Session, email: str, identity: GoogleIdentity) -> User:
    name = (identity.name or "").strip() or email.split("@", 1)[0]
    user = User(
        email=email,
        name=name,
        provider="google",
        google_id=identity.sub,
        is_active=True,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = _find_user(db, email)
        if existing is None:
            raise
        return existing
    db.refresh(user)
    logger.info("[auth] google user created user=%s", user.id)
    return user


def oauth_federate(db: Session, identity: GoogleIdentity) -> Tuple[str, User]:
    email = _normalize_email(identity.email or "")
    if not email or not identity.email_verified:
        raise bad_gateway("GOOGLE_ERROR", "Email not provided by Google")

    user = _find_user(db, email)
    if user is None:
        user = _create_google_user(db, email, identity)

    if user.provider != "google":
        raise conflict("PROVIDER_MISMATCH", "Email already registered with different provider")

    changed = False
    if not user.is_active:
        user.is_active = True
        changed = True
    if not user.google_id and identity.sub:
        user.google_id = identity.sub
        changed = True
    if changed:
        db.commit()
        db.refresh(user)

    return issue_session_token(user), user


def purge_expired_otps(db: Session, now: Optional[datetime] = None) -> int:
    now = now or datetime.now(timezone.utc)
    n = (
        db.query(OtpRecord)
        .filter(OtpRecord.expires_at < now)
        .delete(synchronize_session=False)
    )
    db.commit()
    return n
