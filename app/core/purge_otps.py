# app/core/purge_otps.py
import logging

from app.core.db import Base, SessionLocal, engine
from app.models.user import User  # noqa: F401
from app.models.otp import OtpRecord  # noqa: F401
from app.services.auth import purge_expired_otps

logger = logging.getLogger(__name__)


# 만료된 OTP 정리용. cron 등에서 주기적으로 실행
def purge() -> int:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        n = purge_expired_otps(db)
    finally:
        db.close()
    logger.info("purged %s expired OTP record(s)", n)
    return n


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    purge()
