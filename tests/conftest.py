import os

# Settings는 import 시점에 읽히므로 app import 전에 환경을 고정
os.environ["JWT_SECRET"] = "test-secret-key"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["OTP_HASH_TIME_COST"] = "1"
os.environ["OTP_HASH_MEMORY_COST"] = "1024"
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id.apps.googleusercontent.com"
os.environ["GOOGLE_CLIENT_SECRET"] = "test-client-secret"
os.environ["CORS_ORIGIN"] = "http://localhost:5173"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.main import app  # noqa: E402
from app.core.db import Base, SessionLocal, engine  # noqa: E402
from app.services.mailer import get_otp_sender  # noqa: E402


class FakeMailer:
    """발송 내용을 기록만 하는 메일러. fail=True면 발송 실패를 흉내"""

    def __init__(self):
        self.sent = []
        self.fail = False

    def __call__(self, to_email, code, name):
        self.sent.append((to_email, code, name))
        return not self.fail

    @property
    def last_code(self):
        return self.sent[-1][1]


@pytest.fixture(autouse=True)
def _reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def client(mailer):
    app.dependency_overrides[get_otp_sender] = lambda: mailer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def wrong_code():
    def _wrong(code: str) -> str:
        return f"{(int(code) + 1) % 1_000_000:06d}"
    return _wrong
