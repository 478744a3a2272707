from sqlalchemy import Column, Integer, String, Date, Boolean, DateTime
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func
from app.core.db import Base

PROVIDERS = ("email", "google")


class User(Base):
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    date_of_birth = Column(Date, nullable=True)

    provider = Column(String(16), nullable=False)
    google_id = Column(String(255), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    otps = relationship(
        "OtpRecord",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("email")
    def _v_email(self, _key, value):
        email = (value or "").strip().lower()
        if not email:
            raise ValueError("email is required")
        return email

    @validates("name")
    def _v_name(self, _key, value):
        name = (value or "").strip()
        if not name:
            raise ValueError("name is required")
        return name

    @validates("provider")
    def _v_provider(self, _key, value):
        if value not in PROVIDERS:
            raise ValueError(f"unknown provider: {value!r}")
        # 한 번 정해진 provider는 바꿀 수 없음 (계정 병합 금지)
        if self.provider is not None and self.provider != value:
            raise ValueError("provider is immutable once set")
        return value

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} provider={self.provider} active={self.is_active}>"
