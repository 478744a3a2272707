# app/core/config.py
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./app.db"

    # 기본값 없음: 비어 있으면 기동 자체가 실패해야 함
    JWT_SECRET: str = Field(..., min_length=1)
    JWT_ALG: str = "HS256"
    JWT_EXPIRES_DAYS: int = 7

    OTP_EXP_MINUTES: int = 10
    OTP_MAX_ATTEMPTS: int = 5
    OTP_HASH_TIME_COST: int = 2
    OTP_HASH_MEMORY_COST: int = 19456  # KiB

    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    OAUTH_REDIRECT_URL: str = "http://localhost:5000/api/auth/google/callback"

    CORS_ORIGIN: str = "http://localhost:5173"
    # 메일 미발송(로그만) 모드는 ENVIRONMENT=development 로 명시했을 때만
    ENVIRONMENT: str = "production"

    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASS: str = ""
    FROM_EMAIL: str = "noreply@highwaynotes.app"

    APP_NAME: str = "Highway Notes"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.strip().lower() == "production"


settings = Settings()
