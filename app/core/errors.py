# app/core/errors.py
from typing import Optional


class AppError(Exception):
    """
    서비스 계층에서 던지는 예외.
    main.py의 핸들러가 {"error": {"code", "message"}} 형태로 변환한다.
    """

    def __init__(self, status_code: int, code: str, message: str, headers: Optional[dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.headers = headers

    def to_body(self) -> dict:
        return {"error": {"code": self.code, "message": self.message}}

    def __repr__(self) -> str:
        return f"AppError({self.status_code}, {self.code!r}, {self.message!r})"


def validation_error(message: str) -> AppError:
    return AppError(400, "VALIDATION_ERROR", message)


def conflict(code: str, message: str) -> AppError:
    return AppError(409, code, message)


def not_found(code: str, message: str) -> AppError:
    return AppError(404, code, message)


def bad_request(code: str, message: str) -> AppError:
    return AppError(400, code, message)


def unauthorized(message: str = "Invalid token", code: str = "UNAUTHORIZED") -> AppError:
    return AppError(401, code, message, headers={"WWW-Authenticate": "Bearer"})


def internal(code: str = "INTERNAL_ERROR", message: str = "Internal server error") -> AppError:
    return AppError(500, code, message)


def bad_gateway(code: str, message: str) -> AppError:
    return AppError(502, code, message)
