# app/schemas/base.py
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """요청/응답 공통: JSON은 camelCase(dateOfBirth), 파이썬은 snake_case"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorEnvelope(BaseModel):
    """모든 실패 응답의 본문: {"error": {"code", "message"}}"""

    error: ErrorDetail

    @classmethod
    def of(cls, code: str, message: str) -> dict:
        return cls(error=ErrorDetail(code=code, message=message)).model_dump()


# 라우터 문서화용 공통 실패 응답
ERROR_RESPONSES = {
    400: {"model": ErrorEnvelope, "description": "Validation or business rule failure"},
    401: {"model": ErrorEnvelope, "description": "Missing or invalid credentials"},
}
