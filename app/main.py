# app/main.py
import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.db import Base, engine
from app.core.errors import AppError
from app.schemas.base import ErrorEnvelope

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("app")

app = FastAPI(title=f"{settings.APP_NAME} API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.CORS_ORIGIN],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


from app.models.user import User  # noqa: E402,F401
from app.models.otp import OtpRecord  # noqa: E402,F401

Base.metadata.create_all(bind=engine)
logger.info("tables: %s", list(Base.metadata.tables.keys()))

backend = engine.url.get_backend_name()
try:
    with engine.connect() as conn:
        if backend == "postgresql":
            ver = conn.execute(text("select version()")).scalar_one()
            logger.info("PostgreSQL connected: %s", ver)
        else:
            conn.execute(text("select 1"))
            logger.info("DB backend connected: %s", backend)
except Exception:
    logger.exception("DB connection check failed")


# ---------- error envelope: {"error": {"code", "message"}} ----------
def _error(status_code: int, code: str, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorEnvelope.of(code, message),
        headers=headers,
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return _error(exc.status_code, exc.code, exc.message, exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    msgs = []
    for e in exc.errors():
        loc = ".".join(str(p) for p in e.get("loc", ()) if p != "body")
        msg = e.get("msg", "Invalid value")
        msgs.append(f"{loc}: {msg}" if loc else msg)
    return _error(400, "VALIDATION_ERROR", ", ".join(msgs) or "Invalid request")


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    try:
        code = HTTPStatus(exc.status_code).name
    except ValueError:
        code = "HTTP_ERROR"
    message = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return _error(exc.status_code, code, message, getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return _error(500, "INTERNAL_ERROR", "Internal server error")


from app.routers.health import router as health_router  # noqa: E402
from app.routers.auth import router as auth_router  # noqa: E402
from app.routers.users import router as users_router  # noqa: E402

routers = [
    health_router,
    auth_router,
    users_router,
]

for r in routers:
    app.include_router(r)

for r in app.routes:
    logger.debug("route %s %s", getattr(r, "methods", None), getattr(r, "path", None))

from fastapi.openapi.utils import get_openapi  # noqa: E402

PROTECTED_PATHS = {"/api/auth/logout", "/api/user/me"}


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    schema = get_openapi(
        title=app.title,
        version="1.0.0",
        description=f"{settings.APP_NAME} API",
        routes=app.routes,
    )
    comps = schema.setdefault("components", {})
    schemes = comps.setdefault("securitySchemes", {})
    for key in list(schemes.keys()):
        if schemes[key].get("type") == "http" and key != "BearerAuth":
            schemes.pop(key, None)
    schemes["BearerAuth"] = {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}
    schemes["CookieAuth"] = {"type": "apiKey", "in": "cookie", "name": "token"}
    for path, path_item in schema.get("paths", {}).items():
        for op in path_item.values():
            if not isinstance(op, dict):
                continue
            if path in PROTECTED_PATHS:
                op["security"] = [{"BearerAuth": []}, {"CookieAuth": []}]
            else:
                op.pop("security", None)
    app.openapi_schema = schema
    return app.openapi_schema


app.openapi = custom_openapi
