# app/routers/health.py
from datetime import datetime, timezone
from fastapi import APIRouter

router = APIRouter(prefix="/api", tags=["health"])

@router.get("/health")
async def health():
    now = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return {"status": "OK", "timestamp": now}
