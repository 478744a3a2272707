from fastapi import APIRouter, Depends
from app.core.auth import get_current_user
from app.models.user import User
from app.schemas.user import MeEnvelope, MeOut

router = APIRouter(prefix="/api/user", tags=["user"])


@router.get("/me", response_model=MeEnvelope)
def get_me(current: User = Depends(get_current_user)):
    return MeEnvelope(user=MeOut.model_validate(current))
