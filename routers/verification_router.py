import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from core.auth import get_password_state
from core.database import get_db
from core.security import create_verified_token
from core.urls import safe_redirect
from core.verification import REDIRECT_TO_QUERY_PARAM, VerificationType, consume
from schemas.verification_schema import VerifyRequest, VerifyResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Verification"])

NEXT_STEP_PATHS = {
    VerificationType.ONBOARDING: "/onboarding",
    VerificationType.RESET_PASSWORD: "/reset-password",
}


@router.post("/verify", response_model=VerifyResponse)
def verify(payload: VerifyRequest, db: Session = Depends(get_db)):
    """
    Validate a submitted code and hand back a signed token for the next step.
    The verification is deleted on success so the code cannot be replayed.
    """
    if not consume(db, payload.code, payload.type, payload.target):
        # Same message for wrong and expired codes.
        raise HTTPException(status_code=400, detail="Invalid code")

    logger.info("Verified %s", payload.type.value)
    next_path = NEXT_STEP_PATHS[payload.type]
    if payload.redirect_to:
        next_path += "?" + urlencode({REDIRECT_TO_QUERY_PARAM: safe_redirect(payload.redirect_to)})
    state = ""
    if payload.type == VerificationType.RESET_PASSWORD:
        # Spent once the password changes.
        state = get_password_state(db, payload.target)
    return VerifyResponse(
        type=payload.type,
        token=create_verified_token(payload.type.value, payload.target, state=state),
        redirect_to=next_path,
    )
