import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response
from sqlalchemy.orm import Session

from core.auth import extract_bearer_token, get_current_user, get_password_state, login, require_anonymous, signup
from core.config import settings
from core.database import get_db
from core.email import EmailDeliveryError, send_password_reset_email, send_signup_email
from core.security import get_password_hash, read_verified_token
from core.urls import get_domain_url, safe_redirect
from core.verification import VerificationType, issue
from crud.session_crud import delete_session, delete_user_sessions
from crud.user_crud import get_user, get_user_by_email, get_user_by_username, get_user_by_username_or_email, set_password
from schemas.auth_schema import (
    AuthTokenResponse,
    ForgotPasswordRequest,
    LoginRequest,
    OnboardingRequest,
    RedirectToResponse,
    ResetPasswordRequest,
    SignupRequest,
)
from schemas.user_schema import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _domain_url(request: Request) -> str:
    try:
        return get_domain_url(request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/signup", response_model=RedirectToResponse, dependencies=[Depends(require_anonymous)])
def signup_email(payload: SignupRequest, request: Request, db: Session = Depends(get_db)):
    """
    Start signup: email a one-time code for the address and point the client
    at the page where it is entered.
    """
    email = payload.email.lower()
    if get_user_by_email(db, email):
        raise HTTPException(status_code=400, detail="A user already exists with this email")

    period = settings.VERIFICATION_PERIOD_SECONDS
    issued = issue(
        db,
        _domain_url(request),
        VerificationType.ONBOARDING,
        email,
        period,
        redirect_to=payload.redirect_to,
    )
    try:
        send_signup_email(email, issued.verify_url, issued.otp, period // 60)
    except EmailDeliveryError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return RedirectToResponse(redirect_to=issued.redirect_to)


@router.post("/onboarding", response_model=AuthTokenResponse, status_code=201, dependencies=[Depends(require_anonymous)])
def onboarding(payload: OnboardingRequest, request: Request, db: Session = Depends(get_db)):
    """Finish signup for an email proven by the verify step."""
    email = read_verified_token(payload.onboarding_token, VerificationType.ONBOARDING.value)
    if not email:
        raise HTTPException(status_code=400, detail="Email verification expired, please sign up again")
    if get_user_by_email(db, email):
        raise HTTPException(status_code=400, detail="A user already exists with this email")
    if get_user_by_username(db, payload.username):
        raise HTTPException(status_code=400, detail="A user already exists with this username")

    session = signup(
        db,
        username=payload.username,
        name=payload.name,
        email=email,
        password=payload.password,
        agent=request.headers.get("user-agent"),
    )
    return AuthTokenResponse(
        access_token=session.id,
        user=UserResponse.model_validate(get_user(db, session.user_id)),
        redirect_to=safe_redirect(payload.redirect_to),
    )


@router.post("/login", response_model=AuthTokenResponse, dependencies=[Depends(require_anonymous)])
def login_user(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    session = login(db, payload.username, payload.password, agent=request.headers.get("user-agent"))
    if not session:
        raise HTTPException(status_code=400, detail="Invalid Credentials")
    return AuthTokenResponse(
        access_token=session.id,
        user=UserResponse.model_validate(get_user(db, session.user_id)),
        redirect_to=safe_redirect(payload.redirect_to),
    )


@router.post("/logout", status_code=204)
def logout(
    authorization: Optional[str] = Header(None),
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    delete_session(db, extract_bearer_token(authorization))
    return Response(status_code=204)


@router.get("/me", response_model=UserResponse)
def get_me(current_user=Depends(get_current_user)):
    return current_user


@router.post("/forgot-password", response_model=RedirectToResponse, dependencies=[Depends(require_anonymous)])
def forgot_password(payload: ForgotPasswordRequest, request: Request, db: Session = Depends(get_db)):
    """Email a reset code; the verification is bound to the username."""
    value = payload.username_or_email.strip().lower()
    user = get_user_by_username_or_email(db, value)
    if not user:
        raise HTTPException(status_code=400, detail="No user exists with this username or email")

    period = settings.VERIFICATION_PERIOD_SECONDS
    issued = issue(
        db,
        _domain_url(request),
        VerificationType.RESET_PASSWORD,
        user.username,
        period,
        redirect_to=payload.redirect_to,
    )
    try:
        send_password_reset_email(user.email, issued.verify_url, issued.otp, period // 60)
    except EmailDeliveryError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return RedirectToResponse(redirect_to=issued.redirect_to)


@router.post("/reset-password", response_model=RedirectToResponse)
def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    username = read_verified_token(
        payload.reset_token,
        VerificationType.RESET_PASSWORD.value,
        state_of=lambda target: get_password_state(db, target),
    )
    user = get_user_by_username(db, username) if username else None
    if not user:
        raise HTTPException(status_code=400, detail="Password reset expired, please start again")

    set_password(db, user.id, get_password_hash(payload.password))
    # Existing logins end with the old password.
    delete_user_sessions(db, user.id)
    logger.info("Password reset for user %s", user.id)
    return RedirectToResponse(redirect_to="/login")
