import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from core.config import settings
from core.database import get_db
from core.security import get_password_hash, password_state, verify_password
from crud.session_crud import create_session, get_active_session
from crud.user_crud import get_password, get_user, get_user_by_username
from models.password import Password
from models.session import Session as SessionModel
from models.user import User

logger = logging.getLogger(__name__)


def get_session_expiration() -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=settings.SESSION_EXPIRATION_DAYS)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def get_user_id(db: Session, session_id: Optional[str]) -> Optional[str]:
    if not session_id:
        return None
    s = get_active_session(db, session_id, datetime.now(timezone.utc))
    if not s:
        return None
    return s.user_id


def get_optional_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    user_id = get_user_id(db, extract_bearer_token(authorization))
    if not user_id:
        return None
    return get_user(db, user_id)


def get_current_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    token = extract_bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    user_id = get_user_id(db, token)
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def require_anonymous(user=Depends(get_optional_user)):
    if user is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Already signed in")


def signup(
    db: Session,
    username: str,
    name: str,
    email: str,
    password: str,
    agent: Optional[str] = None,
) -> SessionModel:
    """Create the user, their password and a first session in one transaction."""
    try:
        user = User(username=username, name=name, email=email)
        db.add(user)
        db.flush()
        db.add(Password(user_id=user.id, hash=get_password_hash(password)))
        session = SessionModel(user_id=user.id, expires_at=get_session_expiration(), agent=agent)
        db.add(session)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(session)
    logger.info("Created user %s", user.id)
    return session


def verify_user_password(db: Session, username: str, password: str) -> Optional[User]:
    user = get_user_by_username(db, username)
    if not user:
        return None
    pw = get_password(db, user.id)
    if not pw or not verify_password(password, pw.hash):
        return None
    return user


def login(db: Session, username: str, password: str, agent: Optional[str] = None) -> Optional[SessionModel]:
    user = verify_user_password(db, username, password)
    if not user:
        return None
    return create_session(db, user_id=user.id, expires_at=get_session_expiration(), agent=agent)


def get_password_state(db: Session, username: str) -> str:
    """Current password fingerprint of ``username``; empty when there is none."""
    user = get_user_by_username(db, username)
    pw = get_password(db, user.id) if user else None
    return password_state(pw.hash) if pw else ""
