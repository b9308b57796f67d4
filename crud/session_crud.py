from datetime import datetime
from sqlalchemy.orm import Session
from models.session import Session as SessionModel


def get_active_session(db: Session, session_id: str, now: datetime):
    return (
        db.query(SessionModel)
        .filter(SessionModel.id == session_id, SessionModel.expires_at > now)
        .first()
    )


def create_session(db: Session, user_id: str, expires_at: datetime, agent: str | None = None):
    s = SessionModel(user_id=user_id, expires_at=expires_at, agent=agent)
    db.add(s)
    db.commit()
    db.refresh(s)
    return s


def delete_session(db: Session, session_id: str) -> bool:
    deleted = db.query(SessionModel).filter(SessionModel.id == session_id).delete(synchronize_session=False)
    db.commit()
    return deleted > 0


def delete_user_sessions(db: Session, user_id: str) -> int:
    deleted = db.query(SessionModel).filter(SessionModel.user_id == user_id).delete(synchronize_session=False)
    db.commit()
    return deleted
