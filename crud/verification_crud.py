import uuid
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from core.totp import TOTPConfig
from models.verification import Verification


def get_verification(db: Session, type: str, target: str):
    return (
        db.query(Verification)
        .filter(Verification.type == type, Verification.target == target)
        .first()
    )


def get_active_verification(db: Session, type: str, target: str, now: datetime):
    return (
        db.query(Verification)
        .filter(
            Verification.type == type,
            Verification.target == target,
            or_(Verification.expires_at > now, Verification.expires_at.is_(None)),
        )
        .first()
    )


def upsert_verification(
    db: Session,
    type: str,
    target: str,
    config: TOTPConfig,
    expires_at: datetime | None,
):
    """Insert the verification, or overwrite the generated fields of the existing
    (type, target) row so that previously issued codes stop working."""
    fields = {
        "secret": config.secret,
        "algorithm": config.algorithm,
        "digits": config.digits,
        "period": config.period,
        "char_set": config.char_set,
        "expires_at": expires_at,
    }
    values = {"id": str(uuid.uuid4()), "type": type, "target": target, **fields}

    dialect = db.get_bind().dialect.name
    if dialect in ("sqlite", "postgresql"):
        insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
        stmt = insert(Verification).values(**values).on_conflict_do_update(
            index_elements=["type", "target"],
            set_={**fields, "updated_at": func.now()},
        )
        db.execute(stmt)
    elif dialect == "mysql":
        stmt = mysql.insert(Verification).values(**values)
        stmt = stmt.on_duplicate_key_update(**fields, updated_at=func.now())
        db.execute(stmt)
    else:
        ver = get_verification(db, type, target)
        if ver is None:
            db.add(Verification(**values))
        else:
            for k, v in fields.items():
                setattr(ver, k, v)
    db.commit()
    return get_verification(db, type, target)


def delete_verification(db: Session, type: str, target: str) -> bool:
    deleted = (
        db.query(Verification)
        .filter(Verification.type == type, Verification.target == target)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted > 0


def consume_verification(db: Session, verification_id: str, secret: str) -> bool:
    """Delete exactly the row that was validated.

    Matching on the secret as well as the id means a re-issue that happened in
    between (same row, new secret) is left alone. Of several concurrent callers
    only one sees a deleted row.
    """
    deleted = (
        db.query(Verification)
        .filter(Verification.id == verification_id, Verification.secret == secret)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted == 1
