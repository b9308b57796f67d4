"""Issue and check one-time codes bound to a (type, target) pair.

A verification row holds the generator parameters, never the code itself. The
code is handed out once by :func:`issue` (for the email link) and recomputed
from the stored secret on :func:`check`.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional
from urllib.parse import urlencode

from sqlalchemy.orm import Session

from core.totp import generate_totp, verify_totp
from crud.verification_crud import consume_verification, get_active_verification, upsert_verification

logger = logging.getLogger(__name__)

CODE_QUERY_PARAM = "code"
TARGET_QUERY_PARAM = "target"
TYPE_QUERY_PARAM = "type"
REDIRECT_TO_QUERY_PARAM = "redirectTo"

VERIFICATION_ALGORITHM = "SHA256"


class VerificationType(str, Enum):
    ONBOARDING = "onboarding"
    RESET_PASSWORD = "reset-password"


@dataclass(frozen=True)
class IssuedVerification:
    otp: str
    # Carries the code; meant for email delivery only.
    verify_url: str
    # Same page without the code, where the user types it in.
    redirect_to: str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_redirect_to_url(
    domain_url: str,
    type: VerificationType,
    target: str,
    redirect_to: Optional[str] = None,
) -> str:
    params = {
        TYPE_QUERY_PARAM: VerificationType(type).value,
        TARGET_QUERY_PARAM: target,
    }
    if redirect_to:
        params[REDIRECT_TO_QUERY_PARAM] = redirect_to
    return f"{domain_url.rstrip('/')}/verify?{urlencode(params)}"


def issue(
    db: Session,
    domain_url: str,
    type: VerificationType,
    target: str,
    period: int,
    redirect_to: Optional[str] = None,
    now: Optional[datetime] = None,
) -> IssuedVerification:
    """Generate a fresh code for (type, target), replacing any earlier one."""
    type = VerificationType(type)
    now = now or _utcnow()

    config = generate_totp(algorithm=VERIFICATION_ALGORITHM, period=period, now=now)
    expires_at = now + timedelta(seconds=config.period)
    upsert_verification(db, type.value, target, config, expires_at)
    logger.info("Issued %s verification (expires %s)", type.value, expires_at.isoformat())

    redirect_url = get_redirect_to_url(domain_url, type, target, redirect_to)
    verify_url = f"{redirect_url}&{urlencode({CODE_QUERY_PARAM: config.otp})}"
    return IssuedVerification(otp=config.otp, verify_url=verify_url, redirect_to=redirect_url)


def _matching_verification(db: Session, code: str, type: str, target: str, now: datetime):
    ver = get_active_verification(db, type, target, now)
    if ver is None:
        return None
    ok = verify_totp(
        code,
        secret=ver.secret,
        algorithm=ver.algorithm,
        period=ver.period,
        digits=ver.digits,
        char_set=ver.char_set,
        now=now,
    )
    return ver if ok else None


def check(
    db: Session,
    code: str,
    type: VerificationType,
    target: str,
    now: Optional[datetime] = None,
) -> bool:
    """True when ``code`` is valid for the active (type, target) verification.

    The row is left in place: a caller acting on True must delete it (see
    :func:`consume`), otherwise the code stays usable until it lapses.
    """
    type = VerificationType(type)
    return _matching_verification(db, code, type.value, target, now or _utcnow()) is not None


def consume(
    db: Session,
    code: str,
    type: VerificationType,
    target: str,
    now: Optional[datetime] = None,
) -> bool:
    """Check the code and delete the verification in one step.

    Concurrent submissions of the same code race on the delete; only the one
    that removes the row gets True.
    """
    type = VerificationType(type)
    ver = _matching_verification(db, code, type.value, target, now or _utcnow())
    if ver is None:
        return False
    consumed = consume_verification(db, ver.id, ver.secret)
    if not consumed:
        logger.info("Verification for %s was consumed concurrently", type.value)
    return consumed
