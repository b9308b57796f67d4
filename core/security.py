import base64
import hashlib
import hmac
import time
from typing import Callable, Optional

import bcrypt

from core.config import settings

# Bcrypt limit is 72 bytes; truncate to avoid errors
BCRYPT_MAX_PASSWORD_BYTES = 72


def verify_password(plain_password: str, hashed_password: str) -> bool:
    pwd_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]
    return bcrypt.checkpw(pwd_bytes, hashed_password.encode("utf-8"))


def get_password_hash(password: str) -> str:
    pwd_bytes = password.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]
    salt = bcrypt.gensalt(rounds=10)
    return bcrypt.hashpw(pwd_bytes, salt).decode("utf-8")


def _sign(key: str, payload: str) -> str:
    return hmac.new(key.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).hexdigest()


def password_state(password_hash: str) -> str:
    """Fingerprint of a stored password hash; changes whenever the password does."""
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:16]


def create_verified_token(
    purpose: str,
    target: str,
    max_age: Optional[int] = None,
    state: str = "",
) -> str:
    """Short-lived token proving ``target`` just passed a ``purpose`` verification.

    Handed out by the verify step and redeemed by onboarding / password reset.
    ``state`` pins the token to the account state it was issued for (see
    :func:`password_state`); once that changes the token stops working.
    """
    if max_age is None:
        max_age = settings.VERIFIED_TOKEN_MAX_AGE_SECONDS
    expiry = int(time.time()) + max_age
    payload = f"{purpose}|{state}|{target}|{expiry}"
    raw = f"{payload}|{_sign(settings.session_secrets[0], payload)}"
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("utf-8").rstrip("=")


def read_verified_token(
    token: str,
    purpose: str,
    state_of: Optional[Callable[[str], str]] = None,
) -> Optional[str]:
    """Return the target carried by a valid, unexpired token for ``purpose``.

    ``state_of`` maps the target to its current state, which must equal the
    state the token was issued with.
    """
    if not token or not isinstance(token, str):
        return None
    try:
        raw = base64.urlsafe_b64decode(token + "=" * (-len(token) % 4)).decode("utf-8")
    except (ValueError, UnicodeDecodeError):
        return None
    payload, _, sig = raw.rpartition("|")
    if not payload:
        return None
    if not any(hmac.compare_digest(sig, _sign(key, payload)) for key in settings.session_secrets):
        return None
    token_purpose, _, rest = payload.partition("|")
    token_state, _, rest = rest.partition("|")
    target, _, expiry = rest.rpartition("|")
    if token_purpose != purpose or not target:
        return None
    try:
        if int(expiry) < int(time.time()):
            return None
    except ValueError:
        return None
    current_state = state_of(target) if state_of is not None else ""
    if not hmac.compare_digest(token_state, current_state):
        return None
    return target
