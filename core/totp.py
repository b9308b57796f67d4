"""Time-based one-time passwords for email/phone verification.

Codes are HOTP values (RFC 4226) over a time-step counter (RFC 6238). Unlike
authenticator-app TOTP the alphabet is configurable, so a verification can
emit alphanumeric codes; with the default numeric alphabet the output is
identical to the standard algorithm.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import math
import struct
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import pyotp

DEFAULT_ALGORITHM = "SHA1"
DEFAULT_PERIOD = 30
DEFAULT_DIGITS = 6
DEFAULT_CHAR_SET = "0123456789"
# Number of adjacent periods accepted on each side of the current one.
DEFAULT_WINDOW = 1

_DIGESTS = {
    "SHA1": hashlib.sha1,
    "SHA256": hashlib.sha256,
    "SHA512": hashlib.sha512,
}


class TOTPConfigurationError(ValueError):
    """The code-generation parameters themselves are invalid."""


class UnsupportedAlgorithmError(TOTPConfigurationError):
    pass


class InvalidCharSetError(TOTPConfigurationError):
    pass


@dataclass(frozen=True)
class TOTPConfig:
    otp: str
    secret: str
    algorithm: str
    period: int
    digits: int
    char_set: str
    counter: int


def normalize_algorithm(algorithm: str) -> str:
    """Map ``sha-256``/``SHA256``/``sha256`` style names onto the canonical one."""
    name = (algorithm or "").replace("-", "").upper()
    if name not in _DIGESTS:
        raise UnsupportedAlgorithmError(f"Unsupported algorithm: {algorithm!r}")
    return name


def _validate(period: int, digits: int, char_set: str) -> None:
    if period <= 0:
        raise TOTPConfigurationError("period must be a positive number of seconds")
    if digits < 1:
        raise TOTPConfigurationError("digits must be at least 1")
    if not char_set or len(set(char_set)) < 2:
        raise InvalidCharSetError("char_set needs at least two distinct characters")
    if len(set(char_set)) != len(char_set):
        raise InvalidCharSetError("char_set must not repeat characters")


def _timestamp(now: Optional[datetime]) -> float:
    return time.time() if now is None else now.timestamp()


def get_counter(period: int, now: Optional[datetime] = None) -> int:
    return math.floor(_timestamp(now) / period)


def _secret_bytes(secret: str) -> bytes:
    padded = secret + "=" * (-len(secret) % 8)
    return base64.b32decode(padded, casefold=True)


def generate_hotp(
    secret: str,
    counter: int,
    algorithm: str = DEFAULT_ALGORITHM,
    digits: int = DEFAULT_DIGITS,
    char_set: str = DEFAULT_CHAR_SET,
) -> str:
    """Derive the code for a single counter value.

    The HMAC digest is dynamically truncated to a 31-bit integer, which is then
    written out in base ``len(char_set)`` using exactly ``digits`` characters.
    """
    digest = _DIGESTS[normalize_algorithm(algorithm)]
    mac = hmac.new(_secret_bytes(secret), struct.pack(">Q", counter), digest).digest()
    offset = mac[-1] & 0x0F
    value = struct.unpack(">I", mac[offset:offset + 4])[0] & 0x7FFFFFFF

    base = len(char_set)
    chars = []
    for _ in range(digits):
        value, index = divmod(value, base)
        chars.append(char_set[index])
    return "".join(reversed(chars))


def generate_totp(
    algorithm: str = DEFAULT_ALGORITHM,
    period: int = DEFAULT_PERIOD,
    digits: int = DEFAULT_DIGITS,
    char_set: str = DEFAULT_CHAR_SET,
    now: Optional[datetime] = None,
) -> TOTPConfig:
    """Create a fresh random secret and the code currently valid for it."""
    algorithm = normalize_algorithm(algorithm)
    _validate(period, digits, char_set)

    secret = pyotp.random_base32()
    counter = get_counter(period, now)
    otp = generate_hotp(secret, counter, algorithm, digits, char_set)
    return TOTPConfig(
        otp=otp,
        secret=secret,
        algorithm=algorithm,
        period=period,
        digits=digits,
        char_set=char_set,
        counter=counter,
    )


def verify_totp(
    otp: str,
    secret: str,
    algorithm: str = DEFAULT_ALGORITHM,
    period: int = DEFAULT_PERIOD,
    digits: int = DEFAULT_DIGITS,
    char_set: str = DEFAULT_CHAR_SET,
    now: Optional[datetime] = None,
    window: int = DEFAULT_WINDOW,
) -> bool:
    """Check ``otp`` against the current period and ``window`` periods either side.

    Wrong codes return False; only a malformed configuration raises.
    """
    algorithm = normalize_algorithm(algorithm)
    _validate(period, digits, char_set)

    if otp is None or len(otp) != digits:
        return False

    candidate = otp.encode("utf-8")
    counter = get_counter(period, now)
    matched = False
    for step in range(-window, window + 1):
        if counter + step < 0:
            continue
        expected = generate_hotp(secret, counter + step, algorithm, digits, char_set)
        if hmac.compare_digest(candidate, expected.encode("utf-8")):
            matched = True
    return matched
