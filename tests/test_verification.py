"""Tests for issuing, checking and consuming verification codes."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import pytest

from core.totp import UnsupportedAlgorithmError
from core.verification import (
    VerificationType,
    check,
    consume,
    get_redirect_to_url,
    issue,
)
from crud.verification_crud import consume_verification, delete_verification, get_verification
from models.verification import Verification

DOMAIN = "https://hub.example.com"
EMAIL = "a@example.com"
NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


def _other_code(otp: str) -> str:
    return f"{(int(otp) + 1) % 10 ** len(otp):0{len(otp)}d}"


def test_issue_then_check(db):
    issued = issue(db, DOMAIN, VerificationType.ONBOARDING, EMAIL, 600, now=NOW)
    assert len(issued.otp) == 6
    assert issued.otp.isdigit()
    assert check(db, issued.otp, VerificationType.ONBOARDING, EMAIL, now=NOW)
    assert not check(db, _other_code(issued.otp), VerificationType.ONBOARDING, EMAIL, now=NOW)


def test_issue_accepts_plain_type_string(db):
    issued = issue(db, DOMAIN, "onboarding", EMAIL, 600, now=NOW)
    assert check(db, issued.otp, "onboarding", EMAIL, now=NOW)
    with pytest.raises(ValueError):
        issue(db, DOMAIN, "delete-account", EMAIL, 600, now=NOW)


def test_issue_stores_generator_parameters(db):
    issued = issue(db, DOMAIN, VerificationType.ONBOARDING, EMAIL, 600, now=NOW)
    ver = get_verification(db, "onboarding", EMAIL)
    assert ver.algorithm == "SHA256"
    assert ver.period == 600
    assert ver.digits == 6
    assert ver.char_set == "0123456789"
    assert ver.secret
    expires_at = ver.expires_at.replace(tzinfo=None)
    assert expires_at == (NOW + timedelta(seconds=600)).replace(tzinfo=None)


def test_check_wrong_target_or_type(db):
    issued = issue(db, DOMAIN, VerificationType.ONBOARDING, EMAIL, 600, now=NOW)
    assert not check(db, issued.otp, VerificationType.ONBOARDING, "b@example.com", now=NOW)
    assert not check(db, issued.otp, VerificationType.RESET_PASSWORD, EMAIL, now=NOW)


def test_reissue_invalidates_previous_code(db):
    first = issue(db, DOMAIN, VerificationType.ONBOARDING, EMAIL, 600, now=NOW)
    second = issue(db, DOMAIN, VerificationType.ONBOARDING, EMAIL, 600, now=NOW)
    assert db.query(Verification).count() == 1
    assert not check(db, first.otp, VerificationType.ONBOARDING, EMAIL, now=NOW)
    assert check(db, second.otp, VerificationType.ONBOARDING, EMAIL, now=NOW)


def test_reissue_extends_expiry(db):
    issue(db, DOMAIN, VerificationType.ONBOARDING, EMAIL, 600, now=NOW)
    later = NOW + timedelta(minutes=9)
    issued = issue(db, DOMAIN, VerificationType.ONBOARDING, EMAIL, 600, now=later)
    assert check(db, issued.otp, VerificationType.ONBOARDING, EMAIL, now=later + timedelta(minutes=5))


def test_check_after_expiry(db):
    issued = issue(db, DOMAIN, VerificationType.ONBOARDING, EMAIL, 600, now=NOW)
    # Still inside the +1 period tolerance, but past expires_at.
    assert not check(db, issued.otp, VerificationType.ONBOARDING, EMAIL, now=NOW + timedelta(seconds=601))


def test_check_without_record(db):
    assert not check(db, "123456", VerificationType.ONBOARDING, EMAIL, now=NOW)


def test_check_without_expiry(db):
    issued = issue(db, DOMAIN, VerificationType.ONBOARDING, EMAIL, 600, now=NOW)
    ver = get_verification(db, "onboarding", EMAIL)
    ver.expires_at = None
    db.commit()
    assert check(db, issued.otp, VerificationType.ONBOARDING, EMAIL, now=NOW + timedelta(seconds=601))


def test_check_leaves_record(db):
    issued = issue(db, DOMAIN, VerificationType.ONBOARDING, EMAIL, 600, now=NOW)
    assert check(db, issued.otp, VerificationType.ONBOARDING, EMAIL, now=NOW)
    assert check(db, issued.otp, VerificationType.ONBOARDING, EMAIL, now=NOW)
    assert get_verification(db, "onboarding", EMAIL) is not None


def test_consume_is_single_use(db):
    issued = issue(db, DOMAIN, VerificationType.ONBOARDING, EMAIL, 600, now=NOW)
    assert not consume(db, _other_code(issued.otp), VerificationType.ONBOARDING, EMAIL, now=NOW)
    assert get_verification(db, "onboarding", EMAIL) is not None

    assert consume(db, issued.otp, VerificationType.ONBOARDING, EMAIL, now=NOW)
    assert get_verification(db, "onboarding", EMAIL) is None
    assert not consume(db, issued.otp, VerificationType.ONBOARDING, EMAIL, now=NOW)


def test_consume_only_once_across_sessions(session_factory):
    first, second = session_factory(), session_factory()
    try:
        issued = issue(first, DOMAIN, VerificationType.ONBOARDING, EMAIL, 600, now=NOW)
        ver = get_verification(second, "onboarding", EMAIL)
        assert consume(first, issued.otp, VerificationType.ONBOARDING, EMAIL, now=NOW)
        assert not consume_verification(second, ver.id, ver.secret)
    finally:
        first.close()
        second.close()


def test_consume_keeps_reissued_record(db):
    issue(db, DOMAIN, VerificationType.ONBOARDING, EMAIL, 600, now=NOW)
    stale = get_verification(db, "onboarding", EMAIL)
    stale_id, stale_secret = stale.id, stale.secret
    issue(db, DOMAIN, VerificationType.ONBOARDING, EMAIL, 600, now=NOW)
    assert not consume_verification(db, stale_id, stale_secret)
    assert get_verification(db, "onboarding", EMAIL) is not None


def test_verify_urls(db):
    issued = issue(
        db,
        DOMAIN,
        VerificationType.ONBOARDING,
        EMAIL,
        600,
        redirect_to="/welcome",
        now=NOW,
    )
    verify_url = urlparse(issued.verify_url)
    assert f"{verify_url.scheme}://{verify_url.netloc}{verify_url.path}" == f"{DOMAIN}/verify"
    params = parse_qs(verify_url.query)
    assert params == {
        "type": ["onboarding"],
        "target": [EMAIL],
        "redirectTo": ["/welcome"],
        "code": [issued.otp],
    }

    redirect_params = parse_qs(urlparse(issued.redirect_to).query)
    assert "code" not in redirect_params
    assert redirect_params["target"] == [EMAIL]


def test_redirect_url_without_redirect_to():
    url = get_redirect_to_url(DOMAIN + "/", VerificationType.RESET_PASSWORD, "kody")
    assert url == f"{DOMAIN}/verify?type=reset-password&target=kody"


def test_malformed_stored_configuration_raises(db):
    issued = issue(db, DOMAIN, VerificationType.ONBOARDING, EMAIL, 600, now=NOW)
    ver = get_verification(db, "onboarding", EMAIL)
    ver.algorithm = "MD5"
    db.commit()
    with pytest.raises(UnsupportedAlgorithmError):
        check(db, issued.otp, VerificationType.ONBOARDING, EMAIL, now=NOW)


def test_delete_verification_by_key(db):
    issued = issue(db, DOMAIN, VerificationType.ONBOARDING, EMAIL, 600, now=NOW)
    issue(db, DOMAIN, VerificationType.RESET_PASSWORD, EMAIL, 600, now=NOW)
    assert delete_verification(db, "onboarding", EMAIL)
    assert not delete_verification(db, "onboarding", EMAIL)
    assert not check(db, issued.otp, VerificationType.ONBOARDING, EMAIL, now=NOW)
    assert get_verification(db, "reset-password", EMAIL) is not None
