"""Tests for request origin detection and redirect sanitising."""

from __future__ import annotations

import pytest
from starlette.requests import Request

from core.urls import get_domain_url, safe_redirect


def _request(headers: dict[str, str]) -> Request:
    return Request({
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    })


def test_domain_url_from_host():
    assert get_domain_url(_request({"Host": "hub.example.com"})) == "https://hub.example.com"


def test_domain_url_localhost_is_http():
    assert get_domain_url(_request({"Host": "localhost:8000"})) == "http://localhost:8000"


def test_domain_url_prefers_forwarded_host():
    req = _request({"Host": "app:8000", "X-Forwarded-Host": "hub.example.com"})
    assert get_domain_url(req) == "https://hub.example.com"


def test_domain_url_without_host():
    with pytest.raises(ValueError):
        get_domain_url(_request({}))


@pytest.mark.parametrize(
    "to,expected",
    [
        ("/posts", "/posts"),
        ("/posts?page=2", "/posts?page=2"),
        (None, "/"),
        ("", "/"),
        ("https://evil.example.com", "/"),
        ("//evil.example.com", "/"),
        ("/\\evil.example.com", "/"),
        ("posts", "/"),
    ],
)
def test_safe_redirect(to, expected):
    assert safe_redirect(to) == expected
