from typing import Optional

from fastapi import Request


def get_domain_url(request: Request) -> str:
    """Public origin of the request, honouring reverse-proxy host headers."""
    host = request.headers.get("x-forwarded-host") or request.headers.get("host")
    if not host:
        raise ValueError("Could not determine domain URL.")
    protocol = "http" if "localhost" in host else "https"
    return f"{protocol}://{host}"


def safe_redirect(to: Optional[str], default: str = "/") -> str:
    """Only allow same-site absolute paths as post-action redirects."""
    if not to or not isinstance(to, str):
        return default
    to = to.strip()
    if not to.startswith("/") or to.startswith("//") or to.startswith("/\\"):
        return default
    return to
