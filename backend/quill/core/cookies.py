"""
Session Cookie Policy

Derives session cookie attributes from the incoming request so that setting
and clearing the cookie always use the same attribute set.
"""

import ipaddress
from typing import Any, Dict, Optional

from fastapi import Request, Response

from quill.config import settings

LOCAL_HOSTS = {"localhost", "127.0.0.1", "::1"}


def is_secure_request(request: Request) -> bool:
    """
    Check whether the request arrived over HTTPS.

    Honours the first value of X-Forwarded-Proto for deployments behind a
    TLS-terminating proxy.
    """
    if request.url.scheme == "https":
        return True

    forwarded_proto = request.headers.get("x-forwarded-proto", "")
    first = forwarded_proto.split(",")[0].strip().lower()
    return first == "https"


def _is_ip_address(host: str) -> bool:
    try:
        ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        return False
    return True


def resolve_cookie_domain(request: Request) -> Optional[str]:
    """
    Return the Domain attribute for the session cookie, if any.

    A configured COOKIE_DOMAIN is only applied for real hostnames; browsers
    reject Domain on localhost and IP literals.
    """
    if not settings.COOKIE_DOMAIN:
        return None

    host = (request.url.hostname or "").lower()
    if not host or host in LOCAL_HOSTS or _is_ip_address(host):
        return None

    return settings.COOKIE_DOMAIN


def get_session_cookie_options(request: Request) -> Dict[str, Any]:
    """
    Build keyword arguments for Response.set_cookie.

    Args:
        request: Incoming request (protocol and host are inspected)

    Returns:
        dict with httponly, samesite, secure, path and domain

    Example:
        >>> get_session_cookie_options(request)
        {'httponly': True, 'samesite': 'lax', 'secure': False, 'path': '/', 'domain': None}
    """
    secure = is_secure_request(request)
    samesite = settings.COOKIE_SAMESITE
    if samesite == "none" and not secure:
        # Browsers drop SameSite=None cookies that are not Secure
        samesite = "lax"

    return {
        "httponly": True,
        "samesite": samesite,
        "secure": secure,
        "path": "/",
        "domain": resolve_cookie_domain(request),
    }


def set_session_cookie(
    response: Response, request: Request, token: str, max_age: Optional[int] = None
) -> None:
    """Attach the session cookie with Max-Age equal to the session lifetime."""
    options = get_session_cookie_options(request)
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        max_age=max_age if max_age is not None else settings.session_max_age_seconds,
        **options,
    )


def clear_session_cookie(response: Response, request: Request) -> None:
    """Expire the session cookie using the same attributes it was set with."""
    options = get_session_cookie_options(request)
    response.set_cookie(settings.SESSION_COOKIE_NAME, "", max_age=-1, **options)
