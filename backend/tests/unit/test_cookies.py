"""
Unit Tests for the Session Cookie Policy
"""

from typing import Dict, Optional

import pytest
from starlette.requests import Request
from starlette.responses import Response

from quill.config import settings
from quill.core.cookies import (
    clear_session_cookie,
    get_session_cookie_options,
    set_session_cookie,
)


def make_request(
    scheme: str = "http", host: str = "example.com", headers: Optional[Dict[str, str]] = None
) -> Request:
    raw_headers = [(b"host", host.encode())]
    for key, value in (headers or {}).items():
        raw_headers.append((key.lower().encode(), value.encode()))

    return Request(
        {
            "type": "http",
            "method": "POST",
            "scheme": scheme,
            "server": (host, 443 if scheme == "https" else 80),
            "path": "/api/auth/login",
            "query_string": b"",
            "headers": raw_headers,
        }
    )


class TestCookieOptions:
    def test_plain_http_is_not_secure(self):
        options = get_session_cookie_options(make_request("http"))

        assert options["httponly"] is True
        assert options["secure"] is False
        assert options["samesite"] == "lax"
        assert options["path"] == "/"
        assert options["domain"] is None

    def test_https_is_secure(self):
        assert get_session_cookie_options(make_request("https"))["secure"] is True

    def test_forwarded_proto_from_tls_proxy(self):
        request = make_request("http", headers={"X-Forwarded-Proto": "https, http"})
        assert get_session_cookie_options(request)["secure"] is True

    def test_forwarded_proto_http_stays_insecure(self):
        request = make_request("http", headers={"X-Forwarded-Proto": "http"})
        assert get_session_cookie_options(request)["secure"] is False

    def test_configured_domain_applied_to_real_hosts(self, monkeypatch):
        monkeypatch.setattr(settings, "COOKIE_DOMAIN", ".example.com")

        assert get_session_cookie_options(make_request(host="blog.example.com"))["domain"] == ".example.com"

    @pytest.mark.parametrize("host", ["localhost", "127.0.0.1", "10.0.0.5"])
    def test_domain_omitted_for_local_and_ip_hosts(self, monkeypatch, host):
        monkeypatch.setattr(settings, "COOKIE_DOMAIN", ".example.com")

        assert get_session_cookie_options(make_request(host=host))["domain"] is None

    def test_samesite_none_requires_secure(self, monkeypatch):
        monkeypatch.setattr(settings, "COOKIE_SAMESITE", "none")

        assert get_session_cookie_options(make_request("https"))["samesite"] == "none"
        assert get_session_cookie_options(make_request("http"))["samesite"] == "lax"


class TestSetAndClear:
    def test_set_cookie_uses_session_lifetime(self):
        response = Response()
        set_session_cookie(response, make_request("https"), "tok123")

        header = response.headers["set-cookie"]
        assert header.startswith(f"{settings.SESSION_COOKIE_NAME}=tok123")
        assert f"Max-Age={settings.session_max_age_seconds}" in header
        assert "HttpOnly" in header
        assert "Path=/" in header
        assert "SameSite=lax" in header
        assert "Secure" in header

    def test_clear_cookie_reuses_attributes_with_negative_max_age(self):
        response = Response()
        clear_session_cookie(response, make_request("https"))

        header = response.headers["set-cookie"]
        assert header.startswith(f"{settings.SESSION_COOKIE_NAME}=")
        assert "Max-Age=-1" in header
        assert "HttpOnly" in header
        assert "Path=/" in header
        assert "SameSite=lax" in header
        assert "Secure" in header
