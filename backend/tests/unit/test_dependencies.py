"""
Unit Tests for Dependencies

Tests for session extraction and authorization dependencies.
"""

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from quill.config import settings
from quill.core.errors import AuthenticationError
from quill.db.models import User
from quill.dependencies import extract_session_token, get_admin_user


def make_request(headers: dict) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in headers.items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


def test_extract_token_from_cookie():
    request = make_request({"Cookie": f"{settings.SESSION_COOKIE_NAME}=cookie-token"})
    assert extract_session_token(request) == "cookie-token"


def test_cookie_wins_over_bearer():
    request = make_request(
        {
            "Cookie": f"{settings.SESSION_COOKIE_NAME}=cookie-token",
            "Authorization": "Bearer header-token",
        }
    )
    assert extract_session_token(request) == "cookie-token"


def test_extract_token_from_bearer_header():
    request = make_request({"Authorization": "Bearer header-token"})
    assert extract_session_token(request) == "header-token"


def test_no_token():
    assert extract_session_token(make_request({})) is None


@pytest.mark.parametrize("header", ["Basic abc", "Bearer", "token-without-scheme"])
def test_malformed_authorization_header(header):
    with pytest.raises(AuthenticationError):
        extract_session_token(make_request({"Authorization": header}))


@pytest.mark.asyncio
async def test_get_admin_user_success():
    """Test get_admin_user allows admin users through."""
    admin = User(id=1, username="admin1", email="admin@example.com", role="admin")

    assert await get_admin_user(user=admin) is admin


@pytest.mark.asyncio
async def test_get_admin_user_forbidden_regular_user(test_user: User):
    """Test get_admin_user rejects regular users with 403."""
    with pytest.raises(HTTPException) as exc_info:
        await get_admin_user(user=test_user)

    assert exc_info.value.status_code == 403
    assert "Admin access required" in exc_info.value.detail
