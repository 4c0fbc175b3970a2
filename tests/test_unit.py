from datetime import timedelta
from types import SimpleNamespace

import pytest
from fastapi_cache import FastAPICache
from fastapi_cache.backends.inmemory import InMemoryBackend
from starlette.requests import Request

from links.analytics import build_click_event, client_address
from links.cache import get_cached_link_id, remember_link_id
from links.codes import ALPHABET, generate_random_code, is_valid_url, validate_alias
from links.exceptions import (
    Conflict,
    Forbidden,
    GenerationFailed,
    InvalidInput,
    Internal,
    NotFound,
    QuotaExceeded,
    Unauthorized,
)
from links.redirect import is_expired
from links.repository import utcnow


def make_request(headers: dict) -> Request:
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/r/abc",
            "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        }
    )


@pytest.mark.parametrize(
    "length",
    [6, 7, 8, 9],
)
def test_generate_random_code_length(length):
    code = generate_random_code(length)
    assert len(code) == length
    assert all(c in ALPHABET for c in code)


def test_generate_random_code_defaults():
    assert len(ALPHABET) == 62
    codes = {generate_random_code() for _ in range(200)}
    assert all(len(code) == 6 for code in codes)
    # 62**6 possibilities; repeats in 200 draws would point to a broken source
    assert len(codes) == 200


@pytest.mark.parametrize(
    "alias",
    ["abc", "my-link", "My_Link_2024", "a" * 20, "API-docs", "shorty"],
)
def test_validate_alias_accepts(alias):
    assert validate_alias(alias) == (True, None)


@pytest.mark.parametrize(
    "alias, error",
    [
        ("", "Alias must be at least 3 characters"),
        ("ab", "Alias must be at least 3 characters"),
        ("a" * 21, "Alias must be 20 characters or less"),
        ("bad alias", "Alias can only contain letters, numbers, hyphens, and underscores"),
        ("abc\n", "Alias can only contain letters, numbers, hyphens, and underscores"),
        ("ünï", "Alias can only contain letters, numbers, hyphens, and underscores"),
        ("admin", "This alias is reserved"),
        ("DashBoard", "This alias is reserved"),
        ("SHORT", "This alias is reserved"),
    ],
)
def test_validate_alias_rejects(alias, error):
    check = validate_alias(alias)
    assert not check.valid
    assert check.error == error


def test_validate_alias_first_failure_wins():
    assert validate_alias("!!").error == "Alias must be at least 3 characters"
    assert validate_alias("!" * 25).error == "Alias must be 20 characters or less"


@pytest.mark.parametrize(
    "url, valid",
    [
        ("https://example.com/a", True),
        ("http://localhost:8000/path?q=1", True),
        ("ftp://example.com/file", False),
        ("example.com", False),
        ("/relative/path", False),
        ("", False),
        (None, False),
        ("https://example.com/" + "a" * 2028, True),
        ("https://example.com/" + "a" * 2040, False),
    ],
)
def test_is_valid_url(url, valid):
    assert is_valid_url(url) is valid


def test_client_address_prefers_first_forwarded_entry():
    request = make_request({"X-Forwarded-For": "1.2.3.4, 10.0.0.1", "X-Real-IP": "9.9.9.9"})
    assert client_address(request) == "1.2.3.4"


def test_client_address_falls_back_to_real_ip():
    assert client_address(make_request({"X-Real-IP": "9.9.9.9"})) == "9.9.9.9"
    assert client_address(make_request({})) is None


def test_build_click_event():
    request = make_request({"User-Agent": "pytest", "Referer": "https://ref.example/"})
    assert build_click_event(7, request) == {
        "link_id": 7,
        "ip_address": None,
        "user_agent": "pytest",
        "referer": "https://ref.example/",
    }


def test_is_expired():
    now = utcnow()
    assert not is_expired(SimpleNamespace(expires_at=None), now)
    assert not is_expired(SimpleNamespace(expires_at=now + timedelta(minutes=1)), now)
    assert is_expired(SimpleNamespace(expires_at=now - timedelta(minutes=1)), now)


@pytest.mark.anyio
async def test_link_cache_round_trip():
    FastAPICache.init(InMemoryBackend(), prefix="unit-cache")
    assert await get_cached_link_id("abc123") is None
    await remember_link_id("abc123", 42)
    assert await get_cached_link_id("abc123") == 42


@pytest.mark.parametrize(
    "error, status_code",
    [
        (Unauthorized, 401),
        (Forbidden, 403),
        (NotFound, 404),
        (InvalidInput, 400),
        (Conflict, 409),
        (QuotaExceeded, 403),
        (GenerationFailed, 500),
        (Internal, 500),
    ],
)
def test_error_status_codes(error, status_code):
    exc = error()
    assert exc.status_code == status_code
    assert exc.detail
    assert error("custom message").detail == "custom message"
