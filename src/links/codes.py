import re
import secrets
import string
from typing import NamedTuple, Optional

from pydantic import HttpUrl, TypeAdapter, ValidationError

ALPHABET = string.digits + string.ascii_lowercase + string.ascii_uppercase

RESERVED_ALIASES = {
    "api",
    "dashboard",
    "auth",
    "admin",
    "login",
    "logout",
    "register",
    "app",
    "short",
}

ALIAS_MIN_LENGTH = 3
ALIAS_MAX_LENGTH = 20
ALIAS_PATTERN = re.compile(r"[A-Za-z0-9_-]+")

# Matches the width of links.original_url
MAX_URL_LENGTH = 2048

_http_url = TypeAdapter(HttpUrl)


class AliasCheck(NamedTuple):
    valid: bool
    error: Optional[str] = None


def generate_random_code(length: int = 6) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def validate_alias(alias: str) -> AliasCheck:
    """
    Check a user-chosen alias. Rules are applied in order and the first
    failing rule decides the error message.
    """
    if not alias or len(alias) < ALIAS_MIN_LENGTH:
        return AliasCheck(False, f"Alias must be at least {ALIAS_MIN_LENGTH} characters")
    if len(alias) > ALIAS_MAX_LENGTH:
        return AliasCheck(False, f"Alias must be {ALIAS_MAX_LENGTH} characters or less")
    if not ALIAS_PATTERN.fullmatch(alias):
        return AliasCheck(
            False, "Alias can only contain letters, numbers, hyphens, and underscores"
        )
    if alias.lower() in RESERVED_ALIASES:
        return AliasCheck(False, "This alias is reserved")
    return AliasCheck(True)


def is_valid_url(url: Optional[str]) -> bool:
    """Absolute http(s) URL with a host."""
    if not url or not isinstance(url, str) or len(url) > MAX_URL_LENGTH:
        return False
    try:
        parsed = _http_url.validate_python(url)
    except ValidationError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.host)
