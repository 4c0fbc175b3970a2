"""
Memo of the token -> link id mapping used by redirect resolution.

Tokens and link ids never change once assigned, so entries need no
invalidation; callers still verify a cached id against the store, because a
deleted link's token may later be claimed by another link.
"""
import logging
from typing import Optional

from fastapi_cache import FastAPICache

from config import LINK_CACHE_TTL

logger = logging.getLogger(__name__)

NAMESPACE = "link-token"


def _key(token: str) -> str:
    return f"{FastAPICache.get_prefix()}:{NAMESPACE}:{token}"


async def get_cached_link_id(token: str) -> Optional[int]:
    try:
        value = await FastAPICache.get_backend().get(_key(token))
        if not value:
            return None
        if isinstance(value, bytes):
            value = value.decode()
        return int(value)
    except Exception:
        logger.warning("Link cache lookup failed for %r", token, exc_info=True)
        return None


async def remember_link_id(token: str, link_id: int) -> None:
    try:
        await FastAPICache.get_backend().set(
            _key(token), str(link_id).encode(), expire=LINK_CACHE_TTL
        )
    except Exception:
        logger.warning("Could not cache link %s for %r", link_id, token, exc_info=True)
