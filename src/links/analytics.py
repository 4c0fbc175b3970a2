import asyncio
import logging
from typing import Any, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import async_sessionmaker

from config import CLICK_RECORD_TIMEOUT
from links.repository import LinkRepository

logger = logging.getLogger(__name__)


def client_address(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.headers.get("x-real-ip") or None


def build_click_event(link_id: int, request: Request) -> dict[str, Any]:
    return {
        "link_id": link_id,
        "ip_address": client_address(request),
        "user_agent": request.headers.get("user-agent") or None,
        "referer": request.headers.get("referer") or None,
    }


async def record_click(
    session_maker: async_sessionmaker,
    event: dict[str, Any],
    timeout: Optional[float] = None,
) -> None:
    """
    Store one click event in its own session.

    Runs after the redirect response, so failures only reach the log.
    """
    if timeout is None:
        timeout = CLICK_RECORD_TIMEOUT
    try:
        async with session_maker() as session:
            await asyncio.wait_for(
                LinkRepository(session).insert_click_event(event), timeout
            )
    except asyncio.TimeoutError:
        logger.error(
            "Recording click for link %s timed out after %.1fs",
            event.get("link_id"),
            timeout,
        )
    except Exception:
        logger.exception("Failed to record click for link %s", event.get("link_id"))
