import logging
from datetime import datetime
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config import LANDING_URL
from database import get_async_session, get_session_maker
from links.analytics import build_click_event, record_click
from links.cache import get_cached_link_id, remember_link_id
from links.repository import LinkRepository, utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/r", tags=["redirect"])


def landing_redirect(reason: str) -> RedirectResponse:
    separator = "&" if "?" in LANDING_URL else "?"
    return RedirectResponse(
        url=f"{LANDING_URL}{separator}{urlencode({'error': reason})}",
        status_code=status.HTTP_302_FOUND,
    )


def is_expired(link: Row, now: Optional[datetime] = None) -> bool:
    return link.expires_at is not None and link.expires_at < (now or utcnow())


async def resolve_link(repository: LinkRepository, token: str) -> Optional[Row]:
    """Find the active link a short code or alias points to."""
    link_id = await get_cached_link_id(token)
    if link_id is not None:
        link = await repository.find_by_id(link_id)
        if link is not None and token in (link.short_code, link.custom_alias):
            return link if link.is_active else None

    link = await repository.find_by_code_or_alias(token, active_only=True)
    if link is not None:
        await remember_link_id(token, link.id)
    return link


@router.get("/{token}")
async def follow_link(
    token: str,
    request: Request,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_async_session),
    session_maker: async_sessionmaker = Depends(get_session_maker),
):
    """
    Redirect to the original URL of an active, unexpired link and count the click.
    Failures never surface as errors: the client is sent to the landing page
    with an ``error`` query parameter instead.
    """
    repository = LinkRepository(session)
    try:
        link = await resolve_link(repository, token)
    except Exception:
        logger.exception("Failed to resolve %r", token)
        return landing_redirect("server-error")

    if link is None:
        return landing_redirect("not-found")
    if is_expired(link):
        return landing_redirect("expired")

    background_tasks.add_task(
        record_click, session_maker, build_click_event(link.id, request)
    )
    try:
        await repository.increment_click_count(link.id)
    except Exception:
        logger.exception("Failed to increment click count for link %s", link.id)

    return RedirectResponse(url=link.original_url, status_code=status.HTTP_302_FOUND)
