import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from fastapi import Depends
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncSession

from config import MAX_ACTIVE_LINKS, MAX_CODE_ATTEMPTS, SHORT_CODE_LENGTH
from database import get_async_session
from links.codes import generate_random_code, is_valid_url, validate_alias
from links.exceptions import (
    Conflict,
    Forbidden,
    GenerationFailed,
    InvalidInput,
    NotFound,
    QuotaExceeded,
)
from links.repository import LinkRepository

logger = logging.getLogger(__name__)

ALIAS_TAKEN = "This alias is already taken"


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class LinkService:
    """Business rules for creating and managing an owner's links."""

    def __init__(
        self,
        repository: LinkRepository,
        max_active_links: int = MAX_ACTIVE_LINKS,
        code_length: int = SHORT_CODE_LENGTH,
        max_attempts: int = MAX_CODE_ATTEMPTS,
        generate_code: Callable[[int], str] = generate_random_code,
    ):
        self.repository = repository
        self.max_active_links = max_active_links
        self.code_length = code_length
        self.max_attempts = max_attempts
        self.generate_code = generate_code

    async def create(
        self,
        owner_id,
        original_url: Optional[str],
        custom_alias: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> Row:
        if await self.repository.count_active(owner_id) >= self.max_active_links:
            raise QuotaExceeded()

        if not is_valid_url(original_url):
            raise InvalidInput("Valid URL is required")

        expires_at = to_naive_utc(expires_at)

        custom_alias = custom_alias or None
        if custom_alias is not None:
            check = validate_alias(custom_alias)
            if not check.valid:
                raise InvalidInput(check.error)
            if await self.repository.find_by_code_or_alias(custom_alias, active_only=False):
                raise Conflict(ALIAS_TAKEN)

        # The pre-checks only save a round trip; the store has the final word.
        for attempt in range(1, self.max_attempts + 1):
            short_code = self.generate_code(self.code_length)
            if await self.repository.find_by_code_or_alias(short_code, active_only=False):
                logger.debug("Short code collision on attempt %d", attempt)
                continue
            try:
                link = await self.repository.create(
                    {
                        "user_id": owner_id,
                        "original_url": original_url,
                        "short_code": short_code,
                        "custom_alias": custom_alias,
                        "expires_at": expires_at,
                    },
                    active_limit=self.max_active_links,
                )
            except Conflict:
                if custom_alias is not None and await self.repository.find_by_code_or_alias(
                    custom_alias, active_only=False
                ):
                    raise Conflict(ALIAS_TAKEN)
                logger.info("Short code %s was claimed concurrently, retrying", short_code)
                continue
            logger.info("Link %s created with code %s", link.id, link.short_code)
            return link

        logger.error(
            "Could not allocate a free short code after %d attempts", self.max_attempts
        )
        raise GenerationFailed()

    async def list_links(self, owner_id) -> list[Row]:
        return await self.repository.list_by_owner(owner_id)

    async def _get_owned(self, owner_id, link_id: int) -> Row:
        link = await self.repository.find_by_id(link_id)
        if link is None:
            raise NotFound()
        if link.user_id != owner_id:
            raise Forbidden()
        return link

    async def update(self, owner_id, link_id: int, is_active: Optional[bool] = None) -> Row:
        link = await self._get_owned(owner_id, link_id)
        if is_active is None or is_active == link.is_active:
            return link

        active_limit = None
        if is_active:
            if await self.repository.count_active(owner_id) >= self.max_active_links:
                raise QuotaExceeded()
            active_limit = self.max_active_links

        link = await self.repository.update(
            link_id, {"is_active": is_active}, active_limit=active_limit
        )
        logger.info("Link %s is_active set to %s", link_id, is_active)
        return link

    async def delete(self, owner_id, link_id: int) -> None:
        await self._get_owned(owner_id, link_id)
        await self.repository.delete(link_id)
        logger.info("Link %s deleted", link_id)


async def get_link_service(
    session: AsyncSession = Depends(get_async_session),
) -> LinkService:
    return LinkService(LinkRepository(session))
