from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.engine import Row
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auth.db import User
from links.exceptions import Conflict, QuotaExceeded
from links.models import click_events, link_tokens, links


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column here stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class LinkRepository:
    """
    Persistence for links and their click events.

    Uniqueness of short codes and aliases is enforced by the store (the
    ``link_tokens`` primary key plus the unique indexes on ``links``), so
    ``create`` reports a collision as ``Conflict`` no matter what the caller
    checked beforehand.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _fetch_one(self, statement) -> Optional[Row]:
        result = await self.session.execute(statement)
        return result.first()

    async def find_by_id(self, link_id: int) -> Optional[Row]:
        return await self._fetch_one(select(links).where(links.c.id == link_id))

    async def find_by_code(self, code: str) -> Optional[Row]:
        return await self._fetch_one(select(links).where(links.c.short_code == code))

    async def find_by_alias(self, alias: str) -> Optional[Row]:
        return await self._fetch_one(select(links).where(links.c.custom_alias == alias))

    async def find_by_code_or_alias(
        self, token: str, active_only: bool = True
    ) -> Optional[Row]:
        statement = (
            select(links)
            .join(link_tokens, link_tokens.c.link_id == links.c.id)
            .where(link_tokens.c.token == token)
        )
        if active_only:
            statement = statement.where(links.c.is_active)
        return await self._fetch_one(statement)

    async def count_active(self, owner_id) -> int:
        statement = (
            select(func.count())
            .select_from(links)
            .where(links.c.user_id == owner_id, links.c.is_active)
        )
        result = await self.session.execute(statement)
        return result.scalar_one()

    async def list_by_owner(self, owner_id) -> list[Row]:
        statement = (
            select(links)
            .where(links.c.user_id == owner_id)
            .order_by(links.c.created_at.desc(), links.c.id.desc())
        )
        result = await self.session.execute(statement)
        return list(result.all())

    async def _lock_owner(self, owner_id) -> None:
        # Serializes quota-sensitive writes per owner (no-op on SQLite, which
        # already serializes writers).
        await self.session.execute(
            select(User.id).where(User.id == owner_id).with_for_update()
        )

    async def _check_quota(self, owner_id, active_limit: int) -> None:
        if await self.count_active(owner_id) > active_limit:
            raise QuotaExceeded()

    async def create(
        self, record: dict[str, Any], active_limit: Optional[int] = None
    ) -> Row:
        """
        Insert a link and claim its tokens in one transaction.

        With ``active_limit`` the owner's active links are recounted after the
        insert, and the transaction is rolled back if the limit is exceeded.
        """
        record = {"created_at": utcnow(), "click_count": 0, "is_active": True, **record}
        tokens = [record["short_code"]]
        if record.get("custom_alias"):
            tokens.append(record["custom_alias"])

        try:
            if active_limit is not None:
                await self._lock_owner(record["user_id"])
            result = await self.session.execute(insert(links).values(**record))
            link_id = result.inserted_primary_key[0]
            await self.session.execute(
                insert(link_tokens),
                [{"token": token, "link_id": link_id} for token in tokens],
            )
            if active_limit is not None and record["is_active"]:
                await self._check_quota(record["user_id"], active_limit)
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise Conflict() from exc
        except QuotaExceeded:
            await self.session.rollback()
            raise

        return await self.find_by_id(link_id)

    async def update(
        self, link_id: int, fields: dict[str, Any], active_limit: Optional[int] = None
    ) -> Optional[Row]:
        owner_id = None
        try:
            if active_limit is not None and fields.get("is_active"):
                owner_id = await self.session.scalar(
                    select(links.c.user_id).where(links.c.id == link_id)
                )
                await self._lock_owner(owner_id)
            await self.session.execute(
                update(links).where(links.c.id == link_id).values(**fields)
            )
            if owner_id is not None:
                await self._check_quota(owner_id, active_limit)
            await self.session.commit()
        except QuotaExceeded:
            await self.session.rollback()
            raise

        return await self.find_by_id(link_id)

    async def delete(self, link_id: int) -> bool:
        """Delete a link together with its click events and tokens."""
        await self.session.execute(
            delete(click_events).where(click_events.c.link_id == link_id)
        )
        await self.session.execute(
            delete(link_tokens).where(link_tokens.c.link_id == link_id)
        )
        result = await self.session.execute(delete(links).where(links.c.id == link_id))
        await self.session.commit()
        return result.rowcount > 0

    async def increment_click_count(self, link_id: int) -> int:
        result = await self.session.execute(
            update(links)
            .where(links.c.id == link_id)
            .values(click_count=links.c.click_count + 1)
        )
        await self.session.commit()
        return result.rowcount

    async def insert_click_event(self, event: dict[str, Any]) -> None:
        event = {"timestamp": utcnow(), **event}
        await self.session.execute(insert(click_events).values(**event))
        await self.session.commit()

    async def list_click_events(self, link_id: int) -> list[Row]:
        statement = (
            select(click_events)
            .where(click_events.c.link_id == link_id)
            .order_by(click_events.c.id)
        )
        result = await self.session.execute(statement)
        return list(result.all())
