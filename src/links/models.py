from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)
from fastapi_users_db_sqlalchemy.generics import GUID

from links.codes import MAX_URL_LENGTH

metadata = MetaData()

links = Table(
    "links",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("user_id", GUID, nullable=False, index=True),
    Column("original_url", String(length=MAX_URL_LENGTH), nullable=False),
    Column("short_code", String(length=100), nullable=False, unique=True, index=True),
    Column("custom_alias", String(length=100), nullable=True, unique=True, index=True),
    Column("created_at", DateTime, nullable=False),
    Column("expires_at", DateTime, nullable=True),
    Column("click_count", Integer, nullable=False, default=0),
    Column("is_active", Boolean, nullable=False, default=True),
)

# Short codes and aliases share this table's primary key, so the store itself
# rejects a code that equals another link's alias and vice versa.
link_tokens = Table(
    "link_tokens",
    metadata,
    Column("token", String(length=100), primary_key=True),
    Column(
        "link_id",
        Integer,
        ForeignKey("links.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
)

click_events = Table(
    "click_events",
    metadata,
    Column("id", Integer, primary_key=True),
    Column(
        "link_id",
        Integer,
        ForeignKey("links.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("timestamp", DateTime, nullable=False),
    Column("ip_address", String(length=45), nullable=True),
    Column("user_agent", Text, nullable=True),
    Column("referer", Text, nullable=True),
)
