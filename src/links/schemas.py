from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class LinkCreate(CamelModel):
    # Validated by the service so that quota errors take precedence
    original_url: Optional[str] = None
    custom_alias: Optional[str] = None
    expires_at: Optional[datetime] = None


class LinkUpdate(CamelModel):
    is_active: Optional[bool] = None


class LinkRead(CamelModel):
    id: int
    original_url: str
    short_code: str
    custom_alias: Optional[str] = None
    created_at: datetime
    click_count: int
    is_active: bool
    expires_at: Optional[datetime] = None

    @field_validator("created_at", "expires_at")
    @classmethod
    def as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Stored naive, always UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class LinkEnvelope(BaseModel):
    link: LinkRead


class LinkList(BaseModel):
    links: list[LinkRead]


class DeleteResult(BaseModel):
    success: bool
