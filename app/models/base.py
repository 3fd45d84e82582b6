from datetime import datetime, timezone
from typing import Any, Optional

from bson import ObjectId
from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Mongo hands back naive datetimes unless the client is tz aware."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_object_id(value: Any) -> Any:
    """Convert a hex string id to ObjectId; leave anything else untouched."""
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value


class DocumentModel(BaseModel):
    """
    Base for stored documents.

    Attributes are snake_case; stored field names are camelCase.
    The store-assigned `_id` is exposed as a string `id`.
    """
    id: Optional[str] = Field(default=None, alias="_id")

    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        from_attributes=True
    )

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if isinstance(value, ObjectId):
            return str(value)
        return value

    def to_document(self) -> dict:
        """Serialize for insertion (camelCase keys, `_id` as ObjectId when possible)."""
        doc = self.model_dump(by_alias=True, exclude={"id"}, exclude_none=True)
        if self.id is not None:
            doc["_id"] = to_object_id(self.id)
        return doc


class MongoModel(DocumentModel):
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator("created_at", "updated_at", mode="after")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        return as_utc(value)
