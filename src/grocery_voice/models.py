"""Core data models for Grocery Voice."""

from datetime import datetime, timezone
from enum import Enum
from typing import Generic, TypeVar
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

T = TypeVar("T")


def new_id() -> str:
    """Generate an opaque record identifier."""
    return str(uuid4())


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


class _Record(BaseModel):
    """Fields shared by every stored row."""

    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: object) -> object:
        # Remote tables may hand back integer keys
        return str(v) if isinstance(v, int) else v

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class Category(_Record):
    """A named grouping of grocery items."""

    name: str = Field(min_length=1)
    image_url: str = ""

    @field_validator("image_url", mode="before")
    @classmethod
    def null_image(cls, v: object) -> object:
        return "" if v is None else v


class GroceryItem(_Record):
    """A quantity-tracked entry belonging to one category."""

    category_id: str
    name: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=0)

    @field_validator("category_id", mode="before")
    @classmethod
    def coerce_category_id(cls, v: object) -> object:
        return str(v) if isinstance(v, int) else v


class SyncStatus(str, Enum):
    """Outcome of a single persistence call."""

    PRIMARY = "primary"
    FALLBACK = "fallback"
    FAILED = "failed"


class StoreResult(BaseModel, Generic[T]):
    """Value returned by the repository together with where it came from."""

    status: SyncStatus
    value: T
    error: str | None = None

    @property
    def ok(self) -> bool:
        """Whether either store completed the operation."""
        return self.status != SyncStatus.FAILED

    @property
    def degraded(self) -> bool:
        """Whether the result came from the local fallback."""
        return self.status == SyncStatus.FALLBACK


def by_creation(records: list) -> list:
    """Sort categories or items ascending by creation time."""
    return sorted(records, key=lambda r: r.created_at)
