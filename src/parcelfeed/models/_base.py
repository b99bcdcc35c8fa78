"""Base model shared by parcelfeed data models.

Every model inherits from :class:`FeedBaseModel` which provides:

* ``alias_generator=to_camel`` so the camelCase keys used on the wire
  (``feeType``, ``deliveryCompany``) map to snake_case fields.
* Frozen instances; a model is never mutated once emitted.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    """Current time as a tz-aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: Any) -> Any:
    """Attach UTC to naive datetimes; leave everything else untouched."""
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]
"""Datetime that is always tz-aware (naive values are assumed UTC)."""


class FeedBaseModel(BaseModel):
    """Base for parcelfeed models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )
