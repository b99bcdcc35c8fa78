"""Finalized sensor reading produced by the assembler."""

from __future__ import annotations

from pydantic import Field

from parcelfeed._constants import UNKNOWN_FEE_TYPE
from parcelfeed.models._base import FeedBaseModel, UtcDatetime, utcnow


class Measurement(FeedBaseModel):
    """One fully assembled reading: weight, volume, price and fee type.

    ``fee_type`` is ``None`` when the device never reported a category
    code for this reading; :attr:`fee_type_code` gives the persisted form.
    """

    weight: float = Field(..., allow_inf_nan=False)
    volume: float = Field(..., allow_inf_nan=False)
    price: float = Field(..., allow_inf_nan=False)
    fee_type: str | None = Field(default=None, pattern=r"^[A-Z]$")
    timestamp: UtcDatetime = Field(default_factory=utcnow)

    @property
    def fee_type_code(self) -> str:
        """Fee-type code with the "unknown" fallback applied."""
        return self.fee_type or UNKNOWN_FEE_TYPE
