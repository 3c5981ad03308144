"""Verdict models: the outcome of one validation attempt."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator

from src.data.models.ticker_status import DelistReason, TickerStatus


class _BaseVerdict(BaseModel):
    symbol: str = Field(..., description="Validated ticker symbol")

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, v: str) -> str:
        """Validate symbol is uppercase."""
        return v.upper().strip()


class ActiveVerdict(_BaseVerdict):
    """Symbol is tradeable on a recognized exchange."""

    kind: Literal["active"] = "active"
    price: float = Field(..., gt=0, description="Regular market price")
    exchange: str = Field(..., description="Exchange / venue name")
    currency: str = Field("USD", description="Quote currency")

    @property
    def status(self) -> TickerStatus:
        return TickerStatus.ACTIVE


class DelistedVerdict(_BaseVerdict):
    """Symbol is not an active tradeable instrument."""

    kind: Literal["delisted"] = "delisted"
    reason: DelistReason = Field(..., description="Why the symbol was classified delisted")
    detail: str | None = Field(None, description="Provider message, if any")

    @property
    def status(self) -> TickerStatus:
        return TickerStatus.DELISTED


Verdict = Annotated[ActiveVerdict | DelistedVerdict, Field(discriminator="kind")]
