"""Pydantic models for ledger rows and ledger statistics."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from src.data.models.ticker_status import TickerStatus
from src.data.types import LedgerRowDict
from src.utils.date_utils import parse_timestamp


class LedgerEntry(BaseModel):
    """Classification state of one symbol."""

    symbol: str = Field(..., description="Ticker symbol (primary key)")
    status: TickerStatus = Field(
        default=TickerStatus.UNVALIDATED,
        description="Classification status",
    )
    price: float | None = Field(None, description="Last observed regular market price")
    exchange: str | None = Field(
        None,
        description="Exchange name, or a reason sentinel when delisted",
    )
    currency: str | None = Field(None, description="Quote currency")
    last_checked: datetime | None = Field(None, description="Last validation attempt (UTC)")
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, v: str) -> str:
        """Validate symbol is uppercase."""
        return v.upper().strip()

    @field_validator("last_checked", "created_at", "updated_at", mode="before")
    @classmethod
    def parse_datetime(cls, v: str | datetime | None) -> datetime | None:
        """Parse stored ISO timestamps."""
        return parse_timestamp(v)

    @property
    def is_validated(self) -> bool:
        """Whether a validation attempt has ever classified this symbol."""
        return self.status is not TickerStatus.UNVALIDATED

    @property
    def active_price(self) -> float | None:
        """Price only while the symbol is active."""
        return self.price if self.status is TickerStatus.ACTIVE else None

    @property
    def reason(self) -> str | None:
        """Reason sentinel recorded for delisted symbols."""
        return self.exchange if self.status is TickerStatus.DELISTED else None

    def to_dict(self) -> LedgerRowDict:
        """Convert to a flat dictionary for export."""
        return {
            "symbol": self.symbol,
            "status": self.status.value,
            "price": self.active_price,
            "exchange": self.exchange,
            "currency": self.currency,
            "last_checked": self.last_checked.isoformat() if self.last_checked else None,
        }


class LedgerStats(BaseModel):
    """Aggregate counts over the ledger."""

    total: int = 0
    active: int = 0
    delisted: int = 0
    unvalidated: int = 0
    validated: int = 0


class FreshnessCheck(BaseModel):
    """Answer to "was this symbol checked recently?"."""

    is_recent: bool
    last_checked: datetime | None = None
    hours_since: float | None = None
