"""Provider response models.

``Quote`` is what every fetcher returns: either the provider knew the
symbol (``QuoteFound``, with whatever optional fields it reported) or it
answered that the symbol does not exist (``QuoteNotFound``). The chart
payload models mirror the subset of Yahoo's v8 chart response we read.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class QuoteFound(BaseModel):
    """Provider returned market metadata for the symbol."""

    kind: Literal["found"] = "found"
    symbol: str
    price: float | None = None
    exchange: str | None = Field(None, description="Human readable exchange name")
    exchange_code: str | None = Field(None, description="Short venue code, e.g. NMS")
    currency: str | None = None


class QuoteNotFound(BaseModel):
    """Provider answered that the symbol is unknown."""

    kind: Literal["not_found"] = "not_found"
    symbol: str
    status_code: int | None = None
    detail: str | None = None


Quote = Annotated[QuoteFound | QuoteNotFound, Field(discriminator="kind")]


class ChartMeta(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    symbol: str | None = None
    currency: str | None = None
    exchange_name: str | None = Field(None, alias="exchangeName")
    full_exchange_name: str | None = Field(None, alias="fullExchangeName")
    regular_market_price: float | None = Field(None, alias="regularMarketPrice")


class ChartResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    meta: ChartMeta


class ChartError(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str | None = None
    description: str | None = None


class ChartBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    result: list[ChartResult] | None = None
    error: ChartError | None = None


class ChartResponse(BaseModel):
    """Top-level ``{"chart": {...}}`` document."""

    model_config = ConfigDict(extra="ignore")

    chart: ChartBody
