"""YFinance quote fetcher implementation."""

import logging

import pandas as pd
import yfinance as yf
from pydantic import ValidationError
from yfinance.exceptions import YFException, YFRateLimitError, YFTickerMissingError

from config.settings_pydantic import settings
from src.data.fetchers.base_fetcher import BaseFetcher
from src.data.models.quote import ChartMeta, QuoteFound, QuoteNotFound
from src.exceptions import SchemaValidationError, TransportError

logger = logging.getLogger("alltickers")


class YFinanceFetcher(BaseFetcher):
    """YFinance implementation of BaseFetcher.

    yfinance reads the same chart endpoint as ``YahooChartFetcher`` but
    manages cookies and crumbs itself.
    """

    def __init__(
        self,
        timeout: float | None = None,
        period: str = "5d",
        refresh_symbol: str | None = None,
    ) -> None:
        """Initialize YFinance fetcher.

        Args:
            timeout: Per-request timeout in seconds.
            period: History window requested to find a last price.
            refresh_symbol: Known-good symbol used for session warm-up.
        """
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.period = period
        self.refresh_symbol = refresh_symbol or settings.session_refresh_symbol

    def fetch_quote(self, symbol: str) -> QuoteFound | QuoteNotFound:
        """Fetch price and exchange metadata for a symbol.

        Args:
            symbol: Stock ticker symbol.

        Returns:
            QuoteFound or QuoteNotFound.
        """
        ticker = yf.Ticker(symbol)
        try:
            history = ticker.history(
                period=self.period,
                timeout=self.timeout,
                raise_errors=True,
            )
            raw_meta = ticker.history_metadata
        except YFRateLimitError as e:
            raise TransportError(symbol, f"rate limited: {e}", status_code=429) from e
        except YFTickerMissingError as e:
            return QuoteNotFound(symbol=symbol, detail=str(e))
        except YFException as e:
            raise SchemaValidationError(symbol, f"yfinance rejected response: {e}") from e
        except OSError as e:
            # requests and curl_cffi exceptions both derive from OSError.
            raise TransportError(symbol, f"request failed: {e}") from e

        if not raw_meta:
            return QuoteNotFound(symbol=symbol, detail="empty history metadata")

        try:
            meta = ChartMeta.model_validate(raw_meta)
        except ValidationError as e:
            raise SchemaValidationError(symbol, f"schema mismatch: {e}") from e

        return QuoteFound(
            symbol=symbol,
            price=meta.regular_market_price or _last_close(history),
            exchange=meta.full_exchange_name or meta.exchange_name,
            exchange_code=meta.exchange_name,
            currency=meta.currency,
        )


def _last_close(history: pd.DataFrame) -> float | None:
    """Most recent non-null close in a price history frame."""
    if history is None or history.empty or "Close" not in history:
        return None

    closes = history["Close"].dropna()
    if closes.empty:
        return None

    value = closes.iloc[-1]
    return float(value) if pd.notna(value) else None
