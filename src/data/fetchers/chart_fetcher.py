"""Yahoo Finance v8 chart endpoint fetcher."""

import logging

import requests
from pydantic import ValidationError

from config.settings_pydantic import settings
from src.data.fetchers.base_fetcher import BaseFetcher
from src.data.models.quote import ChartResponse, QuoteFound, QuoteNotFound
from src.exceptions import SchemaValidationError, TransportError

logger = logging.getLogger("alltickers")


class YahooChartFetcher(BaseFetcher):
    """Looks symbols up through ``/v8/finance/chart/{symbol}``."""

    def __init__(
        self,
        timeout: float | None = None,
        user_agent: str | None = None,
        url_template: str | None = None,
        refresh_symbol: str | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize chart fetcher.

        Args:
            timeout: Per-request timeout in seconds.
            user_agent: User-Agent header sent with each request.
            url_template: Endpoint with a ``{symbol}`` placeholder.
            refresh_symbol: Known-good symbol used for session warm-up.
            session: Optional pre-built requests session.
        """
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.url_template = url_template or settings.chart_url
        self.refresh_symbol = refresh_symbol or settings.session_refresh_symbol
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent or settings.user_agent})

    def fetch_quote(self, symbol: str) -> QuoteFound | QuoteNotFound:
        """Fetch chart metadata for a symbol.

        Args:
            symbol: Stock ticker symbol.

        Returns:
            QuoteFound or QuoteNotFound.
        """
        url = self.url_template.format(symbol=symbol)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.Timeout as e:
            raise TransportError(symbol, f"timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise TransportError(symbol, f"request failed: {e}") from e

        if response.status_code == 404:
            return QuoteNotFound(
                symbol=symbol,
                status_code=404,
                detail=self._error_description(response),
            )
        if not response.ok:
            raise TransportError(
                symbol,
                f"HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = ChartResponse.model_validate(response.json())
        except ValueError as e:
            # ValidationError subclasses ValueError, as does JSONDecodeError.
            kind = "schema mismatch" if isinstance(e, ValidationError) else "invalid JSON"
            raise SchemaValidationError(symbol, f"{kind}: {e}") from e

        return self._to_quote(symbol, payload)

    def _to_quote(self, symbol: str, payload: ChartResponse) -> QuoteFound | QuoteNotFound:
        results = payload.chart.result or []
        if not results:
            detail = payload.chart.error.description if payload.chart.error else None
            return QuoteNotFound(symbol=symbol, detail=detail)

        meta = results[0].meta
        return QuoteFound(
            symbol=symbol,
            price=meta.regular_market_price,
            exchange=meta.full_exchange_name or meta.exchange_name,
            exchange_code=meta.exchange_name,
            currency=meta.currency,
        )

    @staticmethod
    def _error_description(response: requests.Response) -> str | None:
        """Best-effort extraction of Yahoo's error text from a 404 body."""
        try:
            payload = ChartResponse.model_validate(response.json())
        except ValueError:
            return None
        return payload.chart.error.description if payload.chart.error else None

    def close(self) -> None:
        self.session.close()
