"""Unit tests for the yfinance fetcher."""

from unittest.mock import MagicMock, patch

import pandas as pd
import pytest
from yfinance.exceptions import YFRateLimitError

from src.data.fetchers.yfinance_fetcher import YFinanceFetcher
from src.data.models.quote import QuoteFound, QuoteNotFound
from src.exceptions import TransportError

META = {
    "currency": "USD",
    "symbol": "IBM",
    "exchangeName": "NYQ",
    "fullExchangeName": "NYSE",
    "regularMarketPrice": 171.2,
}


def make_ticker(history: pd.DataFrame | None = None, meta: dict | None = None) -> MagicMock:
    ticker = MagicMock()
    ticker.history.return_value = history if history is not None else pd.DataFrame()
    ticker.history_metadata = meta if meta is not None else {}
    return ticker


class TestYFinanceFetcher:
    """Tests for YFinanceFetcher with yfinance mocked out."""

    @pytest.fixture
    def fetcher(self) -> YFinanceFetcher:
        return YFinanceFetcher(timeout=3.0)

    def test_found(self, fetcher: YFinanceFetcher) -> None:
        """Test history metadata maps to QuoteFound."""
        ticker = make_ticker(meta=META)
        with patch("src.data.fetchers.yfinance_fetcher.yf.Ticker", return_value=ticker):
            quote = fetcher.fetch_quote("IBM")

        assert isinstance(quote, QuoteFound)
        assert quote.price == 171.2
        assert quote.exchange == "NYSE"
        assert quote.exchange_code == "NYQ"
        ticker.history.assert_called_once_with(period="5d", timeout=3.0, raise_errors=True)

    def test_price_falls_back_to_last_close(self, fetcher: YFinanceFetcher) -> None:
        """Test the last close is used when metadata has no price."""
        meta = {**META, "regularMarketPrice": None}
        history = pd.DataFrame({"Close": [170.0, 172.5, None]})
        with patch("src.data.fetchers.yfinance_fetcher.yf.Ticker", return_value=make_ticker(history, meta)):
            quote = fetcher.fetch_quote("IBM")

        assert quote.price == 172.5

    def test_empty_metadata_is_not_found(self, fetcher: YFinanceFetcher) -> None:
        """Test missing metadata means the symbol is unknown."""
        with patch("src.data.fetchers.yfinance_fetcher.yf.Ticker", return_value=make_ticker()):
            assert isinstance(fetcher.fetch_quote("QQQQ"), QuoteNotFound)

    def test_rate_limit_is_transport_error(self, fetcher: YFinanceFetcher) -> None:
        """Test yfinance rate limiting is a transport error."""
        ticker = make_ticker()
        ticker.history.side_effect = YFRateLimitError()
        with patch("src.data.fetchers.yfinance_fetcher.yf.Ticker", return_value=ticker):
            with pytest.raises(TransportError) as exc_info:
                fetcher.fetch_quote("IBM")

        assert exc_info.value.status_code == 429

    def test_network_error_is_transport_error(self, fetcher: YFinanceFetcher) -> None:
        """Test OS-level network errors are transport errors."""
        ticker = make_ticker()
        ticker.history.side_effect = ConnectionError("reset by peer")
        with patch("src.data.fetchers.yfinance_fetcher.yf.Ticker", return_value=ticker):
            with pytest.raises(TransportError):
                fetcher.fetch_quote("IBM")
