"""Integration tests for quote fetchers against the live provider."""

import pytest

from src.data.fetchers.chart_fetcher import YahooChartFetcher
from src.data.fetchers.yfinance_fetcher import YFinanceFetcher
from src.data.models.quote import QuoteFound, QuoteNotFound
from src.data.models.verdict import ActiveVerdict, DelistedVerdict
from src.validation.validator import RemoteValidator


@pytest.mark.integration
class TestYahooChartFetcher:
    """Integration tests for the chart endpoint fetcher."""

    def test_fetch_known_symbol(self) -> None:
        """Test a large listed company is found with a price."""
        fetcher = YahooChartFetcher(timeout=10.0)
        try:
            quote = fetcher.fetch_quote("AAPL")
        finally:
            fetcher.close()

        assert isinstance(quote, QuoteFound)
        assert quote.price is not None
        assert quote.price > 0

    def test_fetch_unknown_symbol(self) -> None:
        """Test a symbol nobody lists is not found."""
        fetcher = YahooChartFetcher(timeout=10.0)
        try:
            quote = fetcher.fetch_quote("QZXQZ")
        finally:
            fetcher.close()

        assert isinstance(quote, QuoteNotFound)

    def test_validate_known_symbol(self) -> None:
        """Test the validator classifies a listed company as active."""
        fetcher = YahooChartFetcher(timeout=10.0)
        try:
            verdict = RemoteValidator(fetcher).validate("MSFT")
        finally:
            fetcher.close()

        assert isinstance(verdict, ActiveVerdict)
        assert verdict.symbol == "MSFT"


@pytest.mark.integration
class TestYFinanceFetcher:
    """Integration tests for the yfinance fetcher."""

    def test_fetch_known_symbol(self) -> None:
        """Test fetching a listed company."""
        quote = YFinanceFetcher(timeout=10.0).fetch_quote("AAPL")

        assert isinstance(quote, QuoteFound)
        assert quote.symbol == "AAPL"
        assert quote.price is not None

    def test_validate_unknown_symbol(self) -> None:
        """Test an unknown symbol is delisted."""
        verdict = RemoteValidator(YFinanceFetcher(timeout=10.0)).validate("QZXQZ")
        assert isinstance(verdict, DelistedVerdict)
