"""Abstract base class for quote fetchers."""

import logging
from abc import ABC, abstractmethod

from src.data.models.quote import QuoteFound, QuoteNotFound
from src.exceptions import SchemaValidationError, TransportError

logger = logging.getLogger("alltickers")


class BaseFetcher(ABC):
    """Abstract base class for looking up one symbol at a quote provider."""

    #: Symbol used to warm up provider sessions.
    refresh_symbol: str = "AAPL"

    @abstractmethod
    def fetch_quote(self, symbol: str) -> QuoteFound | QuoteNotFound:
        """Issue exactly one lookup for a symbol.

        Args:
            symbol: Stock ticker symbol.

        Returns:
            QuoteFound if the provider knows the symbol, QuoteNotFound if it
            answered that the symbol does not exist.

        Raises:
            TransportError: On network failures, timeouts, or unexpected
                HTTP status codes.
            SchemaValidationError: If the payload has an unexpected shape.
        """
        pass

    def refresh_session(self) -> None:
        """Refresh provider cookies / crumbs with one warm-up lookup.

        Failures are logged and ignored; the next real lookup reports them.
        """
        logger.info(f"Refreshing provider session via {self.refresh_symbol}")
        try:
            self.fetch_quote(self.refresh_symbol)
        except (TransportError, SchemaValidationError) as e:
            logger.warning(f"Session refresh failed, continuing anyway: {e}")
        else:
            logger.info("Session refreshed")

    def close(self) -> None:
        """Release network resources held by the fetcher."""
