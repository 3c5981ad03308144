"""Remote validator: one provider lookup mapped to an active/delisted verdict."""

import logging
from collections.abc import Iterable

from config.settings_pydantic import settings
from src.data.fetchers.base_fetcher import BaseFetcher
from src.data.models.quote import Quote, QuoteNotFound
from src.data.models.ticker_status import DelistReason
from src.data.models.verdict import ActiveVerdict, DelistedVerdict
from src.exceptions import SchemaValidationError
from src.utils.decorators import retry
from src.validation.exchanges import ExchangeAllowList

logger = logging.getLogger("alltickers")


class RemoteValidator:
    """Classifies symbols through a quote fetcher.

    Policy:

    * a usable price on a recognized exchange is ``active``;
    * a known symbol without a price, or on another exchange, is ``delisted``;
    * "not found" answers are ``delisted``;
    * payloads that keep failing schema validation are ``delisted`` after
      ``schema_retry_attempts`` tries;
    * ``TransportError`` is never turned into a verdict and propagates to
      the caller, which decides whether to retry.

    The validator keeps no state between calls, so one instance can serve
    many worker threads.
    """

    def __init__(
        self,
        fetcher: BaseFetcher,
        recognized_exchanges: Iterable[str] | ExchangeAllowList | None = None,
        schema_retry_attempts: int | None = None,
        schema_retry_delay: float | None = None,
    ) -> None:
        """Initialize validator.

        Args:
            fetcher: Quote fetcher issuing the provider lookups.
            recognized_exchanges: Exchange-name substrings counted as tradeable.
            schema_retry_attempts: Attempts for schema validation failures.
            schema_retry_delay: Seconds between schema retries.
        """
        self.fetcher = fetcher
        if isinstance(recognized_exchanges, ExchangeAllowList):
            self.exchanges = recognized_exchanges
        else:
            self.exchanges = ExchangeAllowList(recognized_exchanges)
        self.schema_retry_attempts = (
            schema_retry_attempts if schema_retry_attempts is not None else settings.schema_retry_attempts
        )
        self.schema_retry_delay = (
            schema_retry_delay if schema_retry_delay is not None else settings.schema_retry_delay
        )
        self._fetch = retry(
            max_attempts=self.schema_retry_attempts,
            delay=self.schema_retry_delay,
            backoff=1.0,
            exceptions=(SchemaValidationError,),
        )(self.fetcher.fetch_quote)

    def validate(self, symbol: str) -> ActiveVerdict | DelistedVerdict:
        """Validate one symbol.

        Args:
            symbol: Stock ticker symbol.

        Returns:
            ActiveVerdict or DelistedVerdict.

        Raises:
            TransportError: If the lookup failed at the network/HTTP level.
        """
        try:
            quote = self._fetch(symbol)
        except SchemaValidationError as e:
            logger.debug(f"{symbol}: schema validation failed {self.schema_retry_attempts}x, treating as delisted")
            return DelistedVerdict(symbol=symbol, reason=DelistReason.SCHEMA_VALIDATION, detail=str(e))

        return self.classify(quote)

    def classify(self, quote: Quote) -> ActiveVerdict | DelistedVerdict:
        """Map a provider response to a verdict."""
        if isinstance(quote, QuoteNotFound):
            return DelistedVerdict(symbol=quote.symbol, reason=DelistReason.NOT_FOUND, detail=quote.detail)

        if not quote.exchange and not quote.exchange_code:
            return DelistedVerdict(symbol=quote.symbol, reason=DelistReason.NO_RESULT)

        if not self.exchanges.matches(quote.exchange, quote.exchange_code):
            return DelistedVerdict(
                symbol=quote.symbol,
                reason=DelistReason.UNRECOGNIZED_EXCHANGE,
                detail=quote.exchange or quote.exchange_code,
            )

        if quote.price is None or quote.price <= 0:
            return DelistedVerdict(symbol=quote.symbol, reason=DelistReason.NO_PRICE)

        return ActiveVerdict(
            symbol=quote.symbol,
            price=quote.price,
            exchange=quote.exchange or quote.exchange_code,
            currency=quote.currency or "USD",
        )

    def refresh_session(self) -> None:
        """Warm up the provider session (called by runners, not per lookup)."""
        self.fetcher.refresh_session()
