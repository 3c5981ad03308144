"""Exceptions raised by the classification pipeline.

Every error carries the symbol (or file) it concerns so log lines and
retry decisions never depend on shared state to know what failed.
"""


class AllTickersError(Exception):
    """Base exception for the ticker classification pipeline."""


class OutOfRangeError(AllTickersError, IndexError):
    """Raised when an enumerator index or symbol lies outside the domain."""


class TransportError(AllTickersError):
    """Raised when a provider lookup fails at the network or HTTP level.

    The outcome of the lookup is unknown, so it is never recorded as a
    verdict. The runner counts these toward consecutive-error escalation.
    """

    def __init__(
        self,
        symbol: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        self.symbol = symbol
        self.status_code = status_code
        super().__init__(f"{symbol}: {message}")


class SchemaValidationError(AllTickersError):
    """Raised when a provider payload does not match the expected shape."""

    def __init__(self, symbol: str, message: str) -> None:
        self.symbol = symbol
        super().__init__(f"{symbol}: {message}")


class StorageError(AllTickersError):
    """Raised when the ledger or checkpoint store cannot be read or written."""
