"""Ticker status enumeration."""

from enum import Enum


class TickerStatus(str, Enum):
    """Classification state of a symbol in the ledger."""

    UNVALIDATED = "unvalidated"
    ACTIVE = "active"
    DELISTED = "delisted"


class DelistReason(str, Enum):
    """Why a lookup produced a delisted verdict."""

    NO_PRICE = "no_price"
    UNRECOGNIZED_EXCHANGE = "unrecognized_exchange"
    NOT_FOUND = "not_found"
    NO_RESULT = "no_result"
    SCHEMA_VALIDATION = "schema_validation"

    @property
    def sentinel(self) -> str:
        """Upper-case marker stored in the ledger's exchange column."""
        return self.value.upper()
