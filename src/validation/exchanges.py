"""Recognized exchange allow-list."""

from collections.abc import Iterable

from config.settings_pydantic import settings


class ExchangeAllowList:
    """Case-insensitive substring match against recognized exchange names."""

    def __init__(self, names: Iterable[str] | None = None) -> None:
        chosen = settings.recognized_exchanges if names is None else names
        self.names = tuple(name.strip() for name in chosen if name and name.strip())
        self._needles = tuple(name.lower() for name in self.names)

    def matches(self, *exchanges: str | None) -> bool:
        """Whether any of the given exchange names contains a recognized name."""
        for exchange in exchanges:
            if not exchange:
                continue
            haystack = exchange.lower()
            if any(needle in haystack for needle in self._needles):
                return True
        return False

    def __contains__(self, exchange: str | None) -> bool:
        return self.matches(exchange)

    def __repr__(self) -> str:
        return f"ExchangeAllowList({list(self.names)!r})"
