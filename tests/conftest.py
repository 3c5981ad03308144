"""Pytest configuration and fixtures."""

import threading
import time
from collections.abc import Callable
from pathlib import Path

import pytest

from src.data.checkpoint import CheckpointStore
from src.data.fetchers.base_fetcher import BaseFetcher
from src.data.ledger import TickerLedger
from src.data.models.quote import QuoteFound, QuoteNotFound
from src.runner.config import RunnerConfig
from src.validation.validator import RemoteValidator

Response = QuoteFound | QuoteNotFound | Exception


def active_quote(symbol: str, price: float = 12.5) -> QuoteFound:
    return QuoteFound(symbol=symbol, price=price, exchange="NasdaqGS", exchange_code="NMS", currency="USD")


def not_found(symbol: str) -> QuoteNotFound:
    return QuoteNotFound(symbol=symbol, status_code=404, detail="No data found, symbol may be delisted")


class ScriptedFetcher(BaseFetcher):
    """Fetcher answering from a per-symbol script.

    A script entry is a response, an exception to raise, or a list of
    those consumed one per call (the last one repeats). Symbols without a
    script answer ``default``.
    """

    def __init__(
        self,
        script: dict[str, Response | list[Response]] | None = None,
        default: Callable[[str], Response] = not_found,
        on_call: Callable[[str], None] | None = None,
        latency: float = 0.0,
    ) -> None:
        self.script = {symbol: list(v) if isinstance(v, list) else [v] for symbol, v in (script or {}).items()}
        self.default = default
        self.on_call = on_call
        self.latency = latency
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def fetch_quote(self, symbol: str) -> QuoteFound | QuoteNotFound:
        with self._lock:
            self.calls.append(symbol)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.latency:
                time.sleep(self.latency)
            if self.on_call is not None:
                self.on_call(symbol)

            steps = self.script.get(symbol)
            if steps is None:
                response = self.default(symbol)
            elif len(steps) > 1:
                response = steps.pop(0)
            else:
                response = steps[0]

            if isinstance(response, Exception):
                raise response
            return response
        finally:
            with self._lock:
                self.in_flight -= 1


@pytest.fixture
def ledger(tmp_path: Path) -> TickerLedger:
    """Create a ledger in a temporary directory."""
    return TickerLedger(tmp_path / "tickers.db")


@pytest.fixture
def checkpoints(tmp_path: Path) -> CheckpointStore:
    """Create a checkpoint store in a temporary directory."""
    return CheckpointStore(tmp_path / "checkpoint.json")


@pytest.fixture
def fast_config() -> RunnerConfig:
    """Runner config with every pause disabled."""
    return RunnerConfig(
        max_length=4,
        batch_size=10,
        concurrent_requests=1,
        request_delay_ms=0,
        error_cooldown_seconds=0,
        long_break_interval_minutes=0,
        long_break_seconds=0,
        session_refresh_interval=0,
        session_refresh_pause_seconds=0,
        archive_on_complete=False,
    )


@pytest.fixture
def make_validator() -> Callable[[BaseFetcher], RemoteValidator]:
    """Build validators without schema retry delays."""

    def factory(fetcher: BaseFetcher) -> RemoteValidator:
        return RemoteValidator(fetcher, schema_retry_attempts=3, schema_retry_delay=0)

    return factory
