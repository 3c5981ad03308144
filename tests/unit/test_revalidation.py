"""Unit tests for the revalidation runner."""

from collections.abc import Callable
from datetime import timedelta

import pytest
from conftest import ScriptedFetcher, active_quote, not_found

from src.data.fetchers.base_fetcher import BaseFetcher
from src.data.ledger import TickerLedger
from src.data.models.ticker_status import TickerStatus
from src.exceptions import TransportError
from src.runner.config import RunnerConfig
from src.runner.models import RunState
from src.runner.revalidation import RevalidationRunner
from src.utils.date_utils import utc_now
from src.validation.validator import RemoteValidator

ValidatorFactory = Callable[[BaseFetcher], RemoteValidator]


class TestRevalidationRunner:
    """Tests for RevalidationRunner."""

    @pytest.fixture
    def build(
        self, ledger: TickerLedger, fast_config: RunnerConfig, make_validator: ValidatorFactory
    ) -> Callable[..., RevalidationRunner]:
        def factory(fetcher: BaseFetcher, status: str = "active", **overrides: object) -> RevalidationRunner:
            config = fast_config.model_copy(update=overrides)
            return RevalidationRunner(ledger, make_validator(fetcher), status=status, config=config)

        return factory

    @pytest.fixture
    def stale(self) -> timedelta:
        return timedelta(hours=48)

    def add_active(self, ledger: TickerLedger, symbol: str, age: timedelta) -> None:
        ledger.upsert(symbol, TickerStatus.ACTIVE, price=10.0, exchange="NYSE", checked_at=utc_now() - age)

    def test_flips_and_freshness(
        self, build: Callable[..., RevalidationRunner], ledger: TickerLedger, stale: timedelta
    ) -> None:
        """Test stale rows are re-checked, fresh rows skipped, flips counted."""
        self.add_active(ledger, "A", stale)
        self.add_active(ledger, "B", stale)
        self.add_active(ledger, "C", timedelta(hours=1))
        fetcher = ScriptedFetcher({"A": active_quote("A", price=11.0), "B": not_found("B")})

        summary = build(fetcher).run()

        assert summary.state == RunState.COMPLETED
        assert fetcher.calls == ["A", "B"]
        assert summary.skipped == 1
        assert summary.validated == 2
        assert summary.newly_delisted == 1
        assert summary.newly_active == 0
        assert ledger.get("A").price == 11.0
        assert ledger.get("B").status == TickerStatus.DELISTED
        assert list(ledger.list_by_status(TickerStatus.ACTIVE)) == ["A", "C"]

    def test_second_pass_skips_fresh_rows(
        self, build: Callable[..., RevalidationRunner], ledger: TickerLedger, stale: timedelta
    ) -> None:
        """Test a repeated pass only re-checks what the first pass missed."""
        self.add_active(ledger, "A", stale)
        build(ScriptedFetcher(default=active_quote)).run()

        fetcher = ScriptedFetcher(default=active_quote)
        summary = build(fetcher).run()

        assert fetcher.calls == []
        assert summary.skipped == 1

    def test_transport_error_leaves_row_untouched(
        self, build: Callable[..., RevalidationRunner], ledger: TickerLedger, stale: timedelta
    ) -> None:
        """Test a transport failure never marks an active row delisted."""
        self.add_active(ledger, "A", stale)
        before = ledger.get("A")
        fetcher = ScriptedFetcher({"A": TransportError("A", "timed out")})

        summary = build(fetcher).run()

        after = ledger.get("A")
        assert after.status == TickerStatus.ACTIVE
        assert after.last_checked == before.last_checked
        assert summary.unresolved == 1
        assert summary.transport_errors == 1
        assert summary.state == RunState.COMPLETED

    def test_unvalidated_rows(self, build: Callable[..., RevalidationRunner], ledger: TickerLedger) -> None:
        """Test seeded rows are validated and reported as flips."""
        ledger.seed_unvalidated(["A", "B"])
        fetcher = ScriptedFetcher({"A": active_quote("A")})

        summary = build(fetcher, status="unvalidated").run()

        assert summary.newly_active == 1
        assert summary.newly_delisted == 1
        assert ledger.stats().unvalidated == 0

    def test_delisted_row_comes_back(
        self, build: Callable[..., RevalidationRunner], ledger: TickerLedger, stale: timedelta
    ) -> None:
        """Test a delisted row that trades again becomes active."""
        ledger.upsert("Z", TickerStatus.DELISTED, exchange="NOT_FOUND", checked_at=utc_now() - stale)

        summary = build(ScriptedFetcher(default=active_quote), status="delisted").run()

        assert summary.newly_active == 1
        assert ledger.get("Z").status == TickerStatus.ACTIVE

    def test_limit_and_dry_run(
        self, build: Callable[..., RevalidationRunner], ledger: TickerLedger, stale: timedelta
    ) -> None:
        """Test limit pauses the pass and dry run issues no lookups."""
        for symbol in ["A", "B", "C"]:
            self.add_active(ledger, symbol, stale)

        dry = ScriptedFetcher(default=active_quote)
        summary = build(dry).run(dry_run=True)
        assert summary.pending == 3
        assert summary.state == RunState.IDLE
        assert dry.calls == []

        fetcher = ScriptedFetcher(default=active_quote)
        summary = build(fetcher).run(limit=2)
        assert fetcher.calls == ["A", "B"]
        assert summary.state == RunState.PAUSED

    def test_fatal_stop(
        self, build: Callable[..., RevalidationRunner], ledger: TickerLedger, stale: timedelta
    ) -> None:
        """Test consecutive-error escalation applies to revalidation too."""
        for symbol in ["A", "B", "C", "D"]:
            self.add_active(ledger, symbol, stale)
        fetcher = ScriptedFetcher(default=lambda s: TransportError(s, "HTTP 503", status_code=503))

        summary = build(fetcher, max_consecutive_errors=2, max_escalations=1).run()

        assert summary.state == RunState.FATAL_STOPPED
        assert summary.escalations == 1
        assert ledger.count_by_status(TickerStatus.ACTIVE) == 4
