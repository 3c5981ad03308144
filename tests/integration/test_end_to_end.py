"""End-to-end test of a short live scan."""

from pathlib import Path

import pytest

from src.data.checkpoint import CheckpointStore
from src.data.fetchers.chart_fetcher import YahooChartFetcher
from src.data.ledger import TickerLedger
from src.output.exporter import LedgerExporter
from src.runner.batch_runner import BatchRunner
from src.runner.config import RunnerConfig
from src.runner.models import RunState
from src.validation.validator import RemoteValidator


@pytest.mark.integration
class TestEndToEnd:
    """Scan the first few symbols against Yahoo and export the result."""

    def test_scan_first_symbols(self, tmp_path: Path) -> None:
        """Test a live scan of A-E records a verdict for each symbol."""
        ledger = TickerLedger(tmp_path / "tickers.db")
        checkpoints = CheckpointStore(tmp_path / "checkpoint.json")
        config = RunnerConfig(request_delay_ms=500, long_break_interval_minutes=0, error_cooldown_seconds=5)
        fetcher = YahooChartFetcher(timeout=10.0)

        try:
            runner = BatchRunner(ledger, RemoteValidator(fetcher), checkpoints, config=config, stop_index=5)
            summary = runner.run()
        finally:
            fetcher.close()

        assert summary.state in (RunState.COMPLETED, RunState.PAUSED)
        stats = ledger.stats()
        assert stats.validated + summary.unresolved == 5
        assert ledger.get("A") is None or ledger.get("A").is_validated

        paths = LedgerExporter(ledger, tmp_path / "exports").export("all")
        assert all(path.exists() for path in paths)
