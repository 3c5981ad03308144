"""Unit tests for the bulk generator."""

from src.data.ledger import TickerLedger
from src.data.models.ticker_status import TickerStatus
from src.runner.generator import TickerGenerator


class TestTickerGenerator:
    """Tests for TickerGenerator."""

    def test_populate(self, ledger: TickerLedger) -> None:
        """Test every symbol is seeded as unvalidated."""
        result = TickerGenerator(ledger, batch_size=100).populate(max_length=2)

        assert result.total == 702
        assert result.inserted == 702
        stats = ledger.stats()
        assert stats.unvalidated == 702
        assert stats.validated == 0
        assert ledger.get("ZZ").status == TickerStatus.UNVALIDATED

    def test_refuses_non_empty_ledger(self, ledger: TickerLedger) -> None:
        """Test seeding needs include_existing once the ledger has rows."""
        ledger.upsert("A", TickerStatus.ACTIVE, price=1.0, exchange="NYSE")

        result = TickerGenerator(ledger).populate(max_length=1)

        assert result.refused
        assert result.inserted == 0
        assert ledger.stats().total == 1

    def test_include_existing_keeps_classified_rows(self, ledger: TickerLedger) -> None:
        """Test existing rows are skipped, never downgraded."""
        ledger.upsert("A", TickerStatus.ACTIVE, price=1.0, exchange="NYSE")

        result = TickerGenerator(ledger).populate(max_length=1, include_existing=True)

        assert result.inserted == 25
        assert result.existing == 1
        assert ledger.get("A").status == TickerStatus.ACTIVE

    def test_dry_run(self, ledger: TickerLedger) -> None:
        """Test dry run reports the count without writing."""
        result = TickerGenerator(ledger).populate(max_length=3, dry_run=True)

        assert result.total == 18278
        assert result.inserted == 0
        assert ledger.stats().total == 0
