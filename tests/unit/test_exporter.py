"""Unit tests for ledger exports."""

import csv
import json
from pathlib import Path

import pytest

from src.data.ledger import TickerLedger
from src.data.models.ticker_status import TickerStatus
from src.output.exporter import LedgerExporter


class TestLedgerExporter:
    """Tests for LedgerExporter."""

    @pytest.fixture
    def populated(self, ledger: TickerLedger) -> TickerLedger:
        ledger.upsert("B", TickerStatus.ACTIVE, price=20.0, exchange="NYSE")
        ledger.upsert("A", TickerStatus.ACTIVE, price=10.0, exchange="NasdaqGS")
        ledger.upsert("C", TickerStatus.DELISTED, exchange="NOT_FOUND")
        ledger.seed_unvalidated(["D"])
        return ledger

    def test_json_exports(self, populated: TickerLedger, tmp_path: Path) -> None:
        """Test the JSON documents and status lists."""
        out = tmp_path / "exports"
        paths = LedgerExporter(populated, out).export("json")

        assert {p.name for p in paths} == {
            "active_tickers.json",
            "delisted_tickers.json",
            "master-list.json",
            "tickers_status.txt",
        }

        active = json.loads((out / "active_tickers.json").read_text(encoding="utf-8"))
        assert [t["ticker"] for t in active["tickers"]] == ["A", "B"]
        assert active["tickers"][0]["price"] == 10.0
        assert active["statistics"]["validated"] == 3
        assert active["statistics"]["unvalidated"] == 1
        assert {e["name"] for e in active["exchanges"]} == {"NYSE", "NasdaqGS"}

        delisted = json.loads((out / "delisted_tickers.json").read_text(encoding="utf-8"))
        assert delisted["tickers"] == [{"ticker": "C", "active": False, "reason": "NOT_FOUND"}]

        master = json.loads((out / "master-list.json").read_text(encoding="utf-8"))
        assert master == [{"A": True}, {"B": True}, {"C": False}]

        status = (out / "tickers_status.txt").read_text(encoding="utf-8")
        assert status == '"A:ACTIVE","B:ACTIVE","C:DELISTED"'

    def test_csv_export(self, populated: TickerLedger, tmp_path: Path) -> None:
        """Test the CSV holds every row, unvalidated included."""
        path = LedgerExporter(populated, tmp_path).export_csv()

        with open(path, encoding="utf-8", newline="") as f:
            rows = list(csv.DictReader(f))

        assert [r["symbol"] for r in rows] == ["A", "B", "C", "D"]
        assert rows[2]["status"] == "delisted"
        assert rows[2]["price"] == ""
        assert rows[3]["status"] == "unvalidated"

    def test_empty_ledger(self, ledger: TickerLedger, tmp_path: Path) -> None:
        """Test an empty ledger still writes empty exports."""
        LedgerExporter(ledger, tmp_path).export("all")

        assert json.loads((tmp_path / "master-list.json").read_text(encoding="utf-8")) == []
        assert (tmp_path / "tickers_status.txt").read_text(encoding="utf-8") == ""

    def test_unknown_format(self, ledger: TickerLedger, tmp_path: Path) -> None:
        """Test unknown formats are rejected."""
        with pytest.raises(ValueError):
            LedgerExporter(ledger, tmp_path).export("xml")
