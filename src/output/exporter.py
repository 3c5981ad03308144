"""Ledger exports: JSON documents, flat status lists and a CSV dump."""

import logging
from collections import Counter
from pathlib import Path

from config.settings_pydantic import settings
from src.data.ledger import TickerLedger
from src.data.models.ledger_entry import LedgerEntry, LedgerStats
from src.data.models.ticker_status import TickerStatus
from src.data.types import ExportRecord
from src.exceptions import StorageError
from src.output.csv_writer import CSVWriter
from src.output.json_writer import JSONWriter
from src.utils.date_utils import format_timestamp, utc_now

logger = logging.getLogger("alltickers")

EXPORT_FORMATS = ("json", "csv", "all")
CSV_FIELDS = ("symbol", "status", "price", "exchange", "currency", "last_checked")

ACTIVE_FILE = "active_tickers.json"
DELISTED_FILE = "delisted_tickers.json"
MASTER_LIST_FILE = "master-list.json"
STATUS_FILE = "tickers_status.txt"
CSV_FILE = "tickers.csv"


class LedgerExporter:
    """Writes ledger contents to the output directory. Reads the ledger only."""

    def __init__(self, ledger: TickerLedger, output_dir: Path | str | None = None) -> None:
        self.ledger = ledger
        self.output_dir = Path(output_dir or settings.output_dir)

    def export(self, fmt: str = "all") -> list[Path]:
        """Export in the given format.

        Args:
            fmt: ``json``, ``csv`` or ``all``.

        Returns:
            Paths of the files written.

        Raises:
            ValueError: If the format is unknown.
            StorageError: If a file cannot be written.
        """
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unknown export format: {fmt}. Available: {', '.join(EXPORT_FORMATS)}")

        written: list[Path] = []
        try:
            if fmt in ("json", "all"):
                written.extend(self.export_json())
            if fmt in ("csv", "all"):
                written.append(self.export_csv())
        except OSError as e:
            raise StorageError(f"Export to {self.output_dir} failed: {e}") from e
        return written

    def export_json(self) -> list[Path]:
        """Write the active/delisted documents, master list and status list."""
        stats = self.ledger.stats()
        active = list(self.ledger.iter_entries(TickerStatus.ACTIVE))
        delisted_symbols = list(self.ledger.list_by_status(TickerStatus.DELISTED))
        metadata = {"export_date": format_timestamp(utc_now()), "description": "All-tickers validation results"}
        statistics = _statistics(stats, active)

        active_path = self.output_dir / ACTIVE_FILE
        JSONWriter(active_path).write(
            {
                "metadata": {**metadata, "export_type": "active"},
                "statistics": statistics,
                "exchanges": _exchange_breakdown(active),
                "tickers": [_record(entry) for entry in active],
            }
        )

        delisted_path = self.output_dir / DELISTED_FILE
        JSONWriter(delisted_path).write(
            {
                "metadata": {**metadata, "export_type": "delisted"},
                "statistics": statistics,
                "tickers": [
                    _record(entry) for entry in self.ledger.iter_entries(TickerStatus.DELISTED)
                ],
            }
        )

        active_symbols = [entry.symbol for entry in active]
        master = sorted(
            [(symbol, True) for symbol in active_symbols] + [(symbol, False) for symbol in delisted_symbols]
        )
        master_path = self.output_dir / MASTER_LIST_FILE
        JSONWriter(master_path).write([{symbol: is_active} for symbol, is_active in master])

        status_path = self.output_dir / STATUS_FILE
        status_path.write_text(
            ",".join(f'"{symbol}:{"ACTIVE" if is_active else "DELISTED"}"' for symbol, is_active in master),
            encoding="utf-8",
        )
        logger.info(f"Wrote {len(master)} statuses to {status_path}")

        return [active_path, delisted_path, master_path, status_path]

    def export_csv(self) -> Path:
        """Write one CSV row per ledger entry, unvalidated rows included."""
        path = self.output_dir / CSV_FILE
        CSVWriter(path).write((entry.to_dict() for entry in self.ledger.iter_entries()), CSV_FIELDS)
        return path


def _record(entry: LedgerEntry) -> ExportRecord:
    if entry.status is TickerStatus.ACTIVE:
        return {
            "ticker": entry.symbol,
            "active": True,
            "price": entry.price,
            "exchange": entry.exchange,
            "currency": entry.currency,
        }
    return {"ticker": entry.symbol, "active": False, "reason": entry.reason}


def _statistics(stats: LedgerStats, active: list[LedgerEntry]) -> dict[str, object]:
    prices = [entry.price for entry in active if entry.price is not None]
    return {
        "total": stats.total,
        "active": stats.active,
        "delisted": stats.delisted,
        "unvalidated": stats.unvalidated,
        "validated": stats.validated,
        "active_rate": round(stats.active / stats.validated * 100, 1) if stats.validated else 0.0,
        "price": {
            "average": round(sum(prices) / len(prices), 2) if prices else None,
            "minimum": min(prices) if prices else None,
            "maximum": max(prices) if prices else None,
        },
    }


def _exchange_breakdown(active: list[LedgerEntry]) -> list[dict[str, object]]:
    counts = Counter(entry.exchange for entry in active if entry.exchange)
    return [{"name": name, "ticker_count": count} for name, count in counts.most_common()]
