"""SQLite classification ledger.

One row per symbol. ``upsert`` (and its verdict/bulk-seed forms below) is
the only way rows change; every other component reads through this class.
"""

import logging
import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path

from config.settings_pydantic import settings
from src.data.models.ledger_entry import FreshnessCheck, LedgerEntry, LedgerStats
from src.data.models.ticker_status import TickerStatus
from src.data.models.verdict import ActiveVerdict, Verdict
from src.exceptions import StorageError
from src.utils.date_utils import format_timestamp, hours_between, parse_timestamp, utc_now

logger = logging.getLogger("alltickers")

DEFAULT_FRESHNESS_WINDOW = timedelta(hours=settings.freshness_window_hours)

_COLUMNS = "symbol, status, price, exchange, currency, last_checked, created_at, updated_at"

# SQLite caps bound parameters per statement; stay well below it.
_MAX_IN_CLAUSE = 500


class TickerLedger:
    """SQLite-backed store of per-symbol classification state."""

    def __init__(self, db_path: Path | str | None = None, timeout: float = 30.0) -> None:
        """Initialize ledger.

        Args:
            db_path: Path to SQLite database file. If None, uses settings default.
            timeout: Seconds to wait on a locked database before failing.

        Raises:
            StorageError: If the database cannot be created or opened.
        """
        self.db_path = Path(db_path or settings.ledger_path)
        self.timeout = timeout
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create ledger directory {self.db_path.parent}: {e}") from e
        self._init_db()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a short-lived connection; commit on success, always close."""
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open ledger {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        except sqlite3.Error as e:
            raise StorageError(f"Ledger operation failed on {self.db_path}: {e}") from e
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS tickers (
                    symbol TEXT PRIMARY KEY,
                    status TEXT NOT NULL
                        CHECK (status IN ('unvalidated', 'active', 'delisted')),
                    price REAL,
                    exchange TEXT,
                    currency TEXT,
                    last_checked TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """,
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_tickers_status
                ON tickers(status, symbol)
                """,
            )

    def upsert(
        self,
        symbol: str,
        status: TickerStatus | str,
        price: float | None = None,
        exchange: str | None = None,
        currency: str | None = None,
        checked_at: datetime | None = None,
    ) -> None:
        """Insert or update one symbol's classification.

        A delisted row never keeps a price or currency, and an unvalidated
        row never gets a ``last_checked`` timestamp.

        Args:
            symbol: Ticker symbol.
            status: New status.
            price: Regular market price (active only).
            exchange: Exchange name, or reason sentinel for delisted rows.
            currency: Quote currency (active only, defaults to USD).
            checked_at: Validation time; defaults to now.

        Raises:
            StorageError: If the write fails.
        """
        status = TickerStatus(status)
        now = utc_now()
        checked = format_timestamp(checked_at or now)

        if status is TickerStatus.ACTIVE:
            currency = currency or "USD"
        else:
            price = None
            currency = None
        if status is TickerStatus.UNVALIDATED:
            checked = None

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO tickers
                (symbol, status, price, exchange, currency, last_checked, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(symbol) DO UPDATE SET
                    status = excluded.status,
                    price = excluded.price,
                    exchange = excluded.exchange,
                    currency = excluded.currency,
                    last_checked = excluded.last_checked,
                    updated_at = excluded.updated_at
                """,
                (
                    symbol.upper(),
                    status.value,
                    price,
                    exchange,
                    currency,
                    checked,
                    format_timestamp(now),
                    format_timestamp(now),
                ),
            )

        logger.debug(f"{symbol} -> {status.value} ({exchange or 'Unknown'})")

    def record(self, verdict: Verdict, checked_at: datetime | None = None) -> None:
        """Upsert the outcome of a validation attempt."""
        if isinstance(verdict, ActiveVerdict):
            self.upsert(
                verdict.symbol,
                TickerStatus.ACTIVE,
                price=verdict.price,
                exchange=verdict.exchange,
                currency=verdict.currency,
                checked_at=checked_at,
            )
        else:
            self.upsert(
                verdict.symbol,
                TickerStatus.DELISTED,
                exchange=verdict.reason.sentinel,
                checked_at=checked_at,
            )

    def seed_unvalidated(self, symbols: Iterable[str]) -> int:
        """Insert symbols as unvalidated, leaving existing rows untouched.

        Args:
            symbols: Symbols to seed.

        Returns:
            Number of rows actually inserted.
        """
        now = format_timestamp(utc_now())
        rows = [(symbol.upper(), TickerStatus.UNVALIDATED.value, now, now) for symbol in symbols]
        if not rows:
            return 0

        with self._connect() as conn:
            before = conn.total_changes
            conn.executemany(
                """
                INSERT INTO tickers (symbol, status, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(symbol) DO NOTHING
                """,
                rows,
            )
            inserted = conn.total_changes - before

        return inserted

    def get(self, symbol: str) -> LedgerEntry | None:
        """Get one symbol's entry.

        Args:
            symbol: Ticker symbol.

        Returns:
            LedgerEntry if the symbol has a row, None otherwise.
        """
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM tickers WHERE symbol = ?",
                (symbol.upper(),),
            ).fetchone()

        return LedgerEntry(**dict(row)) if row else None

    def get_many(self, symbols: Iterable[str]) -> dict[str, LedgerEntry]:
        """Get entries for several symbols at once, keyed by symbol."""
        wanted = [symbol.upper() for symbol in symbols]
        entries: dict[str, LedgerEntry] = {}

        with self._connect() as conn:
            for start in range(0, len(wanted), _MAX_IN_CLAUSE):
                chunk = wanted[start : start + _MAX_IN_CLAUSE]
                placeholders = ", ".join("?" for _ in chunk)
                cursor = conn.execute(
                    f"SELECT {_COLUMNS} FROM tickers WHERE symbol IN ({placeholders})",
                    chunk,
                )
                for row in cursor:
                    entry = LedgerEntry(**dict(row))
                    entries[entry.symbol] = entry

        return entries

    def list_by_status(self, status: TickerStatus | str) -> Iterator[str]:
        """Yield symbols with the given status, ordered by symbol.

        Each call reads a fresh snapshot; it is not a resumable cursor.
        """
        status = TickerStatus(status)
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT symbol FROM tickers WHERE status = ? ORDER BY symbol",
                (status.value,),
            )
            for row in cursor:
                yield row["symbol"]

    def iter_entries(self, status: TickerStatus | str | None = None) -> Iterator[LedgerEntry]:
        """Yield full entries, optionally filtered by status, ordered by symbol."""
        with self._connect() as conn:
            if status is None:
                cursor = conn.execute(f"SELECT {_COLUMNS} FROM tickers ORDER BY symbol")
            else:
                cursor = conn.execute(
                    f"SELECT {_COLUMNS} FROM tickers WHERE status = ? ORDER BY symbol",
                    (TickerStatus(status).value,),
                )
            for row in cursor:
                yield LedgerEntry(**dict(row))

    def count_by_status(self, status: TickerStatus | str) -> int:
        """Count rows with the given status."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS n FROM tickers WHERE status = ?",
                (TickerStatus(status).value,),
            ).fetchone()
        return int(row["n"])

    def stats(self) -> LedgerStats:
        """Aggregate counts over the whole ledger."""
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT
                    COUNT(*) AS total,
                    SUM(CASE WHEN status = 'active' THEN 1 ELSE 0 END) AS active,
                    SUM(CASE WHEN status = 'delisted' THEN 1 ELSE 0 END) AS delisted,
                    SUM(CASE WHEN status = 'unvalidated' THEN 1 ELSE 0 END) AS unvalidated
                FROM tickers
                """,
            ).fetchone()

        active = row["active"] or 0
        delisted = row["delisted"] or 0
        return LedgerStats(
            total=row["total"] or 0,
            active=active,
            delisted=delisted,
            unvalidated=row["unvalidated"] or 0,
            validated=active + delisted,
        )

    def was_checked_within(
        self,
        symbol: str,
        window: timedelta = DEFAULT_FRESHNESS_WINDOW,
        now: datetime | None = None,
    ) -> FreshnessCheck:
        """Check whether a symbol was validated inside the freshness window.

        Args:
            symbol: Ticker symbol.
            window: Freshness window (default 24 hours).
            now: Reference time; defaults to the current time.

        Returns:
            FreshnessCheck with the last check time and elapsed hours.
        """
        entry = self.get(symbol)
        if entry is None or entry.last_checked is None:
            return FreshnessCheck(is_recent=False)
        return freshness_of(entry, window, now)

    def recent_activity(self, limit: int = 10) -> list[LedgerEntry]:
        """Most recently updated entries, newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM tickers ORDER BY updated_at DESC, symbol LIMIT ?",
                (limit,),
            ).fetchall()
        return [LedgerEntry(**dict(row)) for row in rows]

    def reset(self) -> None:
        """Delete every row. The only path that removes entries."""
        with self._connect() as conn:
            conn.execute("DELETE FROM tickers")
        logger.info(f"Cleared all ledger entries in {self.db_path}")


def freshness_of(
    entry: LedgerEntry,
    window: timedelta = DEFAULT_FRESHNESS_WINDOW,
    now: datetime | None = None,
) -> FreshnessCheck:
    """Freshness of an already loaded entry."""
    if entry.last_checked is None:
        return FreshnessCheck(is_recent=False)

    reference = parse_timestamp(now) if now else utc_now()
    hours_since = hours_between(entry.last_checked, reference)
    return FreshnessCheck(
        is_recent=hours_since < window.total_seconds() / 3600.0,
        last_checked=entry.last_checked,
        hours_since=round(hours_since, 2),
    )
