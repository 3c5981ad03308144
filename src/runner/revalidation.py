"""Revalidation pass over ledger rows of one status."""

import logging
import time
from collections.abc import Callable
from datetime import timedelta

from src.data.ledger import TickerLedger, freshness_of
from src.data.models.ticker_status import TickerStatus
from src.runner.base_runner import BaseRunner, WorkItem
from src.runner.config import RunnerConfig
from src.runner.models import RunState
from src.utils.date_utils import utc_now
from src.validation.validator import RemoteValidator

logger = logging.getLogger("alltickers")

_LOOKUP_BLOCK_SIZE = 500


class RevalidationRunner(BaseRunner):
    """Re-checks every ledger row with a given status, in symbol order.

    Rows checked inside the freshness window are skipped, so an interrupted
    pass picks up where it stopped when run again. Transport errors never
    change a row; the row stays stale and is retried by the next pass.
    """

    def __init__(
        self,
        ledger: TickerLedger,
        validator: RemoteValidator,
        status: TickerStatus | str = TickerStatus.ACTIVE,
        config: RunnerConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(ledger, validator, config=config, clock=clock)
        self.status = TickerStatus(status)
        self._failed: set[str] = set()

    @property
    def freshness_window(self) -> timedelta:
        return timedelta(hours=self.config.freshness_window_hours)

    async def _execute(self, limit: int | None, dry_run: bool) -> RunState:
        # Snapshot the symbol list so no read transaction stays open during the pass.
        symbols = list(self.ledger.list_by_status(self.status))
        self.summary.total = len(symbols)
        self._failed = set()
        started_at = utc_now()
        logger.info(
            f"Revalidating {len(symbols)} {self.status.value} symbols "
            f"(skipping those checked within {self.config.freshness_window_hours}h)"
        )

        preview: list[str] = []
        issued = 0
        state = RunState.COMPLETED

        for block_start in range(0, len(symbols), _LOOKUP_BLOCK_SIZE):
            if self.stop_requested:
                state = RunState.PAUSED
                break

            block = symbols[block_start : block_start + _LOOKUP_BLOCK_SIZE]
            entries = self.ledger.get_many(block)
            due: list[WorkItem] = []
            for symbol in block:
                entry = entries.get(symbol)
                if entry is None or entry.status is not self.status:
                    continue
                if freshness_of(entry, self.freshness_window, started_at).is_recent:
                    self.summary.skipped += 1
                    continue
                due.append((None, symbol))

            if limit is not None:
                due = due[: max(limit - issued, 0)]

            if dry_run:
                self.summary.pending += len(due)
                preview.extend(symbol for _, symbol in due[: 10 - len(preview)])
            else:
                state = await self._revalidate(due)
                if state is not RunState.RUNNING:
                    break
                state = RunState.COMPLETED
            issued += len(due)

            if limit is not None and issued >= limit:
                logger.info(f"Reached limit of {limit} lookups")
                state = RunState.PAUSED
                break

        self.summary.unresolved = len(self._failed)
        self.summary.processed = self.summary.validated + self.summary.skipped

        if dry_run:
            logger.info(
                f"Dry run: {self.summary.pending} {self.status.value} symbols due, "
                f"{self.summary.skipped} fresh. First: {', '.join(preview) or '-'}"
            )
            return RunState.IDLE

        logger.info(
            f"Revalidation {state.value}: {self.summary.newly_active} newly active, "
            f"{self.summary.newly_delisted} newly delisted"
        )
        return state

    async def _revalidate(self, due: list[WorkItem]) -> RunState:
        """Run ``due`` through the pool; RUNNING means the block finished."""
        size = self.config.concurrent_requests
        for start in range(0, len(due), size):
            await self._take_breaks()
            if self.stop_requested:
                return RunState.PAUSED
            if not await self._process_chunk(due[start : start + size]):
                return RunState.FATAL_STOPPED
            if self.stop_requested:
                return RunState.PAUSED
        return RunState.RUNNING

    def _on_resolved(self, item: WorkItem, verdict: object) -> None:
        _, symbol = item
        self._failed.discard(symbol)
        if verdict.status is self.status:
            return

        if verdict.status is TickerStatus.ACTIVE:
            self.summary.newly_active += 1
            logger.info(f"{symbol}: {self.status.value} -> active")
        else:
            self.summary.newly_delisted += 1
            logger.info(f"{symbol}: {self.status.value} -> delisted")

    def _on_unresolved(self, item: WorkItem) -> None:
        _, symbol = item
        self._failed.add(symbol)
