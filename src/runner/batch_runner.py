"""Resumable walk over the whole symbol domain."""

import logging
import time
from collections.abc import Callable

from src.data.checkpoint import CheckpointStore
from src.data.ledger import TickerLedger
from src.data.models.checkpoint import Checkpoint
from src.data.models.ticker_status import TickerStatus
from src.exceptions import StorageError
from src.runner.base_runner import BaseRunner, WorkItem
from src.runner.config import RunnerConfig
from src.runner.models import RunState
from src.symbols.enumerator import SymbolEnumerator
from src.utils.date_utils import format_duration, utc_now
from src.validation.validator import RemoteValidator

logger = logging.getLogger("alltickers")

# Indices whose ledger rows are fetched with one query.
SCAN_BLOCK_SIZE = 500

DRY_RUN_PREVIEW = 10


class BatchRunner(BaseRunner):
    """Walks enumerator indices, validating every symbol not yet classified.

    The checkpoint records the next index to visit and how many indices
    below it are covered (classified in the ledger). It is saved every
    ``batch_size`` verdicts, always after the ledger writes it describes,
    so a crash can only cause re-validation, never a gap.

    Symbols that end up with no verdict (transport or ledger-write failure)
    hold the checkpoint at the earliest of them, so a stop resumes there.
    Indices covered above that point are counted only once it moves past
    them. Unresolved symbols are retried once at the end of the domain.
    Whatever is still unresolved keeps ``processed`` below ``total`` and
    the next run rescans from index 0, skipping everything the ledger
    already holds.
    """

    def __init__(
        self,
        ledger: TickerLedger,
        validator: RemoteValidator,
        checkpoints: CheckpointStore,
        config: RunnerConfig | None = None,
        on_checkpoint: Callable[[], None] | None = None,
        stop_index: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize batch runner.

        Args:
            ledger: Classification ledger.
            validator: Remote validator.
            checkpoints: Checkpoint store for resume state.
            config: Runner configuration.
            on_checkpoint: Called after each checkpoint when
                ``export_on_checkpoint`` is enabled.
            stop_index: Restrict the walk to indices below this value.
            clock: Monotonic clock used to schedule long breaks.
        """
        super().__init__(ledger, validator, config=config, clock=clock)
        self.checkpoints = checkpoints
        self.on_checkpoint = on_checkpoint
        self.enumerator = SymbolEnumerator(self.config.max_length, self.config.include_length5)
        self.total = self.enumerator.size if stop_index is None else min(stop_index, self.enumerator.size)
        self.checkpoint = Checkpoint(total=self.total)
        self._next_index = 0
        self._sweeping = False
        self._since_checkpoint = 0
        self._unresolved: dict[int, str] = {}
        # Covered indices above the earliest unresolved one, not yet counted
        self._ahead: dict[int, TickerStatus] = {}

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    async def _execute(self, limit: int | None, dry_run: bool) -> RunState:
        start = self._resume()
        self.summary.total = self.total
        self.summary.start_index = start
        self.summary.processed = self.checkpoint.processed
        if start is None:
            logger.info(f"Domain of {self.total} symbols already fully processed; nothing to do")
            return RunState.COMPLETED

        if dry_run:
            return self._dry_run(start, limit)

        logger.info(
            f"Starting at index {start} ({self.enumerator.symbol_at(start) if start < self.total else '-'}) "
            f"of {self.total} | concurrency {self.config.concurrent_requests} | "
            f"delay {self.config.request_delay_ms}ms"
        )
        self._next_index = start

        try:
            state = await self._walk(start, limit)
            if state is RunState.RUNNING:
                state = await self._finish()
        except BaseException:
            logger.error("Unexpected failure, flushing checkpoint before exiting")
            self._save_checkpoint()
            raise

        self.summary.end_index = self.checkpoint.current_index
        self.summary.processed = self.checkpoint.processed
        self.summary.unresolved = len(self._unresolved)
        return state

    def _resume(self) -> int | None:
        """Pick the start index from the stored checkpoint.

        Returns:
            Start index, or None when the domain was already covered.
        """
        stored = self.checkpoints.load()
        self._unresolved = {}
        self._ahead = {}

        if stored is None:
            self.checkpoint = Checkpoint(total=self.total)
            return 0

        if stored.is_complete and stored.current_index >= self.total:
            self.checkpoint = stored
            return None

        if stored.current_index < self.total:
            if stored.total != self.total:
                logger.info(f"Domain size changed from {stored.total} to {self.total}; resuming")
            self.checkpoint = stored.model_copy(update={"total": self.total})
            return stored.current_index

        logger.warning(
            f"Previous walk ended with {stored.total - stored.processed} unresolved symbols; rescanning from index 0"
        )
        self.checkpoint = Checkpoint(total=self.total)
        return 0

    async def _walk(self, start: int, limit: int | None) -> RunState:
        """Visit indices ``start..total``; RUNNING means the end was reached."""
        size = self.config.concurrent_requests
        issued = 0

        for block_start in range(start, self.total, SCAN_BLOCK_SIZE):
            if self.stop_requested:
                return self._pause_walk()

            block = list(self.enumerator.iter_range(block_start, min(block_start + SCAN_BLOCK_SIZE, self.total)))
            existing = self.ledger.get_many(symbol for _, symbol in block)
            pending: list[WorkItem] = []
            # Skipped while a chunk is filling; counted once its verdicts are in
            deferred: list[tuple[int, TickerStatus]] = []

            for index, symbol in block:
                entry = existing.get(symbol)
                if entry is not None and entry.is_validated:
                    self.summary.skipped += 1
                    if pending:
                        deferred.append((index, entry.status))
                    else:
                        self._cover(index, entry.status)
                        self._next_index = index + 1
                    continue

                if not pending:
                    await self._take_breaks()
                    if self.stop_requested:
                        return self._pause_walk()

                pending.append((index, symbol))
                issued += 1
                at_limit = limit is not None and issued >= limit
                if len(pending) < size and not at_limit:
                    continue

                state = await self._run_chunk(pending, index + 1, deferred)
                pending, deferred = [], []
                if state is not None:
                    return state
                if at_limit:
                    logger.info(f"Reached limit of {limit} lookups")
                    self._save_checkpoint()
                    return RunState.PAUSED

            if pending:
                state = await self._run_chunk(pending, block[-1][0] + 1, deferred)
                if state is not None:
                    return state
            else:
                self._next_index = block[-1][0] + 1

        return RunState.RUNNING

    async def _run_chunk(
        self,
        pending: list[WorkItem],
        next_index: int,
        deferred: list[tuple[int, TickerStatus]],
    ) -> RunState | None:
        """Process one chunk; a returned state ends the walk."""
        self._next_index = next_index
        healthy = await self._process_chunk(pending)
        for index, status in deferred:
            self._cover(index, status)

        if not healthy:
            self._save_checkpoint()
            return RunState.FATAL_STOPPED

        if self.stop_requested:
            return self._pause_walk()

        if self._since_checkpoint >= self.config.batch_size:
            self._save_checkpoint()
        return None

    def _pause_walk(self) -> RunState:
        self._save_checkpoint()
        logger.info(f"Paused at index {self.checkpoint.current_index}")
        return RunState.PAUSED

    async def _finish(self) -> RunState:
        """Retry unresolved symbols once, then close out the walk."""
        self._next_index = self.total
        self._sweeping = True
        self._settle(None)

        if self._unresolved:
            logger.info(f"Retrying {len(self._unresolved)} unresolved symbols")
            retry = sorted(self._unresolved.items())
            size = self.config.concurrent_requests
            for start in range(0, len(retry), size):
                await self._take_breaks()
                if self.stop_requested:
                    break
                if not await self._process_chunk(retry[start : start + size]):
                    self._save_checkpoint()
                    return RunState.FATAL_STOPPED

        self._save_checkpoint()
        if self.stop_requested:
            return RunState.PAUSED

        if self.checkpoint.processed < self.total:
            logger.warning(
                f"{self.total - self.checkpoint.processed} symbols still unresolved; "
                "the next run rescans from index 0"
            )
            return RunState.PAUSED

        logger.info(
            f"Domain complete: {self.checkpoint.active_count} active, "
            f"{self.checkpoint.delisted_count} delisted of {self.total}"
        )
        if self.config.archive_on_complete:
            try:
                self.checkpoints.archive()
            except StorageError as e:
                logger.error(f"Checkpoint archive failed: {e}")
        return RunState.COMPLETED

    def _dry_run(self, start: int, limit: int | None) -> RunState:
        """Count symbols that would be validated; no lookups, no writes."""
        preview: list[str] = []

        for block_start in range(start, self.total, SCAN_BLOCK_SIZE):
            block = list(self.enumerator.iter_range(block_start, min(block_start + SCAN_BLOCK_SIZE, self.total)))
            existing = self.ledger.get_many(symbol for _, symbol in block)
            for _, symbol in block:
                entry = existing.get(symbol)
                if entry is not None and entry.is_validated:
                    self.summary.skipped += 1
                    continue
                self.summary.pending += 1
                if len(preview) < DRY_RUN_PREVIEW:
                    preview.append(symbol)
                if limit is not None and self.summary.pending >= limit:
                    break
            else:
                continue
            break

        logger.info(
            f"Dry run: {self.summary.pending} symbols to validate, {self.summary.skipped} already classified. "
            f"First: {', '.join(preview) or '-'}"
        )
        return RunState.IDLE

    # ------------------------------------------------------------------
    # Progress bookkeeping
    # ------------------------------------------------------------------

    def _cover(self, index: int, status: TickerStatus) -> None:
        """Count an index as classified, or hold it while an earlier one is unresolved."""
        was_unresolved = self._unresolved.pop(index, None) is not None
        floor = min(self._unresolved, default=None)
        if not self._sweeping and floor is not None and index > floor:
            self._ahead[index] = status
            return

        self._tally(status)
        if was_unresolved:
            self._settle(floor)

    def _tally(self, status: TickerStatus) -> None:
        self.checkpoint.processed += 1
        if status is TickerStatus.ACTIVE:
            self.checkpoint.active_count += 1
        else:
            self.checkpoint.delisted_count += 1

    def _settle(self, floor: int | None) -> None:
        """Count held indices below ``floor`` (all of them when None)."""
        for index in [i for i in self._ahead if floor is None or i < floor]:
            self._tally(self._ahead.pop(index))

    def _on_resolved(self, item: WorkItem, verdict: object) -> None:
        index, _ = item
        self._cover(index, verdict.status)
        self._since_checkpoint += 1

    def _on_unresolved(self, item: WorkItem) -> None:
        index, symbol = item
        self._unresolved[index] = symbol

    def _on_escalation(self) -> None:
        self._save_checkpoint()

    def _position(self) -> int:
        """Index the next run should resume from.

        Never past the earliest symbol still without a verdict, so a stop
        re-attempts it first.
        """
        if self._sweeping:
            return self.total
        return min([self._next_index, *self._unresolved])

    def _save_checkpoint(self) -> None:
        """Persist progress. Failures are logged; the run continues."""
        position = self._position()
        self.checkpoint.current_index = position
        self.checkpoint.total = self.total
        self.checkpoint.timestamp = utc_now()
        self.checkpoint.last_processed_symbol = self.enumerator.symbol_at(position - 1) if position > 0 else None
        self._since_checkpoint = 0

        try:
            self.checkpoints.save(self.checkpoint)
        except StorageError as e:
            logger.error(f"Checkpoint save failed: {e}")
            return

        self.summary.processed = self.checkpoint.processed
        elapsed = self._clock() - self._last_break
        logger.info(
            f"Checkpoint at {position}/{self.total} | processed {self.checkpoint.processed} | "
            f"active {self.checkpoint.active_count} | delisted {self.checkpoint.delisted_count} | "
            f"since break {format_duration(elapsed)}"
        )

        if self.config.export_on_checkpoint and self.on_checkpoint is not None:
            try:
                self.on_checkpoint()
            except (StorageError, OSError) as e:
                logger.error(f"Export after checkpoint failed: {e}")
