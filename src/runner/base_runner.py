"""Shared machinery for runners that feed symbols through the validator.

A runner owns one asyncio event loop for the duration of ``run()``. The
loop drives chunks of at most ``concurrent_requests`` lookups through a
``ValidationPool`` and waits for each chunk before starting the next one.
Everything between chunks (pacing, long breaks, session refresh, error
escalation, interruption) lives here; subclasses decide which symbols to
visit and what to persist.
"""

import asyncio
import logging
import signal
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

from src.data.ledger import TickerLedger
from src.data.models.verdict import ActiveVerdict
from src.exceptions import StorageError
from src.runner.config import RunnerConfig
from src.runner.models import RunState, RunSummary
from src.runner.pool import ValidationOutcome, ValidationPool
from src.validation.validator import RemoteValidator

logger = logging.getLogger("alltickers")

# Longest uninterrupted sleep; bounds how late a stop request is noticed.
_PAUSE_SLICE_SECONDS = 0.25

WorkItem = tuple[int | None, str]


class BaseRunner(ABC):
    """Pacing, escalation and shutdown handling common to all runners."""

    def __init__(
        self,
        ledger: TickerLedger,
        validator: RemoteValidator,
        config: RunnerConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize runner.

        Args:
            ledger: Classification ledger receiving verdicts.
            validator: Remote validator issuing lookups.
            config: Runner configuration; defaults to application settings.
            clock: Monotonic clock used to schedule long breaks.
        """
        self.ledger = ledger
        self.validator = validator
        self.config = config or RunnerConfig.from_settings()
        self._clock = clock
        self._stop = threading.Event()
        self.state = RunState.IDLE
        self.summary = RunSummary()
        self._pool: ValidationPool | None = None
        self._consecutive_errors = 0
        self._streak: list[WorkItem] = []
        self._last_break = 0.0
        self._requests_since_refresh = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self, limit: int | None = None, dry_run: bool = False) -> RunSummary:
        """Run to completion, interruption or fatal stop.

        Args:
            limit: Stop after this many lookups (resumable).
            dry_run: Report what would be validated without calling the
                provider or writing anything.

        Returns:
            RunSummary of this invocation.
        """
        return asyncio.run(self.run_async(limit=limit, dry_run=dry_run))

    async def run_async(self, limit: int | None = None, dry_run: bool = False) -> RunSummary:
        """Coroutine form of :meth:`run`."""
        started = self._clock()
        self.summary = RunSummary(dry_run=dry_run)
        self.state = RunState.RUNNING
        self._consecutive_errors = 0
        self._streak = []
        self._last_break = started
        self._requests_since_refresh = 0
        self._pool = ValidationPool(self.validator, self.config.concurrent_requests)
        remove_handlers = self._install_signal_handlers()

        try:
            self.state = await self._execute(limit=limit, dry_run=dry_run)
        except BaseException:
            self.state = RunState.FATAL_STOPPED
            raise
        finally:
            remove_handlers()
            self._pool.shutdown()
            self.summary.state = self.state
            self.summary.elapsed_seconds = round(self._clock() - started, 2)

        self._log_summary()
        return self.summary

    @abstractmethod
    async def _execute(self, limit: int | None, dry_run: bool) -> RunState:
        """Visit the work source; return the final state."""

    def request_stop(self) -> None:
        """Ask the runner to stop after the chunk in flight. Thread-safe."""
        if not self._stop.is_set():
            logger.info("Stop requested; finishing in-flight lookups and saving progress")
        self._stop.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def _install_signal_handlers(self) -> Callable[[], None]:
        """Route SIGINT/SIGTERM to :meth:`request_stop` while running."""
        loop = asyncio.get_running_loop()
        installed: list[signal.Signals] = []

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.request_stop)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                # Not available on this platform or outside the main thread.
                logger.debug(f"Cannot install handler for {sig.name}: {e}")
                continue
            installed.append(sig)

        def remove() -> None:
            for sig in installed:
                loop.remove_signal_handler(sig)

        return remove

    # ------------------------------------------------------------------
    # Pacing
    # ------------------------------------------------------------------

    async def _pause(self, seconds: float) -> None:
        """Sleep up to ``seconds``, waking early if a stop is requested."""
        if seconds <= 0:
            return
        deadline = time.monotonic() + seconds
        while not self._stop.is_set():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return
            await asyncio.sleep(min(remaining, _PAUSE_SLICE_SECONDS))

    async def _maybe_take_long_break(self) -> None:
        interval = self.config.long_break_interval_seconds
        if interval <= 0:
            return
        if self._clock() - self._last_break < interval:
            return

        self.summary.long_breaks += 1
        logger.info(
            f"Taking {self.config.long_break_seconds:.0f}s break after "
            f"{self.config.long_break_interval_minutes:g} minutes | "
            f"validated {self.summary.validated} | active {self.summary.active} | "
            f"delisted {self.summary.delisted}"
        )
        self._on_long_break()
        await self._pause(self.config.long_break_seconds)
        self._last_break = self._clock()
        logger.info("Resuming validation")

    async def _maybe_refresh_session(self) -> None:
        interval = self.config.session_refresh_interval
        if interval <= 0 or self._requests_since_refresh < interval:
            return

        await self._pool.refresh_session()
        self.summary.session_refreshes += 1
        self._requests_since_refresh = 0
        await self._pause(self.config.session_refresh_pause_seconds)

    # ------------------------------------------------------------------
    # Chunk processing
    # ------------------------------------------------------------------

    async def _take_breaks(self) -> None:
        """Long break and session refresh, when due. Call between chunks."""
        await self._maybe_take_long_break()
        if not self._stop.is_set():
            await self._maybe_refresh_session()

    async def _process_chunk(self, items: list[WorkItem]) -> bool:
        """Validate one chunk, record verdicts, and escalate on error streaks.

        Returns:
            False if the consecutive-error budget is exhausted (fatal stop).
        """
        self._apply(await self._validate(items))
        if not await self._escalate_if_needed():
            return False

        await self._pause(self.config.request_delay_seconds)
        return True

    async def _validate(self, items: list[WorkItem]) -> list[ValidationOutcome]:
        outcomes = await self._pool.validate(items)
        self._requests_since_refresh += len(items)
        return outcomes

    def _apply(self, outcomes: list[ValidationOutcome]) -> None:
        """Record outcomes in order and track the consecutive-error streak."""
        for outcome in outcomes:
            item = (outcome.index, outcome.symbol)

            if outcome.error is not None:
                self.summary.transport_errors += 1
                self._consecutive_errors += 1
                self._streak.append(item)
                logger.warning(
                    f"{outcome.symbol}: transport error "
                    f"({self._consecutive_errors} consecutive, {outcome.elapsed_ms:.0f}ms): {outcome.error}"
                )
                self._on_unresolved(item)
                continue

            self._consecutive_errors = 0
            self._streak.clear()
            verdict = outcome.verdict

            try:
                self.ledger.record(verdict)
            except StorageError as e:
                self.summary.storage_errors += 1
                logger.error(f"{outcome.symbol}: ledger write failed, will retry later: {e}")
                self._on_unresolved(item)
                continue

            self.summary.validated += 1
            if isinstance(verdict, ActiveVerdict):
                self.summary.active += 1
                logger.info(
                    f"{verdict.symbol}: ACTIVE {verdict.exchange} {verdict.price} {verdict.currency} "
                    f"({outcome.elapsed_ms:.0f}ms)"
                )
            else:
                self.summary.delisted += 1
                logger.info(f"{verdict.symbol}: DELISTED {verdict.reason.value} ({outcome.elapsed_ms:.0f}ms)")

            self._on_resolved(item, verdict)

    async def _escalate_if_needed(self) -> bool:
        """Cool down and replay after too many consecutive transport errors.

        Returns:
            False once ``max_escalations`` cool-downs have not cleared the
            streak.
        """
        while self._consecutive_errors >= self.config.max_consecutive_errors:
            if self.summary.escalations >= self.config.max_escalations:
                logger.error(
                    f"Too many consecutive errors ({self._consecutive_errors}) after "
                    f"{self.summary.escalations} cool-downs. Stopping."
                )
                return False

            self.summary.escalations += 1
            replay = self._streak[-self.config.replay_window :]
            logger.warning(
                f"{self._consecutive_errors} consecutive transport errors; cooling down "
                f"{self.config.error_cooldown_seconds:.0f}s, then replaying {len(replay)} symbols "
                f"(escalation {self.summary.escalations}/{self.config.max_escalations})"
            )
            self._on_escalation()
            await self._pause(self.config.error_cooldown_seconds)
            if self._stop.is_set():
                return True

            self._consecutive_errors = 0
            self._streak = []
            size = self.config.concurrent_requests
            for start in range(0, len(replay), size):
                self._apply(await self._validate(replay[start : start + size]))

        return True

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def _on_resolved(self, item: WorkItem, verdict: object) -> None:
        """Called after a verdict for ``item`` was written to the ledger."""

    def _on_unresolved(self, item: WorkItem) -> None:
        """Called when ``item`` produced no recorded verdict."""

    def _on_escalation(self) -> None:
        """Called before an error cool-down starts."""

    def _on_long_break(self) -> None:
        """Called before a long break starts."""

    def _log_summary(self) -> None:
        s = self.summary
        logger.info(
            f"Run {s.state.value}: validated {s.validated} (active {s.active}, delisted {s.delisted}), "
            f"skipped {s.skipped}, transport errors {s.transport_errors}, storage errors {s.storage_errors}, "
            f"escalations {s.escalations}, unresolved {s.unresolved}, {s.elapsed_seconds:.1f}s"
        )
