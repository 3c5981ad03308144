"""Bounded worker pool for remote validations."""

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import NamedTuple

from src.data.models.verdict import Verdict
from src.exceptions import TransportError
from src.validation.validator import RemoteValidator

logger = logging.getLogger("alltickers")


class ValidationOutcome(NamedTuple):
    """Result of one lookup: a verdict or the transport error that prevented it."""

    index: int | None
    symbol: str
    verdict: Verdict | None
    error: TransportError | None
    elapsed_ms: float


class ValidationPool:
    """Runs validator calls on a thread pool, one bounded chunk at a time.

    ``validate`` submits every symbol of the chunk and waits for all of
    them, so at most ``max_workers`` lookups are ever in flight.
    """

    def __init__(self, validator: RemoteValidator, max_workers: int = 1) -> None:
        self.validator = validator
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="validator")
        self.requests = 0

    async def validate(self, items: list[tuple[int | None, str]]) -> list[ValidationOutcome]:
        """Validate ``(index, symbol)`` pairs concurrently.

        Args:
            items: At most ``max_workers`` pairs.

        Returns:
            Outcomes in the same order as ``items``.
        """
        if len(items) > self.max_workers:
            raise ValueError(f"Chunk of {len(items)} exceeds pool size {self.max_workers}")

        loop = asyncio.get_running_loop()
        tasks = [
            loop.run_in_executor(self._executor, self._validate_one, index, symbol)
            for index, symbol in items
        ]
        self.requests += len(tasks)
        return list(await asyncio.gather(*tasks))

    def _validate_one(self, index: int | None, symbol: str) -> ValidationOutcome:
        started = time.perf_counter()
        try:
            verdict = self.validator.validate(symbol)
        except TransportError as e:
            return ValidationOutcome(index, symbol, None, e, _elapsed_ms(started))
        return ValidationOutcome(index, symbol, verdict, None, _elapsed_ms(started))

    async def refresh_session(self) -> None:
        """Run the validator's session warm-up on the pool."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(self._executor, self.validator.refresh_session)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000.0, 1)
