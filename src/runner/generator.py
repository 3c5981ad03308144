"""Bulk seeding of the symbol domain into the ledger."""

import logging
from itertools import islice

from pydantic import BaseModel

from config.settings_pydantic import settings
from src.data.ledger import TickerLedger
from src.symbols.enumerator import SymbolEnumerator

logger = logging.getLogger("alltickers")


class GenerationResult(BaseModel):
    """Outcome of one seeding run."""

    total: int
    inserted: int = 0
    existing: int = 0
    dry_run: bool = False
    refused: bool = False


class TickerGenerator:
    """Writes every enumerator symbol to the ledger as ``unvalidated``."""

    def __init__(self, ledger: TickerLedger, batch_size: int | None = None) -> None:
        self.ledger = ledger
        self.batch_size = batch_size or settings.generator_batch_size

    def populate(
        self,
        max_length: int = 4,
        include_length5: bool = False,
        include_existing: bool = False,
        dry_run: bool = False,
    ) -> GenerationResult:
        """Seed the domain.

        Existing rows are never touched, so seeding is safe to repeat. On a
        ledger that already holds entries it only runs when
        ``include_existing`` is set.

        Args:
            max_length: Longest symbol length to generate.
            include_length5: Allow 5-letter symbols.
            include_existing: Seed even if the ledger is not empty.
            dry_run: Report the expected count without writing.

        Returns:
            GenerationResult with inserted and already-present counts.
        """
        enumerator = SymbolEnumerator(max_length, include_length5)
        result = GenerationResult(total=enumerator.size, dry_run=dry_run)

        if dry_run:
            logger.info(f"Dry run: would seed up to {enumerator.size} symbols (max length {enumerator.max_length})")
            return result

        current = self.ledger.stats().total
        if current and not include_existing:
            logger.warning(f"Ledger already holds {current} entries; pass include_existing to seed anyway")
            result.refused = True
            return result

        symbols = (symbol for _, symbol in enumerator.iter_range())
        done = 0
        while batch := list(islice(symbols, self.batch_size)):
            result.inserted += self.ledger.seed_unvalidated(batch)
            done += len(batch)
            if done % (self.batch_size * 100) == 0 or done == enumerator.size:
                logger.info(f"Seeded {done}/{enumerator.size} symbols ({result.inserted} new)")

        result.existing = result.total - result.inserted
        logger.info(f"Generation complete: {result.inserted} inserted, {result.existing} already present")
        return result
