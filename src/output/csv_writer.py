"""CSV output writer."""

import csv
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from src.data.types import ExportRecord

logger = logging.getLogger("alltickers")


class CSVWriter:
    """CSV file writer for ledger rows."""

    def __init__(self, output_path: Path | str, append: bool = False) -> None:
        """Initialize CSV writer.

        Args:
            output_path: Path to output CSV file.
            append: If True, append to existing file instead of overwriting.
        """
        self.output_path = Path(output_path)
        self.append = append

    def write(self, rows: Iterable[ExportRecord], fieldnames: Sequence[str]) -> int:
        """Stream rows to the CSV file.

        Args:
            rows: Dictionaries keyed by ``fieldnames``.
            fieldnames: Column order; written as the header for new files.

        Returns:
            Number of rows written.
        """
        self.output_path.parent.mkdir(parents=True, exist_ok=True)

        mode = "a" if self.append else "w"
        file_exists = self.output_path.exists() and self.append

        count = 0
        with open(self.output_path, mode, newline="", encoding="utf-8") as output_file:
            dict_writer = csv.DictWriter(output_file, list(fieldnames), extrasaction="ignore")
            if not file_exists:
                dict_writer.writeheader()
            for row in rows:
                dict_writer.writerow(row)
                count += 1

        action = "Appended" if self.append else "Wrote"
        logger.info(f"{action} {count} records to {self.output_path}")
        return count
