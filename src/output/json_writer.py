"""JSON output writer."""

import json
import logging
import os
from pathlib import Path

from src.data.types import ExportRecord

logger = logging.getLogger("alltickers")

JSONPayload = list[str] | list[ExportRecord] | list[dict[str, bool]] | dict[str, object]


class JSONWriter:
    """JSON file writer for ledger exports."""

    def __init__(self, output_path: Path | str) -> None:
        """Initialize JSON writer.

        Args:
            output_path: Path to output JSON file.
        """
        self.output_path = Path(output_path)

    def write(self, data: JSONPayload) -> None:
        """Write data to JSON file, replacing it atomically.

        An empty list is still written so readers never see a stale export.

        Args:
            data: List or mapping to write.
        """
        if not data:
            logger.warning(f"Writing empty export to {self.output_path}")

        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.output_path.with_suffix(self.output_path.suffix + ".tmp")

        with open(tmp_path, "w", encoding="utf-8") as output_file:
            json.dump(data, output_file, indent=2, default=str)
        os.replace(tmp_path, self.output_path)

        count = len(data) if isinstance(data, list) else len(data.get("tickers", []))
        logger.info(f"Wrote {count} records to {self.output_path}")
