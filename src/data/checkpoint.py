"""JSON checkpoint store for the batch runner."""

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from config.settings_pydantic import settings
from src.data.models.checkpoint import Checkpoint
from src.exceptions import StorageError
from src.utils.date_utils import utc_now

logger = logging.getLogger("alltickers")


class CheckpointStore:
    """Single-writer persistence for one ``Checkpoint`` record."""

    def __init__(self, path: Path | str | None = None) -> None:
        """Initialize store.

        Args:
            path: Checkpoint file path. If None, uses settings default.
        """
        self.path = Path(path or settings.checkpoint_path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Checkpoint | None:
        """Read the checkpoint.

        A missing file means "start fresh". An unreadable or corrupt file is
        logged and also treated as absent: the ledger still knows which
        symbols are classified, so a fresh walk loses no results.

        Returns:
            Checkpoint, or None if there is nothing usable to resume from.
        """
        if not self.path.exists():
            return None

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            checkpoint = Checkpoint(**data)
        except (OSError, json.JSONDecodeError, TypeError, ValidationError) as e:
            logger.error(f"Error loading checkpoint {self.path}, starting fresh: {e}")
            return None

        logger.info(
            f"Checkpoint loaded - resume from index {checkpoint.current_index} "
            f"({checkpoint.processed}/{checkpoint.total} processed)"
        )
        return checkpoint

    def save(self, checkpoint: Checkpoint) -> None:
        """Write the checkpoint atomically (temp file, then rename).

        Raises:
            StorageError: If the file cannot be written.
        """
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(checkpoint.model_dump_json(indent=2))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageError(f"Cannot write checkpoint {self.path}: {e}") from e

        logger.debug(f"Checkpoint saved - index {checkpoint.current_index}")

    def archive(self) -> Path | None:
        """Rename the checkpoint aside after a completed walk.

        Returns:
            Path of the archived file, or None if there was no checkpoint.
        """
        if not self.path.exists():
            return None

        stamp = utc_now().strftime("%Y%m%dT%H%M%SZ")
        archived = self.path.with_name(f"{self.path.stem}.completed-{stamp}{self.path.suffix}")
        try:
            os.replace(self.path, archived)
        except OSError as e:
            raise StorageError(f"Cannot archive checkpoint {self.path}: {e}") from e

        logger.info(f"Checkpoint archived to {archived}")
        return archived

    def clear(self) -> None:
        """Delete the checkpoint so the next run starts fresh."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot delete checkpoint {self.path}: {e}") from e
