"""Unit tests for the checkpoint store."""

from src.data.checkpoint import CheckpointStore
from src.data.models.checkpoint import Checkpoint


class TestCheckpointStore:
    """Tests for CheckpointStore."""

    def test_missing_file_loads_none(self, checkpoints: CheckpointStore) -> None:
        """Test a missing checkpoint means start fresh."""
        assert not checkpoints.exists()
        assert checkpoints.load() is None

    def test_save_and_load(self, checkpoints: CheckpointStore) -> None:
        """Test a saved checkpoint reloads with the same fields."""
        saved = Checkpoint(
            current_index=37,
            total=100,
            processed=37,
            active_count=5,
            delisted_count=32,
            last_processed_symbol="AK",
        )
        checkpoints.save(saved)

        loaded = checkpoints.load()
        assert loaded is not None
        assert loaded.current_index == 37
        assert loaded.processed == 37
        assert loaded.active_count == 5
        assert loaded.delisted_count == 32
        assert loaded.last_processed_symbol == "AK"
        assert loaded.timestamp == saved.timestamp
        assert not loaded.is_complete

    def test_no_temp_file_left(self, checkpoints: CheckpointStore) -> None:
        """Test the atomic write leaves only the checkpoint behind."""
        checkpoints.save(Checkpoint(total=4))
        assert [p.name for p in checkpoints.path.parent.iterdir()] == [checkpoints.path.name]

    def test_corrupt_file_loads_none(self, checkpoints: CheckpointStore) -> None:
        """Test a corrupt checkpoint is treated as absent."""
        checkpoints.path.write_text("{not json", encoding="utf-8")
        assert checkpoints.load() is None

    def test_invalid_values_load_none(self, checkpoints: CheckpointStore) -> None:
        """Test a checkpoint with invalid fields is treated as absent."""
        checkpoints.path.write_text('{"current_index": -5}', encoding="utf-8")
        assert checkpoints.load() is None

    def test_archive(self, checkpoints: CheckpointStore) -> None:
        """Test archiving renames the checkpoint aside."""
        checkpoints.save(Checkpoint(current_index=4, total=4, processed=4))

        archived = checkpoints.archive()

        assert archived is not None
        assert archived.exists()
        assert archived.name.startswith("checkpoint.completed-")
        assert not checkpoints.exists()
        assert checkpoints.archive() is None

    def test_clear(self, checkpoints: CheckpointStore) -> None:
        """Test clearing deletes the file and tolerates a missing one."""
        checkpoints.save(Checkpoint(total=4))
        checkpoints.clear()
        assert not checkpoints.exists()
        checkpoints.clear()

    def test_is_complete(self) -> None:
        """Test completion needs full coverage of a non-empty domain."""
        assert Checkpoint(current_index=4, total=4, processed=4).is_complete
        assert not Checkpoint(current_index=4, total=4, processed=3).is_complete
        assert not Checkpoint().is_complete
