"""Checkpoint model for resumable domain walks."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from src.utils.date_utils import parse_timestamp, utc_now


class Checkpoint(BaseModel):
    """Progress of the batch runner through the symbol domain."""

    current_index: int = Field(0, ge=0, description="Next unprocessed enumerator index")
    total: int = Field(0, ge=0, description="Domain size when the checkpoint was written")
    processed: int = Field(0, ge=0, description="Classified indices below current_index")
    active_count: int = Field(0, ge=0)
    delisted_count: int = Field(0, ge=0)
    timestamp: datetime = Field(default_factory=utc_now)
    last_processed_symbol: str | None = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_datetime(cls, v: str | datetime | None) -> datetime:
        """Parse datetime from string if needed."""
        return parse_timestamp(v) or utc_now()

    @property
    def is_complete(self) -> bool:
        """Whether the recorded walk covered its whole domain."""
        return self.total > 0 and self.processed >= self.total
