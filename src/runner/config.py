"""Runner configuration record."""

from pydantic import BaseModel, Field

from config.settings_pydantic import Settings, settings as default_settings


class RunnerConfig(BaseModel):
    """Knobs shared by the batch and revalidation runners."""

    max_length: int = Field(4, ge=1, le=5)
    include_length5: bool = False
    batch_size: int = Field(10, ge=1, description="Validated symbols between checkpoints")
    concurrent_requests: int = Field(1, ge=1, le=64)
    request_delay_ms: int = Field(1500, ge=0)
    freshness_window_hours: int = Field(24, ge=0)

    max_consecutive_errors: int = Field(10, ge=1)
    error_cooldown_seconds: float = Field(60.0, ge=0)
    replay_window: int = Field(10, ge=1)
    max_escalations: int = Field(3, ge=0)
    long_break_interval_minutes: float = Field(15.0, ge=0, description="0 disables long breaks")
    long_break_seconds: float = Field(60.0, ge=0)
    session_refresh_interval: int = Field(10_000, ge=0, description="0 disables session refresh")
    session_refresh_pause_seconds: float = Field(2.0, ge=0)
    archive_on_complete: bool = False
    export_on_checkpoint: bool = False

    @classmethod
    def from_settings(cls, source: Settings | None = None, **overrides: object) -> "RunnerConfig":
        """Build a config from application settings plus explicit overrides.

        ``None`` overrides are ignored so CLI flags that were not given fall
        back to the settings value.
        """
        source = source or default_settings
        values = {name: getattr(source, name) for name in cls.model_fields if hasattr(source, name)}
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    @property
    def request_delay_seconds(self) -> float:
        return self.request_delay_ms / 1000.0

    @property
    def long_break_interval_seconds(self) -> float:
        return self.long_break_interval_minutes * 60.0
