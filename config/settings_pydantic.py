"""Pydantic Settings for application configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings using Pydantic."""

    # Project paths
    project_root: Path = Path(__file__).parent.parent
    data_dir: Path = project_root / "output"
    output_dir: Path = data_dir / "exports"
    ledger_path: Path = data_dir / "tickers.db"
    checkpoint_path: Path = data_dir / "checkpoint.json"

    # Quote provider
    provider: str = "chart"
    chart_url: str = "https://query1.finance.yahoo.com/v8/finance/chart/{symbol}"
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
    )
    request_timeout: float = 5.0
    recognized_exchanges: list[str] = [
        "NYSE",
        "Nasdaq",
        "AMEX",
        "NMS",
        "NGM",
        "NCM",
        "NYQ",
        "ASE",
        "PCX",
        "BATS",
    ]

    # Schema validation retries (per validate() call)
    schema_retry_attempts: int = 3
    schema_retry_delay: float = 0.5

    # Session refresh
    session_refresh_interval: int = 10_000
    session_refresh_symbol: str = "AAPL"
    session_refresh_pause_seconds: float = 2.0

    # Symbol domain
    max_length: int = 4
    include_length5: bool = False

    # Batch runner
    batch_size: int = 10
    concurrent_requests: int = 1
    request_delay_ms: int = 1500
    freshness_window_hours: int = 24
    max_consecutive_errors: int = 10
    error_cooldown_seconds: float = 60.0
    replay_window: int = 10
    max_escalations: int = 3
    long_break_interval_minutes: float = 15.0
    long_break_seconds: float = 60.0
    archive_on_complete: bool = False
    export_on_checkpoint: bool = False

    # Bulk generator
    generator_batch_size: int = 1000

    # Logging
    log_level: str = "INFO"
    log_file: Path | None = None
    log_max_bytes: int = 10 * 1024 * 1024
    log_backup_count: int = 5

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def supported_providers(self) -> list[str]:
        """Get list of supported quote providers."""
        return ["chart", "yfinance"]


# Global settings instance
settings = Settings()
