"""Application configuration loaded from environment variables."""

from __future__ import annotations

from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "facility-attention"
    debug: bool = False
    log_level: str = "INFO"

    # Sync freshness
    stale_threshold_hours: float = 4.0
    fallback_staleness_hours: float = 4.0
    sync_spread_hours: int = 7

    # Signal detection
    staffing_gap_threshold: float = 0.15
    rn_severity_multiplier: float = 200.0
    lpn_severity_multiplier: float = 180.0
    cna_severity_multiplier: float = 150.0
    acuity_mismatch_threshold: float = 0.1
    trend_decline_threshold: float = -0.05
    trend_severity_multiplier: float = 200.0
    communication_severity: float = 40.0

    # Revenue estimation
    revenue_gap_threshold_pct: float = 10.0
    per_resident_daily_rate: float = 180.0
    standardized_daily_rate: float = 250.0
    cna_hours_per_resident: float = 1.8

    # Capture ingestion
    capture_critical_gap_hours: float = 2.0

    # JSON file with a list of raw facilities loaded at startup
    seed_file: Optional[str] = None

    model_config = {"env_prefix": "ATTENTION_"}


settings = Settings()
