"""
config/config.py
Jupiter client – centralised configuration via Pydantic Settings.
Every environment variable is validated at import; a malformed value stops the
process with a clear message instead of surfacing later as odd timing.

Tier quotas: https://dev.jup.ag/docs/api-rate-limit
"""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class JupiterConfig(BaseSettings):
    # ── API ──────────────────────────────────────────────
    JUPITER_BASE_URL: str = "https://lite-api.jup.ag"
    JUPITER_TIMEOUT_S: float = Field(10.0, gt=0)
    JUPITER_USER_AGENT: str = "JupiterClient/1.0"

    # ── Tier quota ───────────────────────────────────────
    # tokens granted every JUPITER_PERIOD_S seconds
    JUPITER_TOKENS_PER_PERIOD: float = Field(60, ge=1)
    JUPITER_PERIOD_S: float = Field(60, gt=0)

    # ── Priority pools (split of the tier quota) ─────────
    JUPITER_HIGH_PRIORITY_QUOTA: float = Field(45, ge=1)
    JUPITER_LOW_PRIORITY_QUOTA: float = Field(15, ge=1)

    # ── Behaviour ────────────────────────────────────────
    JUPITER_STRICT: bool = False
    JUPITER_DETAILED_LOGGING: bool = False

    # ── Logging ──────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""
    LOG_ROTATION: str = "10 MB"
    LOG_RETENTION: str = "7 days"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── Derived ──────────────────────────────────────────
    @property
    def requests_per_minute(self) -> float:
        """Approximate request budget per minute; informational only."""
        return self.JUPITER_TOKENS_PER_PERIOD / self.JUPITER_PERIOD_S * 60


# Importable singleton
cfg = JupiterConfig()
