"""
Service configuration.

Values come from the environment (or a local .env file) via pydantic-settings
and are exposed through the module-level `settings` singleton.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

_PACKAGE_ROOT = Path(__file__).resolve().parent.parent  # api/loanmatch
_DEFAULT_LENDERS_FILE = _PACKAGE_ROOT / "data" / "lenders.json"


class Settings(BaseSettings):
    # ── General ──────────────────────────────────────────────
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")
    cors_origins: str = Field(default="http://localhost:5173")

    # ── Lender directory ─────────────────────────────────────
    lenders_file: str = Field(default=str(_DEFAULT_LENDERS_FILE))

    # ── Offers ───────────────────────────────────────────────
    offer_validity_days: int = Field(default=7, gt=0)
    persist_max_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts at writing the accepted offer onto the parent application",
    )

    # ── LM Studio (OpenAI-compatible) ────────────────────────
    llm_enabled: bool = Field(default=True)
    lmstudio_base_url: str = Field(default="http://localhost:1234/v1")
    lmstudio_model: str = Field(default="qwen/qwen3-vl-8b")
    lmstudio_api_key: str = Field(default="lmstudio-placeholder-key")

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
