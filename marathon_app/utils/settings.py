"""Runtime settings resolved from environment variables."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from marathon_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from marathon_app.constants.reflection_constants import DEFAULT_REFLECTION_MODEL

DEFAULT_DATA_PATH: str = "data/marathon.json"


class AppSettings(BaseSettings):
    """Server settings, each overridable through a ``MARATHON_*`` variable.

    ``MARATHON_DATA_PATH`` set to an empty string disables persistence, and an
    empty ``MARATHON_OPENAI_API_KEY`` leaves daily reflections on their fixed
    fallback text.
    """

    model_config = SettingsConfigDict(
        env_prefix="MARATHON_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    data_path: Path | None = Path(DEFAULT_DATA_PATH)
    log_level: str = "INFO"
    openai_api_key: SecretStr | None = None
    reflection_model: str = DEFAULT_REFLECTION_MODEL

    @field_validator("data_path", "openai_api_key", mode="before")
    @classmethod
    def _blank_means_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def openai_key_value(self) -> str | None:
        return self.openai_api_key.get_secret_value() if self.openai_api_key else None
