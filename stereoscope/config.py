from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_EXPAND_PATH = "/__stereoscope_expand_template__"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="STEREOSCOPE_", case_sensitive=False, extra="ignore")

    log_level: str = Field(default="INFO")

    enabled: bool = Field(default=True)
    expand_path: str = Field(default=DEFAULT_EXPAND_PATH)
    activate_media_type: str = Field(default="text/html")
    json_indent: int = Field(default=2, ge=0, le=8)

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1, le=65535)

    def configuration_errors(self) -> list[str]:
        errors: list[str] = []

        if not self.expand_path.startswith("/"):
            errors.append("STEREOSCOPE_EXPAND_PATH must be an absolute path starting with '/'")

        if not isinstance(logging.getLevelName(self.log_level.strip().upper()), int):
            errors.append(f"STEREOSCOPE_LOG_LEVEL `{self.log_level}` is not a known logging level")

        if "/" not in self.activate_media_type.strip():
            errors.append("STEREOSCOPE_ACTIVATE_MEDIA_TYPE must be a type/subtype media type")

        return errors


def get_settings() -> Settings:
    return Settings()
