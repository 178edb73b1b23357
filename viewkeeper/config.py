"""Configuration management for viewkeeper"""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from viewkeeper.viewonce.models import DEFAULT_TEMP_DIR, HandlerConfig


def get_config_path() -> Path:
    """Return the default path to config.yaml used for loading and saving."""
    return Path.home() / ".viewkeeper" / "config.yaml"


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    # Identity
    owner: str = Field(default="", alias="VIEWKEEPER_OWNER")

    # View-once handling
    auto_forward: bool = Field(default=True, alias="VIEWKEEPER_AUTO_FORWARD")
    save_to_temp: bool = Field(default=True, alias="VIEWKEEPER_SAVE_TO_TEMP")
    temp_dir: str = Field(default=DEFAULT_TEMP_DIR, alias="VIEWKEEPER_TEMP_DIR")
    enable_in_groups: bool = Field(default=True, alias="VIEWKEEPER_ENABLE_IN_GROUPS")
    enable_in_private: bool = Field(default=True, alias="VIEWKEEPER_ENABLE_IN_PRIVATE")
    log_activity: bool = Field(default=True, alias="VIEWKEEPER_LOG_ACTIVITY")
    skip_owner: bool = Field(default=False, alias="VIEWKEEPER_SKIP_OWNER")
    max_temp_age_hours: float = Field(default=24.0, alias="VIEWKEEPER_MAX_TEMP_AGE_HOURS")
    cleanup_cron: str = Field(default="0 */6 * * *", alias="VIEWKEEPER_CLEANUP_CRON")

    # Transcoding
    ffmpeg_path: str = Field(default="ffmpeg", alias="VIEWKEEPER_FFMPEG_PATH")
    transcode_timeout: float = Field(default=60.0, alias="VIEWKEEPER_TRANSCODE_TIMEOUT")

    # Key/value store
    config_store_path: Optional[str] = Field(default=None, alias="VIEWKEEPER_CONFIG_STORE")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")
    log_redact_jids: bool = Field(default=True, alias="LOG_REDACT_JIDS")

    def handler_config(self) -> HandlerConfig:
        """Build the initial HandlerConfig snapshot"""
        return HandlerConfig(
            auto_forward=self.auto_forward,
            save_to_temp=self.save_to_temp,
            temp_dir=self.temp_dir,
            enable_in_groups=self.enable_in_groups,
            enable_in_private=self.enable_in_private,
            log_activity=self.log_activity,
            skip_owner=self.skip_owner,
            max_temp_age=self.max_temp_age_hours * 3600,
        )

    @classmethod
    def from_file(cls, path: str) -> "Settings":
        """Load settings from YAML file"""
        with open(path, "r") as f:
            config = yaml.safe_load(f) or {}
        return cls(**config)

    def to_file(self, path: str):
        """Save settings to YAML file. Creates parent directory if needed."""
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        with open(p, "w") as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False)
