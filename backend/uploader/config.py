"""Identigraf uploader configuration.

Loads settings from a YAML file and then applies environment overrides:
  * uploader.settings.yaml   - non-secret configuration
                               (path overridable via UPLOADER_SETTINGS)
  * IDENTIGRAF_UPLOAD_FOLDER, IDENTIGRAF_MAX_FILE_SIZE,
    IDENTIGRAF_MAX_FILE_COUNT, PORT

Settings are read once at startup and are immutable afterwards.
"""
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SETTINGS_FILE = Path("uploader.settings.yaml")

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "IDENTIGRAF_UPLOAD_FOLDER":   ("upload", "temp_directory"),
    "IDENTIGRAF_MAX_FILE_SIZE":   ("upload", "max_file_size"),
    "IDENTIGRAF_MAX_FILE_COUNT":  ("upload", "max_file_count"),
    "PORT":                       ("server", "port"),
}


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    with path.open(encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def _default_upload_folder() -> Path:
    return Path(tempfile.gettempdir()) / "identigraf-uploads"


# ---------------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------------


class ServerSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    host:      str = "0.0.0.0"
    port:      int = Field(3000, gt=0)
    log_level: str = "info"


class UploadSettings(BaseModel):
    """Upload folder and transport limits.

    The first three fields are the ones every deployment sets; the remaining
    limits default to the values multipart parsers traditionally use.
    """
    model_config = ConfigDict(frozen=True)

    temp_directory:      Path          = Field(default_factory=_default_upload_folder)
    max_file_size:       int           = Field(5 * 1024 * 1024, gt=0)
    max_file_count:      int           = Field(10, gt=0)
    max_field_name_size: int           = Field(100, gt=0)
    max_field_size:      int           = Field(1024 * 1024, gt=0)
    max_fields:          Optional[int] = Field(None, gt=0)
    max_parts:           Optional[int] = Field(None, gt=0)

    @field_validator("temp_directory")
    @classmethod
    def _must_be_absolute(cls, value: Path) -> Path:
        if not value.is_absolute():
            raise ValueError(f"temp_directory must be an absolute path, got {value}")
        return value


class MonitoringSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_free_space: int = Field(100 * 1024 * 1024, ge=0)


class AppSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    server:     ServerSettings     = Field(default_factory=ServerSettings)
    upload:     UploadSettings     = Field(default_factory=UploadSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)


# ---------------------------------------------------------------------------
# Environment variable overrides
# ---------------------------------------------------------------------------


def _apply_env_overrides(data: Dict[str, Any], environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Overlay IDENTIGRAF_* / PORT environment variables onto *data*.

    Values are passed through as strings; pydantic coerces and validates them.
    """
    environ = os.environ if environ is None else environ
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is None or value == "":
            continue
        section_data = dict(data.get(section) or {})
        section_data[key] = value
        data[section] = section_data
        logger.debug("Config override from %s: %s.%s", env_name, section, key)
    return data


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def load_settings(
    settings_path: Optional[Path] = None,
    environ: Optional[Dict[str, str]] = None,
) -> AppSettings:
    """Load the YAML settings file, apply env overrides and validate."""
    env = os.environ if environ is None else environ
    if settings_path is None:
        settings_path = Path(env.get("UPLOADER_SETTINGS") or SETTINGS_FILE)

    data = _apply_env_overrides(_load_yaml(Path(settings_path)), env)
    app_settings = AppSettings(**data)
    logger.info(
        "Settings loaded (server=%s:%s, upload_folder=%s, max_file_size=%d, max_file_count=%d)",
        app_settings.server.host,
        app_settings.server.port,
        app_settings.upload.temp_directory,
        app_settings.upload.max_file_size,
        app_settings.upload.max_file_count,
    )
    return app_settings


_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings
