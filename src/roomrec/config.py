"""Configuration for roomrec.

Values come from three layers, later ones winning:

1. defaults declared on the models below
2. a TOML file (``ROOMREC_CONFIG_FILE`` or ``~/.config/roomrec/roomrec.toml``)
3. environment variables named ``ROOMREC_<SECTION>_<FIELD>``
"""
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import toml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

ENV_PREFIX = "ROOMREC"
DEFAULT_CONFIG_FILE = Path.home() / ".config" / "roomrec" / "roomrec.toml"


class ServerConfig(BaseModel):
    """HTTP server settings."""
    host: str = Field("0.0.0.0", description="Address to bind")
    port: int = Field(3001, description="Port to listen on")
    env: str = Field("development", description="development or production")
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])


class RecordingConfig(BaseModel):
    """Recording limits and encoder location."""
    max_concurrent_recordings: int = Field(5, ge=1)
    # Not enforced by the manager; kept for an external scheduler.
    recording_timeout: int = Field(3600, description="Seconds")
    cleanup_interval: int = Field(300, description="Seconds")
    # How long shutdown waits for interrupted encoders to finish their files.
    shutdown_grace: int = Field(10, ge=0, description="Seconds")
    ffmpeg_path: str = "ffmpeg"


class StorageConfig(BaseModel):
    """Where recordings are written."""
    recordings_path: str = "./recordings"
    temp_path: str = "./temp"
    max_file_age_days: int = 30
    max_disk_usage_gb: int = 50


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file_enabled: bool = False
    directory: str = "./logs"


class Config(BaseModel):
    """Complete roomrec configuration."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    recording: RecordingConfig = Field(default_factory=RecordingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def generate_env_var_name(section: str, field: str) -> str:
    """Build the environment variable name for a config field."""
    return f"{ENV_PREFIX}_{section.upper()}_{field.upper()}"


def get_all_env_mappings() -> Dict[str, Tuple[str, str]]:
    """Map every environment variable name to its (section, field)."""
    mappings = {}
    for section, section_field in Config.model_fields.items():
        section_model = section_field.annotation
        for field in section_model.model_fields:
            mappings[generate_env_var_name(section, field)] = (section, field)
    return mappings


def _field_annotation(section: str, field: str) -> Any:
    return Config.model_fields[section].annotation.model_fields[field].annotation


def _convert_env_value(value: str, annotation: Any = str) -> Any:
    """Convert an environment string to the type a config field declares.

    Values that do not parse are returned unchanged so validation reports them.
    """
    if annotation is bool:
        lowered = value.lower()
        if lowered in ("true", "yes", "on", "1"):
            return True
        if lowered in ("false", "no", "off", "0"):
            return False
        return value
    if annotation in (int, float):
        try:
            return annotation(value)
        except ValueError:
            return value
    return value


def _is_list_field(section: str, field: str) -> bool:
    return getattr(_field_annotation(section, field), "__origin__", None) is list


def load_all_env_overrides() -> Dict[str, Dict[str, Any]]:
    """Collect overrides from ``ROOMREC_*`` environment variables."""
    overrides: Dict[str, Dict[str, Any]] = {}
    for env_var, (section, field) in get_all_env_mappings().items():
        raw = os.environ.get(env_var)
        if raw is None:
            continue
        if _is_list_field(section, field):
            value = [item.strip() for item in raw.split(",") if item.strip()]
        else:
            value = _convert_env_value(raw, _field_annotation(section, field))
        overrides.setdefault(section, {})[field] = value
    return overrides


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Explicit TOML file. Falls back to ``ROOMREC_CONFIG_FILE``
            and then to the per-user default location.

    Returns:
        The effective configuration. A missing file yields defaults.
    """
    if config_path is None:
        config_path = os.environ.get(f"{ENV_PREFIX}_CONFIG_FILE", str(DEFAULT_CONFIG_FILE))

    data: Dict[str, Any] = {}
    path = Path(config_path).expanduser()
    if path.is_file():
        logger.debug(f"Loading config from {path}")
        data = toml.load(path)

    data = _merge(data, load_all_env_overrides())
    return Config(**data)


_config: Optional[Config] = None


def get_config() -> Config:
    """Return the process-wide config, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[Config]) -> None:
    """Replace the process-wide config (``None`` forces a reload)."""
    global _config
    _config = config


def dump_config_toml(config: Config) -> str:
    """Render a config as TOML."""
    return toml.dumps(config.model_dump())


def _format_env_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join(str(item) for item in value)
    return str(value)


def dump_config_env(config: Config) -> str:
    """Render a config as ``ROOMREC_*=value`` lines."""
    lines = []
    for section, values in config.model_dump().items():
        for field, value in values.items():
            lines.append(f"{generate_env_var_name(section, field)}={_format_env_value(value)}")
    return "\n".join(lines)
