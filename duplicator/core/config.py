"""Process-wide settings, loaded once at startup."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from duplicator.core.exceptions import ConfigurationError

DUPLICATOR_HOME = Path.home() / ".sense-app-duplicator"
CONFIG_PATH = DUPLICATOR_HOME / "config.yaml"
CERTS_DIR = DUPLICATOR_HOME / "certs"
LOG_DIR = DUPLICATOR_HOME / "logs"

TEMPLATE_FILTER = "@AppIsTemplate eq 'Yes'"


class Settings(BaseSettings):
    """Deployment configuration. Immutable for the process lifetime."""

    model_config = SettingsConfigDict(
        env_prefix="DUPLICATOR_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    # Sense site
    host: str = "localhost"
    qrs_port: int = 4242
    engine_port: int = 4747
    is_secure: bool = True

    # Certificates exported from the QMC, used toward QRS and the engine
    client_cert_path: Path = CERTS_DIR / "client.pem"
    client_cert_key_path: Path = CERTS_DIR / "client_key.pem"
    root_cert_path: Path | None = None

    # HTTPS listener
    ssl_cert_path: Path = CERTS_DIR / "server.pem"
    ssl_cert_key_path: Path = CERTS_DIR / "server_key.pem"
    listen_host: str = "0.0.0.0"
    listen_port: int = 8001
    cors_origins: list[str] = ["*"]

    # Duplication behaviour
    reload_new_app: bool = False
    sense_user_directory: str = "Internal"
    service_user_directory: str = "Internal"
    service_user_id: str = "sa_repository"
    load_script_url: str = ""

    # Logging
    log_directory: Path = LOG_DIR
    default_log_level: str = "info"

    # Timeouts, seconds
    request_timeout: float = 30.0
    engine_timeout: float = 60.0
    reload_timeout: float = 600.0

    @property
    def qrs_base_url(self) -> str:
        return f"https://{self.host}:{self.qrs_port}/qrs"

    @property
    def engine_url(self) -> str:
        scheme = "wss" if self.is_secure else "ws"
        return f"{scheme}://{self.host}:{self.engine_port}/app/engineData"


def ensure_config_dir() -> Path:
    """Create the duplicator config directories if they don't exist."""
    for d in (DUPLICATOR_HOME, CERTS_DIR, LOG_DIR):
        d.mkdir(parents=True, exist_ok=True)
    return DUPLICATOR_HOME


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return data


def load_settings(config_path: Path | None = None) -> Settings:
    """Build Settings from an optional YAML file, falling back to env vars.

    Values in the file take precedence over ``DUPLICATOR_*`` variables.
    """
    if config_path is not None and not config_path.exists():
        raise ConfigurationError(f"Config file {config_path} not found")
    path = config_path or CONFIG_PATH
    data = _read_config_file(path) if path.exists() else {}
    try:
        return Settings(**data)
    except PydanticValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


@lru_cache()
def get_settings() -> Settings:
    return load_settings()


def render_default_config() -> str:
    """Starter config.yaml written by ``init``."""
    defaults = Settings.model_construct()
    data = {
        "host": defaults.host,
        "client_cert_path": str(defaults.client_cert_path),
        "client_cert_key_path": str(defaults.client_cert_key_path),
        "ssl_cert_path": str(defaults.ssl_cert_path),
        "ssl_cert_key_path": str(defaults.ssl_cert_key_path),
        "reload_new_app": defaults.reload_new_app,
        "sense_user_directory": defaults.sense_user_directory,
        "load_script_url": defaults.load_script_url,
        "log_directory": str(defaults.log_directory),
        "default_log_level": defaults.default_log_level,
    }
    result: str = yaml.dump(data, default_flow_style=False, sort_keys=False)
    return result
