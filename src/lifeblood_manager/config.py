"""Configuration management for lifeblood manager.

Configuration comes from an optional TOML file plus environment overrides.
Environment lookups go through resolve_config() with an explicit mapping,
so nothing here reads os.environ by itself.
"""

import sys
import tomllib
from collections.abc import Mapping
from pathlib import Path

import tomli_w
from pydantic import BaseModel, Field

from .constants import (
    BASE_PATH_ENV,
    CONFIG_FILE,
    CONFIG_LOCATION_ENV,
    DEFAULT_BRANCH,
    DOWNLOAD_CONNECT_TIMEOUT,
    PACKAGE_NAME,
    PYTHON_OVERRIDE_ENV,
    STOP_POLL_ATTEMPTS,
    STOP_POLL_INTERVAL,
)


class ProcessConfig(BaseModel):
    """Termination escalation of managed processes."""

    stop_poll_interval: float = Field(default=STOP_POLL_INTERVAL, gt=0)
    stop_poll_attempts: int = Field(default=STOP_POLL_ATTEMPTS, ge=0)


class ManagerConfig(BaseModel):
    """Root configuration for lifeblood manager."""

    base_path: Path | None = Field(default=None, description="Installations root")
    branch: str = DEFAULT_BRANCH
    install_viewer: bool = True
    python_bin: str | None = Field(default=None, description="Interpreter override")
    download_timeout: float = Field(default=DOWNLOAD_CONNECT_TIMEOUT, gt=0)
    process: ProcessConfig = Field(default_factory=ProcessConfig)


def default_base_path(env: Mapping[str, str], home: Path, platform: str = sys.platform) -> Path:
    """Get the default lifeblood location.

    Args:
        env: Environment mapping
        home: User home directory
        platform: sys.platform style platform name

    Returns:
        LIFEBLOOD_CONFIG_LOCATION if set, else the per-platform default
    """
    location = env.get(CONFIG_LOCATION_ENV)
    if location:
        return Path(location)
    if platform == "darwin":
        return home / "Library" / "Preferences" / PACKAGE_NAME
    return home / PACKAGE_NAME


def load_config(config_path: Path) -> ManagerConfig:
    """Load config from a TOML file, or defaults if it doesn't exist."""
    if not config_path.exists():
        return ManagerConfig()
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return ManagerConfig.model_validate(data)


def resolve_config(
    env: Mapping[str, str],
    config_path: Path | None = None,
    home: Path | None = None,
) -> ManagerConfig:
    """Resolve the effective configuration.

    Order: defaults < config file < environment.

    Args:
        env: Environment mapping (pass os.environ)
        config_path: TOML file; defaults to manager.toml in the default
            base path
        home: Home directory used for defaults (Path.home() if omitted)

    Returns:
        Effective configuration with base_path always set
    """
    home = home or Path.home()
    fallback_base = default_base_path(env, home)
    config = load_config(config_path or fallback_base / CONFIG_FILE)

    updates: dict[str, object] = {}
    python_bin = env.get(PYTHON_OVERRIDE_ENV)
    if python_bin:
        updates["python_bin"] = python_bin
    base = env.get(BASE_PATH_ENV)
    if base:
        updates["base_path"] = Path(base)
    elif config.base_path is None:
        updates["base_path"] = fallback_base
    return config.model_copy(update=updates)


def write_config_template(config_path: Path) -> Path:
    """Write default config TOML template.

    Returns:
        Path to the written config file
    """
    template = {
        "branch": DEFAULT_BRANCH,
        "install_viewer": True,
        "download_timeout": DOWNLOAD_CONNECT_TIMEOUT,
        "process": {
            "stop_poll_interval": STOP_POLL_INTERVAL,
            "stop_poll_attempts": STOP_POLL_ATTEMPTS,
        },
    }
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "wb") as f:
        tomli_w.dump(template, f)
    return config_path
