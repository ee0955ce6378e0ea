"""Configuration loader."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from ..errors import ConfigError
from .models import Mode, RunConfig, SettingsModel

CONFIG_ENV = "DUMPTRUCK_CONFIG"


def default_config_path() -> Path:
    """Settings path from DUMPTRUCK_CONFIG, else ~/.config/dumptruck/config.yaml."""
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".config" / "dumptruck" / "config.yaml"


class Settings:
    """Settings manager."""

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """Initialize settings manager."""
        if config_path is None:
            config_path = default_config_path()
        self.config_path = config_path
        self._settings: Optional[SettingsModel] = None

    @property
    def settings(self) -> SettingsModel:
        """Get loaded settings."""
        if self._settings is None:
            self._settings = load_settings(self.config_path)
        return self._settings


def load_settings(config_path: Path) -> SettingsModel:
    """Load settings from a YAML file. A missing file yields the defaults."""
    if not config_path.exists():
        return SettingsModel()

    try:
        with open(config_path) as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}

        return SettingsModel(**config_data)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {config_path}: {e}")
    except (ValidationError, TypeError) as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}")


def save_settings(settings: SettingsModel, config_path: Path) -> None:
    """Save settings to a YAML file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        yaml.dump(settings.model_dump(), f, default_flow_style=False, sort_keys=False)


def build_run_config(
    mode: Mode,
    url: Optional[str],
    file: Optional[Path],
    output: Optional[Path],
    query: Optional[str],
    ndownloads: Optional[int],
    settings: SettingsModel,
    title: Optional[str] = None,
) -> RunConfig:
    """Combine command-line options with settings defaults into a RunConfig.

    Raises:
        ConfigError: if options are missing, conflicting or out of range
    """
    if ndownloads is None:
        ndownloads = settings.download.ndownloads

    try:
        return RunConfig(
            mode=mode,
            url=url,
            file=file,
            output=output,
            query=query or "",
            ndownloads=ndownloads,
            title=title,
        )
    except ValidationError as e:
        messages = "; ".join(_clean_message(error["msg"]) for error in e.errors())
        raise ConfigError(messages)


def _clean_message(message: str) -> str:
    prefix = "Value error, "
    return message[len(prefix):] if message.startswith(prefix) else message
