"""Configuration management for dumptruck."""

from .loader import Settings, build_run_config, default_config_path, load_settings, save_settings
from .models import DownloadSettings, HttpSettings, Mode, RunConfig, SettingsModel

__all__ = [
    "Settings",
    "SettingsModel",
    "DownloadSettings",
    "HttpSettings",
    "Mode",
    "RunConfig",
    "build_run_config",
    "default_config_path",
    "load_settings",
    "save_settings",
]
