# clarion/config/paths.py
import os
from pathlib import Path

import typer

HOME_ENV_VAR = "CLARION_HOME"

def _get_app_name() -> str:
    # Centralize the app name
    return "Clarion"

def get_user_data_dir() -> Path:
    """Get the per-user application data directory.

    CLARION_HOME wins when set; otherwise the platform location typer/click
    picks for the app name (%APPDATA%, ~/Library/Application Support, ~/.config).
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        path = Path(override)
    else:
        path = Path(typer.get_app_dir(_get_app_name()))

    path.mkdir(parents=True, exist_ok=True)
    return path

def get_user_config_file() -> Path:
    """Get the path to the user's config.json file."""
    return get_user_data_dir() / "config.json"

def get_user_log_dir() -> Path:
    """Get the path to the user's log directory."""
    path = get_user_data_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path
