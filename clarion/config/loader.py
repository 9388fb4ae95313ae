# clarion/config/loader.py
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError
from loguru import logger

from .schema import AppConfig
from .paths import get_user_config_file

# Environment variable -> AppConfig field
ENV_OVERRIDES: Dict[str, str] = {
    "CLARION_API_URL": "api_url",
    "CLARION_REQUEST_TIMEOUT": "request_timeout",
    "CLARION_PREVIEW_DEBOUNCE_MS": "preview_debounce_ms",
    "CLARION_TOKEN_ENCODING": "token_encoding",
}

_cached_config: Optional[AppConfig] = None

def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    """Returns a copy of `data` with CLARION_* environment values layered on top.
    Values stay strings; pydantic coerces them during validation."""
    merged = dict(data)
    for env_name, field_name in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is not None and value != "":
            logger.debug(f"Config override from {env_name}: {field_name}={value!r}")
            merged[field_name] = value
    return merged

def load_config() -> AppConfig:
    """Loads the application configuration."""
    global _cached_config
    if _cached_config:
        return _cached_config

    config_path = get_user_config_file()
    loaded_data: Dict[str, Any] = {}

    if config_path.exists():
        logger.info(f"Loading user configuration from: {config_path}")
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                loaded_data = json.load(f)
            if not isinstance(loaded_data, dict):
                raise ValueError(f"expected a JSON object, got {type(loaded_data).__name__}")
        except (ValueError, OSError) as e:
            logger.error(f"Failed to load user config file {config_path}: {e}")
            try:
                 backup_path = config_path.with_suffix(".json.corrupted")
                 if backup_path.exists(): backup_path.unlink(missing_ok=True) # Remove old backup
                 config_path.rename(backup_path)
                 logger.info(f"Backed up corrupted config to: {backup_path}")
            except OSError as backup_err:
                 logger.error(f"Failed to backup corrupted config: {backup_err}")
            loaded_data = {} # Fallback to defaults
    else:
        logger.info("User config file not found. Using default settings.")

    try:
        config = AppConfig(**_apply_env_overrides(loaded_data))
        _cached_config = config
        logger.info("Configuration loaded successfully.")
        return config
    except ValidationError as e:
        logger.error(f"Configuration validation failed: {e}")
        logger.warning("Falling back to default configuration.")
        _cached_config = AppConfig() # Use default config on validation error
        return _cached_config

def save_config(config: AppConfig) -> None:
    """Saves the application configuration using atomic write via NamedTemporaryFile."""
    config_path = get_user_config_file()
    logger.info(f"Saving configuration to: {config_path}")
    temp_file_path: Optional[Path] = None
    try:
        # Temp file must live in the target's directory for os.replace to be atomic
        with tempfile.NamedTemporaryFile(
            mode='w',
            encoding='utf-8',
            dir=config_path.parent,
            prefix=f".{config_path.name}_tmp",
            suffix=".json",
            delete=False
        ) as temp_f:
            temp_file_path = Path(temp_f.name)
            logger.debug(f"Writing config to temporary file: {temp_file_path}")
            temp_f.write(config.model_dump_json(indent=4))
            temp_f.flush()
            os.fsync(temp_f.fileno())

        os.replace(temp_file_path, config_path)
        logger.info("Configuration saved successfully.")
        temp_file_path = None

    except (OSError, TypeError) as e:
        logger.error(f"Failed to save configuration to {config_path}: {e}")
    finally:
        if temp_file_path and temp_file_path.exists():
             logger.warning(f"Cleaning up leftover temporary config file: {temp_file_path}")
             try: temp_file_path.unlink()
             except OSError as unlink_err: logger.error(f"Failed to remove temporary config file {temp_file_path}: {unlink_err}")

    global _cached_config
    _cached_config = config


def get_config() -> AppConfig:
    """Returns the cached configuration object, loading if necessary."""
    if _cached_config is None:
        return load_config()
    return _cached_config

def reset_config_cache() -> None:
    """Forget the cached configuration so the next get_config() reloads it."""
    global _cached_config
    _cached_config = None
