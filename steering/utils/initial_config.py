"""
Loading of the steering configuration applied at startup.
Sources: STEERING_CONFIG_JSON environment variable, then the config file.
"""

import json
import logging
import os
from typing import Optional

from pydantic import ValidationError

from steering.core.errors import ConfigValidationError
from steering.schemas.steering import ContentSteeringConfig
from steering.utils.settings import get_settings

logger = logging.getLogger(__name__)


def _parse(text: str, context: str) -> Optional[ContentSteeringConfig]:
    try:
        return ContentSteeringConfig.model_validate_json(text)
    except ValidationError as e:
        for error in e.errors():
            if error.get("type") == "json_invalid":
                logger.error(f"{context} - Invalid JSON: {error.get('msg')}")
                break
        else:
            logger.error(f"{context} - Unexpected document shape: {e.error_count()} error(s)")
        logger.error(f"{context} - Content preview: {text[:160]}")
        return None


def _load_from_env() -> Optional[ContentSteeringConfig]:
    raw = os.getenv("STEERING_CONFIG_JSON")
    if not raw:
        return None
    logger.info("steering config: Using STEERING_CONFIG_JSON environment variable")
    return _parse(raw, "steering_config.env:STEERING_CONFIG_JSON")


def _load_from_file(path: str) -> Optional[ContentSteeringConfig]:
    if not os.path.exists(path):
        logger.info(f"steering config: File not found: {path}")
        return None

    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        logger.error(f"steering config: Unexpected error reading {path}: {e}")
        return None

    logger.info(f"steering config: Loading configuration from {path} ({len(content)} bytes)")
    return _parse(content, f"steering_config.file:{path}")


def load_initial_config() -> Optional[ContentSteeringConfig]:
    """Initial configuration from env or file, or None when there is none."""
    config = _load_from_env()
    if config is not None:
        return config
    return _load_from_file(get_settings().config_file)


def apply_initial_config(engine) -> bool:
    """Install the startup configuration on the engine. Never raises on bad input."""
    config = load_initial_config()
    if config is None:
        logger.info("steering config: No startup configuration, waiting for POST /content_steering_config")
        return False

    try:
        engine.update_configuration(config)
    except ConfigValidationError as e:
        logger.error(f"steering config: Startup configuration rejected: {e.message}")
        return False

    logger.info(f"steering config: Startup configuration applied "
                f"({json.dumps([entry.serviceLocationId for entry in config.serviceLocations])})")
    return True
