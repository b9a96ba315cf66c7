"""
Configuration loader
"""
import logging
import os
import yaml
from pathlib import Path
from codequiz.models import Settings


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/settings.yaml"


def resolve_config_path() -> str:
    return os.environ.get("CODEQUIZ_CONFIG", DEFAULT_CONFIG_PATH)


def load_config(config_path: str = None) -> Settings:
    """
    Load settings from YAML file

    A missing file falls back to built-in defaults (no admins). A file that
    does not parse or validate raises.

    Args:
        config_path: Path to config file (default from CODEQUIZ_CONFIG)

    Returns:
        Settings object
    """
    path = Path(config_path or resolve_config_path())

    if not path.exists():
        logger.warning(f"⚠️ Config file not found: {path}. Using defaults with an empty admin allow-list")
        return Settings()

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    settings = Settings(**data)
    settings.admin_emails = [e.strip().lower() for e in settings.admin_emails if e.strip()]

    logger.info(f"✅ Loaded config from {path} ({len(settings.admin_emails)} admin emails)")
    return settings
