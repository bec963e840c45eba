"""Secrets management: load VALR API credentials from environment or config file.

Priority order:
1. Environment variables: VALR_API_KEY, VALR_API_SECRET (VALR_SUBACCOUNT_ID optional)
2. Config file: ~/.valr_config.json or custom path via ENV VALR_CONFIG_PATH
"""
import json
import os
from pathlib import Path
from typing import NamedTuple, Optional

from .errors import ValrConfigurationError
from .logging_setup import logger


class ValrCredentials(NamedTuple):
    api_key: str
    api_secret: str
    subaccount_id: Optional[str] = None


def load_credentials(
    config_path: Optional[str] = None,
) -> ValrCredentials:
    """Load VALR credentials from env or config file.

    Args:
        config_path: Optional override path to config file. If not provided,
                     checks VALR_CONFIG_PATH env var, then ~/.valr_config.json

    Returns:
        ValrCredentials with api_key, api_secret and optional subaccount_id

    Raises:
        ValrConfigurationError: If credentials are not found or incomplete
    """
    api_key = os.getenv("VALR_API_KEY")
    api_secret = os.getenv("VALR_API_SECRET")
    subaccount_id = os.getenv("VALR_SUBACCOUNT_ID") or None

    if api_key and api_secret:
        return ValrCredentials(api_key=api_key, api_secret=api_secret, subaccount_id=subaccount_id)

    if config_path is None:
        config_path = os.getenv("VALR_CONFIG_PATH")
    if config_path is None:
        config_path = str(Path.home() / ".valr_config.json")

    config_file = Path(config_path)
    if config_file.exists():
        try:
            with config_file.open("r") as f:
                cfg = json.load(f)
        except (OSError, ValueError) as e:
            raise ValrConfigurationError(f"Failed to load config from {config_path}: {e}")
        api_key = cfg.get("api_key") or api_key
        api_secret = cfg.get("api_secret") or api_secret
        subaccount_id = cfg.get("subaccount_id") or subaccount_id

    if not api_key or not api_secret:
        raise ValrConfigurationError(
            "Missing VALR credentials. Provide via:\n"
            "  - Environment: VALR_API_KEY, VALR_API_SECRET\n"
            f"  - Config file: {config_path}\n"
            "  - VALR_CONFIG_PATH env var to override config location"
        )

    return ValrCredentials(api_key=api_key, api_secret=api_secret, subaccount_id=subaccount_id)


def save_config(
    config_path: str,
    api_key: str,
    api_secret: str,
    subaccount_id: Optional[str] = None,
) -> None:
    """Save credentials to a config file for later use.

    WARNING: Stores secrets in plaintext. The file is restricted to mode 600
    where the platform supports it.
    """
    config = {
        "api_key": api_key,
        "api_secret": api_secret,
    }
    if subaccount_id:
        config["subaccount_id"] = subaccount_id

    cfg_file = Path(config_path)
    cfg_file.parent.mkdir(parents=True, exist_ok=True)

    with cfg_file.open("w") as f:
        json.dump(config, f, indent=2)

    try:
        cfg_file.chmod(0o600)
    except OSError:
        logger.warning(f"Could not restrict permissions on {config_path}")
