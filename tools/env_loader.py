# tools/env_loader.py
import os
import logging
from dotenv import load_dotenv
from pathlib import Path
from typing import Dict, Any

from fundbot.utils.config_validator import ConfigurationError

logger = logging.getLogger(__name__)

PAPER_BASE_URL = "https://paper-api.alpaca.markets"
LIVE_BASE_URL = "https://api.alpaca.markets"


def ensure_env_loaded(path: str = ".env") -> bool:
    """Load .env unless credentials are already in the environment. Returns True if a file was read."""
    if os.getenv("APCA_API_KEY_ID"):
        return False
    env_path = Path(path).resolve()
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=False)
        logger.info("Loaded environment variables from %s", env_path)
        return True
    logger.warning("Environment file not found at %s", env_path)
    return False


def default_base_url(mode: str) -> str:
    return LIVE_BASE_URL if mode.upper() == "LIVE" else PAPER_BASE_URL


def validate_api_keys(mode: str = "PAPER", fail_fast: bool = True) -> Dict[str, Any]:
    """
    Validate that the Alpaca keys are present.

    Returns:
        {"valid": bool, "missing_keys": list[str], "mode": str, "base_url": str}

    Raises:
        ConfigurationError: if fail_fast=True and keys are missing, or a LIVE
        mode run points at the paper endpoint.
    """
    ensure_env_loaded()

    key_id = os.getenv("APCA_API_KEY_ID", "").strip()
    secret_key = os.getenv("APCA_API_SECRET_KEY", "").strip()
    base_url = os.getenv("APCA_API_BASE_URL", "").strip()

    missing_keys = []
    if not key_id:
        missing_keys.append("APCA_API_KEY_ID")
    if not secret_key:
        missing_keys.append("APCA_API_SECRET_KEY")

    if not base_url:
        base_url = default_base_url(mode)
        logger.info("Using default base_url for mode %s: %s", mode, base_url)

    errors = []
    if missing_keys:
        errors.append(f"missing required API keys: {', '.join(missing_keys)}")
    if mode.upper() == "LIVE" and "paper" in base_url:
        errors.append(f"MODE=LIVE but APCA_API_BASE_URL points at {base_url}")

    result = {
        "valid": not errors,
        "missing_keys": missing_keys,
        "mode": mode.upper(),
        "base_url": base_url,
    }

    if errors:
        error_msg = f"❌ Alpaca credentials invalid for {mode} mode: {'; '.join(errors)}"
        logger.error(error_msg)
        if fail_fast:
            raise ConfigurationError(error_msg)
    else:
        logger.info("✅ API keys validated successfully for %s mode", mode)

    return result
