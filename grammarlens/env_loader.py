"""
Centralized Environment Variable Loader for GrammarLens

Loads the .env file exactly once, even when several request threads
touch configuration at the same time.
"""

import os
import logging
import threading
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_env_loaded = False
_env_lock = threading.Lock()


def load_environment_once() -> bool:
    """
    Load environment variables exactly once in a thread-safe manner.

    Returns:
        bool: True if environment was loaded, False if already loaded
    """
    global _env_loaded

    with _env_lock:
        if _env_loaded:
            return False

        load_dotenv()
        _env_loaded = True

        if os.getenv('HF_API_KEY'):
            logger.debug("Env loaded - HF_API_KEY present")
        else:
            logger.debug("Env loaded - HF_API_KEY missing, correction endpoint disabled")
        return True


def get_env_var(key: str, default: Optional[str] = None) -> Optional[str]:
    """
    Get environment variable, ensuring environment is loaded first.

    Args:
        key: Environment variable name
        default: Default value if not found

    Returns:
        Environment variable value or default
    """
    load_environment_once()
    return os.getenv(key, default)


def get_env_int(key: str, default: int) -> int:
    """Get an integer environment variable, falling back to ``default`` on bad values."""
    value = get_env_var(key)
    if value is None or value == '':
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer value for {key}: {value!r}")
        return default


def is_env_loaded() -> bool:
    """Check if environment variables have been loaded."""
    return _env_loaded
