import logging
import os

logger = logging.getLogger(__name__)


def _hand_preference(val):
    """
    Normalize the default bowling hand to 'left' or 'right' (default 'right').
    """
    val = (val or "right").strip().lower()
    if val not in ("left", "right"):
        logger.warning("BOWLING_DEFAULT_HAND must be 'left' or 'right' (got %r); defaulting to 'right'", val)
        return "right"
    return val


def _log_level(val):
    """
    Normalize a logging level name (default 'INFO').
    """
    val = (val or "INFO").strip().upper()
    if not isinstance(logging.getLevelName(val), int):
        logger.warning("BOWLING_LOG_LEVEL must be a logging level name (got %r); defaulting to 'INFO'", val)
        return "INFO"
    return val


# When set, saved games persist to this JSON file; otherwise they live in memory.
GAMES_PATH = os.getenv("BOWLING_GAMES_PATH") or None

DEFAULT_HAND_PREFERENCE = _hand_preference(os.getenv("BOWLING_DEFAULT_HAND"))

LOG_LEVEL = _log_level(os.getenv("BOWLING_LOG_LEVEL"))
