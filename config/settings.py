"""
Settings - environment-driven configuration for the matching service.

Values are read once at import time from the process environment (and a
`.env` file in the working directory, if present).
"""
from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Dict

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid integer for {name}: {raw!r}. Using {default}.")
        return default


def _mapping_env(name: str, default: Dict[str, int]) -> Dict[str, int]:
    """Parse `key:value,key:value` pairs, keeping defaults for anything missing."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return dict(default)
    parsed = dict(default)
    for pair in raw.split(","):
        key, sep, value = pair.partition(":")
        key = key.strip().lower()
        if not sep or key not in default:
            logger.warning(f"Ignoring entry {pair!r} in {name}.")
            continue
        try:
            parsed[key] = int(value.strip())
        except ValueError:
            logger.warning(f"Invalid value {value!r} for {key} in {name}.")
    return parsed


# ---------------------------------------------------------------------------
# Paths & logging
# ---------------------------------------------------------------------------
DATA_DIR = Path(os.getenv("MATCHING_DATA_DIR", str(PROJECT_ROOT / "data")))
LOG_LEVEL = os.getenv("MATCHING_LOG_LEVEL", "INFO").upper()

# ---------------------------------------------------------------------------
# Scoring weights
# ---------------------------------------------------------------------------
SKILL_POINTS = _int_env("MATCHING_SKILL_POINTS", 60)
URGENCY_POINTS = _mapping_env(
    "MATCHING_URGENCY_POINTS",
    {"low": 5, "medium": 10, "high": 15, "critical": 20},
)
AVAILABILITY_POINTS = _int_env("MATCHING_AVAILABILITY_POINTS", 10)
CITY_POINTS = _int_env("MATCHING_CITY_POINTS", 10)
STATE_POINTS = _int_env("MATCHING_STATE_POINTS", 5)
TIER_THRESHOLDS = _mapping_env(
    "MATCHING_TIER_THRESHOLDS",
    {"excellent": 75, "good": 50, "fair": 30},
)

# ---------------------------------------------------------------------------
# Auto-match defaults
# ---------------------------------------------------------------------------
AUTO_MIN_SCORE = _int_env("MATCHING_AUTO_MIN_SCORE", 50)
AUTO_MAX_MATCHES = _int_env("MATCHING_AUTO_MAX_MATCHES", 5)

# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------
HOST = os.getenv("MATCHING_HOST", "127.0.0.1")
PORT = _int_env("MATCHING_PORT", 8000)
