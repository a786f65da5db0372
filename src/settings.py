"""Static configuration for feedback-board.

All user-editable settings (storage location, dedup threshold, logging) live
in a single JSON file for quick edits without touching Python.
"""

import json
import os

from dotenv import load_dotenv

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

# FEEDBACK_BOARD_CONFIG may point at an alternative config.json (e.g. from .env).
CONFIG_PATH = os.getenv("FEEDBACK_BOARD_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# One CSV file per record kind, created with only a header on first access.
_storage = _CONFIG.get("storage", {})
DATA_DIR = _resolve_path(_storage.get("data_dir", "data"))
BUGS_PATH = os.path.join(DATA_DIR, _storage.get("bugs_file", "bugs.csv"))
FEATURES_PATH = os.path.join(DATA_DIR, _storage.get("features_file", "features.csv"))

# Submissions whose word overlap with an existing record reaches this ratio
# are reported as duplicates instead of being stored.
_dedup = _CONFIG.get("dedup", {})
SIMILARITY_THRESHOLD = float(_dedup.get("similarity_threshold", 0.7))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
