"""Central configuration loader for BTC-Predictor."""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Project root is the parent of the btc_predictor/ directory
PROJECT_ROOT = Path(__file__).resolve().parent.parent

load_dotenv(PROJECT_ROOT / ".env")


def load_settings() -> dict:
    """Load settings from configs/settings.yaml (empty dict if absent)."""
    settings_path = PROJECT_ROOT / "configs" / "settings.yaml"
    if not settings_path.exists():
        return {}
    with open(settings_path) as f:
        return yaml.safe_load(f) or {}


SETTINGS = load_settings()


def setting(section: str, key: str, default=None):
    """Read ``SETTINGS[section][key]`` with a fallback."""
    return (SETTINGS.get(section) or {}).get(key, default)


# --- API Keys ---
class Keys:
    CRYPTOPANIC = os.getenv("CRYPTOPANIC_API_KEY", "")

