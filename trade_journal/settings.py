"""User preferences persisted alongside the journal."""
import copy
from typing import Any, Dict

from .config import SETTINGS_KEY, DEFAULT_SETTINGS, CURRENCY_SYMBOLS
from .storage import KeyValueStore


def load_settings(store: KeyValueStore) -> Dict[str, Any]:
    """
    Returns the stored settings laid over the defaults.

    Each section is merged key by key, so settings saved by an older version
    still pick up newly added defaults.
    """
    settings = copy.deepcopy(DEFAULT_SETTINGS)
    stored = store.get(SETTINGS_KEY, {}) or {}

    for section, values in stored.items():
        if isinstance(values, dict) and isinstance(settings.get(section), dict):
            settings[section].update(values)
        else:
            settings[section] = values
    return settings


def save_settings(store: KeyValueStore, settings: Dict[str, Any]) -> Dict[str, Any]:
    """Merges the given sections into the stored settings and persists them."""
    merged = load_settings(store)
    for section, values in settings.items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = values
    store.set(SETTINGS_KEY, merged)
    return merged


def currency_symbol(currency_code: str) -> str:
    return CURRENCY_SYMBOLS.get((currency_code or '').lower(), '$')
