"""Per-user preferences (profile and settings) persisted as JSON."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pycountry

from .config import DEFAULT_CURRENCY, PREFERENCES_DIR
from .formatting import get_initials

logger = logging.getLogger(__name__)

DEFAULT_PREFERENCES: Dict[str, Any] = {
    'display_name': '',
    'currency': DEFAULT_CURRENCY,
    'language': 'en',
    'notify_budget_warnings': True,
    'notify_weekly_reports': True,
    'dark_mode': False,
}


def _safe_user_key(user_id: str) -> str:
    cleaned = ''.join(c for c in user_id if c.isalnum() or c in {'_', '-', '.', '@'})
    return cleaned.strip('.') or 'anonymous'


def preferences_path(user_id: str, directory: Path | None = None) -> Path:
    return (directory or PREFERENCES_DIR) / f"{_safe_user_key(user_id)}.json"


def currency_choices() -> List[Tuple[str, str]]:
    """ISO 4217 currencies as ``(code, name)`` pairs sorted by code."""
    return sorted((c.alpha_3, c.name) for c in pycountry.currencies)


SUPPORTED_LANGUAGES = ('en', 'es', 'fr', 'de', 'ar')


def language_choices() -> List[Tuple[str, str]]:
    """Supported interface languages as ``(code, name)`` pairs."""
    return [(code, pycountry.languages.get(alpha_2=code).name) for code in SUPPORTED_LANGUAGES]


def is_valid_currency(code: str) -> bool:
    return bool(code) and pycountry.currencies.get(alpha_3=code.upper()) is not None


def load_preferences(user_id: str, directory: Path | None = None) -> Dict[str, Any]:
    target = preferences_path(user_id, directory)
    if not target.exists():
        return DEFAULT_PREFERENCES.copy()
    try:
        with target.open('r', encoding='utf-8') as handle:
            data = json.load(handle)
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Could not read preferences for %s: %s", user_id, exc)
        return DEFAULT_PREFERENCES.copy()
    if not isinstance(data, dict):
        return DEFAULT_PREFERENCES.copy()
    merged = DEFAULT_PREFERENCES.copy()
    merged.update({k: v for k, v in data.items() if k in DEFAULT_PREFERENCES})
    return merged


def save_preferences(user_id: str, preferences: Dict[str, Any], directory: Path | None = None) -> Dict[str, Any]:
    """Validate and write preferences, returning what was stored.

    Raises:
        ValueError: If the currency is not an ISO 4217 code or the
            language is not supported.
    """
    merged = DEFAULT_PREFERENCES.copy()
    merged.update({k: v for k, v in preferences.items() if k in DEFAULT_PREFERENCES})
    merged['currency'] = str(merged['currency']).upper()
    if not is_valid_currency(merged['currency']):
        raise ValueError(f"Unknown currency code: {merged['currency']!r}")
    if merged['language'] not in SUPPORTED_LANGUAGES:
        raise ValueError(f"Unsupported language: {merged['language']!r}")
    merged['display_name'] = str(merged['display_name']).strip()

    target = preferences_path(user_id, directory)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open('w', encoding='utf-8') as handle:
        json.dump(merged, handle, indent=2, sort_keys=True)
    logger.info("Saved preferences for %s", user_id)
    return merged


def display_name(user_id: str, preferences: Dict[str, Any]) -> str:
    """Preferred display name, falling back to the local part of an email."""
    name = preferences.get('display_name') or ''
    if name:
        return name
    return user_id.split('@')[0] if user_id else 'User'


def avatar_initials(user_id: str, preferences: Dict[str, Any]) -> str:
    return get_initials(display_name(user_id, preferences))
