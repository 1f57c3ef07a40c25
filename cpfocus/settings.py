"""
User-tunable preferences — persisted to data/settings.json.

Import get_settings() anywhere to read current values.
Import update_settings(patch) to mutate and save.

``hint_intervals`` is repaired against the configured floor and gap before it
is stored, so readers always see a valid unlock schedule.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from .config import config
from .timer.schedule import DEFAULT_OFFSETS, repair_offsets

_FILE: Path = config.data_dir / "settings.json"

DEFAULTS: Dict[str, Any] = {
    "enabled": False,                 # blocking is opt-in
    "block_ai": False,                # redirect AI assistant sites
    "block_editorial": True,
    "block_solutions": True,
    "block_discussions": True,
    "block_hints": True,
    "block_topics": True,
    "timer_enabled": False,
    "show_focus_indicator": True,
    "hint_intervals": list(DEFAULT_OFFSETS),   # minutes for hint 1, 2, 3
}

_current: Dict[str, Any] = {}


def _coerce(key: str, value: Any) -> Any:
    if key == "hint_intervals":
        return repair_offsets(
            value, config.min_first_hint_minutes, config.min_hint_gap_minutes
        )
    return type(DEFAULTS[key])(value)


def _load() -> None:
    global _current
    _current = {k: _coerce(k, v) for k, v in DEFAULTS.items()}
    if _FILE.exists():
        try:
            saved = json.loads(_FILE.read_text())
            for k, v in saved.items():
                if k in DEFAULTS:
                    _current[k] = _coerce(k, v)
        except (ValueError, TypeError, AttributeError):
            pass  # malformed file, fall back to defaults


def get_settings() -> Dict[str, Any]:
    """Return a copy of the current settings dict."""
    if not _current:
        _load()
    return {k: list(v) if isinstance(v, list) else v for k, v in _current.items()}


def update_settings(patch: Dict[str, Any]) -> Dict[str, Any]:
    """Apply *patch* (unknown keys ignored), persist to disk, return full settings."""
    if not _current:
        _load()
    for k, v in patch.items():
        if k in DEFAULTS:
            _current[k] = _coerce(k, v)
    _FILE.parent.mkdir(parents=True, exist_ok=True)
    _FILE.write_text(json.dumps(_current, indent=2))
    return get_settings()


# Eagerly load on import
_load()
