"""
Central configuration for the CP Focus engine and hint service.
All values can be overridden via environment variables or a local config.json.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

_ROOT = Path(__file__).parent.parent
_CONFIG_FILE = _ROOT / "config.json"


@dataclass
class Config:
    # Focus engine API
    api_host: str = "127.0.0.1"
    api_port: int = 8770

    # Hint service API
    service_host: str = "127.0.0.1"
    service_port: int = 3000
    hint_service_url: str = "http://127.0.0.1:3000"
    hint_fetch_timeout_s: float = 30.0

    # Timer
    alarm_poll_interval_ms: int = 1000       # how often due wake triggers are swept
    min_first_hint_minutes: int = 20         # hint 1 never unlocks earlier
    min_hint_gap_minutes: int = 5            # minimum spacing between hints

    # Storage
    data_dir: Path = field(default_factory=lambda: _ROOT / "data")
    state_db: str = "focus_state.db"
    service_db: str = "hints_cache.db"

    # Generative AI
    gemini_api_key: str = field(default_factory=lambda: os.environ.get("GEMINI_API_KEY", ""))
    gemini_model: str = "gemini-2.5-flash"

    # Logging
    log_level: str = "INFO"

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def load(cls) -> "Config":
        cfg = cls()
        if _CONFIG_FILE.exists():
            overrides = json.loads(_CONFIG_FILE.read_text())
            for k, v in overrides.items():
                if hasattr(cfg, k):
                    setattr(cfg, k, v)
        # environment variable overrides (CPF_*)
        for k in cfg.__dataclass_fields__:  # type: ignore[attr-defined]
            env_key = f"CPF_{k.upper()}"
            if env_key in os.environ:
                setattr(cfg, k, type(getattr(cfg, k))(os.environ[env_key]))
        cfg.data_dir = Path(cfg.data_dir)
        return cfg


def log_config(level: str) -> dict:
    """dictConfig for uvicorn: one console handler shared by the app and server loggers."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {"format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"},
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "plain"},
        },
        "loggers": {
            "cpfocus": {"handlers": ["console"], "level": level, "propagate": False},
            "uvicorn": {"handlers": ["console"], "level": "INFO", "propagate": False},
            "uvicorn.error": {"handlers": ["console"], "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": ["console"], "level": "INFO", "propagate": False},
        },
    }


# Module-level singleton
config = Config.load()
