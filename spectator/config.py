"""Spectator configuration."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from spectator.models import SpectatorConfig

logger = logging.getLogger("spectator")


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def expand_home(value: str) -> str:
    if value.startswith("~/"):
        return str(Path.home() / value[2:])
    return value


CLAUDE_DIR = Path(os.getenv("SPECTATOR_CLAUDE_DIR", str(Path.home() / ".claude"))).expanduser()

# Session roots and backup storage
DEFAULT_ROOTS = [str(CLAUDE_DIR / "projects")]
DEFAULT_MAX_DEPTH = 5
DEFAULT_PORT = 8787
CONFIG_PATH = Path(os.getenv("SPECTATOR_CONFIG_PATH", "spectator.config.json"))
FILE_HISTORY_ROOT = Path(
    os.getenv("SPECTATOR_FILE_HISTORY_ROOT", str(CLAUDE_DIR / "file-history"))
).expanduser()

# Display limits
PREVIEW_LINE_LIMIT = max(1, _env_int("SPECTATOR_PREVIEW_LINE_LIMIT", 10))
SESSION_LIST_LIMIT = max(1, _env_int("SPECTATOR_SESSION_LIST_LIMIT", 120))

# Observability
OTEL_ENABLED = _env_bool("SPECTATOR_OTEL_ENABLED", False)
OTEL_ENDPOINT = os.getenv("SPECTATOR_OTEL_ENDPOINT", "http://localhost:4318")
OTEL_SERVICE_NAME = os.getenv("SPECTATOR_OTEL_SERVICE_NAME", "spectator")
PROM_PORT = _env_int("SPECTATOR_PROM_PORT", 0)

# Server settings
HOST = os.getenv("SPECTATOR_HOST", "127.0.0.1")
STATIC_DIR = Path(os.getenv("SPECTATOR_STATIC_DIR", "dist"))

# CORS
FRONTEND_ORIGIN = os.getenv("SPECTATOR_FRONTEND_ORIGIN", "http://localhost:5173")


def default_config() -> SpectatorConfig:
    return SpectatorConfig(roots=list(DEFAULT_ROOTS), maxDepth=DEFAULT_MAX_DEPTH, port=DEFAULT_PORT)


def load_config(path: Path | None = None) -> SpectatorConfig:
    """Load `spectator.config.json`, falling back to defaults.

    A missing file is the normal case. An unreadable or malformed file is
    logged and ignored rather than aborting startup.
    """
    config_path = path or CONFIG_PATH
    defaults = default_config()
    if not config_path.exists():
        return defaults

    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except Exception as e:
        logger.warning(f"Failed to read config file {config_path}: {e}")
        return defaults
    if not isinstance(raw, dict):
        logger.warning(f"Ignoring config file {config_path}: expected a JSON object")
        return defaults

    roots = raw.get("roots")
    if not isinstance(roots, list):
        roots = defaults.roots
    try:
        return SpectatorConfig(
            roots=[expand_home(str(root)) for root in roots],
            maxDepth=raw.get("maxDepth", defaults.maxDepth),
            port=raw.get("port", defaults.port),
        )
    except Exception as e:
        logger.warning(f"Invalid config file {config_path}: {e}")
        return defaults
