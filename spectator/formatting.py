"""Display formatting helpers shared by list, tree and timeline views."""
from __future__ import annotations

import json
from datetime import timezone
from typing import Any

from spectator.date_utils import to_datetime

DATE_PLACEHOLDER = "n/a"
_BYTE_UNITS = ("B", "KB", "MB", "GB")


def format_bytes(size: float | int | None) -> str:
    if not size:
        return "0 B"
    value = float(size)
    index = 0
    while value >= 1024 and index < len(_BYTE_UNITS) - 1:
        value /= 1024
        index += 1
    if value < 10:
        return f"{value:.1f} {_BYTE_UNITS[index]}"
    return f"{value:.0f} {_BYTE_UNITS[index]}"


def format_date_time(value: Any) -> str:
    """Format epoch milliseconds or a date string; never raises."""
    if not value or value == DATE_PLACEHOLDER:
        return DATE_PLACEHOLDER
    parsed = to_datetime(value)
    if parsed is None:
        return DATE_PLACEHOLDER
    try:
        return parsed.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
    except (OverflowError, ValueError):
        return DATE_PLACEHOLDER


def pretty_json(value: Any) -> str:
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, indent=2, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)


def first_non_empty_line(text: str) -> str:
    for line in text.splitlines():
        trimmed = line.strip()
        if trimmed:
            return trimmed
    return text.strip()


def truncate_line(text: str, max_length: int) -> str:
    if not text:
        return ""
    trimmed = text.strip()
    if len(trimmed) <= max_length:
        return trimmed
    return f"{trimmed[: max_length - 3]}..."


def file_extension(file_path: str | None) -> str:
    if not file_path:
        return ""
    last_segment = file_path.split("/")[-1]
    parts = last_segment.split(".")
    if len(parts) < 2:
        return ""
    return parts[-1]
