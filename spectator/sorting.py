"""Ordering policies for session lists and project groups."""
from __future__ import annotations

from spectator.models import SessionGroup, SessionListing

SORT_OPTIONS: list[tuple[str, str]] = [
    ("Most recent", "recent"),
    ("Oldest first", "oldest"),
    ("Session id", "name"),
]
DEFAULT_SORT_MODE = "recent"


def normalize_sort_mode(sort_mode: str | None) -> str:
    token = (sort_mode or "").strip().lower()
    if token in {"recent", "oldest", "name"}:
        return token
    return DEFAULT_SORT_MODE


def _name_key(value: str) -> tuple[str, str]:
    return value.casefold(), value


def sort_sessions(sessions: list[SessionListing], sort_mode: str | None = DEFAULT_SORT_MODE) -> list[SessionListing]:
    mode = normalize_sort_mode(sort_mode)
    if mode == "oldest":
        return sorted(sessions, key=lambda session: session.mtimeMs)
    if mode == "name":
        return sorted(sessions, key=lambda session: _name_key(session.id))
    return sorted(sessions, key=lambda session: session.mtimeMs, reverse=True)


def sort_projects(groups: list[SessionGroup], sort_mode: str | None = DEFAULT_SORT_MODE) -> list[SessionGroup]:
    mode = normalize_sort_mode(sort_mode)
    if mode == "oldest":
        return sorted(groups, key=lambda group: group.latestMtime)
    if mode == "name":
        return sorted(groups, key=lambda group: _name_key(group.project))
    return sorted(groups, key=lambda group: group.latestMtime, reverse=True)
