"""Caller-owned cache of backup contents and diffs keyed by file/version."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from spectator.file_history import compute_diff
from spectator.models import DiffLine, DiffOutcome, FileBackupInfo

logger = logging.getLogger("spectator.backups")

BackupFetcher = Callable[[str, str], Awaitable[str]]


class BackupFetchError(Exception):
    """Backup content could not be retrieved."""


def previous_cache_key(key: str) -> str:
    return f"{key}-prev"


class BackupContentCache:
    """Holds fetched backup text, computed diffs and per-key fetch errors.

    Requests are not deduplicated: two loads of the same key both run and the
    one that finishes last wins. Errors stay recorded until a later load of
    the same key succeeds.
    """

    def __init__(self, session_id: str, fetcher: BackupFetcher):
        self.session_id = session_id
        self._fetcher = fetcher
        self.contents: dict[str, str] = {}
        self.diffs: dict[str, list[DiffLine]] = {}
        self.errors: dict[str, str] = {}
        self.loading: dict[str, bool] = {}

    def is_loading(self, key: str) -> bool:
        return bool(self.loading.get(key) or self.loading.get(previous_cache_key(key)))

    def error_for(self, key: str) -> Optional[str]:
        return self.errors.get(key) or self.errors.get(previous_cache_key(key)) or None

    async def fetch(self, key: str, backup_file_name: str) -> str:
        """Fetch one backup, tracking loading/error state under `key`."""
        if not self.session_id:
            raise BackupFetchError("No session selected")
        self.loading[key] = True
        self.errors.pop(key, None)
        try:
            return await self._fetcher(self.session_id, backup_file_name)
        except Exception as exc:
            message = str(exc) or "Failed to load backup"
            logger.warning(f"Backup fetch failed for {key} ({backup_file_name}): {message}")
            self.errors[key] = message
            raise BackupFetchError(message) from exc
        finally:
            self.loading[key] = False

    async def load(self, key: str, backup_file_name: str) -> Optional[str]:
        if key in self.contents:
            return self.contents[key]
        try:
            content = await self.fetch(key, backup_file_name)
        except BackupFetchError:
            return None
        self.contents[key] = content
        return content

    async def load_diff(
        self,
        key: str,
        backup_file_name: str,
        previous: Optional[FileBackupInfo],
    ) -> DiffOutcome:
        """Diff a backup against its previous version.

        Both versions are fetched concurrently; a diff is produced only when
        both succeed.
        """
        if previous is None:
            return DiffOutcome(status="no-previous")
        if key in self.diffs:
            return DiffOutcome(status="ok", lines=self.diffs[key])

        current_text, previous_text = await asyncio.gather(
            self.fetch(key, backup_file_name),
            self.fetch(previous_cache_key(key), previous.backupFileName),
            return_exceptions=True,
        )
        for result in (current_text, previous_text):
            if isinstance(result, BaseException):
                return DiffOutcome(status="failed", error=str(result) or "Failed to load backup")

        self.contents[key] = current_text
        self.contents[previous_cache_key(key)] = previous_text
        lines = compute_diff(previous_text, current_text)
        self.diffs[key] = lines
        return DiffOutcome(status="ok", lines=lines)

    def clear(self) -> None:
        self.contents.clear()
        self.diffs.clear()
        self.errors.clear()
        self.loading.clear()
