"""Filesystem access to session transcripts and file-history backups."""
from __future__ import annotations

import asyncio
import logging
import os
import re
from pathlib import Path
from typing import Optional

from spectator import config
from spectator.models import SessionFile, SpectatorConfig

logger = logging.getLogger("spectator.store")

_SESSION_ID_PATTERN = re.compile(r"^[a-zA-Z0-9-]+$")
_BACKUP_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9@._-]+$")


class InvalidSessionIdError(ValueError):
    pass


class InvalidBackupNameError(ValueError):
    pass


class SessionNotFoundError(LookupError):
    pass


class BackupNotFoundError(LookupError):
    pass


def validate_session_id(session_id: str) -> str:
    if not _SESSION_ID_PATTERN.match(session_id or ""):
        raise InvalidSessionIdError("Invalid session id format.")
    return session_id


def validate_backup_name(backup: str) -> str:
    if not _BACKUP_NAME_PATTERN.match(backup or "") or ".." in backup:
        raise InvalidBackupNameError("Invalid backup file format.")
    return backup


def _read_dir(directory: Path) -> list[os.DirEntry]:
    try:
        with os.scandir(directory) as it:
            return sorted(it, key=lambda entry: entry.name)
    except OSError:
        return []


class SessionStore:
    """Locates session files under the configured roots.

    Directories are walked files-first, then subdirectories, down to
    `maxDepth` levels. Resolved session paths are cached by id.
    """

    def __init__(self, settings: SpectatorConfig, file_history_root: Optional[Path] = None):
        self.settings = settings
        self.file_history_root = file_history_root or config.FILE_HISTORY_ROOT
        self._session_paths: dict[str, Path] = {}

    # ── Listing ─────────────────────────────────────────────────────

    def list_session_files(self, limit: int = config.SESSION_LIST_LIMIT) -> list[SessionFile]:
        collected: list[SessionFile] = []
        for root in self.settings.roots:
            self._collect_files(Path(root), self.settings.maxDepth, collected, limit)
            if len(collected) >= limit:
                break
        return collected

    def _collect_files(self, directory: Path, depth: int, collected: list[SessionFile], limit: int) -> None:
        if depth < 0 or len(collected) >= limit:
            return
        entries = _read_dir(directory)
        if not entries:
            return

        for entry in entries:
            if len(collected) >= limit:
                return
            if entry.is_file() and entry.name.endswith(".jsonl"):
                full_path = os.path.join(str(directory), entry.name)
                try:
                    stats = entry.stat()
                    collected.append(SessionFile(path=full_path, mtimeMs=stats.st_mtime * 1000, size=stats.st_size))
                except OSError:
                    collected.append(SessionFile(path=full_path, mtimeMs=0, size=0))

        for entry in entries:
            if len(collected) >= limit:
                return
            if entry.is_dir():
                self._collect_files(Path(entry.path), depth - 1, collected, limit)

    # ── Session lookup ──────────────────────────────────────────────

    def find_session_file(self, session_id: str) -> Optional[Path]:
        cached = self._session_paths.get(session_id)
        if cached:
            return cached

        target = f"{session_id}.jsonl"
        for root in self.settings.roots:
            direct = Path(root) / target
            if direct.is_file():
                self._session_paths[session_id] = direct
                return direct
            found = self._scan_for_file(Path(root), target, self.settings.maxDepth)
            if found:
                self._session_paths[session_id] = found
                return found
        return None

    def _scan_for_file(self, directory: Path, target: str, depth: int) -> Optional[Path]:
        if depth < 0:
            return None
        entries = _read_dir(directory)
        for entry in entries:
            if entry.is_file() and entry.name == target:
                return Path(entry.path)
        for entry in entries:
            if not entry.is_dir():
                continue
            found = self._scan_for_file(Path(entry.path), target, depth - 1)
            if found:
                return found
        return None

    def read_session(self, session_id: str) -> tuple[Path, str]:
        validate_session_id(session_id)
        path = self.find_session_file(session_id)
        if path is None:
            raise SessionNotFoundError("Session not found.")
        try:
            return path, path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Failed to read session file {path}: {e}")
            self._session_paths.pop(session_id, None)
            raise SessionNotFoundError("Session file missing.") from e

    # ── Backups ─────────────────────────────────────────────────────

    def backup_path(self, session_id: str, backup: str) -> Path:
        validate_session_id(session_id)
        validate_backup_name(backup)
        return self.file_history_root / session_id / backup

    def read_backup(self, session_id: str, backup: str) -> str:
        path = self.backup_path(session_id, backup)
        if not path.is_file():
            raise BackupNotFoundError("Backup not found.")
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Failed to read backup {path}: {e}")
            raise BackupNotFoundError("Backup not found.") from e

    async def fetch_backup(self, session_id: str, backup: str) -> str:
        """Async backup fetcher for `BackupContentCache`."""
        return await asyncio.to_thread(self.read_backup, session_id, backup)

    def clear_cache(self) -> None:
        self._session_paths.clear()


_store: Optional[SessionStore] = None


def get_session_store() -> SessionStore:
    global _store
    if _store is None:
        _store = SessionStore(config.load_config())
    return _store


def set_session_store(store: Optional[SessionStore]) -> None:
    global _store
    _store = store
