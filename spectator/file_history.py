"""File-history snapshot indexing, version lookup and line diffs."""
from __future__ import annotations

from typing import Any

from spectator import config
from spectator.formatting import file_extension
from spectator.models import DiffLine, DiffPreview, Entry, FileBackupInfo, SnapshotFile, TextPreview

FileHistoryIndex = dict[str, list[FileBackupInfo]]

SNAPSHOT_TYPE = "file-history-snapshot"


def _coerce_version(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return 0


def tracked_file_backups(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict) or data.get("type") != SNAPSHOT_TYPE:
        return {}
    snapshot = data.get("snapshot")
    if not isinstance(snapshot, dict):
        return {}
    tracked = snapshot.get("trackedFileBackups")
    return tracked if isinstance(tracked, dict) else {}


def backup_cache_key(file_path: str, version: int) -> str:
    return f"{file_path}@{version}"


def build_file_history_index(entries: list[Entry]) -> FileHistoryIndex:
    """Collect every tracked backup across snapshots, keyed by file path.

    Identical (path, backup file, version) triples seen in several snapshots
    are kept once. Each path's list is sorted by version.
    """
    index: FileHistoryIndex = {}
    seen: set[tuple[str, str, int]] = set()

    for entry in entries:
        for file_path, info in tracked_file_backups(entry.data).items():
            if not isinstance(info, dict):
                continue
            backup_file_name = info.get("backupFileName")
            if not backup_file_name or not isinstance(backup_file_name, str):
                continue
            version = _coerce_version(info.get("version"))
            key = (file_path, backup_file_name, version)
            if key in seen:
                continue
            seen.add(key)
            backup_time = info.get("backupTime")
            index.setdefault(file_path, []).append(
                FileBackupInfo(
                    filePath=file_path,
                    backupFileName=backup_file_name,
                    version=version,
                    backupTime=str(backup_time) if backup_time else None,
                )
            )

    for backups in index.values():
        backups.sort(key=lambda item: item.version)
    return index


def find_previous_backup(file_path: str, version: int, index: FileHistoryIndex) -> FileBackupInfo | None:
    backups = index.get(file_path)
    if not backups or not version:
        return None
    previous: FileBackupInfo | None = None
    for backup in backups:
        if backup.version < version:
            previous = backup
    return previous


def compute_diff(old_text: str, new_text: str) -> list[DiffLine]:
    """Positional line diff between two texts.

    Lines are compared index by index, not aligned by longest common
    subsequence: an inserted or deleted line shifts everything after it and
    shows up as paired removed/added lines.
    """
    old_lines = old_text.split("\n")
    new_lines = new_text.split("\n")
    diff: list[DiffLine] = []

    for i in range(max(len(old_lines), len(new_lines))):
        old_line = old_lines[i] if i < len(old_lines) else None
        new_line = new_lines[i] if i < len(new_lines) else None
        if old_line is not None and old_line == new_line:
            diff.append(DiffLine(type="context", content=old_line))
            continue
        if old_line is not None:
            diff.append(DiffLine(type="removed", content=old_line))
        if new_line is not None:
            diff.append(DiffLine(type="added", content=new_line))

    return diff


def preview_text(text: str, limit: int | None = None) -> TextPreview:
    limit = limit or config.PREVIEW_LINE_LIMIT
    if not text:
        return TextPreview(limit=limit)
    normalized = text.replace("\r\n", "\n")
    lines = normalized.split("\n")
    if normalized.endswith("\n"):
        lines = lines[:-1]
    total = len(lines)
    truncated = total > limit
    return TextPreview(
        text="\n".join(lines[:limit] if truncated else lines),
        totalLines=total,
        truncated=truncated,
        limit=limit,
        hiddenLines=max(0, total - limit),
    )


def preview_diff(lines: list[DiffLine], limit: int | None = None) -> DiffPreview:
    limit = limit or config.PREVIEW_LINE_LIMIT
    total = len(lines)
    return DiffPreview(
        lines=lines[:limit],
        totalLines=total,
        truncated=total > limit,
        limit=limit,
        hiddenLines=max(0, total - limit),
    )


def snapshot_files(entry: Entry, index: FileHistoryIndex) -> list[SnapshotFile]:
    """Describe each tracked file of a snapshot entry for the snapshot card."""
    files: list[SnapshotFile] = []
    for file_path, info in tracked_file_backups(entry.data).items():
        info = info if isinstance(info, dict) else {}
        version = _coerce_version(info.get("version"))
        backup_file_name = info.get("backupFileName")
        backup_time = info.get("backupTime")
        files.append(
            SnapshotFile(
                filePath=file_path,
                extension=file_extension(file_path),
                version=version,
                backupTime=str(backup_time) if backup_time else None,
                backupFileName=backup_file_name if isinstance(backup_file_name, str) and backup_file_name else None,
                cacheKey=backup_cache_key(file_path, version),
                previous=find_previous_backup(file_path, version, index),
            )
        )
    return files
