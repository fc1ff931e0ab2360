"""API routers for session listings, timelines and file-history backups."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from spectator import config
from spectator.backup_cache import BackupContentCache
from spectator.file_history import backup_cache_key, build_file_history_index, find_previous_backup
from spectator.models import (
    BackupResponse,
    DiffOutcome,
    ProjectTreeResponse,
    SessionListResponse,
    SessionResponse,
    TimelineResponse,
)
from spectator.observability import record_backup_fetch
from spectator.parsers.entries import parse_jsonl
from spectator.project_tree import build_project_tree, filter_project_tree, group_sessions, to_session_listing
from spectator.services.timeline import build_timeline
from spectator.session_store import (
    BackupNotFoundError,
    SessionNotFoundError,
    get_session_store,
    validate_session_id,
)

health_router = APIRouter(prefix="/api", tags=["health"])
sessions_router = APIRouter(prefix="/api", tags=["sessions"])
file_history_router = APIRouter(prefix="/api/file-history", tags=["file-history"])


def _read_session(session_id: str) -> tuple[str, str]:
    store = get_session_store()
    try:
        path, text = store.read_session(session_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return str(path), text


@health_router.get("/health")
def health():
    """Health check endpoint."""
    return {"ok": True}


# ── Sessions ───────────────────────────────────────────────────────

@sessions_router.get("/sessions", response_model=SessionListResponse)
def list_sessions(limit: int = Query(config.SESSION_LIST_LIMIT, ge=1, le=5000)):
    """List session files found under the configured roots."""
    return SessionListResponse(sessions=get_session_store().list_session_files(limit))


@sessions_router.get("/projects", response_model=ProjectTreeResponse)
def list_projects(
    sort: str = Query("recent", description="recent | oldest | name"),
    query: str = Query("", description="Substring filter for project names and paths"),
    limit: int = Query(config.SESSION_LIST_LIMIT, ge=1, le=5000),
):
    """Group listed sessions by project and return the project tree."""
    files = get_session_store().list_session_files(limit)
    groups = group_sessions([to_session_listing(file) for file in files], sort)
    tree = filter_project_tree(build_project_tree(groups), query)
    return ProjectTreeResponse(groups=groups, tree=tree)


@sessions_router.get("/session/{session_id}", response_model=SessionResponse)
def get_session(session_id: str):
    """Return the raw transcript text for a session."""
    path, text = _read_session(session_id)
    return SessionResponse(sessionId=session_id, path=path, text=text)


@sessions_router.get("/session/{session_id}/timeline", response_model=TimelineResponse)
def get_session_timeline(
    session_id: str,
    category: Optional[list[str]] = Query(None, description="Categories to keep; all when omitted"),
):
    """Parse a session into entries plus tool-use and file-history indexes."""
    path, text = _read_session(session_id)
    return build_timeline(session_id, path, text, category)


@sessions_router.get("/session/{session_id}/diff", response_model=DiffOutcome)
async def get_backup_diff(
    session_id: str,
    filePath: str = Query(..., description="Tracked file path"),
    version: int = Query(..., ge=0, description="Backup version to diff against its predecessor"),
    backup: Optional[str] = Query(None, description="Backup file name when several share a version"),
):
    """Diff one backup version of a file against the previous one.

    Without `backup`, the first backup recorded for the version is used.
    """
    _, text = _read_session(session_id)
    index = build_file_history_index(parse_jsonl(text))
    current = next(
        (
            item
            for item in index.get(filePath, [])
            if item.version == version and (backup is None or item.backupFileName == backup)
        ),
        None,
    )
    if current is None:
        raise HTTPException(status_code=404, detail="Backup version not found.")

    store = get_session_store()
    cache = BackupContentCache(session_id, store.fetch_backup)
    outcome = await cache.load_diff(
        backup_cache_key(filePath, version),
        current.backupFileName,
        find_previous_backup(filePath, version, index),
    )
    if outcome.status != "no-previous":
        record_backup_fetch("success" if outcome.status == "ok" else "failure")
    return outcome


# ── File history ───────────────────────────────────────────────────

@file_history_router.get("/{session_id}/{backup}", response_model=BackupResponse)
def get_backup(session_id: str, backup: str):
    """Return the content of one file-history backup."""
    store = get_session_store()
    try:
        validate_session_id(session_id)
        text = store.read_backup(session_id, backup)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except BackupNotFoundError as e:
        record_backup_fetch("not_found")
        raise HTTPException(status_code=404, detail=str(e))
    record_backup_fetch("success")
    return BackupResponse(sessionId=session_id, backup=backup, text=text)
