"""Pydantic models matching the frontend TypeScript types."""
from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

EntryCategory = Literal["message", "tool", "summary", "snapshot", "system", "queue", "other", "error"]
SessionSource = Literal["disk", "local"]
SortMode = Literal["recent", "oldest", "name"]
DiffLineType = Literal["added", "removed", "context"]

ALL_CATEGORIES: tuple[str, ...] = (
    "message",
    "tool",
    "summary",
    "snapshot",
    "system",
    "queue",
    "other",
    "error",
)


# ── Timeline models ────────────────────────────────────────────────

class Entry(BaseModel):
    id: str
    raw: str
    data: Any = None
    error: Optional[str] = None
    category: EntryCategory
    timestamp: Optional[str] = None
    role: Optional[str] = None


class ToolUseInfo(BaseModel):
    id: str
    name: Optional[str] = None
    input: Optional[dict[str, Any]] = None


class ToolResultContext(BaseModel):
    toolUseId: str = ""
    toolName: str = "Tool"
    filePath: Optional[str] = None
    language: Optional[str] = None
    displayLanguage: str = "text"
    isError: bool = False
    resolved: bool = False


class TaggedUserMessage(BaseModel):
    kind: Literal["command", "local-command", "text"]
    content: str = ""
    commandName: str = ""
    commandArgs: Optional[str] = None
    commandMessage: Optional[str] = None
    stdout: str = ""


# ── File history models ────────────────────────────────────────────

class FileBackupInfo(BaseModel):
    filePath: str
    backupFileName: str
    version: int = 0
    backupTime: Optional[str] = None


class DiffLine(BaseModel):
    type: DiffLineType
    content: str


class TextPreview(BaseModel):
    text: str = ""
    totalLines: int = 0
    truncated: bool = False
    limit: int
    hiddenLines: int = 0


class DiffPreview(BaseModel):
    lines: list[DiffLine] = Field(default_factory=list)
    totalLines: int = 0
    truncated: bool = False
    limit: int
    hiddenLines: int = 0


class DiffOutcome(BaseModel):
    status: Literal["ok", "no-previous", "failed"]
    lines: list[DiffLine] = Field(default_factory=list)
    error: Optional[str] = None


class SnapshotFile(BaseModel):
    filePath: str
    extension: str = ""
    version: int = 0
    backupTime: Optional[str] = None
    backupFileName: Optional[str] = None
    cacheKey: str
    previous: Optional[FileBackupInfo] = None


# ── Session listing models ─────────────────────────────────────────

class SessionFile(BaseModel):
    path: str
    mtimeMs: float = 0
    size: int = 0


class SessionListing(BaseModel):
    id: str
    path: str
    project: str
    projectSlug: str
    mtimeMs: float = 0
    size: int = 0
    source: SessionSource = "disk"


class SessionGroup(BaseModel):
    project: str
    projectSlug: str
    latestMtime: float = 0
    sessions: list[SessionListing] = Field(default_factory=list)


class ProjectNode(BaseModel):
    id: str
    name: str
    path: str
    latestMtime: float = 0
    sessionsCount: int = 0
    projectSlug: Optional[str] = None
    children: list[ProjectNode] = Field(default_factory=list)


# ── API payloads ───────────────────────────────────────────────────

class SpectatorConfig(BaseModel):
    roots: list[str] = Field(default_factory=list)
    maxDepth: int = 5
    port: int = 8787


class SessionListResponse(BaseModel):
    sessions: list[SessionFile] = Field(default_factory=list)


class ProjectTreeResponse(BaseModel):
    groups: list[SessionGroup] = Field(default_factory=list)
    tree: list[ProjectNode] = Field(default_factory=list)


class SessionResponse(BaseModel):
    sessionId: str
    path: str
    text: str


class TimelineResponse(BaseModel):
    sessionId: str
    path: str
    entries: list[Entry] = Field(default_factory=list)
    toolUses: dict[str, ToolUseInfo] = Field(default_factory=dict)
    fileHistory: dict[str, list[FileBackupInfo]] = Field(default_factory=dict)
    errorCount: int = 0


class BackupResponse(BaseModel):
    sessionId: str
    backup: str
    text: str
