"""Parse Claude Code JSONL transcripts into classified timeline entries."""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterable

from spectator.date_utils import normalize_timestamp
from spectator.formatting import first_non_empty_line, truncate_line
from spectator.models import ALL_CATEGORIES, Entry, TaggedUserMessage

logger = logging.getLogger("spectator.parser")

_LINE_SPLIT_PATTERN = re.compile(r"\r?\n")
_TAG_PATTERN = re.compile(r"<(?P<tag>[^>]+)>(?P<content>\s*[^<]*?\s*)</(?P=tag)>")
_ID_FIELDS = ("uuid", "leafUuid", "messageId")
_TOOL_CONTENT_TYPES = {"tool_use", "tool_result"}
_PREVIEW_MAX_LENGTH = 120

_CATEGORY_BY_TYPE: dict[str, str] = {
    "summary": "summary",
    "file-history-snapshot": "snapshot",
    "queue-operation": "queue",
    "system": "system",
}
_CONVERSATION_TYPES = {"assistant", "user"}


def _reject_constant(token: str) -> Any:
    raise ValueError(f"Unexpected token {token} in JSON")


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def content_items(content: Any) -> list[Any]:
    """Normalize message content into a list of content items."""
    if isinstance(content, list):
        return content
    if content:
        return [content]
    return []


def message_content(data: Any) -> list[Any]:
    message = _as_dict(_as_dict(data).get("message"))
    return content_items(message.get("content"))


def contains_tool_content(content: Any) -> bool:
    return any(
        isinstance(item, dict) and item.get("type") in _TOOL_CONTENT_TYPES
        for item in content_items(content)
    )


def detect_category(data: Any) -> str:
    record = _as_dict(data)
    record_type = record.get("type")
    if not isinstance(record_type, str):
        return "other"
    if record_type in _CATEGORY_BY_TYPE:
        return _CATEGORY_BY_TYPE[record_type]
    if record_type in _CONVERSATION_TYPES:
        message = _as_dict(record.get("message"))
        if contains_tool_content(message.get("content")):
            return "tool"
        return "message"
    return "other"


def derive_role(data: Any) -> str | None:
    record = _as_dict(data)
    message = _as_dict(record.get("message"))
    if message.get("role"):
        return str(message["role"])
    if record.get("type"):
        return str(record["type"])
    return None


def derive_id(data: Any, fallback_index: int) -> str:
    record = _as_dict(data)
    for key in _ID_FIELDS:
        if record.get(key):
            return str(record[key])
    message = _as_dict(record.get("message"))
    if message.get("id"):
        return str(message["id"])
    return f"entry-{fallback_index}"


def _derive_timestamp(data: Any) -> str | None:
    record = _as_dict(data)
    value = record.get("timestamp")
    if value is None:
        value = _as_dict(record.get("message")).get("timestamp")
    return normalize_timestamp(value)


def parse_line(line: str, index: int) -> Entry:
    """Parse one non-empty transcript line. Never raises."""
    try:
        data = json.loads(line, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        logger.debug("Line %s is not valid JSON: %s", index, exc)
        return Entry(id=f"error-{index}", raw=line, error=str(exc) or "Unknown parse error", category="error")
    if data is None:
        return Entry(id=f"error-{index}", raw=line, error="Record is null", category="error")
    return Entry(
        id=derive_id(data, index),
        raw=line,
        data=data,
        category=detect_category(data),
        role=derive_role(data),
        timestamp=_derive_timestamp(data),
    )


def parse_jsonl(text: str) -> list[Entry]:
    """Split transcript text into lines and parse each one independently.

    Empty lines are dropped before indexing, so fallback ids (`entry-N`,
    `error-N`) count non-empty lines only.
    """
    if not text:
        return []
    lines = [line for line in _LINE_SPLIT_PATTERN.split(text) if line]
    return [parse_line(line, index) for index, line in enumerate(lines)]


def filter_entries(entries: list[Entry], categories: Iterable[str] | None = None) -> list[Entry]:
    active = set(categories or ())
    if not active:
        active = set(ALL_CATEGORIES)
    return [entry for entry in entries if entry.category in active]


def find_entry(entries: list[Entry], entry_id: str) -> Entry | None:
    # Ids can repeat when upstream data reuses them; the first one wins.
    for entry in entries:
        if entry.id == entry_id:
            return entry
    return None


def extract_text_from_content(content: Any) -> str:
    if not content:
        return ""
    if isinstance(content, str):
        return first_non_empty_line(content)
    for item in content_items(content):
        if isinstance(item, dict) and item.get("type") == "text" and isinstance(item.get("text"), str):
            return first_non_empty_line(item["text"])
    return ""


def extract_entry_preview(entry: Entry) -> str:
    if entry.error:
        return f"Parse error: {entry.error}"
    data = _as_dict(entry.data)
    record_type = data.get("type")
    if record_type == "summary":
        return truncate_line(str(data.get("summary") or ""), _PREVIEW_MAX_LENGTH)
    if record_type == "file-history-snapshot":
        return "File history snapshot"
    if record_type == "queue-operation":
        operation = str(data.get("operation") or "").strip()
        content = str(data.get("content") or "").strip()
        return truncate_line(" ".join(part for part in (operation, content) if part), _PREVIEW_MAX_LENGTH)
    if record_type == "system":
        return truncate_line(str(data.get("subtype") or "System event"), _PREVIEW_MAX_LENGTH)
    if record_type in _CONVERSATION_TYPES:
        message = _as_dict(data.get("message"))
        return truncate_line(extract_text_from_content(message.get("content")), _PREVIEW_MAX_LENGTH)
    return truncate_line(str(record_type or "Entry"), _PREVIEW_MAX_LENGTH)


def entry_role_label(entry: Entry) -> str:
    if entry.role:
        return entry.role
    if entry.error:
        return "error"
    return str(_as_dict(entry.data).get("type") or "entry")


def build_entry_tooltip(entry: Entry) -> str:
    role_label = entry_role_label(entry)
    title = f"{role_label}  {entry.timestamp}" if entry.timestamp else role_label
    preview = extract_entry_preview(entry)
    if not preview:
        return title
    return f"{title}\n{preview}"


def parse_tagged_user_message(content: str) -> TaggedUserMessage:
    """Recognize slash-command and local-command markup in user text."""
    tags: dict[str, str] = {}
    for match in _TAG_PATTERN.finditer(content or ""):
        tags.setdefault(match.group("tag"), match.group("content"))

    if "command-name" in tags:
        return TaggedUserMessage(
            kind="command",
            commandName=tags["command-name"],
            commandArgs=tags.get("command-args"),
            commandMessage=tags.get("command-message"),
        )
    if "local-command-stdout" in tags:
        return TaggedUserMessage(kind="local-command", stdout=tags["local-command-stdout"])
    return TaggedUserMessage(kind="text", content=content or "")
