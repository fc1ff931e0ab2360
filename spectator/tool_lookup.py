"""Correlate tool_use invocations with the tool_result items that reference them."""
from __future__ import annotations

from typing import Any

from spectator.formatting import file_extension
from spectator.models import Entry, ToolResultContext, ToolUseInfo
from spectator.parsers.entries import message_content

ToolUseLookup = dict[str, ToolUseInfo]

_LANGUAGE_ALIASES: dict[str, str] = {
    "bash": "bash",
    "css": "css",
    "diff": "diff",
    "go": "go",
    "html": "html",
    "js": "javascript",
    "json": "json",
    "jsonl": "json",
    "jsx": "jsx",
    "md": "markdown",
    "python": "python",
    "py": "python",
    "rb": "ruby",
    "rs": "rust",
    "sh": "bash",
    "shell": "bash",
    "sql": "sql",
    "text": "plaintext",
    "toml": "toml",
    "ts": "typescript",
    "tsx": "tsx",
    "xml": "xml",
    "yaml": "yaml",
    "yml": "yaml",
    "zsh": "bash",
}

# Ordered (needles, language) hints for tool names without a file path.
_TOOL_NAME_LANGUAGES: list[tuple[tuple[str, ...], str]] = [
    (("bash", "shell"), "bash"),
    (("python",), "python"),
    (("sql",), "sql"),
    (("diff", "patch"), "diff"),
    (("node", "javascript"), "javascript"),
]


def build_tool_use_lookup(entries: list[Entry]) -> ToolUseLookup:
    """Index every tool_use item in the transcript by its invocation id.

    Later occurrences of an id overwrite earlier ones, so re-emitted tool
    metadata wins.
    """
    lookup: ToolUseLookup = {}
    for entry in entries:
        for item in message_content(entry.data):
            if not isinstance(item, dict) or item.get("type") != "tool_use":
                continue
            tool_id = item.get("id")
            if not tool_id:
                continue
            name = item.get("name")
            tool_input = item.get("input")
            lookup[str(tool_id)] = ToolUseInfo(
                id=str(tool_id),
                name=str(name) if name is not None else None,
                input=tool_input if isinstance(tool_input, dict) else None,
            )
    return lookup


def normalize_language(language: str | None) -> str | None:
    if not language:
        return None
    trimmed = language.strip().lower()
    if not trimmed:
        return None
    return _LANGUAGE_ALIASES.get(trimmed, trimmed)


def language_from_file_path(file_path: str | None) -> str | None:
    ext = file_extension(file_path)
    if not ext:
        return None
    return normalize_language(ext)


def language_for_tool(tool_name: str | None, file_path: str | None = None) -> str | None:
    from_path = language_from_file_path(file_path)
    if from_path:
        return from_path
    name = (tool_name or "").lower()
    if name == "js":
        return "javascript"
    for needles, language in _TOOL_NAME_LANGUAGES:
        if any(needle in name for needle in needles):
            return language
    return None


def tool_input_file_path(tool_input: dict[str, Any] | None) -> str | None:
    if not tool_input:
        return None
    for key in ("file_path", "path"):
        value = tool_input.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def resolve_tool_result(item: dict[str, Any], lookup: ToolUseLookup) -> ToolResultContext:
    """Annotate a tool_result item with its invocation's name, path and language.

    A result whose invocation is unknown stays an unnamed "Tool" without any
    input-derived context.
    """
    tool_use_id = str(item.get("tool_use_id") or "")
    info = lookup.get(tool_use_id)
    is_error = bool(item.get("is_error"))
    if info is None:
        return ToolResultContext(toolUseId=tool_use_id, isError=is_error)

    tool_name = info.name or "Tool"
    file_path = tool_input_file_path(info.input)
    language = language_for_tool(tool_name, file_path)
    return ToolResultContext(
        toolUseId=tool_use_id,
        toolName=tool_name,
        filePath=file_path,
        language=language,
        displayLanguage=file_extension(file_path) or language or "text",
        isError=is_error,
        resolved=True,
    )


def tool_results_for_entry(entry: Entry, lookup: ToolUseLookup) -> list[ToolResultContext]:
    return [
        resolve_tool_result(item, lookup)
        for item in message_content(entry.data)
        if isinstance(item, dict) and item.get("type") == "tool_result"
    ]
