"""Assemble a session timeline and its lookup indexes from transcript text."""
from __future__ import annotations

import logging
import time
from typing import Iterable

from spectator.file_history import build_file_history_index
from spectator.models import TimelineResponse
from spectator.observability import record_parser_failure, record_session_parse, start_span
from spectator.parsers.entries import filter_entries, parse_jsonl
from spectator.tool_lookup import build_tool_use_lookup

logger = logging.getLogger("spectator")


def build_timeline(
    session_id: str,
    path: str,
    text: str,
    categories: Iterable[str] | None = None,
) -> TimelineResponse:
    """Parse `text` and derive both indexes from the full, unfiltered entry list.

    Category filtering applies to the returned entries only, so a tool result
    can still be resolved when its invocation was filtered out.
    """
    started = time.perf_counter()
    with start_span("spectator.timeline.build", {"session.id": session_id}):
        entries = parse_jsonl(text)
        tool_uses = build_tool_use_lookup(entries)
        file_history = build_file_history_index(entries)

    error_count = sum(1 for entry in entries if entry.category == "error")
    duration_ms = (time.perf_counter() - started) * 1000
    if error_count:
        logger.info(f"Session {session_id}: {error_count} of {len(entries)} lines failed to parse")
        record_parser_failure("jsonl", error_count)
    record_session_parse("partial" if error_count else "success", duration_ms)

    return TimelineResponse(
        sessionId=session_id,
        path=path,
        entries=filter_entries(entries, categories),
        toolUses=tool_uses,
        fileHistory=file_history,
        errorCount=error_count,
    )
