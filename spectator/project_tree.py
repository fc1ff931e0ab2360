"""Group session listings by project and build the navigable project tree."""
from __future__ import annotations

import re
from typing import Iterable

from spectator.models import ProjectNode, SessionFile, SessionGroup, SessionListing
from spectator.sorting import DEFAULT_SORT_MODE, sort_projects, sort_sessions

PATH_SEPARATOR = "/"
UNKNOWN_PROJECT_SLUG = "unknown"
LOCAL_IMPORTS_SLUG = "local-imports"
_JSONL_SUFFIX = re.compile(r"\.jsonl$", re.IGNORECASE)


def humanize_project_slug(slug: str) -> str:
    """Turn a Claude project directory name (`-Users-me-app`) into `Users/me/app`."""
    if slug.startswith("-"):
        return slug[1:].replace("-", PATH_SEPARATOR)
    return slug


def _path_segments(path: str) -> list[str]:
    return [segment for segment in path.split(PATH_SEPARATOR) if segment]


def to_session_listing(file: SessionFile) -> SessionListing:
    segments = _path_segments(file.path)
    filename = segments[-1] if segments else file.path
    project_slug = segments[-2] if len(segments) > 1 else UNKNOWN_PROJECT_SLUG
    return SessionListing(
        id=re.sub(r"\.jsonl$", "", filename),
        path=file.path,
        project=humanize_project_slug(project_slug),
        projectSlug=project_slug,
        mtimeMs=file.mtimeMs,
        size=file.size,
        source="disk",
    )


def to_local_session_listing(
    name: str,
    relative_path: str = "",
    mtime_ms: float = 0,
    size: int = 0,
) -> SessionListing | None:
    """Describe a user-imported file; non-`.jsonl` files are ignored."""
    if not name.lower().endswith(".jsonl"):
        return None
    path = relative_path or name
    segments = _path_segments(path)
    filename = segments[-1] if segments else name
    project_slug = segments[-2] if len(segments) > 1 else LOCAL_IMPORTS_SLUG
    return SessionListing(
        id=_JSONL_SUFFIX.sub("", filename),
        path=path,
        project=humanize_project_slug(project_slug),
        projectSlug=project_slug,
        mtimeMs=mtime_ms,
        size=size,
        source="local",
    )


def merge_local_listings(
    existing: list[SessionListing],
    incoming: Iterable[SessionListing | None],
) -> list[SessionListing]:
    merged = {listing.id: listing for listing in existing}
    for listing in incoming:
        if listing is None:
            continue
        merged[listing.id] = listing
    return list(merged.values())


def group_sessions(sessions: list[SessionListing], sort_mode: str | None = DEFAULT_SORT_MODE) -> list[SessionGroup]:
    grouped: dict[str, SessionGroup] = {}
    for session in sessions:
        existing = grouped.get(session.projectSlug)
        if existing:
            existing.sessions.append(session)
            existing.latestMtime = max(existing.latestMtime, session.mtimeMs)
        else:
            grouped[session.projectSlug] = SessionGroup(
                project=session.project,
                projectSlug=session.projectSlug,
                latestMtime=session.mtimeMs,
                sessions=[session],
            )

    groups = list(grouped.values())
    for group in groups:
        group.sessions = sort_sessions(group.sessions, sort_mode)
    return sort_projects(groups, sort_mode)


def _sort_nodes(nodes: list[ProjectNode]) -> None:
    nodes.sort(key=lambda node: (-node.latestMtime, node.name.casefold(), node.name))
    for node in nodes:
        _sort_nodes(node.children)


def build_project_tree(groups: list[SessionGroup]) -> list[ProjectNode]:
    """Nest groups by their `/`-separated project label.

    Every prefix of a label gets one node. A node aggregates the session
    count and latest mtime of all groups below it; only the node that ends a
    group's label carries that group's slug.
    """
    roots: list[ProjectNode] = []
    nodes_by_path: dict[str, ProjectNode] = {}

    for group in groups:
        segments = _path_segments(group.project)
        parent: ProjectNode | None = None
        path_parts: list[str] = []
        for index, segment in enumerate(segments):
            path_parts.append(segment)
            path = PATH_SEPARATOR.join(path_parts)
            node = nodes_by_path.get(path)
            if node is None:
                node = ProjectNode(id=path, name=segment, path=path, latestMtime=group.latestMtime)
                nodes_by_path[path] = node
                if parent is not None:
                    parent.children.append(node)
                else:
                    roots.append(node)
            node.latestMtime = max(node.latestMtime, group.latestMtime)
            node.sessionsCount += len(group.sessions)
            if index == len(segments) - 1:
                node.projectSlug = group.projectSlug
            parent = node

    _sort_nodes(roots)
    return roots


def filter_project_tree(nodes: list[ProjectNode], query: str) -> list[ProjectNode]:
    """Keep nodes matching `query` plus every ancestor of a match.

    Survivors are copies; the input tree is left untouched so it can be
    filtered again on the next keystroke.
    """
    needle = (query or "").strip().lower()
    if not needle:
        return nodes

    def matches(node: ProjectNode) -> bool:
        return needle in node.name.lower() or needle in node.path.lower()

    def filter_nodes(items: list[ProjectNode]) -> list[ProjectNode]:
        result: list[ProjectNode] = []
        for node in items:
            children = filter_nodes(node.children)
            if matches(node) or children:
                result.append(node.model_copy(update={"children": children}))
        return result

    return filter_nodes(nodes)


def is_session_in_project(session: SessionListing, project_path: str) -> bool:
    if session.project == project_path:
        return True
    return session.project.startswith(f"{project_path}{PATH_SEPARATOR}")


def sessions_in_project(
    sessions: list[SessionListing],
    project_path: str | None,
    sort_mode: str | None = DEFAULT_SORT_MODE,
) -> list[SessionListing]:
    if not project_path:
        return sort_sessions(sessions, sort_mode)
    scoped = [session for session in sessions if is_session_in_project(session, project_path)]
    return sort_sessions(scoped, sort_mode)
