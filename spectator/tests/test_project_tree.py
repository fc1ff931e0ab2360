import unittest

from spectator.models import SessionFile, SessionGroup, SessionListing
from spectator.project_tree import (
    build_project_tree,
    filter_project_tree,
    group_sessions,
    humanize_project_slug,
    is_session_in_project,
    merge_local_listings,
    sessions_in_project,
    to_local_session_listing,
    to_session_listing,
)


def _listing(session_id: str, project: str, mtime: float, slug: str | None = None) -> SessionListing:
    return SessionListing(
        id=session_id,
        path=f"/{slug or project}/{session_id}.jsonl",
        project=project,
        projectSlug=slug or project,
        mtimeMs=mtime,
        size=10,
    )


def _group(project: str, slug: str, mtime: float, count: int) -> SessionGroup:
    return SessionGroup(
        project=project,
        projectSlug=slug,
        latestMtime=mtime,
        sessions=[_listing(f"{slug}-{i}", project, mtime, slug) for i in range(count)],
    )


class ProjectListingTests(unittest.TestCase):
    def test_humanize_project_slug(self) -> None:
        self.assertEqual(humanize_project_slug("-Users-me-app"), "Users/me/app")
        self.assertEqual(humanize_project_slug("plain-name"), "plain-name")

    def test_disk_listing_derives_project_from_parent_directory(self) -> None:
        listing = to_session_listing(
            SessionFile(path="/home/me/.claude/projects/-Users-me-app/abc-123.jsonl", mtimeMs=5, size=42)
        )

        self.assertEqual(listing.id, "abc-123")
        self.assertEqual(listing.projectSlug, "-Users-me-app")
        self.assertEqual(listing.project, "Users/me/app")
        self.assertEqual(listing.source, "disk")
        self.assertEqual(listing.size, 42)

    def test_disk_listing_without_directory_is_unknown(self) -> None:
        listing = to_session_listing(SessionFile(path="abc.jsonl"))

        self.assertEqual(listing.id, "abc")
        self.assertEqual(listing.projectSlug, "unknown")

    def test_local_listing(self) -> None:
        self.assertIsNone(to_local_session_listing("notes.txt"))

        loose = to_local_session_listing("s1.jsonl", mtime_ms=3)
        nested = to_local_session_listing("s2.JSONL", relative_path="-Users-me-app/s2.JSONL")

        self.assertEqual(loose.projectSlug, "local-imports")
        self.assertEqual(loose.source, "local")
        self.assertEqual(nested.id, "s2")
        self.assertEqual(nested.project, "Users/me/app")

    def test_merge_local_listings_replaces_by_id(self) -> None:
        existing = [to_local_session_listing("a.jsonl", mtime_ms=1), to_local_session_listing("b.jsonl", mtime_ms=1)]

        merged = merge_local_listings(existing, [to_local_session_listing("a.jsonl", mtime_ms=9), None])

        self.assertEqual(len(merged), 2)
        self.assertEqual({item.id: item.mtimeMs for item in merged}, {"a": 9, "b": 1})

    def test_group_sessions_orders_groups_and_sessions(self) -> None:
        sessions = [
            _listing("old", "Alpha", 1),
            _listing("new", "Alpha", 30),
            _listing("mid", "Beta", 20),
        ]

        groups = group_sessions(sessions, "recent")

        self.assertEqual([group.project for group in groups], ["Alpha", "Beta"])
        self.assertEqual(groups[0].latestMtime, 30)
        self.assertEqual([session.id for session in groups[0].sessions], ["new", "old"])

        oldest = group_sessions(sessions, "oldest")
        self.assertEqual([group.project for group in oldest], ["Beta", "Alpha"])
        self.assertEqual([session.id for session in oldest[1].sessions], ["old", "new"])

    def test_project_scoping(self) -> None:
        bar = _listing("s1", "Foo/Bar", 1)
        barn = _listing("s2", "Foo/Barn", 2)

        self.assertTrue(is_session_in_project(bar, "Foo/Bar"))
        self.assertTrue(is_session_in_project(bar, "Foo"))
        self.assertFalse(is_session_in_project(barn, "Foo/Bar"))
        self.assertEqual([item.id for item in sessions_in_project([bar, barn], "Foo/Bar")], ["s1"])
        self.assertEqual([item.id for item in sessions_in_project([bar, barn], None)], ["s2", "s1"])


class ProjectTreeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.groups = [
            _group("Foo/Bar", "foo-bar", 10, 2),
            _group("Foo/Baz", "foo-baz", 20, 1),
        ]

    def test_tree_aggregates_counts_and_latest_mtime(self) -> None:
        tree = build_project_tree(self.groups)

        self.assertEqual(len(tree), 1)
        root = tree[0]
        self.assertEqual(root.name, "Foo")
        self.assertEqual(root.path, "Foo")
        self.assertEqual(root.sessionsCount, 3)
        self.assertEqual(root.latestMtime, 20)
        self.assertIsNone(root.projectSlug)
        self.assertEqual([child.name for child in root.children], ["Baz", "Bar"])
        self.assertEqual(root.children[0].path, "Foo/Baz")
        self.assertEqual(root.children[0].projectSlug, "foo-baz")
        self.assertEqual(root.children[1].sessionsCount, 2)

    def test_group_ending_on_intermediate_node_gets_slug(self) -> None:
        tree = build_project_tree(self.groups + [_group("Foo", "foo", 5, 1)])

        self.assertEqual(tree[0].projectSlug, "foo")
        self.assertEqual(tree[0].sessionsCount, 4)

    def test_filter_keeps_ancestors_of_matches_without_mutating_input(self) -> None:
        tree = build_project_tree(self.groups)

        filtered = filter_project_tree(tree, "baz")

        self.assertEqual(len(filtered), 1)
        self.assertEqual([child.name for child in filtered[0].children], ["Baz"])
        self.assertEqual(len(tree[0].children), 2)

    def test_filter_with_blank_query_returns_tree_unchanged(self) -> None:
        tree = build_project_tree(self.groups)

        self.assertIs(filter_project_tree(tree, "  "), tree)
        self.assertEqual(filter_project_tree(tree, "nothing-matches"), [])

    def test_filter_matches_path_case_insensitively(self) -> None:
        tree = build_project_tree(self.groups)

        filtered = filter_project_tree(tree, "FOO/BA")

        self.assertEqual(len(filtered[0].children), 2)


if __name__ == "__main__":
    unittest.main()
