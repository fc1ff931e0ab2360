import json
import unittest

from spectator.parsers.entries import parse_jsonl
from spectator.tool_lookup import (
    build_tool_use_lookup,
    language_for_tool,
    normalize_language,
    resolve_tool_result,
    tool_results_for_entry,
)


def _assistant_tool_use(tool_id: str, name: str, tool_input) -> dict:
    return {
        "type": "assistant",
        "message": {
            "role": "assistant",
            "content": [{"type": "tool_use", "id": tool_id, "name": name, "input": tool_input}],
        },
    }


class ToolLookupTests(unittest.TestCase):
    def _entries(self, *records):
        return parse_jsonl("\n".join(json.dumps(record) for record in records))

    def test_lookup_indexes_every_tool_use_and_last_write_wins(self) -> None:
        entries = self._entries(
            _assistant_tool_use("toolu_1", "Read", {"file_path": "/tmp/a.py"}),
            _assistant_tool_use("toolu_2", "Bash", {"command": "ls"}),
            _assistant_tool_use("toolu_1", "Edit", {"file_path": "/tmp/b.ts"}),
            {"type": "user", "message": {"role": "user", "content": "no tools here"}},
        )

        lookup = build_tool_use_lookup(entries)

        self.assertEqual(set(lookup), {"toolu_1", "toolu_2"})
        self.assertEqual(lookup["toolu_1"].name, "Edit")
        self.assertEqual(lookup["toolu_1"].input, {"file_path": "/tmp/b.ts"})
        self.assertEqual(build_tool_use_lookup(entries), lookup)

    def test_non_object_input_is_dropped(self) -> None:
        entries = self._entries(_assistant_tool_use("toolu_1", "Weird", "not a dict"))

        lookup = build_tool_use_lookup(entries)

        self.assertIsNone(lookup["toolu_1"].input)

    def test_resolved_result_carries_tool_name_path_and_language(self) -> None:
        lookup = build_tool_use_lookup(self._entries(_assistant_tool_use("toolu_1", "Read", {"file_path": "/src/app.py"})))

        context = resolve_tool_result({"type": "tool_result", "tool_use_id": "toolu_1"}, lookup)

        self.assertTrue(context.resolved)
        self.assertEqual(context.toolName, "Read")
        self.assertEqual(context.filePath, "/src/app.py")
        self.assertEqual(context.language, "python")
        self.assertEqual(context.displayLanguage, "py")
        self.assertFalse(context.isError)

    def test_unresolved_result_falls_back_to_generic_tool(self) -> None:
        context = resolve_tool_result(
            {"type": "tool_result", "tool_use_id": "toolu_missing", "is_error": True},
            {},
        )

        self.assertFalse(context.resolved)
        self.assertEqual(context.toolName, "Tool")
        self.assertEqual(context.toolUseId, "toolu_missing")
        self.assertIsNone(context.filePath)
        self.assertIsNone(context.language)
        self.assertEqual(context.displayLanguage, "text")
        self.assertTrue(context.isError)

    def test_language_from_tool_name_without_path(self) -> None:
        lookup = build_tool_use_lookup(self._entries(_assistant_tool_use("toolu_1", "Bash", {"command": "ls"})))

        context = resolve_tool_result({"tool_use_id": "toolu_1"}, lookup)

        self.assertEqual(context.language, "bash")
        self.assertEqual(context.displayLanguage, "bash")

    def test_language_helpers(self) -> None:
        self.assertEqual(language_for_tool("js"), "javascript")
        self.assertEqual(language_for_tool("Edit", "/tmp/view.ts"), "typescript")
        self.assertEqual(language_for_tool("run_python"), "python")
        self.assertIsNone(language_for_tool("Read"))
        self.assertEqual(normalize_language(" YML "), "yaml")
        self.assertIsNone(normalize_language("   "))

    def test_results_for_entry(self) -> None:
        entries = self._entries(
            _assistant_tool_use("toolu_1", "Read", {"path": "/tmp/notes.md"}),
            {
                "type": "user",
                "message": {
                    "role": "user",
                    "content": [
                        {"type": "tool_result", "tool_use_id": "toolu_1", "content": "..."},
                        {"type": "text", "text": "ignored"},
                        {"type": "tool_result", "tool_use_id": "toolu_9"},
                    ],
                },
            },
        )
        lookup = build_tool_use_lookup(entries)

        results = tool_results_for_entry(entries[1], lookup)

        self.assertEqual([result.resolved for result in results], [True, False])
        self.assertEqual(results[0].filePath, "/tmp/notes.md")
        self.assertEqual(results[0].language, "markdown")


if __name__ == "__main__":
    unittest.main()
