import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from spectator import config


class ConfigLoaderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.path = Path(self.tmpdir.name) / "spectator.config.json"

    def test_missing_file_uses_defaults(self) -> None:
        loaded = config.load_config(self.path)

        self.assertEqual(loaded.roots, config.DEFAULT_ROOTS)
        self.assertEqual(loaded.maxDepth, 5)
        self.assertEqual(loaded.port, 8787)

    def test_file_values_override_defaults_and_expand_home(self) -> None:
        self.path.write_text(json.dumps({"roots": ["~/sessions", "/abs/path"], "maxDepth": 2}), encoding="utf-8")

        loaded = config.load_config(self.path)

        self.assertEqual(loaded.roots, [str(Path.home() / "sessions"), "/abs/path"])
        self.assertEqual(loaded.maxDepth, 2)
        self.assertEqual(loaded.port, 8787)

    def test_malformed_file_is_logged_and_ignored(self) -> None:
        self.path.write_text("{oops", encoding="utf-8")

        with self.assertLogs("spectator", level="WARNING"):
            loaded = config.load_config(self.path)

        self.assertEqual(loaded.roots, config.DEFAULT_ROOTS)

    def test_non_object_and_invalid_values_fall_back(self) -> None:
        self.path.write_text("[1, 2]", encoding="utf-8")
        with self.assertLogs("spectator", level="WARNING"):
            self.assertEqual(config.load_config(self.path).port, 8787)

        self.path.write_text(json.dumps({"port": "not-a-port"}), encoding="utf-8")
        with self.assertLogs("spectator", level="WARNING"):
            self.assertEqual(config.load_config(self.path).port, 8787)

    def test_env_helpers(self) -> None:
        with patch.dict(os.environ, {"SPECTATOR_TEST_INT": "42", "SPECTATOR_TEST_BAD": "x", "SPECTATOR_TEST_BOOL": "Yes"}):
            self.assertEqual(config._env_int("SPECTATOR_TEST_INT", 1), 42)
            self.assertEqual(config._env_int("SPECTATOR_TEST_BAD", 1), 1)
            self.assertTrue(config._env_bool("SPECTATOR_TEST_BOOL"))
            self.assertFalse(config._env_bool("SPECTATOR_TEST_UNSET"))


if __name__ == "__main__":
    unittest.main()
