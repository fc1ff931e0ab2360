import unittest
from unittest.mock import patch

from spectator import cli
from spectator.models import SpectatorConfig


class CliTests(unittest.TestCase):
    def test_resolve_port_precedence(self) -> None:
        self.assertEqual(cli.resolve_port(1234, "7000", 9000), 1234)
        self.assertEqual(cli.resolve_port(None, "7000", 9000), 7000)
        self.assertEqual(cli.resolve_port(None, "", 9000), 9000)
        self.assertEqual(cli.resolve_port(None, "abc", None), 8787)

    def test_find_available_port_skips_busy_ports(self) -> None:
        with patch.object(cli, "is_port_available", side_effect=lambda port, host: port == 8789):
            self.assertEqual(cli.find_available_port(8787), 8789)

    def test_find_available_port_gives_up(self) -> None:
        with patch.object(cli, "is_port_available", return_value=False):
            with self.assertRaises(RuntimeError):
                cli.find_available_port(8787, tries=3)

    def test_main_starts_server_without_browser(self) -> None:
        with patch.object(cli.config, "load_config", return_value=SpectatorConfig(port=9100)), patch.object(
            cli, "find_available_port", return_value=9101
        ) as finder, patch.object(cli.uvicorn, "run") as run, patch.object(cli.webbrowser, "open") as opener, patch.dict(
            "os.environ", {}, clear=True
        ):
            exit_code = cli.main(["--no-browser"])

        self.assertEqual(exit_code, 0)
        finder.assert_called_once_with(9100, host="127.0.0.1")
        run.assert_called_once_with("spectator.main:app", host="127.0.0.1", port=9101, log_level="info")
        opener.assert_not_called()

    def test_main_opens_browser_on_chosen_port(self) -> None:
        with patch.object(cli.config, "load_config", return_value=SpectatorConfig()), patch.object(
            cli, "find_available_port", return_value=8790
        ), patch.object(cli.uvicorn, "run"), patch.object(cli.webbrowser, "open") as opener:
            cli.main(["-p", "8790", "--host", "127.0.0.1"])

        opener.assert_called_once_with("http://localhost:8790")


if __name__ == "__main__":
    unittest.main()
