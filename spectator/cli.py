#!/usr/bin/env python3
"""Start the Spectator server and open it in the browser.

Usage:
  spectator
  spectator --port 9000
  spectator -p 9000 --no-browser
"""
from __future__ import annotations

import argparse
import logging
import os
import socket
import webbrowser

import uvicorn

from spectator import config

logger = logging.getLogger("spectator")

PORT_ATTEMPTS = 10


def is_port_available(port: int, host: str = "127.0.0.1") -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as tester:
        try:
            tester.bind((host, port))
        except OSError:
            return False
    return True


def find_available_port(start: int, tries: int = PORT_ATTEMPTS, host: str = "127.0.0.1") -> int:
    port = start
    for _ in range(tries):
        if is_port_available(port, host):
            return port
        port += 1
    raise RuntimeError(f"No available ports starting at {start}")


def resolve_port(cli_port: int | None, env_port: str | None, config_port: int | None) -> int:
    """Pick the preferred port: CLI flag, then PORT env, then config file."""
    for candidate in (cli_port, env_port, config_port):
        if candidate is None or candidate == "":
            continue
        try:
            value = int(candidate)
        except (TypeError, ValueError):
            continue
        if value > 0:
            return value
    return config.DEFAULT_PORT


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Browse Claude Code session transcripts.")
    parser.add_argument("--port", "-p", type=int, default=None, help="Preferred port (default: 8787)")
    parser.add_argument("--host", default=config.HOST, help="Interface to bind")
    parser.add_argument("--no-browser", action="store_true", help="Do not open a browser window")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    settings = config.load_config()
    preferred = resolve_port(args.port, os.getenv("PORT"), settings.port)
    port = find_available_port(preferred, host=args.host)
    url = f"http://localhost:{port}"
    logger.info(f"Spectator running at {url}")
    if not args.no_browser:
        webbrowser.open(url)

    uvicorn.run("spectator.main:app", host=args.host, port=port, log_level="info")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
