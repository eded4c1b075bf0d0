#!/usr/bin/env python3
"""
Launch the Star Mercs combat server from repo root:

    python run_server.py

This launcher can:
- auto-select a free port if the requested one is taken
- start the FastAPI server
- open the browser on the API docs
"""
from __future__ import annotations

import argparse
import socket
import sys
import threading
import webbrowser
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent
SRC_DIR = REPO_ROOT / "src"


def _add_repo_paths() -> None:
    # Make the engine and server importable when running from a checkout.
    src = str(SRC_DIR)
    if src not in sys.path:
        sys.path.insert(0, src)


def _browser_host(host: str) -> str:
    # If we bind 0.0.0.0/::, open a loopback URL that works locally.
    if host in ("0.0.0.0", "::"):
        return "127.0.0.1"
    return host


def find_available_port(host: str, start_port: int, *, max_tries: int = 50) -> tuple[int, bool]:
    """
    Probe sequential ports starting from start_port.
    Returns (port, did_fallback).
    """
    if max_tries < 1:
        raise ValueError("max_tries must be >= 1")

    last_error: OSError | None = None
    for offset in range(max_tries):
        port = start_port + offset
        try:
            with socket.create_server((host, port), reuse_port=False):
                return port, offset != 0
        except OSError as exc:
            last_error = exc
            continue

    msg = f"No available port found starting at {start_port} after {max_tries} attempts"
    if last_error is not None:
        msg = f"{msg} (last error: {last_error})"
    raise RuntimeError(msg)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="python run_server.py",
        description="Launch the Star Mercs combat API (pick a free port, run uvicorn, open the docs).",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Host to listen on (default: %(default)s).")
    parser.add_argument("--port", type=int, default=8000, help="Starting port (default: %(default)s).")
    parser.add_argument("--no-reload", action="store_true", help="Disable uvicorn --reload.")
    parser.add_argument("--no-open", action="store_true", help="Skip opening the browser automatically.")
    parser.add_argument("--log-level", default="info", help="uvicorn log level (default: %(default)s).")
    args = parser.parse_args(argv)

    try:
        chosen_port, did_fallback = find_available_port(args.host, args.port, max_tries=50)
    except (OSError, RuntimeError) as exc:
        print(f"[mercs] Failed to select a free port: {exc}", file=sys.stderr)
        return 2

    url = f"http://{_browser_host(args.host)}:{chosen_port}"
    if did_fallback:
        print(f"[mercs] Serving on {url} (selected because {args.port} was in use).")
    else:
        print(f"[mercs] Serving on {url}.")

    if not args.no_open:
        threading.Timer(1.0, webbrowser.open, args=(f"{url}/docs",)).start()

    _add_repo_paths()

    import uvicorn

    try:
        uvicorn.run(
            "mercs_server.main:app",
            host=args.host,
            port=chosen_port,
            reload=not args.no_reload,
            log_level=args.log_level,
        )
    except KeyboardInterrupt:
        return 0
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
