#!/usr/bin/env python3
"""
Container entry point for the CRM console.

1. Runs migrations + configuration seed (release.py), unless SKIP_RELEASE=1
2. Replaces this process with gunicorn serving app.wsgi:app

Usage:
    python scripts/start.py

Env:
    PORT             listen port (default 8080)
    WEB_CONCURRENCY  gunicorn workers (default 2)
    SKIP_RELEASE     set to 1 when migrations run in a separate release step
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _port() -> str:
    port = (os.environ.get("PORT") or "").strip() or "8080"
    if not port.isdigit() or not 1 <= int(port) <= 65535:
        print(f"ERROR: Invalid PORT value '{port}'. Must be integer 1-65535.", flush=True)
        sys.exit(1)
    return port


def _workers() -> str:
    workers = (os.environ.get("WEB_CONCURRENCY") or "").strip() or "2"
    if not workers.isdigit() or int(workers) < 1:
        print(f"ERROR: Invalid WEB_CONCURRENCY value '{workers}'.", flush=True)
        sys.exit(1)
    return workers


def main() -> None:
    port = _port()
    workers = _workers()

    if (os.environ.get("SKIP_RELEASE") or "").strip() != "1":
        print("=== Running release phase ===", flush=True)
        from scripts.release import run_release

        try:
            run_release()
        except Exception as e:
            print(f"Release failed: {e}", flush=True)
            sys.exit(1)

    print(f"=== Starting gunicorn on 0.0.0.0:{port} ({workers} workers) ===", flush=True)
    # execvp keeps gunicorn as PID 1 so it receives container signals directly.
    os.execvp(
        "gunicorn",
        [
            "gunicorn",
            "app.wsgi:app",
            "--bind", f"0.0.0.0:{port}",
            "--workers", workers,
            "--timeout", "60",
            "--access-logfile", "-",
            "--error-logfile", "-",
        ],
    )


if __name__ == "__main__":
    main()
