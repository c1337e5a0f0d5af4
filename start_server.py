#!/usr/bin/env python3
"""Start the fare API under uvicorn, honouring the PORT variable set by the host."""

import os
import subprocess
import sys
import traceback

APP_MODULE = "fleetfare.main"


def _port() -> int:
    port = os.environ.get("PORT", "8000")
    try:
        return int(port)
    except ValueError:
        print(f"Warning: Invalid PORT value '{port}', using default 8000", file=sys.stderr)
        return 8000


def _with_src_on_path() -> str:
    src_path = os.path.abspath("src")
    if not os.path.isdir(src_path):
        print(f"Warning: src directory not found at {src_path}", file=sys.stderr)
        src_path = os.getcwd()
    existing = os.environ.get("PYTHONPATH", "")
    os.environ["PYTHONPATH"] = f"{src_path}:{existing}" if existing else src_path
    sys.path.insert(0, src_path)
    return src_path


def main() -> int:
    port = _port()
    _with_src_on_path()

    # Settings and routers are built at import time; fail here rather than inside uvicorn.
    try:
        __import__(APP_MODULE)
    except ImportError as e:
        print(f"❌ Failed to import {APP_MODULE}: {e}", file=sys.stderr)
        print(f"   PYTHONPATH: {os.environ.get('PYTHONPATH', 'NOT SET')}", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
        return 1
    print(f"✅ Successfully imported {APP_MODULE}", file=sys.stderr)

    # Single worker: driver terminals and the broadcast hub live in process memory.
    cmd = [
        sys.executable,
        "-m",
        "uvicorn",
        f"{APP_MODULE}:app",
        "--host",
        "0.0.0.0",
        "--port",
        str(port),
        "--proxy-headers",
        "--forwarded-allow-ips", "*",
    ]
    print(f"🚀 Starting fare API on port {port}...", file=sys.stderr)
    try:
        result = subprocess.call(cmd)
    except KeyboardInterrupt:
        print("⚠️ Server interrupted by user", file=sys.stderr)
        return 0
    if result != 0:
        print(f"❌ Uvicorn exited with code {result}", file=sys.stderr)
    return result


if __name__ == "__main__":
    sys.exit(main())
