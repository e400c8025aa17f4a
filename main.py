"""Hunt Admin dev launcher. Starts the API server in watch mode."""

import argparse
import logging
import os
import signal
import subprocess
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = os.getenv("PORT", "13013")
LOG_LEVEL = os.getenv("LOG_LEVEL", "info")


def main():
    parser = argparse.ArgumentParser(description="Hunt Admin dev launcher")
    parser.add_argument("--port", default=PORT, help=f"API port (default: {PORT})")
    parser.add_argument("--memory", action="store_true",
                        help="Use the in-process content store instead of GitHub")
    parser.add_argument("--no-auth", action="store_true",
                        help="Disable HTTP Basic auth for local testing")
    args = parser.parse_args()

    logging.basicConfig(level=LOG_LEVEL.upper(),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    # Build env for the server process so the app picks up the same switches
    env = os.environ.copy()
    if args.memory:
        env["CONTENT_STORE"] = "memory"
    if args.no_auth:
        env["AUTH_DISABLE"] = "1"

    cmd = ["uv", "run", "uvicorn", "hunt_admin.app:app", "--reload",
           "--host", HOST, "--port", str(args.port), "--log-level", LOG_LEVEL.lower()]
    logging.getLogger("hunt_admin").info("starting %s", " ".join(cmd))
    print(f"Starting API on http://localhost:{args.port}/api ...")
    proc = subprocess.Popen(cmd, cwd=ROOT, env=env)

    def shutdown(*_):
        print("\nShutting down...")
        proc.terminate()
        proc.wait()
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    proc.wait()


if __name__ == "__main__":
    main()
