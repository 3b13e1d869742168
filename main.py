#!/usr/bin/env python3
"""
Personal website server.
Serves the site's pages and the "Login with Steam" flow.
"""

import argparse
import logging
import os
import sys
from typing import Optional

from dotenv import load_dotenv

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", stream=sys.stderr
)
logger = logging.getLogger("homepage")

DEFAULT_ENV_FILE = ".env"


def load_env_file(path: Optional[str] = None) -> None:
    """
    Load variables from a .env file into the process environment.

    Existing environment variables win over the file. The server refuses to start
    without it.
    """
    path = path or DEFAULT_ENV_FILE
    if not os.path.isfile(path):
        logger.error("Error loading %s file", path)
        raise SystemExit(f"Error loading env file: {path} not found")
    if not load_dotenv(path, override=False):
        logger.warning("Env file %s is empty", path)


def default_port() -> int:
    port = (os.getenv("PORT", "") or "").strip()
    try:
        return int(port) if port else 8080
    except ValueError:
        return 8080


def main(argv: Optional[list] = None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Run the personal website server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve on $PORT (default 8080), reading ./.env
  python main.py

  # Use a specific env file and port
  python main.py --env-file prod.env --port 9000
        """,
    )
    parser.add_argument("--host", default=None, help="Bind host (default: $HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Listen port (default: $PORT or 8080)")
    parser.add_argument(
        "--env-file",
        default=None,
        help=f"Load environment variables from this file (default: {DEFAULT_ENV_FILE}). The file must exist.",
    )

    args = parser.parse_args(argv)

    load_env_file(args.env_file)

    # Env may have just changed; read PORT/HOST after loading the file.
    host = args.host or (os.getenv("HOST", "") or "").strip() or "0.0.0.0"
    port = args.port if args.port is not None else default_port()

    from homepage.api.server import run

    run(host=host, port=port)


if __name__ == "__main__":
    main()
