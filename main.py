#!/usr/bin/env python3
"""
StudyTube auth service launcher.

Usage:
  python main.py
  python main.py --port 9000
  python main.py --host 0.0.0.0 --reload

Environment variables (see core/config.py for the full list):
  PORT            Default listen port (8000 if unset).
  ENVIRONMENT     development | production (default: production).
  SECRET_KEY      Session signing key, >= 32 chars. Required in production.
  DATABASE_URL    SQLAlchemy URL of the credential store.
"""

import argparse
import os

import uvicorn


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="studytube-auth",
        description="Run the StudyTube authentication API under uvicorn.",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Interface to bind (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("PORT") or 8000),
        help="Port to listen on (default: $PORT or 8000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart the server when source files change (development only)",
    )
    args = parser.parse_args()

    # uvicorn installs SIGINT/SIGTERM handlers and runs the app lifespan,
    # so the store is closed on graceful shutdown.
    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
