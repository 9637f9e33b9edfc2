"""
Entry point for running the web API as a module.

Usage:
    python -m web [--port 8000] [--host 127.0.0.1] [--db PATH] [--log-level LEVEL] [--reload]
"""

import argparse
import os
import uvicorn

from assessment_platform.config import get_db_path, get_log_level


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sri-assessment-web",
        description="sri-assessment - JSON API for one device's assessment flow",
    )
    parser.add_argument("--port", type=int, default=8000, help="Port to serve on (default: 8000)")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument(
        "--db", metavar="PATH",
        help="Device store location (overrides SRI_ASSESSMENT_DB_PATH)",
    )
    parser.add_argument(
        "--log-level", type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: SRI_ASSESSMENT_LOG_LEVEL or INFO)",
    )
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    return parser


def _uvicorn_level() -> str:
    level = get_log_level().lower()
    return level if level in ("critical", "error", "warning", "info", "debug") else "info"


def main(argv=None):
    args = build_parser().parse_args(argv)

    # The app reads its settings from the environment, which also reaches
    # the worker process uvicorn spawns under --reload.
    if args.db:
        os.environ["SRI_ASSESSMENT_DB_PATH"] = args.db
    if args.log_level:
        os.environ["SRI_ASSESSMENT_LOG_LEVEL"] = args.log_level

    print(f"\n  sri-assessment web API on http://{args.host}:{args.port}/api")
    print(f"  Device store: {get_db_path()}\n")

    uvicorn.run(
        "web.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=_uvicorn_level(),
    )


if __name__ == "__main__":
    main()
