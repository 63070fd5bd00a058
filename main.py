#!/usr/bin/env python3
"""
Calendarium -- per-user calendar behind a bearer-token gateway.

Usage:
  python main.py gateway
  python main.py account --port 8083
  python main.py events --host 0.0.0.0 --port 8082
  python main.py gateway --reload

Configuration comes from environment variables or a .env file (see
core/config.py); the command line only picks the process and where it listens.
"""

import argparse

import uvicorn

# app import path and default port per process
_APPS = {
    "gateway": ("asgi:app", 8080),
    "account": ("asgi:account_app", 8083),
    "events": ("asgi:events_app", 8082),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="calendarium",
        description="Run one Calendarium process under uvicorn.",
    )
    parser.add_argument("service", choices=sorted(_APPS), help="Which process to run.")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1).")
    parser.add_argument("--port", type=int, default=None, help="Port to bind (default depends on service).")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only).")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    target, default_port = _APPS[args.service]
    uvicorn.run(
        target,
        host=args.host,
        port=args.port or default_port,
        reload=args.reload,
        log_config=None,
    )


if __name__ == "__main__":
    main()
