from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from digiscout.infrastructure.config import AppConfig, load_config
from digiscout.infrastructure.logging.setup import configure_logging
from digiscout.interfaces.app import create_app, create_gateway_app

log = structlog.get_logger(__name__)

_DEFAULT_ADDON_PORT = "7001"
_DEFAULT_GATEWAY_PORT = "7002"


def _parse_args(argv: Iterable[str] | None, *, prog: str) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog=prog)

    # Server options
    parser.add_argument(
        "--host",
        default=None,
        help="Bind host (overrides HOST env).",
    )
    parser.add_argument(
        "--port",
        default=None,
        type=int,
        help="Bind port (overrides PORT env).",
    )

    # Config wiring flags (no business logic)
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help="Path to .env file.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )

    return parser.parse_args(argv)


def _serve(
    argv: Iterable[str] | None,
    *,
    prog: str,
    default_port: str,
    factory: Callable[[AppConfig], FastAPI],
) -> None:
    """Load config exactly once, then build and serve the app with it."""
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv, prog=prog)

    host = args.host or os.getenv("HOST", "0.0.0.0")
    port = int(args.port or os.getenv("PORT", default_port))

    cli_overrides: dict[str, Any] = {}
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format

    config = load_config(
        config_path=Path(args.config) if args.config else None,
        dotenv_path=Path(args.dotenv) if args.dotenv else None,
        cli_overrides=cli_overrides,
    )

    log_config = configure_logging(config, service=prog)
    log.info("server_starting", app=prog, host=host, port=port)

    uvicorn.run(
        factory(config),
        host=host,
        port=port,
        log_config=log_config,
    )


def start(argv: Iterable[str] | None = None) -> None:
    """Serve the Stremio addon."""
    _serve(argv, prog="digiscout", default_port=_DEFAULT_ADDON_PORT, factory=create_app)


def start_gateway(argv: Iterable[str] | None = None) -> None:
    """Serve the forwarding gateway."""
    _serve(
        argv,
        prog="digiscout-gateway",
        default_port=_DEFAULT_GATEWAY_PORT,
        factory=create_gateway_app,
    )


if __name__ == "__main__":
    raise SystemExit(start())
