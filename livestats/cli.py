"""``livestats server`` entry point."""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

import uvicorn
from pydantic import ValidationError
from livestats import __version__
from livestats.core.config import Settings, settings as default_settings
from livestats.core.logger import get_logger

logger = get_logger("livestats.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="livestats",
        description="Anonymous live visitor tracking server",
    )
    parser.add_argument("--version", action="version", version=__version__)
    sub = parser.add_subparsers(dest="command", required=True)

    server = sub.add_parser("server", help="Start the tracking server")
    server.add_argument("-p", "--port", type=int, help="Server port")
    server.add_argument("--host", help="Bind address")
    server.add_argument("-r", "--redis", dest="redis_url", help="Redis connection URL")
    server.add_argument(
        "-t", "--ttl", dest="stats_ttl_seconds", type=int, help="Stats TTL in seconds"
    )
    server.add_argument(
        "-c",
        "--cors",
        dest="cors_origins",
        help="Allowed origins (comma-separated, '*' for any)",
    )
    return parser


def settings_from_args(args: argparse.Namespace, base: Settings) -> Settings:
    """Apply command line overrides on top of ``base``.

    The result is validated like any other settings source, so bad values
    raise pydantic.ValidationError.
    """
    updates = {}
    for field in ("port", "host", "redis_url", "stats_ttl_seconds"):
        value = getattr(args, field, None)
        if value is not None:
            updates[field] = value
    if args.cors_origins:
        updates["cors_origins"] = [
            o.strip() for o in args.cors_origins.split(",") if o.strip()
        ] or ["*"]
    return Settings(_env_file=None, **{**base.model_dump(), **updates})


def _describe(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}"
        for e in error.errors(include_url=False)
    )


def run_server(settings: Settings) -> int:
    from livestats.main import create_app

    config = uvicorn.Config(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=None,  # keep our JSON handler
        lifespan="on",
    )
    server = uvicorn.Server(config)
    server.run()
    if not server.started:
        logger.error("livestats_startup_failed")
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "server":
        try:
            settings = settings_from_args(args, default_settings)
        except ValidationError as e:
            parser.error(_describe(e))
        return run_server(settings)
    return 2  # pragma: no cover - argparse enforces the subcommand


if __name__ == "__main__":
    sys.exit(main())
