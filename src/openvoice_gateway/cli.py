import argparse
import sys

from loguru import logger

from .api.main import run
from .config import load_config


def configure_logging(level: str) -> None:
    """Replace loguru's default sink with a single stderr sink at level."""
    logger.level(level)  # raises ValueError for unknown levels, before any sink is touched
    logger.remove()
    logger.add(sys.stderr, level=level)


def main(argv: list[str] | None = None) -> int:
    """
    Command-line interface (CLI) entry point for the OpenVoice gateway.

    Flags override the corresponding environment variables.
    """
    parser = argparse.ArgumentParser(description="OpenVoice Gateway")
    parser.add_argument("--host", type=str, default=None, help="Listen address (env HOST, default 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Listen port (env PORT, default 3001)")
    parser.add_argument("--log-level", type=str, default=None, help="Log level (env LOG_LEVEL, default INFO)")
    args = parser.parse_args(argv)

    config = load_config()
    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.log_level:
        overrides["log_level"] = args.log_level.upper()
    if overrides:
        config = config.model_copy(update=overrides)

    try:
        configure_logging(config.log_level)
    except ValueError as e:
        print(f"Invalid log level {config.log_level!r}: {e}", file=sys.stderr)
        return 2

    if config.credentials is None:
        logger.warning("BASIC_AUTH_USER is not set; the gateway is open to anyone who can reach it")

    run(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
