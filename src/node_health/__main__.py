"""
node-health CLI entry point.

Serve /livez and /readyz for an execution + consensus node pair.

Usage::

    EXECUTION_NODE_URL=http://localhost:8545 BEACON_URL=http://localhost:5052 \\
        python -m node_health
    python -m node_health --env-file deploy/.env -v

Options:
    --env-file   Path to a .env file (default: ./.env when present)
    -v           Enable debug logging
    --no-color   Disable colored logging output
    --log-json   One JSON object per log line (also LOG_JSON=true)

Exit status:
    0  Shut down by signal
    1  Upstreams never became reachable, or the server failed
    2  Invalid or missing configuration
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from node_health.config import ConfigError, get_env_bool, load_config
from node_health.node import HealthNode
from node_health.readiness import StartupTimeoutError

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_CONFIG = 2


class ColoredFormatter(logging.Formatter):
    """Logging formatter with ANSI colors for better readability."""

    GREY = "\x1b[38;5;244m"
    BLUE = "\x1b[38;5;39m"
    GREEN = "\x1b[38;5;40m"
    YELLOW = "\x1b[38;5;220m"
    RED = "\x1b[38;5;196m"
    BOLD_RED = "\x1b[38;5;196;1m"
    CYAN = "\x1b[38;5;51m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)

        timestamp = self.formatTime(record, self.datefmt)
        colored_time = f"{self.CYAN}{timestamp}{self.RESET}"
        levelname = f"{color}{record.levelname:8}{self.RESET}"
        name = f"{self.BLUE}{record.name}{self.RESET}"

        message = f"{colored_time} {levelname} {name}: {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


class JsonFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "target": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging(verbose: bool = False, no_color: bool = False, log_json: bool = False) -> None:
    """Configure the root logger."""
    level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)

    formatter: logging.Formatter
    if log_json:
        formatter = JsonFormatter(datefmt="%Y-%m-%dT%H:%M:%S")
    elif no_color:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = ColoredFormatter(datefmt="%Y-%m-%d %H:%M:%S")

    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)

    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="node_health",
        description="Readiness checks for an execution + consensus node pair",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file (default: ./.env when present)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored logging output",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit logs as JSON lines",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns the process exit status."""
    args = build_parser().parse_args(argv)

    # LOG_JSON is read before the rest of the config so that config errors
    # are already logged in the requested format. An invalid LOG_JSON is
    # reported as a config error once plain logging is up.
    log_json_error: ConfigError | None = None
    try:
        log_json = args.log_json or bool(get_env_bool("LOG_JSON"))
    except ConfigError as e:
        log_json, log_json_error = False, e
    setup_logging(args.verbose, args.no_color, log_json)

    logger.info("starting node-health")

    if log_json_error is not None:
        logger.error("invalid configuration: %s", log_json_error)
        return EXIT_CONFIG

    try:
        config = load_config(env_file=args.env_file)
    except ConfigError as e:
        logger.error("invalid configuration: %s", e)
        return EXIT_CONFIG

    try:
        asyncio.run(HealthNode.from_config(config).run())
    except StartupTimeoutError as e:
        logger.error("giving up: %s", e)
        return EXIT_FAILURE
    except OSError as e:
        logger.error("server failed: %s", e)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.info("interrupted")

    return 0


if __name__ == "__main__":
    sys.exit(main())
