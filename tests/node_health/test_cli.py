"""Tests for the command-line entry point and log formatting."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

from node_health.__main__ import (
    EXIT_CONFIG,
    EXIT_FAILURE,
    ColoredFormatter,
    JsonFormatter,
    build_parser,
    main,
    setup_logging,
)

ENV_KEYS = (
    "EXECUTION_NODE_URL",
    "BEACON_URL",
    "NETWORK",
    "BIND_PUBLIC_INTERFACE",
    "PORT",
    "STARTUP_TIMEOUT_SECONDS",
    "STARTUP_POLL_INTERVAL",
    "REQUEST_TIMEOUT_SECONDS",
    "LOG_JSON",
)


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    """Undo the root logger changes made by setup_logging()."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    httpx_level = logging.getLogger("httpx").level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("httpx").setLevel(httpx_level)


@pytest.fixture
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Empty working directory and no config variables."""
    monkeypatch.chdir(tmp_path)
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return tmp_path


def make_record(exc_info: bool = False) -> logging.LogRecord:
    info = None
    if exc_info:
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            info = sys.exc_info()
    return logging.LogRecord(
        "node_health.readiness.evaluator",
        logging.INFO,
        __file__,
        1,
        "not ready: %s",
        ("sync distance exceeds tolerance",),
        info,
    )


class TestParser:
    """Tests for command-line parsing."""

    def test_defaults(self) -> None:
        args = build_parser().parse_args([])

        assert args.env_file is None
        assert not args.verbose
        assert not args.no_color
        assert not args.log_json

    def test_flags(self) -> None:
        args = build_parser().parse_args(
            ["--env-file", "deploy/.env", "-v", "--no-color", "--log-json"]
        )

        assert args.env_file == Path("deploy/.env")
        assert args.verbose
        assert args.no_color
        assert args.log_json


class TestFormatters:
    """Tests for log output formats."""

    def test_json_formatter(self) -> None:
        line = JsonFormatter().format(make_record())
        payload = json.loads(line)

        assert payload["level"] == "INFO"
        assert payload["target"] == "node_health.readiness.evaluator"
        assert payload["message"] == "not ready: sync distance exceeds tolerance"
        assert "timestamp" in payload
        assert "exception" not in payload

    def test_json_formatter_with_exception(self) -> None:
        payload = json.loads(JsonFormatter().format(make_record(exc_info=True)))

        assert "RuntimeError: boom" in payload["exception"]

    def test_colored_formatter(self) -> None:
        line = ColoredFormatter().format(make_record(exc_info=True))

        assert "not ready: sync distance exceeds tolerance" in line
        assert ColoredFormatter.GREEN in line
        assert "RuntimeError: boom" in line

    def test_setup_logging_json(self) -> None:
        setup_logging(log_json=True)

        handler = logging.getLogger().handlers[-1]
        assert isinstance(handler.formatter, JsonFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_setup_logging_verbose(self) -> None:
        setup_logging(verbose=True, no_color=True)

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.DEBUG


@pytest.mark.usefixtures("isolated_env")
class TestMain:
    """Tests for process exit status."""

    def test_missing_config_exits_with_config_error(self) -> None:
        assert main([]) == EXIT_CONFIG

    def test_missing_env_file(self, tmp_path: Path) -> None:
        assert main(["--env-file", str(tmp_path / "nope.env")]) == EXIT_CONFIG

    def test_invalid_log_json_is_config_error(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A bad LOG_JSON value is reported, not silently treated as false."""
        monkeypatch.setenv("LOG_JSON", "yes")

        assert main([]) == EXIT_CONFIG
        assert "invalid bool value 'yes' for LOG_JSON" in caplog.text
        assert "EXECUTION_NODE_URL" not in caplog.text

    def test_unreachable_upstreams_exit_with_failure(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text(
            "EXECUTION_NODE_URL=http://127.0.0.1:1\n"
            "BEACON_URL=http://127.0.0.1:1\n"
            "NETWORK=holesky\n"
            "BIND_PUBLIC_INTERFACE=false\n"
            "PORT=15301\n"
            "STARTUP_TIMEOUT_SECONDS=0\n"
            "REQUEST_TIMEOUT_SECONDS=1\n"
        )

        assert main(["--env-file", str(env_file), "--no-color"]) == EXIT_FAILURE
