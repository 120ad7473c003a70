"""
Process configuration read from the environment.

Values are read once at startup, optionally seeded from a `.env` file, and
never re-read. Missing required values are fatal.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Final

import httpx
from dotenv import find_dotenv, load_dotenv

from node_health.api.server import DEFAULT_PORT
from node_health.readiness.profile import DEFAULT_SYNC_DISTANCE_TOLERANCE, Network
from node_health.readiness.service import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_STARTUP_INTERVAL,
    DEFAULT_STARTUP_TIMEOUT,
)
from node_health.upstream.http import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

SECRET_LOG_BLACKLIST: Final = ("EXECUTION_NODE_URL", "BEACON_URL")
"""Keys whose values may embed credentials (API keys in URLs)."""

_TRUE: Final = frozenset({"true", "t", "1"})
_FALSE: Final = frozenset({"false", "f", "0"})
_URL_SCHEMES: Final = frozenset({"http", "https"})


class ConfigError(Exception):
    """Required configuration is missing or invalid."""


class ConsensusSource(Enum):
    """Which beacon endpoints feed the consensus checks."""

    STANDARD = "standard"
    """`/eth/v1/node/syncing` and `/eth/v1/node/peer_count` (any client)."""

    LIGHTHOUSE_UI = "lighthouse-ui"
    """`/lighthouse/ui/health` (Lighthouse only)."""


def obfuscate_if_secret(blacklist: tuple[str, ...], key: str, value: str) -> str:
    """Mask all but the last four characters of blacklisted values."""
    if key in blacklist:
        return f"****{value[-4:]}"
    return value


def get_env_var(key: str, environ: Mapping[str, str] | None = None) -> str | None:
    """Read a variable, logging (masked) what was found."""
    env = os.environ if environ is None else environ
    value = env.get(key)
    if value is None:
        logger.debug("env var %s requested but not found", key)
    else:
        logger.debug("env var %s: %s", key, obfuscate_if_secret(SECRET_LOG_BLACKLIST, key, value))
    return value


def get_required_env_var(key: str, environ: Mapping[str, str] | None = None) -> str:
    """
    Read a variable we cannot run without.

    Raises:
        ConfigError: If the variable is unset or empty.
    """
    value = get_env_var(key, environ)
    if not value:
        raise ConfigError(f"{key} not set")
    return value


def get_required_url(key: str, environ: Mapping[str, str] | None = None) -> str:
    """
    Read an upstream base URL.

    Raises:
        ConfigError: If the variable is unset, unparseable, or not an
            absolute http(s) URL.
    """
    value = get_required_env_var(key, environ)
    shown = obfuscate_if_secret(SECRET_LOG_BLACKLIST, key, value)
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL:
        raise ConfigError(f"invalid URL for {key}: {shown}") from None
    if url.scheme not in _URL_SCHEMES or not url.host:
        raise ConfigError(f"{key} must be an absolute http(s) URL, got {shown}")
    return value


def get_env_bool(key: str, environ: Mapping[str, str] | None = None) -> bool | None:
    """
    Read a boolean flag (true/false/t/f/1/0, any case).

    Raises:
        ConfigError: On any other value.
    """
    value = get_env_var(key, environ)
    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigError(f"invalid bool value {value!r} for {key}")


def _get_env_number(
    key: str,
    cast: type[int] | type[float],
    environ: Mapping[str, str] | None,
) -> int | float | None:
    value = get_env_var(key, environ)
    if value is None:
        return None
    try:
        number = cast(value)
    except ValueError:
        raise ConfigError(f"invalid {cast.__name__} value {value!r} for {key}") from None
    if number < 0:
        raise ConfigError(f"{key} must not be negative, got {value!r}")
    return number


def get_network(environ: Mapping[str, str] | None = None) -> Network:
    """
    Read NETWORK, defaulting to mainnet.

    Raises:
        ConfigError: If NETWORK names an unsupported chain.
    """
    value = get_env_var("NETWORK", environ)
    if value is None:
        logger.warning("no NETWORK in env, assuming mainnet")
        return Network.MAINNET
    try:
        return Network.parse(value)
    except ValueError as e:
        raise ConfigError(str(e)) from e


@dataclass(frozen=True, slots=True)
class EnvConfig:
    """Everything the process reads from its environment."""

    execution_node_url: str
    """JSON-RPC endpoint of the execution node."""

    beacon_url: str
    """Beacon API base URL of the consensus node."""

    network: Network = Network.MAINNET

    bind_public_interface: bool = True
    """Bind 0.0.0.0 when set, loopback otherwise."""

    port: int = DEFAULT_PORT

    sync_distance_tolerance: int = DEFAULT_SYNC_DISTANCE_TOLERANCE

    poll_interval: float = DEFAULT_POLL_INTERVAL

    startup_interval: float = DEFAULT_STARTUP_INTERVAL

    startup_timeout: float = DEFAULT_STARTUP_TIMEOUT

    request_timeout: float = DEFAULT_TIMEOUT

    consensus_source: ConsensusSource = ConsensusSource.STANDARD

    check_eth1_cache: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EnvConfig:
        """
        Build the configuration from environment variables.

        Raises:
            ConfigError: If a required variable is missing or any value is invalid.
        """
        source = get_env_var("CONSENSUS_HEALTH_SOURCE", environ)
        try:
            consensus_source = (
                ConsensusSource(source.strip().lower()) if source else ConsensusSource.STANDARD
            )
        except ValueError:
            supported = ", ".join(s.value for s in ConsensusSource)
            raise ConfigError(
                f"invalid CONSENSUS_HEALTH_SOURCE {source!r}, expected one of [{supported}]"
            ) from None

        def _int(key: str, default: int) -> int:
            value = _get_env_number(key, int, environ)
            return default if value is None else int(value)

        def _float(key: str, default: float) -> float:
            value = _get_env_number(key, float, environ)
            return default if value is None else float(value)

        def _bool(key: str, default: bool) -> bool:
            value = get_env_bool(key, environ)
            return default if value is None else value

        return cls(
            execution_node_url=get_required_url("EXECUTION_NODE_URL", environ),
            beacon_url=get_required_url("BEACON_URL", environ),
            network=get_network(environ),
            bind_public_interface=_bool("BIND_PUBLIC_INTERFACE", True),
            port=_int("PORT", DEFAULT_PORT),
            sync_distance_tolerance=_int(
                "SYNC_DISTANCE_TOLERANCE", DEFAULT_SYNC_DISTANCE_TOLERANCE
            ),
            poll_interval=_float("POLL_INTERVAL_SECONDS", DEFAULT_POLL_INTERVAL),
            startup_interval=_float("STARTUP_POLL_INTERVAL", DEFAULT_STARTUP_INTERVAL),
            startup_timeout=_float("STARTUP_TIMEOUT_SECONDS", DEFAULT_STARTUP_TIMEOUT),
            request_timeout=_float("REQUEST_TIMEOUT_SECONDS", DEFAULT_TIMEOUT),
            consensus_source=consensus_source,
            check_eth1_cache=_bool("CHECK_ETH1_CACHE", False),
        )


def load_config(
    environ: Mapping[str, str] | None = None,
    env_file: Path | None = None,
) -> EnvConfig:
    """
    Load configuration, seeding os.environ from a `.env` file first.

    Without `env_file`, the nearest `.env` at or above the working directory
    is used. Variables already in the environment win over `.env` entries.
    When an explicit `environ` mapping is given, no file is read.

    Raises:
        ConfigError: If `env_file` does not exist or the configuration is invalid.
    """
    if environ is None:
        if env_file is not None and not env_file.is_file():
            raise ConfigError(f"env file {env_file} not found")
        load_dotenv(dotenv_path=env_file or find_dotenv(usecwd=True))
    return EnvConfig.from_env(environ)
