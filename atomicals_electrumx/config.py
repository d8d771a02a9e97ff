"""Shared configuration loader for the ElectrumX client."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Sequence
from urllib.parse import urlparse

import yaml

from .failover import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY
from .network import Network
from .transport import DEFAULT_REQUEST_TIMEOUT


class ConfigurationError(RuntimeError):
    """Raised when configuration is invalid."""


DEFAULT_BASE_URI = "https://ep.atomicals.xyz/proxy"
DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_CONFIG_PATH = Path.home() / ".atomicals-electrumx.yaml"
_CONFIG_PATH_OVERRIDE: Path | None = None

ENV_NETWORK = "ELECTRUMX_NETWORK"
ENV_BASE_URIS = "ELECTRUMX_BASE_URIS"
ENV_REQUEST_TIMEOUT = "ELECTRUMX_REQUEST_TIMEOUT"
ENV_MAX_RETRIES = "ELECTRUMX_MAX_RETRIES"
ENV_RETRY_DELAY = "ELECTRUMX_RETRY_DELAY"
ENV_POLL_INTERVAL = "ELECTRUMX_POLL_INTERVAL"


@dataclass(frozen=True)
class ClientConfig:
    """Immutable settings shared by the transport, failover engine and poller."""

    network: Network = Network.MAINNET
    base_uris: tuple[str, ...] = (DEFAULT_BASE_URI,)
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    max_retries_per_uri: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    poll_interval: float = DEFAULT_POLL_INTERVAL

    def __post_init__(self) -> None:
        object.__setattr__(self, "network", parse_network(self.network))
        object.__setattr__(self, "base_uris", parse_base_uris(self.base_uris))
        if isinstance(self.max_retries_per_uri, bool) or not isinstance(self.max_retries_per_uri, int):
            raise ConfigurationError(
                f"max_retries_per_uri must be an integer, got {self.max_retries_per_uri!r}"
            )
        for name in ("request_timeout", "retry_delay", "poll_interval"):
            object.__setattr__(self, name, _finite_seconds(name, getattr(self, name)))
        if self.request_timeout <= 0:
            raise ConfigurationError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.max_retries_per_uri < 0:
            raise ConfigurationError(
                f"max_retries_per_uri must be non-negative, got {self.max_retries_per_uri}"
            )
        if self.retry_delay < 0:
            raise ConfigurationError(f"retry_delay must be non-negative, got {self.retry_delay}")
        if self.poll_interval <= 0:
            raise ConfigurationError(f"poll_interval must be positive, got {self.poll_interval}")


def _finite_seconds(name: str, raw: Any) -> float:
    if isinstance(raw, bool):
        raise ConfigurationError(f"{name} must be a number of seconds, got {raw!r}")
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a number of seconds, got {raw!r}") from exc
    if not math.isfinite(value):
        raise ConfigurationError(f"{name} must be finite, got {raw!r}")
    return value


def _normalize_uri(raw: str) -> str:
    uri = raw.strip().rstrip("/")
    parsed = urlparse(uri)
    if parsed.scheme.lower() not in {"http", "https"} or not parsed.netloc:
        raise ConfigurationError(f"Invalid ElectrumX base URI: {raw!r}")
    return uri


def parse_base_uris(raw: str | Sequence[str]) -> tuple[str, ...]:
    """Accept a comma-delimited string or a sequence and return ordered URIs."""

    if isinstance(raw, str):
        pieces = raw.split(",")
    else:
        pieces = []
        for item in raw:
            if not isinstance(item, str):
                raise ConfigurationError(f"Base URIs must be strings, got {item!r}")
            pieces.extend(item.split(","))
    uris = tuple(_normalize_uri(piece) for piece in pieces if piece.strip())
    if not uris:
        raise ConfigurationError("At least one ElectrumX base URI is required")
    return uris


def parse_network(raw: str | Network) -> Network:
    try:
        return Network.parse(raw)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc


def set_default_config_path(path: str | Path | None) -> None:
    """Remember a user-supplied config path for future loads."""

    global _CONFIG_PATH_OVERRIDE
    _CONFIG_PATH_OVERRIDE = Path(path).expanduser() if path else None


def _load_config_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigurationError(f"Config file not found: {path}")
        return {}

    try:
        loaded = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:  # pragma: no cover - delegated to PyYAML
        raise ConfigurationError(f"Invalid YAML in config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigurationError(
            f"Expected {path} to contain a YAML object with an 'electrumx' section"
        )
    return loaded


def _coerce_float(raw: Any, *, source: str) -> float | None:
    if raw is None:
        return None
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid number in {source}: {raw}") from exc


def _coerce_int(raw: Any, *, source: str) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid integer in {source}: {raw}") from exc


def _first_value(*values: Any, default: Any = None) -> Any:
    for value in values:
        if value is not None:
            return value
    return default


def load_client_config(
    *,
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ClientConfig:
    """Resolve client settings from overrides, environment, then YAML."""

    env_map = os.environ if env is None else env
    explicit_path = config_path is not None or _CONFIG_PATH_OVERRIDE is not None
    path = (
        Path(config_path).expanduser()
        if config_path is not None
        else _CONFIG_PATH_OVERRIDE or DEFAULT_CONFIG_PATH
    )

    file_config = _load_config_file(path, required=explicit_path)
    section = file_config.get("electrumx", {}) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Expected 'electrumx' to be a mapping in {path}")

    override_map = {k: v for k, v in dict(overrides or {}).items() if v is not None}

    raw_network = _first_value(
        override_map.get("network"), env_map.get(ENV_NETWORK), section.get("network")
    )
    raw_base_uris = _first_value(
        override_map.get("base_uris"), env_map.get(ENV_BASE_URIS), section.get("base_uris")
    )

    request_timeout = _first_value(
        _coerce_float(override_map.get("request_timeout"), source="overrides"),
        _coerce_float(env_map.get(ENV_REQUEST_TIMEOUT), source=ENV_REQUEST_TIMEOUT),
        _coerce_float(section.get("request_timeout"), source=f"{path} electrumx.request_timeout"),
        DEFAULT_REQUEST_TIMEOUT,
    )
    max_retries = _first_value(
        _coerce_int(override_map.get("max_retries"), source="overrides"),
        _coerce_int(env_map.get(ENV_MAX_RETRIES), source=ENV_MAX_RETRIES),
        _coerce_int(section.get("max_retries"), source=f"{path} electrumx.max_retries"),
        DEFAULT_MAX_RETRIES,
    )
    retry_delay = _first_value(
        _coerce_float(override_map.get("retry_delay"), source="overrides"),
        _coerce_float(env_map.get(ENV_RETRY_DELAY), source=ENV_RETRY_DELAY),
        _coerce_float(section.get("retry_delay"), source=f"{path} electrumx.retry_delay"),
        DEFAULT_RETRY_DELAY,
    )
    poll_interval = _first_value(
        _coerce_float(override_map.get("poll_interval"), source="overrides"),
        _coerce_float(env_map.get(ENV_POLL_INTERVAL), source=ENV_POLL_INTERVAL),
        _coerce_float(section.get("poll_interval"), source=f"{path} electrumx.poll_interval"),
        DEFAULT_POLL_INTERVAL,
    )

    return ClientConfig(
        network=parse_network(raw_network) if raw_network is not None else Network.MAINNET,
        base_uris=parse_base_uris(raw_base_uris) if raw_base_uris is not None else (DEFAULT_BASE_URI,),
        request_timeout=request_timeout,
        max_retries_per_uri=max_retries,
        retry_delay=retry_delay,
        poll_interval=poll_interval,
    )
