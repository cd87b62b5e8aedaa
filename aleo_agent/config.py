"""
Agent configuration: which node to talk to, which credits program to call,
and how to log.

Sources, later ones winning:
  1. dataclass defaults
  2. a TOML file with ``[network]``, ``[transfer]`` and ``[logging]`` tables
     (kebab-case keys are accepted)
  3. ``ALEO_AGENT_*`` environment variables

Example file::

    [network]
    base_url = "http://localhost:3030"
    network = "testnet3"
    timeout-seconds = 10

    [logging]
    level = "DEBUG"
    format = "json"

Usage:
    from aleo_agent.config import load_config
    cfg = load_config("aleo-agent.toml")
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import,no-redef]

from aleo_agent.errors import ValidationError

DEFAULT_BASE_URL = "https://api.explorer.aleo.org/v1"
DEFAULT_NETWORK = "testnet3"
LOCAL_NODE_PORT = 3030
LOG_FORMATS = ("human", "json")


@dataclass
class NetworkConfig:
    """Node REST endpoint: ``<base_url>/<network>/...``."""
    base_url: str = DEFAULT_BASE_URL
    network: str = DEFAULT_NETWORK
    timeout_seconds: float = 30.0

    @classmethod
    def local(cls, port: int | str = LOCAL_NODE_PORT) -> NetworkConfig:
        """A development node on this machine."""
        return cls(base_url=f"http://0.0.0.0:{port}", network=DEFAULT_NETWORK)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.network.strip('/')}"


@dataclass
class TransferConfig:
    credits_program: str = "credits.aleo"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "human"   # one of LOG_FORMATS
    file: str | None = None


@dataclass
class AgentConfig:
    network: NetworkConfig = field(default_factory=NetworkConfig)
    transfer: TransferConfig = field(default_factory=TransferConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> AgentConfig:
        """Reject settings that can never work; returns self."""
        if not self.network.base_url.startswith(("http://", "https://")):
            raise ValidationError(f"network.base_url must be an http(s) URL: {self.network.base_url!r}")
        if not self.network.network.strip("/"):
            raise ValidationError("network.network must not be empty")
        if self.network.timeout_seconds <= 0:
            raise ValidationError("network.timeout_seconds must be positive")
        if not self.transfer.credits_program.endswith(".aleo"):
            raise ValidationError(
                f"transfer.credits_program must be a program id: {self.transfer.credits_program!r}"
            )
        if self.logging.format not in LOG_FORMATS:
            raise ValidationError(f"logging.format must be one of {LOG_FORMATS}")
        return self


def _merge(dc: Any, raw: dict[str, Any]) -> None:
    """Copy known keys of *raw* onto dataclass *dc*; unknown keys are ignored."""
    known = {f.name for f in fields(dc)}
    for key, value in raw.items():
        name = key.replace("-", "_")
        if name in known:
            setattr(dc, name, value)


# (variable, section, attribute, conversion)
_ENV_OVERRIDES: list[tuple[str, str, str, Callable[[str], Any]]] = [
    ("ALEO_AGENT_BASE_URL", "network", "base_url", str),
    ("ALEO_AGENT_NETWORK", "network", "network", str),
    ("ALEO_AGENT_TIMEOUT", "network", "timeout_seconds", float),
    ("ALEO_AGENT_CREDITS_PROGRAM", "transfer", "credits_program", str),
    ("ALEO_AGENT_LOG_LEVEL", "logging", "level", str.upper),
    ("ALEO_AGENT_LOG_FMT", "logging", "format", str.lower),
    ("ALEO_AGENT_LOG_FILE", "logging", "file", str),
]


def load_config(path: str | None = None) -> AgentConfig:
    """
    Build an ``AgentConfig`` from *path* (skipped when None or missing) and
    the environment.  Empty environment variables are ignored.
    """
    cfg = AgentConfig()

    if path is not None and Path(path).exists():
        with open(path, "rb") as f:
            data = tomllib.load(f)
        for section in ("network", "transfer", "logging"):
            table = data.get(section)
            if isinstance(table, dict):
                _merge(getattr(cfg, section), table)

    for variable, section, attribute, convert in _ENV_OVERRIDES:
        raw = os.environ.get(variable)
        if not raw:
            continue
        try:
            value = convert(raw)
        except ValueError as exc:
            raise ValidationError(f"{variable}={raw!r} is not valid: {exc}") from exc
        setattr(getattr(cfg, section), attribute, value)

    return cfg
