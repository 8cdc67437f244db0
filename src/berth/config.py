# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""berth configuration.

Configuration is read from (highest to lowest priority):

  1. Environment: ``BERTH_HOST``, ``BERTH_CONTENT_TRUST``,
     ``BERTH_CONTENT_TRUST_SERVER``, ``BERTH_CONFIG``
  2. ``~/.config/berth/berth.conf``  (user)
  3. ``/etc/berth/berth.conf``       (system)
  4. Built-in defaults

The files are INI::

    [engine]
    socket = /var/run/docker.sock
    timeout = 30

    [trust]
    enabled = false
    server = https://notary.docker.io

    [registry]
    credentials = ~/.config/berth/auth.json

    [create]
    default_tag = latest
    pull = missing

The resulting :class:`BerthConfig` is passed explicitly to everything
that needs it; nothing reads configuration from module globals.
"""

from __future__ import annotations

import configparser
import enum
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace

from .engine_client import DEFAULT_SOCKET
from .operations import OperationError
from .reference import DEFAULT_TAG
from .registry import default_credentials_path

logger = logging.getLogger(__name__)

SYSTEM_CONFIG_PATH = "/etc/berth/berth.conf"
DEFAULT_TRUST_SERVER = "https://notary.docker.io"

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off"})


class ConfigError(OperationError):
    """A configuration value could not be parsed."""


class PullPolicy(enum.Enum):
    """When to pull the image before or during creation."""

    NEVER = "never"
    ALWAYS = "always"
    MISSING = "missing"

    @classmethod
    def parse(cls, value: str) -> PullPolicy:
        """Parse a policy name; the empty string means ``missing``."""
        if value == "":
            return cls.MISSING
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Invalid pull behavior '{value}'") from None

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class TrustSettings:
    """Content trust mode.  Threaded through every creation explicitly."""

    enabled: bool = False
    server: str = DEFAULT_TRUST_SERVER


@dataclass(frozen=True)
class BerthConfig:
    engine_socket: str = DEFAULT_SOCKET
    engine_timeout: float = 30.0
    trust: TrustSettings = field(default_factory=TrustSettings)
    credentials_path: str = field(default_factory=default_credentials_path)
    default_tag: str = DEFAULT_TAG
    pull_policy: PullPolicy = PullPolicy.MISSING

    def with_trust(self, enabled: bool) -> BerthConfig:
        """Copy of this config with content trust switched on or off."""
        return replace(self, trust=replace(self.trust, enabled=enabled))

    def as_dict(self) -> dict[str, str]:
        """Flat ``section.key -> value`` view for display."""
        return {
            "engine.socket": self.engine_socket,
            "engine.timeout": f"{self.engine_timeout:g}",
            "trust.enabled": str(self.trust.enabled).lower(),
            "trust.server": self.trust.server,
            "registry.credentials": self.credentials_path,
            "create.default_tag": self.default_tag,
            "create.pull": str(self.pull_policy),
        }


def _parse_bool(value: str, key: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigError(f"{key}: expected a boolean, got {value!r}")


def _parse_float(value: str, key: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ConfigError(f"{key}: expected a number, got {value!r}") from None


def _user_config_path(home_dir: str | None) -> str:
    home = home_dir or os.path.expanduser("~")
    return os.path.join(home, ".config", "berth", "berth.conf")


def _apply_file(config: BerthConfig, parser: configparser.ConfigParser) -> BerthConfig:
    """Overlay the values present in *parser* onto *config*."""
    trust = config.trust
    changes: dict[str, object] = {}

    if parser.has_option("engine", "socket"):
        changes["engine_socket"] = parser.get("engine", "socket")
    if parser.has_option("engine", "timeout"):
        changes["engine_timeout"] = _parse_float(parser.get("engine", "timeout"), "engine.timeout")
    if parser.has_option("trust", "enabled"):
        trust = replace(trust, enabled=_parse_bool(parser.get("trust", "enabled"), "trust.enabled"))
    if parser.has_option("trust", "server"):
        trust = replace(trust, server=parser.get("trust", "server"))
    if parser.has_option("registry", "credentials"):
        changes["credentials_path"] = os.path.expanduser(parser.get("registry", "credentials"))
    if parser.has_option("create", "default_tag"):
        changes["default_tag"] = parser.get("create", "default_tag")
    if parser.has_option("create", "pull"):
        try:
            changes["pull_policy"] = PullPolicy.parse(parser.get("create", "pull"))
        except ValueError as e:
            raise ConfigError(f"create.pull: {e}") from None

    return replace(config, trust=trust, **changes)


def _apply_env(config: BerthConfig, environ: Mapping[str, str]) -> BerthConfig:
    changes: dict[str, object] = {}
    trust = config.trust

    host = environ.get("BERTH_HOST")
    if host:
        changes["engine_socket"] = host.removeprefix("unix://")
    if environ.get("BERTH_CONTENT_TRUST"):
        trust = replace(trust, enabled=_parse_bool(environ["BERTH_CONTENT_TRUST"], "BERTH_CONTENT_TRUST"))
    if environ.get("BERTH_CONTENT_TRUST_SERVER"):
        trust = replace(trust, server=environ["BERTH_CONTENT_TRUST_SERVER"])

    return replace(config, trust=trust, **changes)


def load_config(
    home_dir: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> BerthConfig:
    """Load layered configuration.

    Args:
        home_dir: Home directory whose ``.config/berth/berth.conf`` is read.
            Defaults to the current user's.
        environ: Environment mapping; defaults to ``os.environ``.

    Raises:
        ConfigError: If a value in any source is malformed.
    """
    env = os.environ if environ is None else environ
    config = BerthConfig()

    paths = [SYSTEM_CONFIG_PATH, _user_config_path(home_dir)]
    if env.get("BERTH_CONFIG"):
        paths.append(env["BERTH_CONFIG"])

    # Later files override earlier ones.
    for path in paths:
        parser = configparser.ConfigParser()
        try:
            read = parser.read(path, encoding="utf-8")
        except configparser.Error as e:
            raise ConfigError(f"Invalid config file {path}: {e}") from e
        if read:
            logger.debug("Loaded config from %s", path)
            config = _apply_file(config, parser)

    return _apply_env(config, env)
