"""Process-wide configuration and engine client for CLI commands."""

from __future__ import annotations

import httpx

from ..config import BerthConfig, load_config
from ..engine_client import EngineClient

_config: BerthConfig | None = None
_engine: EngineClient | None = None
_transport: httpx.AsyncBaseTransport | None = None


def configure(
    config: BerthConfig | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    """Replace the configuration (and optionally the engine transport).

    Resets the cached engine client so the next :func:`get_engine` call
    picks up the new settings.
    """
    global _config, _engine, _transport
    _config = config
    _transport = transport
    _engine = None


def get_config() -> BerthConfig:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def get_engine() -> EngineClient:
    global _engine
    if _engine is None:
        config = get_config()
        _engine = EngineClient(
            config.engine_socket,
            timeout=config.engine_timeout,
            transport=_transport,
        )
    return _engine
