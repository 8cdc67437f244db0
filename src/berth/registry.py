# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Registry index resolution and credential lookup.

berth does not log in to registries itself.  It reads a credentials
file in the familiar ``{"auths": {"<server>": {"auth": "<b64>"}}}``
layout and forwards the matching entry to the engine with each pull.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
from typing import Any

from .models import AuthConfig

logger = logging.getLogger(__name__)

DEFAULT_INDEX = "docker.io"
# Key used for the default index in credentials files written by older clients.
LEGACY_INDEX_SERVER = "https://index.docker.io/v1/"

_DEFAULT_INDEX_ALIASES = frozenset({
    DEFAULT_INDEX,
    "index.docker.io",
    "registry-1.docker.io",
    LEGACY_INDEX_SERVER,
})


def split_index(repository: str) -> tuple[str, str]:
    """Split a repository into ``(index_name, remote_name)``.

    The first path component names a registry only when it looks like a
    host: it contains a ``.`` or ``:``, or is ``localhost``.  Official
    images on the default index live under ``library/``.
    """
    first, sep, rest = repository.partition("/")
    if sep and ("." in first or ":" in first or first == "localhost"):
        index, remote = first, rest
    else:
        index, remote = DEFAULT_INDEX, repository

    if index in _DEFAULT_INDEX_ALIASES:
        index = DEFAULT_INDEX
        if "/" not in remote:
            remote = f"library/{remote}"
    return index, remote


def fully_qualified_name(repository: str) -> str:
    """``alpine`` -> ``docker.io/library/alpine``."""
    index, remote = split_index(repository)
    return f"{index}/{remote}"


def load_credentials(path: str) -> dict[str, Any]:
    """Load a credentials file; a missing file means no credentials."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable credentials file %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def _normalize_server(server: str) -> str:
    """Reduce a credentials key to a bare host[:port]."""
    for prefix in ("https://", "http://"):
        if server.startswith(prefix):
            server = server[len(prefix):]
    host = server.split("/", 1)[0]
    if host in _DEFAULT_INDEX_ALIASES or server == LEGACY_INDEX_SERVER:
        return DEFAULT_INDEX
    return host


def resolve_auth_config(credentials: dict[str, Any], index_name: str) -> AuthConfig:
    """Find the credentials for *index_name*.

    Keys in the ``auths`` table may be bare hosts, URLs, or the legacy
    default-index URL; all are matched by host.  Unknown servers resolve
    to an empty :class:`AuthConfig` (anonymous pull).
    """
    auths = credentials.get("auths") or {}
    wanted = _normalize_server(index_name)

    for server, entry in auths.items():
        if _normalize_server(server) != wanted or not isinstance(entry, dict):
            continue
        auth = AuthConfig.model_validate(entry)
        auth.serveraddress = server
        if auth.auth and not auth.username:
            auth.username, auth.password = _decode_auth(auth.auth)
            auth.auth = None
        return auth

    return AuthConfig()


def _decode_auth(encoded: str) -> tuple[str | None, str | None]:
    try:
        decoded = base64.b64decode(encoded).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        logger.warning("Ignoring malformed auth entry in credentials file")
        return None, None
    username, sep, password = decoded.partition(":")
    if not sep:
        return None, None
    return username, password


def encode_auth_header(auth: AuthConfig) -> str:
    """URL-safe base64 of the JSON auth payload, empty fields omitted."""
    payload = json.dumps(auth.model_dump(exclude_none=True), separators=(",", ":"))
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")


def default_credentials_path() -> str:
    return os.path.join(os.path.expanduser("~"), ".config", "berth", "auth.json")
