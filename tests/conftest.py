# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pytest configuration and shared fakes for berth tests.

The engine and the trust server are replaced by scripted handlers
mounted on :class:`httpx.MockTransport`; no sockets are opened.
"""

from __future__ import annotations

import base64
import io
import json
from typing import Any

import httpx
import pytest
from rich.console import Console

from berth.config import BerthConfig, TrustSettings
from berth.engine_client import EngineClient
from berth.operations import OperationReporter
from berth.service import ContainerCreator
from berth.trust import TrustResolver

TRUST_SERVER = "https://notary.test"

# A syntactically valid sha256 digest used across tests.
DIGEST_HEX = "a3ed95caeb02ffe68cdd9fd84406680ae93d633cb16422d00e8a7c22955b46d4"
DIGEST = f"sha256:{DIGEST_HEX}"


# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------

def created(container_id: str, warnings: list[str] | None = None) -> httpx.Response:
    return httpx.Response(201, json={"Id": container_id, "Warnings": warnings})


def no_such_image(name: str) -> httpx.Response:
    return httpx.Response(404, json={"message": f"No such image: {name}"})


def engine_error(status: int, message: str) -> httpx.Response:
    return httpx.Response(status, json={"message": message})


def targets_document(targets: dict[str, str]) -> dict[str, Any]:
    """A minimal signed targets document mapping tag -> sha256 hex."""
    return {
        "signed": {
            "_type": "Targets",
            "targets": {
                tag: {
                    "hashes": {"sha256": base64.b64encode(bytes.fromhex(hex_digest)).decode()},
                    "length": 1024,
                }
                for tag, hex_digest in targets.items()
            },
        },
        "signatures": [],
    }


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeEngine:
    """Scripted engine API.

    ``create_responses`` are handed out in order; the last one repeats
    once the list is exhausted.  Every request is recorded in ``calls``.
    """

    def __init__(self) -> None:
        self.calls: list[httpx.Request] = []
        self.available = True
        self.create_responses: list[httpx.Response] = [created("c0ffee")]
        self.pull_status = 200
        self.pull_records: list[dict[str, Any]] = [
            {"status": "Pulling from library/alpine", "id": "latest"},
            {"status": "Downloading", "id": "a1b2c3", "progress": "[=====>   ] 1MB/2MB"},
            {"status": "Status: Downloaded newer image for alpine:latest"},
        ]
        self.tag_status = 201

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path

        if path == "/_ping":
            return httpx.Response(200 if self.available else 503, text="OK")
        if path == "/containers/create":
            if len(self.create_responses) > 1:
                return self.create_responses.pop(0)
            return self.create_responses[0]
        if path == "/images/create":
            if self.pull_status >= 400:
                return engine_error(self.pull_status, "pull access denied for nosuch, repository does not exist")
            body = "\r\n".join(json.dumps(r) for r in self.pull_records)
            return httpx.Response(self.pull_status, content=body.encode())
        if path.startswith("/images/") and path.endswith("/tag"):
            if self.tag_status >= 400:
                return engine_error(self.tag_status, "tag failed")
            return httpx.Response(self.tag_status)
        return engine_error(404, "page not found")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [c for c in self.calls if c.url.path == path]

    @property
    def creates(self) -> list[httpx.Request]:
        return self.calls_to("/containers/create")

    @property
    def pulls(self) -> list[httpx.Request]:
        return self.calls_to("/images/create")

    @property
    def tags(self) -> list[httpx.Request]:
        return [c for c in self.calls if c.url.path.endswith("/tag")]


class FakeTrustServer:
    """Scripted trust server serving ``targets.json`` per repository."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.repositories: dict[str, dict[str, str]] = {
            "docker.io/library/alpine": {"latest": DIGEST_HEX, "3.19": DIGEST_HEX},
        }
        self.status: int | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status is not None:
            return httpx.Response(self.status)
        path = request.url.path
        prefix, suffix = "/v2/", "/_trust/tuf/targets.json"
        gun = path[len(prefix):-len(suffix)] if path.endswith(suffix) else ""
        if gun not in self.repositories:
            return httpx.Response(404, json={"errors": [{"code": "METADATA_NOT_FOUND"}]})
        return httpx.Response(200, json=targets_document(self.repositories[gun]))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def engine_api() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def trust_api() -> FakeTrustServer:
    return FakeTrustServer()


@pytest.fixture
def engine(engine_api: FakeEngine) -> EngineClient:
    return EngineClient("/run/test-engine.sock", transport=engine_api.transport)


@pytest.fixture
def settings(tmp_path: Any) -> BerthConfig:
    return BerthConfig(
        engine_socket="/run/test-engine.sock",
        trust=TrustSettings(enabled=False, server=TRUST_SERVER),
        credentials_path=str(tmp_path / "auth.json"),
    )


@pytest.fixture
def diagnostics() -> io.StringIO:
    """Captured diagnostic (stderr) channel."""
    return io.StringIO()


@pytest.fixture
def reporter(diagnostics: io.StringIO) -> OperationReporter:
    console = Console(file=diagnostics, width=200, color_system=None, highlight=False)
    return OperationReporter(console)


@pytest.fixture
def make_creator(engine, settings, reporter, trust_api):
    """Factory for a ContainerCreator over the fakes; pass ``trust=True`` to enable trust."""

    def _make(trust: bool = False) -> ContainerCreator:
        resolver = TrustResolver(TRUST_SERVER, transport=trust_api.transport)
        return ContainerCreator(
            engine,
            settings.with_trust(trust),
            reporter,
            trust=resolver,
        )

    return _make
