# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Content trust: resolve a tag to its signed digest.

The trust server publishes, per repository, a signed ``targets``
document mapping each tag to the hash of its manifest.  berth looks the
requested tag up there and uses ``repository@sha256:<digest>`` for every
subsequent engine call, so what runs is exactly what was signed.

Verifying the TUF signature chain is the trust server client's job and
is not done here; any failure to obtain a usable mapping is fatal and
never falls back to the unsigned tag.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from .operations import OperationError
from .registry import fully_qualified_name

logger = logging.getLogger(__name__)


class TrustResolutionError(OperationError):
    """No trusted digest could be obtained for a tag."""


@dataclass(frozen=True)
class TrustedReference:
    """A tag pinned to the digest its signer published."""

    repository: str
    tag: str
    digest: str

    @property
    def image_name(self) -> str:
        return f"{self.repository}@{self.digest}"

    def __str__(self) -> str:
        return self.image_name


class TrustResolver:
    """Looks up signed tag -> digest mappings on a trust server."""

    def __init__(
        self,
        server: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._server = server.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def targets_url(self, repository: str) -> str:
        gun = fully_qualified_name(repository)
        return f"{self._server}/v2/{gun}/_trust/tuf/targets.json"

    async def resolve(self, repository: str, tag: str) -> TrustedReference:
        """Return the trusted reference for ``repository:tag``.

        Raises:
            TrustResolutionError: The server is unreachable, answers with an
                error, or has no valid signed target for *tag*.
        """
        url = self.targets_url(repository)
        logger.debug("Fetching trust data from %s", url)
        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=self._timeout,
            ) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            raise TrustResolutionError(f"Error contacting trust server {self._server}: {e}")

        if response.status_code == 404:
            raise TrustResolutionError(
                f"No trust data for {repository}: repository is not signed"
            )
        if response.is_error:
            raise TrustResolutionError(
                f"Trust server returned {response.status_code} for {repository}"
            )

        try:
            data = response.json()
        except ValueError:
            raise TrustResolutionError(f"Malformed trust data for {repository}")

        digest = _target_digest(data, repository, tag)
        logger.debug("Trusted %s:%s -> %s", repository, tag, digest)
        return TrustedReference(repository=repository, tag=tag, digest=digest)


def _target_digest(data: Any, repository: str, tag: str) -> str:
    """Extract ``sha256:<hex>`` for *tag* from a targets document."""
    try:
        targets = data["signed"]["targets"]
    except (KeyError, TypeError):
        raise TrustResolutionError(f"Malformed trust data for {repository}")

    target = targets.get(tag) if isinstance(targets, dict) else None
    if not isinstance(target, dict):
        raise TrustResolutionError(f"No trust data for {repository}:{tag}")

    encoded = (target.get("hashes") or {}).get("sha256")
    if not encoded:
        raise TrustResolutionError(f"No valid hash for {repository}:{tag}")
    try:
        raw = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise TrustResolutionError(f"Invalid hash for {repository}:{tag}")
    if len(raw) != 32:
        raise TrustResolutionError(f"Invalid hash for {repository}:{tag}")
    return f"sha256:{raw.hex()}"
