"""Async client for a Docker-compatible engine API.

Talks HTTP over the engine's Unix socket (``/var/run/docker.sock`` by
default).  Only the calls the creation workflow needs are exposed:
ping, container create, image pull (streamed) and image tag.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from .models import ContainerCreateResponse

logger = logging.getLogger(__name__)

DEFAULT_SOCKET = "/var/run/docker.sock"


class EngineError(Exception):
    """Error reported by the engine, or failure to reach it.

    ``code`` is the HTTP status when the engine answered, else ``None``.
    """

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.message = message
        self.code = code

    @property
    def not_found(self) -> bool:
        return self.code == 404

    def refers_to_image(self, *names: str) -> bool:
        """True when this is a 404 about one of the given image names.

        The engine reports a missing image as ``No such image: <name>``;
        matching on the name keeps a 404 for some other resource (a
        missing network, say) from triggering a pull.
        """
        if not self.not_found:
            return False
        return any(name and name in self.message for name in names)


def _error_message(response: httpx.Response) -> str:
    """Extract the engine's error text from a failed response."""
    try:
        data = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.text.strip() or response.reason_phrase


class EngineClient:
    """Async client for the engine REST API over a Unix socket."""

    def __init__(
        self,
        socket_path: str = DEFAULT_SOCKET,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._socket_path = socket_path
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            transport = self._transport or httpx.AsyncHTTPTransport(uds=self._socket_path)
            self._client = httpx.AsyncClient(
                transport=transport,
                base_url="http://docker",
                # Pulls can sit silent for a long time between layers.
                timeout=httpx.Timeout(self._timeout, read=None),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> EngineClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Make a request and turn error statuses into :class:`EngineError`."""
        client = await self._get_client()
        logger.debug("%s %s", method, path)
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            raise EngineError(
                f"Cannot connect to the engine at unix://{self._socket_path}: {e}"
            ) from e

        if response.is_error:
            message = _error_message(response)
            logger.debug("%s %s -> %d: %s", method, path, response.status_code, message)
            raise EngineError(message, response.status_code)
        return response

    # -------------------------------------------------------------------------
    # Engine operations
    # -------------------------------------------------------------------------

    async def ping(self) -> None:
        """``GET /_ping``; raises :class:`EngineError` when unreachable."""
        await self._request("GET", "/_ping")

    async def is_available(self) -> bool:
        """Check if the engine is available and responding."""
        try:
            await self.ping()
            return True
        except EngineError:
            return False

    async def create_container(
        self,
        body: dict[str, Any],
        name: str | None = None,
    ) -> ContainerCreateResponse:
        """Create a container from a merged config body.

        Args:
            body: Container config with ``HostConfig`` merged in.
            name: Optional container name.

        Returns:
            The decoded ``{Id, Warnings}`` response.
        """
        params = {"name": name} if name else None
        response = await self._request("POST", "/containers/create", params=params, json=body)
        return ContainerCreateResponse.model_validate(response.json())

    async def pull_image(
        self,
        repository: str,
        tag: str,
        registry_auth: str | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """Pull an image, yielding each decoded progress record.

        The engine answers ``200`` as soon as the pull starts and reports
        later failures inside the stream, so callers must inspect every
        record for an ``error`` key.
        """
        client = await self._get_client()
        params = {"fromImage": repository, "tag": tag}
        headers = {"X-Registry-Auth": registry_auth} if registry_auth else {}
        logger.debug("POST /images/create fromImage=%s tag=%s", repository, tag)
        try:
            async with client.stream(
                "POST", "/images/create", params=params, headers=headers,
            ) as response:
                if response.is_error:
                    await response.aread()
                    raise EngineError(_error_message(response), response.status_code)
                async for line in response.aiter_lines():
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        yield json.loads(line)
                    except ValueError:
                        # Older engines interleave plain text.
                        yield {"status": line}
        except httpx.TransportError as e:
            raise EngineError(
                f"Cannot connect to the engine at unix://{self._socket_path}: {e}"
            ) from e

    async def tag_image(self, source: str, repository: str, tag: str) -> None:
        """Tag *source* (a name or ID) as ``repository:tag``, replacing any existing tag."""
        await self._request(
            "POST",
            f"/images/{source}/tag",
            params={"repo": repository, "tag": tag, "force": "1"},
        )
