# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Image pulls through the engine."""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import aclosing
from typing import Any

from .engine_client import EngineClient, EngineError
from .models import ProgressRecord
from .operations import OperationError
from .reference import DEFAULT_TAG, split_repository_tag
from .registry import encode_auth_header, load_credentials, resolve_auth_config, split_index

logger = logging.getLogger(__name__)

ProgressSink = Callable[[dict[str, Any]], None]


class PullError(OperationError):
    """The engine or registry failed to pull an image."""


class ImagePuller:
    """Pulls one image per call, authenticating against its registry.

    Credentials are re-read from ``credentials_path`` on every pull, so
    a login between two pulls of the same invocation is honoured.
    """

    def __init__(
        self,
        engine: EngineClient,
        credentials_path: str,
        default_tag: str = DEFAULT_TAG,
    ):
        self._engine = engine
        self._credentials_path = credentials_path
        self._default_tag = default_tag

    def registry_auth(self, repository: str) -> str:
        """Encoded ``X-Registry-Auth`` value for the index serving *repository*."""
        index, _remote = split_index(repository)
        auth = resolve_auth_config(load_credentials(self._credentials_path), index)
        return encode_auth_header(auth)

    async def pull(self, image: str, sink: ProgressSink) -> None:
        """Pull *image* (``repo``, ``repo:tag`` or ``repo@digest``).

        A bare ``repo`` is pulled with the configured default tag.

        Each progress record is handed to *sink* as it arrives.

        Raises:
            PullError: The request failed or the stream reported an error.
        """
        repository, tag = split_repository_tag(image)
        tag = tag or self._default_tag
        auth_header = self.registry_auth(repository)

        logger.debug("Pulling %s (tag %s)", repository, tag)
        try:
            async with aclosing(
                self._engine.pull_image(repository, tag, auth_header)
            ) as records:
                async for raw in records:
                    record = ProgressRecord.model_validate(raw)
                    if record.failure:
                        raise PullError(record.failure)
                    sink(raw)
        except EngineError as e:
            raise PullError(str(e))
