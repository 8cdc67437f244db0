# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Container creation and image pulls against one engine.

:class:`ContainerCreator` wires the engine client, puller and trust
resolver together and runs the creation pipeline for each request.
Every invocation gets a fresh :class:`~berth.contexts.CreateContext`;
nothing is shared between invocations except the CID file path the
caller chooses, and that is guarded by exclusive creation.
"""

from __future__ import annotations

import logging
from contextlib import nullcontext

from .cidfile import CIDFile
from .config import BerthConfig, PullPolicy
from .contexts import CreateContext, CreateOutcome
from .create import create_pipeline
from .engine_client import EngineClient, EngineError
from .models import ContainerConfig, HostConfig
from .operations import OperationError, OperationReporter
from .pull import ImagePuller
from .reference import Reference, parse_reference
from .trust import TrustedReference, TrustResolver

logger = logging.getLogger(__name__)


class ContainerCreator:
    """Creates containers, pulling missing images on demand."""

    def __init__(
        self,
        engine: EngineClient,
        settings: BerthConfig,
        reporter: OperationReporter | None = None,
        *,
        puller: ImagePuller | None = None,
        trust: TrustResolver | None = None,
    ):
        """Initialize the creator.

        Args:
            engine: Engine API client
            settings: Effective configuration, including trust mode
            reporter: Diagnostic channel; defaults to stderr
            puller: Image puller; defaults to one using ``settings.credentials_path``
            trust: Trust resolver; defaults to one for ``settings.trust.server``
        """
        self._engine = engine
        self._settings = settings
        self._reporter = reporter or OperationReporter()
        self._puller = puller or ImagePuller(
            engine, settings.credentials_path, settings.default_tag,
        )
        self._trust = trust or TrustResolver(settings.trust.server, timeout=settings.engine_timeout)

    @property
    def settings(self) -> BerthConfig:
        return self._settings

    async def create(
        self,
        config: ContainerConfig,
        host_config: HostConfig | None = None,
        *,
        name: str | None = None,
        cidfile: str | CIDFile | None = None,
        pull: PullPolicy | None = None,
    ) -> CreateOutcome:
        """Create a container and return its ID and engine warnings.

        Args:
            config: Container configuration; ``config.image`` is the image
                reference as the user typed it.
            host_config: Host configuration merged into the request.
            name: Optional container name.
            cidfile: Path of a file to receive the container ID.  It must
                not exist yet; it is created before any engine call.  A
                :class:`CIDFile` the caller already opened is used as is
                and released when creation ends.
            pull: Pull policy; defaults to the configured one.

        Raises:
            OperationError: Any failure along the way (see the subclasses
                in :mod:`berth.cidfile`, :mod:`berth.reference`,
                :mod:`berth.trust`, :mod:`berth.pull` and
                :mod:`berth.create.create_container`).
        """
        policy = pull or self._settings.pull_policy
        if isinstance(cidfile, CIDFile):
            cid: CIDFile | None = cidfile
        else:
            cid = CIDFile.open(cidfile) if cidfile else None

        with cid if cid is not None else nullcontext():
            ctx = CreateContext(
                config=config,
                host_config=host_config or HostConfig(),
                name=name,
                settings=self._settings,
                pull_policy=policy,
                engine=self._engine,
                puller=self._puller,
                trust=self._trust,
                reporter=self._reporter,
                cidfile=cid,
            )
            await create_pipeline.run(ctx)

        if ctx.outcome is None:
            raise OperationError("Container creation finished without a container ID")
        return ctx.outcome

    async def pull(self, image: str) -> Reference | TrustedReference:
        """Pull *image*, through its signed digest when trust is enabled.

        Returns:
            The reference that was pulled.
        """
        ref = parse_reference(image, self._settings.default_tag)
        if not self._settings.trust.enabled or ref.has_digest:
            await self._puller.pull(ref.image_name, self._reporter.progress)
            return ref

        trusted = await self._trust.resolve(ref.repository, ref.tag)
        self._reporter.dim(f"Pull (1 of 1): {ref}@{trusted.digest}")
        await self._puller.pull(trusted.image_name, self._reporter.progress)
        try:
            await self._engine.tag_image(trusted.image_name, ref.repository, ref.tag)
        except EngineError as e:
            raise OperationError(f"Failed to tag {trusted} as {ref}: {e}")
        return trusted
