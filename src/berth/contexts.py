# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Context and value types passed through the creation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping

from .cidfile import CIDFile
from .config import BerthConfig, PullPolicy
from .engine_client import EngineClient
from .models import ContainerConfig, ContainerCreateResponse, HostConfig, merge_configs
from .operations import OperationReporter
from .pull import ImagePuller
from .reference import Reference
from .trust import TrustedReference, TrustResolver

if TYPE_CHECKING:
    from .create.create_container import CreateState


@dataclass(frozen=True)
class CreateRequest:
    """The body and name of one ``POST /containers/create``.

    Built once per invocation; the retry after a pull resends the very
    same request.
    """

    payload: Mapping[str, Any]
    name: str | None = None

    @classmethod
    def build(
        cls,
        config: ContainerConfig,
        host_config: HostConfig,
        name: str | None = None,
    ) -> CreateRequest:
        return cls(payload=MappingProxyType(merge_configs(config, host_config)), name=name)

    def body(self) -> dict[str, Any]:
        """A JSON-serialisable copy of the payload."""
        return dict(self.payload)


@dataclass(frozen=True)
class CreateOutcome:
    container_id: str
    warnings: tuple[str, ...] = ()

    @classmethod
    def from_response(cls, response: ContainerCreateResponse) -> CreateOutcome:
        return cls(container_id=response.id, warnings=tuple(response.warnings or ()))


@dataclass
class CreateContext:
    """State shared by the steps of one container creation.

    The caller fills in the inputs; steps populate ``reference``,
    ``trusted``, ``image``, ``request`` and finally ``outcome``.
    ``settings.trust`` decides whether content trust applies.
    """

    config: ContainerConfig
    host_config: HostConfig
    name: str | None
    settings: BerthConfig
    pull_policy: PullPolicy
    engine: EngineClient
    puller: ImagePuller
    trust: TrustResolver
    reporter: OperationReporter
    cidfile: CIDFile | None = None

    # Built up by pipeline steps
    reference: Reference | None = None
    trusted: TrustedReference | None = None
    image: str = ""
    request: CreateRequest | None = None
    outcome: CreateOutcome | None = None
    transitions: list[CreateState] = field(default_factory=lambda: list["CreateState"]())

    @property
    def trust_enabled(self) -> bool:
        return self.settings.trust.enabled

    def info(self, msg: str) -> None:
        self.reporter.info(msg)

    def dim(self, msg: str) -> None:
        self.reporter.dim(msg)

    def warning(self, msg: str) -> None:
        self.reporter.warning(msg)
