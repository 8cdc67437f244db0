# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pydantic models for the subset of the engine API that berth uses.

Field names follow Python conventions; aliases carry the engine's
CamelCase wire names.  Models that describe request bodies allow extra
fields so callers can pass engine options berth does not model.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ContainerConfig(BaseModel):
    """Portable container configuration (the ``Config`` half of a create)."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    image: str = Field(alias="Image")
    cmd: list[str] | None = Field(default=None, alias="Cmd")
    entrypoint: list[str] | None = Field(default=None, alias="Entrypoint")
    env: list[str] | None = Field(default=None, alias="Env")
    labels: dict[str, str] | None = Field(default=None, alias="Labels")
    working_dir: str | None = Field(default=None, alias="WorkingDir")
    user: str | None = Field(default=None, alias="User")
    hostname: str | None = Field(default=None, alias="Hostname")
    tty: bool | None = Field(default=None, alias="Tty")
    open_stdin: bool | None = Field(default=None, alias="OpenStdin")
    attach_stdin: bool | None = Field(default=None, alias="AttachStdin")


class HostConfig(BaseModel):
    """Host-specific configuration (the ``HostConfig`` half of a create)."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    binds: list[str] | None = Field(default=None, alias="Binds")
    network_mode: str | None = Field(default=None, alias="NetworkMode")
    privileged: bool | None = Field(default=None, alias="Privileged")
    auto_remove: bool | None = Field(default=None, alias="AutoRemove")


class ContainerCreateResponse(BaseModel):
    """Body of a successful ``POST /containers/create``."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="Id")
    warnings: list[str] | None = Field(default=None, alias="Warnings")


class AuthConfig(BaseModel):
    """Registry credentials sent in the ``X-Registry-Auth`` header."""

    username: str | None = None
    password: str | None = None
    auth: str | None = None
    email: str | None = None
    serveraddress: str | None = None
    identitytoken: str | None = None
    registrytoken: str | None = None


class ErrorDetail(BaseModel):
    code: int | None = None
    message: str | None = None


class ProgressRecord(BaseModel):
    """One JSON line of the pull progress stream."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    status: str | None = None
    id: str | None = None
    progress: str | None = None
    progress_detail: dict[str, Any] | None = Field(default=None, alias="progressDetail")
    error: str | None = None
    error_detail: ErrorDetail | None = Field(default=None, alias="errorDetail")

    @property
    def failure(self) -> str | None:
        """Error text carried by this record, if it reports one."""
        if self.error_detail is not None and self.error_detail.message:
            return self.error_detail.message
        return self.error


def merge_configs(config: ContainerConfig, host_config: HostConfig) -> dict[str, Any]:
    """Build the create request body: the container config plus ``HostConfig``.

    ``None`` fields are dropped so the engine applies its own defaults.
    """
    body = config.model_dump(by_alias=True, exclude_none=True)
    body["HostConfig"] = host_config.model_dump(by_alias=True, exclude_none=True)
    return body
