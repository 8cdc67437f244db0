# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Creation pipeline steps: parse the image, pin it, pull it, build the request."""

from __future__ import annotations

from ..config import PullPolicy
from ..contexts import CreateContext, CreateRequest
from ..operations import OperationError
from ..reference import Reference, parse_reference
from ..trust import TrustedReference
from . import create_pipeline


def require_reference(ctx: CreateContext) -> Reference:
    """The parsed image reference; steps after ``parse_image`` rely on it."""
    if ctx.reference is None:
        raise OperationError(f"Image '{ctx.config.image}' was not parsed before creation")
    return ctx.reference


async def resolve_trusted_reference(ctx: CreateContext) -> TrustedReference | None:
    """Resolve the image reference through the trust server when trust applies.

    Returns ``None`` when trust is disabled or the reference is already
    pinned by digest; the digest is authoritative in that case.
    """
    ref = require_reference(ctx)
    if not ctx.trust_enabled or ref.has_digest:
        return None
    return await ctx.trust.resolve(ref.repository, ref.tag)


@create_pipeline.step(order=-400)
async def parse_image(ctx: CreateContext) -> None:
    """Parse the configured image and fix the name sent to the engine.

    An untagged image gets the configured default tag here, so the pull
    and the create request both name the same ``repo:tag``.
    """
    ctx.reference = parse_reference(ctx.config.image, ctx.settings.default_tag)
    ctx.image = ctx.reference.image_name


@create_pipeline.step(order=-300)
async def resolve_eager_trust(ctx: CreateContext) -> None:
    """With ``--pull=always`` and trust on, pin the image to its signed digest.

    Creating from the digest picks up the latest signed content, so no
    explicit pull is made here.
    """
    if ctx.pull_policy is not PullPolicy.ALWAYS:
        return
    trusted = await resolve_trusted_reference(ctx)
    if trusted is not None:
        ctx.trusted = trusted
        ctx.image = trusted.image_name
        ctx.dim(f"Resolved {ctx.reference} to {trusted}")


@create_pipeline.step(order=-200)
async def eager_pull(ctx: CreateContext) -> None:
    """With ``--pull=always`` and trust off, pull before creating."""
    if ctx.pull_policy is not PullPolicy.ALWAYS or ctx.trust_enabled:
        return
    ctx.info(f"Pulling image '{ctx.reference}'")
    await ctx.puller.pull(ctx.image, ctx.reporter.progress)


@create_pipeline.step(order=-100)
async def build_request(ctx: CreateContext) -> None:
    """Merge container and host config, with the effective image, into the request."""
    config = ctx.config.model_copy(update={"image": ctx.image})
    ctx.request = CreateRequest.build(config, ctx.host_config, ctx.name)
