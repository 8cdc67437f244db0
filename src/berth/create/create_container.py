# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Creation pipeline step: create the container, pulling once if the image is missing.

The create call is a small state machine::

    CREATE ──ok──────────────────────────────> SUCCESS
       │ 404 "No such image"
       v
    NOT_FOUND_RECOVERY ──> RETRY_CREATE ──ok──> SUCCESS
                                 │ any error
                                 v
                               FAIL

Recovery is only reachable from ``CREATE``, so the request is sent at
most twice no matter what the engine keeps answering.
"""

from __future__ import annotations

import enum
import logging

from ..config import PullPolicy
from ..contexts import CreateContext, CreateOutcome, CreateRequest
from ..engine_client import EngineError
from ..models import ContainerCreateResponse
from ..operations import OperationError
from . import create_pipeline
from .prepare import require_reference, resolve_trusted_reference

logger = logging.getLogger(__name__)


class CreateError(OperationError):
    """The engine refused to create the container."""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code


class CreateState(enum.Enum):
    CREATE = "create"
    NOT_FOUND_RECOVERY = "not_found_recovery"
    RETRY_CREATE = "retry_create"
    SUCCESS = "success"
    FAIL = "fail"


def image_missing(ctx: CreateContext, error: EngineError) -> bool:
    """Whether *error* means the requested image is not present locally."""
    ref = require_reference(ctx)
    return error.refers_to_image(ctx.image, ctx.config.image, ref.image_name)


async def recover_missing_image(ctx: CreateContext) -> None:
    """Pull the missing image, pinning it through trust first if enabled.

    A tag resolved through trust is pulled by digest and then tagged back
    to ``repository:tag`` locally, so the unchanged create request finds it.
    """
    ref = require_reference(ctx)
    ctx.info(f"Unable to find image '{ref}' locally")

    if ctx.trusted is None:
        ctx.trusted = await resolve_trusted_reference(ctx)

    target = ctx.trusted.image_name if ctx.trusted is not None else ctx.image
    await ctx.puller.pull(target, ctx.reporter.progress)

    if ctx.trusted is not None and not ref.has_digest:
        ctx.dim(f"Tagging {ctx.trusted} as {ref.repository}:{ref.tag}")
        try:
            await ctx.engine.tag_image(ctx.trusted.image_name, ref.repository, ref.tag)
        except EngineError as e:
            raise OperationError(f"Failed to tag {ctx.trusted} as {ref}: {e}")


def _succeed(ctx: CreateContext, response: ContainerCreateResponse) -> CreateOutcome:
    ctx.transitions.append(CreateState.SUCCESS)
    return CreateOutcome.from_response(response)


def _fail(ctx: CreateContext, error: EngineError) -> CreateError:
    ctx.transitions.append(CreateState.FAIL)
    return CreateError(error.message, error.code)


async def run_create_state_machine(ctx: CreateContext, request: CreateRequest) -> CreateOutcome:
    """Drive the create call to ``SUCCESS`` or raise from ``FAIL``.

    Raises:
        CreateError: The create (or its single retry) failed.
        PullError, TrustResolutionError: Recovery failed; no retry is made.
    """
    state = CreateState.CREATE

    while True:
        ctx.transitions.append(state)
        logger.debug("create state: %s", state.value)

        if state is CreateState.CREATE:
            try:
                response = await ctx.engine.create_container(request.body(), name=request.name)
            except EngineError as e:
                if ctx.pull_policy is PullPolicy.NEVER or not image_missing(ctx, e):
                    raise _fail(ctx, e)
                state = CreateState.NOT_FOUND_RECOVERY
                continue
            return _succeed(ctx, response)

        if state is CreateState.NOT_FOUND_RECOVERY:
            await recover_missing_image(ctx)
            state = CreateState.RETRY_CREATE
            continue

        # RETRY_CREATE: the identical request, exactly once.
        try:
            response = await ctx.engine.create_container(request.body(), name=request.name)
        except EngineError as e:
            raise _fail(ctx, e)
        return _succeed(ctx, response)


@create_pipeline.step(order=0)
async def create_container(ctx: CreateContext) -> None:
    """Create the container via the engine API.

    ``ctx.request`` must have been built by ``build_request``.
    """
    if ctx.request is None:
        raise OperationError("Create request was not built before the create step")
    ctx.outcome = await run_create_state_machine(ctx, ctx.request)
    logger.debug("Created container %s", ctx.outcome.container_id)
