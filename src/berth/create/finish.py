# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Post-creation steps: surface engine warnings and record the container ID."""

from __future__ import annotations

from ..contexts import CreateContext
from . import create_pipeline


@create_pipeline.step(order=100)
async def emit_warnings(ctx: CreateContext) -> None:
    """Print each engine warning on the diagnostic channel."""
    if ctx.outcome is None:
        return
    for warning in ctx.outcome.warnings:
        ctx.warning(warning)


@create_pipeline.step(order=200)
async def write_cidfile(ctx: CreateContext) -> None:
    if ctx.outcome is not None and ctx.cidfile is not None:
        ctx.cidfile.write(ctx.outcome.container_id)
