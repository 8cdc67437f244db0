# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Ordered pipeline of async steps sharing one context object.

A :class:`Pipeline` is created once at module level; step modules
decorate their functions with :meth:`Pipeline.step` to register them.
Running the pipeline awaits every step in ascending ``order``, so each
remote call finishes before the next step begins.

The create pipeline uses three bands of ``order``:

- negative: preparation (parse the image, resolve trust, eager pull,
  build the request); nothing here has created a container yet;
- ``0``: the create call with its single retry after a pull;
- positive: reporting on a created container (warnings, CID file).

A step placed in a later band may rely on everything an earlier band
put on the context.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar, overload

logger = logging.getLogger(__name__)

_Ctx = TypeVar("_Ctx")

_StepFn = Callable[[_Ctx], Awaitable[None]]

# Order assigned to steps registered without an explicit one.
_DEFAULT_ORDER = 500


class Pipeline(Generic[_Ctx]):
    """A registry of async step functions executed by ``order``.

    Steps with equal order run in registration order.  Use multiples of
    100 so new steps can be slotted in between existing ones.

    Example::

        create = Pipeline[CreateContext]("create")

        @create.step(order=-400)
        async def parse_image(ctx: CreateContext) -> None: ...

        @create.step
        async def report(ctx: CreateContext) -> None: ...

    An exception raised by a step stops the run; later steps never see
    the context.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: list[tuple[int, int, _StepFn[_Ctx]]] = []
        self._seq = 0

    @overload
    def step(self, fn: _StepFn[_Ctx]) -> _StepFn[_Ctx]: ...
    @overload
    def step(self, *, order: int) -> Callable[[_StepFn[_Ctx]], _StepFn[_Ctx]]: ...

    def step(
        self,
        fn: _StepFn[_Ctx] | None = None,
        *,
        order: int = _DEFAULT_ORDER,
    ) -> _StepFn[_Ctx] | Callable[[_StepFn[_Ctx]], _StepFn[_Ctx]]:
        """Register *fn* as a step, bare (``@p.step``) or with ``order``."""
        def _register(f: _StepFn[_Ctx]) -> _StepFn[_Ctx]:
            self._entries.append((order, self._seq, f))
            self._seq += 1
            return f

        if fn is not None:
            return _register(fn)
        return _register

    @property
    def steps(self) -> list[str]:
        """Step function names in execution order."""
        return [f.__name__ for _o, _s, f in sorted(self._entries, key=_sort_key)]

    async def run(self, ctx: _Ctx) -> None:
        """Await every registered step in order."""
        for order, _seq, fn in sorted(self._entries, key=_sort_key):
            logger.debug("%s: running %s (order %d)", self.name, fn.__name__, order)
            await fn(ctx)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        ordered = sorted(self._entries, key=_sort_key)
        names = ", ".join(f"{f.__name__}({o})" for o, _s, f in ordered)
        return f"Pipeline({self.name!r}, [{names}])"


def _sort_key(entry: tuple[int, int, object]) -> tuple[int, int]:
    # Functions themselves are not orderable.
    return entry[0], entry[1]
