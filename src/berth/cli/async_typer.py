"""Typer app that accepts ``async def`` commands.

Coroutine commands are wrapped so that each invocation runs in its own
event loop via :func:`asyncio.run`; plain functions are registered as is.
"""

from __future__ import annotations

import asyncio
import inspect
from functools import partial, wraps
from typing import Any, Callable

import typer


class AsyncTyper(typer.Typer):
    @staticmethod
    def _maybe_run_async(decorator: Callable[[Any], Any], f: Callable[..., Any]) -> Callable[..., Any]:
        if inspect.iscoroutinefunction(f):
            @wraps(f)
            def runner(*args: Any, **kwargs: Any) -> Any:
                return asyncio.run(f(*args, **kwargs))

            decorator(runner)
        else:
            decorator(f)
        return f

    def callback(self, *args: Any, **kwargs: Any) -> Any:
        decorator = super().callback(*args, **kwargs)
        return partial(self._maybe_run_async, decorator)

    def command(self, *args: Any, **kwargs: Any) -> Any:
        decorator = super().command(*args, **kwargs)
        return partial(self._maybe_run_async, decorator)
