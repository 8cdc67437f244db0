"""Decorators for CLI commands."""

from functools import wraps
from typing import Callable, Coroutine, TypeVar

import typer

from ..cidfile import CIDFile
from ..operations import OperationError
from .client import get_engine
from .output import out

R = TypeVar("R")


def require_engine(func: Callable[..., Coroutine[None, None, R]]) -> Callable[..., Coroutine[None, None, R]]:
    """Decorator that checks engine availability and reports OperationError.

    The engine client is closed when the command finishes, since each
    command runs in its own event loop.
    """
    @wraps(func)
    async def wrapper(*args: object, **kwargs: object) -> R:
        try:
            engine = get_engine()
        except OperationError as e:
            out.error(str(e))
            raise typer.Exit(1)

        try:
            if not await engine.is_available():
                out.error("Cannot connect to the container engine.")
                out.hint("Is the engine running? Set [bold]BERTH_HOST[/bold] to use another socket.")
                raise typer.Exit(1)

            try:
                return await func(*args, **kwargs)
            except OperationError as e:
                out.error(str(e))
                raise typer.Exit(1)
        finally:
            await engine.close()
    return wrapper


def reserve_cidfile(func: Callable[..., Coroutine[None, None, R]]) -> Callable[..., Coroutine[None, None, R]]:
    """Decorator that creates the ``cidfile`` before anything touches the engine.

    Apply it outside :func:`require_engine`.  The command receives the
    opened :class:`~berth.cidfile.CIDFile` in place of the path; the file
    is released (and removed if never written) when the command ends.
    """
    @wraps(func)
    async def wrapper(*args: object, **kwargs: object) -> R:
        path = kwargs.get("cidfile")
        if not path:
            return await func(*args, **kwargs)

        try:
            cid = CIDFile.open(str(path))
        except OperationError as e:
            out.error(str(e))
            raise typer.Exit(1)

        with cid:
            kwargs["cidfile"] = cid
            return await func(*args, **kwargs)
    return wrapper
