# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Write-once container ID file.

The file is created exclusively before any engine call, so two
creations pointed at the same path cannot both proceed.  It receives
the container ID once creation succeeds; if creation fails the file is
removed on release so the next attempt is not blocked by it.

Use it as a context manager::

    with CIDFile.open(path) as cid:
        ...
        cid.write(container_id)
"""

from __future__ import annotations

import logging
import os
from typing import TextIO

from .operations import OperationError

logger = logging.getLogger(__name__)


class CIDFileExistsError(OperationError):
    """A file already exists at the requested CID file path."""


class CIDFileWriteError(OperationError):
    """The CID file could not be created or written."""


class CIDFile:
    """Exclusive, write-once holder for a container ID."""

    def __init__(self, path: str, handle: TextIO):
        self.path = path
        self._handle: TextIO | None = handle
        self.written = False

    @classmethod
    def open(cls, path: str) -> CIDFile:
        """Create the file at *path*; fail if anything already exists there.

        Raises:
            CIDFileExistsError: The path exists (its contents are untouched).
            CIDFileWriteError: The file could not be created.
        """
        try:
            handle = open(path, "x", encoding="utf-8")
        except FileExistsError:
            raise CIDFileExistsError(
                f"Container ID file found, make sure the other container "
                f"isn't running or delete {path}"
            )
        except OSError as e:
            raise CIDFileWriteError(f"Failed to create the container ID file: {e}")
        return cls(path, handle)

    def write(self, container_id: str) -> None:
        """Record *container_id*.  May only succeed once."""
        if self._handle is None:
            raise CIDFileWriteError(f"Container ID file {self.path} is already closed")
        if self.written:
            raise CIDFileWriteError(f"Container ID file {self.path} was already written")
        try:
            self._handle.write(container_id)
            self._handle.flush()
        except OSError as e:
            raise CIDFileWriteError(f"Failed to write the container ID to the file: {e}")
        self.written = True

    def release(self) -> None:
        """Close the handle; remove the file if no ID was ever written."""
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        handle.close()
        if not self.written:
            try:
                os.remove(self.path)
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning("Failed to remove the CID file '%s': %s", self.path, e)

    @property
    def closed(self) -> bool:
        return self._handle is None

    def __enter__(self) -> CIDFile:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()
