# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Image reference parsing.

An image string is split into a repository and either a tag or a digest:

    alpine                       -> alpine, latest
    alpine:3.19                  -> alpine, 3.19
    localhost:5000/tools/jq      -> localhost:5000/tools/jq, latest
    alpine@sha256:<64 hex>       -> alpine, latest, sha256:<64 hex>

The colon in a registry ``host:port`` is never mistaken for a tag
separator because a tag cannot contain ``/``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .operations import OperationError

DEFAULT_TAG = "latest"

# One path component: lowercase alphanumerics joined by separators.
_COMPONENT = r"[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*"
# Optional registry host, e.g. "registry.example.com:5000" or "localhost".
_HOSTNAME = r"(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?)(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?)*(?::[0-9]+)?"

_REPOSITORY_RE = re.compile(rf"^(?:{_HOSTNAME}/)?{_COMPONENT}(?:/{_COMPONENT})*$")
_TAG_RE = re.compile(r"^[\w][\w.-]{0,127}$")
_DIGEST_RE = re.compile(r"^[a-z0-9]+(?:[.+_-][a-z0-9]+)*:[a-zA-Z0-9=_-]+$")
_SHA256_HEX_RE = re.compile(r"^[a-f0-9]{64}$")

# Repository names longer than this are rejected by registries.
_MAX_REPOSITORY_LENGTH = 255


class InvalidReferenceError(OperationError):
    """The image string is not a valid reference."""


@dataclass(frozen=True)
class Reference:
    """A parsed image reference.

    ``tag`` is always set (defaulted when absent).  When ``digest`` is
    present it pins the content and takes precedence over the tag.
    """

    repository: str
    tag: str
    digest: str | None = None

    @property
    def has_digest(self) -> bool:
        return self.digest is not None

    @property
    def image_name(self) -> str:
        """The name to hand to the engine: ``repo@digest`` or ``repo:tag``."""
        if self.digest:
            return f"{self.repository}@{self.digest}"
        return f"{self.repository}:{self.tag}"

    @property
    def tag_or_digest(self) -> str:
        """Value for the pull call's ``tag`` query parameter."""
        return self.digest or self.tag

    def __str__(self) -> str:
        return self.image_name


def split_repository_tag(image: str) -> tuple[str, str]:
    """Split *image* into ``(repository, tag_or_digest)`` without validation.

    The second element is empty when neither a tag nor a digest is given.
    """
    if "@" in image:
        repository, _, digest = image.partition("@")
        return repository, digest

    repository, sep, tag = image.rpartition(":")
    if not sep or "/" in tag:
        return image, ""
    return repository, tag


def parse_reference(image: str, default_tag: str = DEFAULT_TAG) -> Reference:
    """Parse an image string into a :class:`Reference`.

    Args:
        image: Raw image string as typed by the user.
        default_tag: Tag used when *image* names none.

    Raises:
        InvalidReferenceError: If any part of *image* is malformed.
    """
    if not image:
        raise InvalidReferenceError("Image reference must not be empty")
    if image.endswith((":", "@")):
        raise InvalidReferenceError(f"Invalid reference format: {image}")

    digest: str | None = None
    tag = ""
    if "@" in image:
        name, _, digest = image.partition("@")
        # "repo:tag@digest" keeps the tag for display; the digest wins.
        repository, tag = split_repository_tag(name)
        _validate_digest(image, digest)
    else:
        repository, tag = split_repository_tag(image)

    if not repository or len(repository) > _MAX_REPOSITORY_LENGTH:
        raise InvalidReferenceError(f"Invalid repository name in reference: {image}")
    if not _REPOSITORY_RE.match(repository):
        raise InvalidReferenceError(
            f"Invalid reference format: repository name must be lowercase: {image}"
            if repository.lower() != repository and _REPOSITORY_RE.match(repository.lower())
            else f"Invalid reference format: {image}"
        )

    if tag:
        if not _TAG_RE.match(tag):
            raise InvalidReferenceError(f"Invalid tag format: {tag}")
    else:
        tag = default_tag

    return Reference(repository=repository, tag=tag, digest=digest)


def _validate_digest(image: str, digest: str) -> None:
    if not _DIGEST_RE.match(digest):
        raise InvalidReferenceError(f"Invalid digest format in reference: {image}")
    algorithm, _, hex_part = digest.partition(":")
    if algorithm == "sha256" and not _SHA256_HEX_RE.match(hex_part):
        raise InvalidReferenceError(f"Invalid sha256 digest: {digest}")
