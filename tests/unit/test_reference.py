"""Image reference parsing.

Tests cover:
    - Default tag substitution
    - Explicit tags and digests are preserved
    - Registry host:port is not mistaken for a tag
    - Malformed references raise InvalidReferenceError
"""

import pytest

from berth.reference import (
    DEFAULT_TAG,
    InvalidReferenceError,
    parse_reference,
    split_repository_tag,
)

from conftest import DIGEST


@pytest.mark.parametrize("image", ["alpine", "library/alpine", "quay.io/coreos/etcd"])
def test_missing_tag_gets_default(image):
    ref = parse_reference(image)
    assert ref.repository == image
    assert ref.tag == DEFAULT_TAG
    assert ref.digest is None
    assert ref.image_name == f"{image}:latest"


def test_custom_default_tag():
    assert parse_reference("alpine", default_tag="stable").tag == "stable"


@pytest.mark.parametrize(
    "image, repository, tag",
    [
        ("alpine:3.19", "alpine", "3.19"),
        ("alpine:latest", "alpine", "latest"),
        ("localhost:5000/tools/jq:1.7_rc-1", "localhost:5000/tools/jq", "1.7_rc-1"),
        ("registry.example.com/team/app:v2", "registry.example.com/team/app", "v2"),
    ],
)
def test_explicit_tag_preserved(image, repository, tag):
    ref = parse_reference(image)
    assert (ref.repository, ref.tag) == (repository, tag)
    assert ref.image_name == image


def test_registry_port_is_not_a_tag():
    ref = parse_reference("localhost:5000/tools/jq")
    assert ref.repository == "localhost:5000/tools/jq"
    assert ref.tag == DEFAULT_TAG


def test_digest_preserved():
    ref = parse_reference(f"alpine@{DIGEST}")
    assert ref.repository == "alpine"
    assert ref.digest == DIGEST
    assert ref.has_digest
    assert ref.tag == DEFAULT_TAG
    assert ref.image_name == f"alpine@{DIGEST}"
    assert ref.tag_or_digest == DIGEST


def test_tag_and_digest_keeps_both():
    ref = parse_reference(f"alpine:3.19@{DIGEST}")
    assert ref.tag == "3.19"
    assert ref.digest == DIGEST
    # The digest wins when talking to the engine.
    assert ref.image_name == f"alpine@{DIGEST}"


@pytest.mark.parametrize(
    "image",
    [
        "",
        "alpine:",
        "Alpine",
        "alpine:bad/tag:x",
        "-alpine",
        "alpine:.hidden",
        "alpine@sha256:short",
        "alpine@notadigest",
        "a//b",
    ],
)
def test_malformed_references_rejected(image):
    with pytest.raises(InvalidReferenceError):
        parse_reference(image)


def test_uppercase_repository_message():
    with pytest.raises(InvalidReferenceError, match="must be lowercase"):
        parse_reference("Library/Alpine")


def test_split_repository_tag_without_validation():
    assert split_repository_tag("alpine") == ("alpine", "")
    assert split_repository_tag("alpine:edge") == ("alpine", "edge")
    assert split_repository_tag(f"alpine@{DIGEST}") == ("alpine", DIGEST)
    assert split_repository_tag("host:5000/app") == ("host:5000/app", "")
