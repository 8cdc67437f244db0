"""Engine API client over a mocked transport."""

import json

import httpx
import pytest

from berth.engine_client import EngineClient, EngineError

from conftest import created, no_such_image


@pytest.mark.asyncio
async def test_create_container_sends_body_and_name(engine, engine_api):
    engine_api.create_responses = [created("abc123", ["low disk space"])]

    response = await engine.create_container({"Image": "alpine"}, name="web")

    assert response.id == "abc123"
    assert response.warnings == ["low disk space"]
    request = engine_api.creates[0]
    assert request.method == "POST"
    assert request.url.params["name"] == "web"
    assert json.loads(request.content) == {"Image": "alpine"}


@pytest.mark.asyncio
async def test_create_container_without_name_has_no_query(engine, engine_api):
    await engine.create_container({"Image": "alpine"})
    assert "name" not in engine_api.creates[0].url.params


@pytest.mark.asyncio
async def test_null_warnings_decode(engine, engine_api):
    engine_api.create_responses = [httpx.Response(201, json={"Id": "x", "Warnings": None})]
    response = await engine.create_container({"Image": "alpine"})
    assert response.warnings is None


@pytest.mark.asyncio
async def test_error_status_raises_engine_error(engine, engine_api):
    engine_api.create_responses = [no_such_image("alpine:latest")]

    with pytest.raises(EngineError) as excinfo:
        await engine.create_container({"Image": "alpine:latest"})

    assert excinfo.value.code == 404
    assert excinfo.value.not_found
    assert excinfo.value.message == "No such image: alpine:latest"


def test_refers_to_image_requires_404_and_name():
    missing = EngineError("No such image: alpine:latest", 404)
    assert missing.refers_to_image("alpine:latest")
    assert missing.refers_to_image("alpine")
    assert not missing.refers_to_image("busybox")

    other_404 = EngineError("network web-net not found", 404)
    assert not other_404.refers_to_image("alpine")

    conflict = EngineError("Conflict: alpine already in use", 409)
    assert not conflict.refers_to_image("alpine")


@pytest.mark.asyncio
async def test_plain_text_error_body(engine_api):
    def handler(request):
        return httpx.Response(500, text="engine exploded")

    client = EngineClient(transport=httpx.MockTransport(handler))
    with pytest.raises(EngineError, match="engine exploded"):
        await client.create_container({"Image": "alpine"})


@pytest.mark.asyncio
async def test_transport_failure_becomes_engine_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = EngineClient("/nowhere.sock", transport=httpx.MockTransport(handler))
    with pytest.raises(EngineError, match="Cannot connect to the engine at unix:///nowhere.sock") as excinfo:
        await client.ping()
    assert excinfo.value.code is None


@pytest.mark.asyncio
async def test_is_available(engine, engine_api):
    assert await engine.is_available()
    engine_api.available = False
    assert not await engine.is_available()


@pytest.mark.asyncio
async def test_pull_image_streams_records(engine, engine_api):
    records = [r async for r in engine.pull_image("alpine", "latest", "e30=")]

    assert records == engine_api.pull_records
    request = engine_api.pulls[0]
    assert request.url.params["fromImage"] == "alpine"
    assert request.url.params["tag"] == "latest"
    assert request.headers["X-Registry-Auth"] == "e30="


@pytest.mark.asyncio
async def test_pull_image_plain_text_lines(engine_api):
    def handler(request):
        return httpx.Response(200, content=b"Pulling fs layer\n\n")

    client = EngineClient(transport=httpx.MockTransport(handler))
    records = [r async for r in client.pull_image("alpine", "latest")]
    assert records == [{"status": "Pulling fs layer"}]


@pytest.mark.asyncio
async def test_pull_image_error_status(engine, engine_api):
    engine_api.pull_status = 404
    with pytest.raises(EngineError) as excinfo:
        [r async for r in engine.pull_image("nosuch", "latest")]
    assert excinfo.value.code == 404
    assert "repository does not exist" in excinfo.value.message


@pytest.mark.asyncio
async def test_tag_image(engine, engine_api):
    await engine.tag_image("alpine@sha256:abc", "alpine", "latest")

    request = engine_api.tags[0]
    assert request.method == "POST"
    assert request.url.params["repo"] == "alpine"
    assert request.url.params["tag"] == "latest"
    assert request.url.params["force"] == "1"


@pytest.mark.asyncio
async def test_tag_image_failure(engine, engine_api):
    engine_api.tag_status = 500
    with pytest.raises(EngineError, match="tag failed"):
        await engine.tag_image("alpine@sha256:abc", "alpine", "latest")


@pytest.mark.asyncio
async def test_close_resets_client(engine):
    await engine.ping()
    await engine.close()
    await engine.ping()
