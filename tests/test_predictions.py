import json

import httpx
import pytest
import respx

from replicate_client.errors import AuthError, ModelExecutionError, ReplicateTimeoutError
from replicate_client.files_model import FileEncodingStrategy, FileInput
from replicate_client.http_client import HttpClient
from replicate_client.prediction import PredictionStatus
from replicate_client.predictions import PredictionBuilder, PredictionsApi

BASE = "https://api.replicate.com/v1/predictions"
FILES_URL = "https://api.replicate.com/v1/files"


def _prediction(status, **extra):
    data = {"id": "abc", "model": "owner/name", "version": "v1", "status": status}
    data.update(extra)
    return data


def test_prediction_builder():
    builder = (
        PredictionBuilder(PredictionsApi(HttpClient("token")), "test-version")
        .input("prompt", "test prompt")
        .webhook("https://example.com/webhook")
        .stream()
    )
    assert builder.request.version == "test-version"
    assert builder.request.input["prompt"] == "test prompt"
    assert builder.request.webhook == "https://example.com/webhook"
    assert builder.request.stream is True


def test_builder_inputs_and_file_strategy():
    builder = (
        PredictionBuilder(PredictionsApi(HttpClient("token")), "v1")
        .inputs({"a": 1, "b": [2, 3]})
        .file_input_with_strategy(
            "image", "https://example.com/a.png", FileEncodingStrategy.BASE64_DATA_URL
        )
    )
    assert builder.request.input == {"a": 1, "b": [2, 3]}
    assert builder.request.file_inputs["image"].as_url() == "https://example.com/a.png"
    assert builder.request.file_encoding_strategy is FileEncodingStrategy.BASE64_DATA_URL


@pytest.mark.asyncio
async def test_send_posts_body():
    async with HttpClient("token") as http:
        with respx.mock() as router:
            route = router.post(BASE).mock(
                return_value=httpx.Response(201, json=_prediction("starting"))
            )
            prediction = await (
                PredictionBuilder(PredictionsApi(http), "v1").input("text", "hi").send()
            )
    assert prediction.status is PredictionStatus.STARTING
    assert json.loads(route.calls.last.request.content) == {
        "version": "v1",
        "input": {"text": "hi"},
    }


@pytest.mark.asyncio
async def test_send_with_base64_file_input():
    file_input = FileInput.from_bytes(b"Hello, World!", content_type="text/plain")
    async with HttpClient("token") as http:
        with respx.mock() as router:
            route = router.post(BASE).mock(
                return_value=httpx.Response(201, json=_prediction("starting"))
            )
            prediction = await (
                PredictionBuilder(PredictionsApi(http), "v1")
                .file_input_with_strategy("doc", file_input, FileEncodingStrategy.BASE64_DATA_URL)
                .send()
            )
    assert prediction.id == "abc"
    body = json.loads(route.calls.last.request.content)
    assert body["input"]["doc"] == "data:text/plain;base64,SGVsbG8sIFdvcmxkIQ=="


@pytest.mark.asyncio
async def test_send_with_multipart_file_input():
    uploaded = {
        "id": "file-1",
        "name": "file",
        "content_type": "application/octet-stream",
        "size": 3,
        "etag": "etag-1",
        "checksums": {},
        "metadata": {},
        "created_at": "2024-01-01T00:00:00Z",
        "urls": {"get": "https://api.replicate.com/v1/files/file-1"},
    }
    async with HttpClient("token") as http:
        with respx.mock() as router:
            router.post(FILES_URL).mock(return_value=httpx.Response(201, json=uploaded))
            route = router.post(BASE).mock(
                return_value=httpx.Response(201, json=_prediction("starting"))
            )
            prediction = await (
                PredictionBuilder(PredictionsApi(http), "v1")
                .file_input("image", FileInput.from_bytes(b"abc"))
                .send()
            )
    assert prediction.status is PredictionStatus.STARTING
    body = json.loads(route.calls.last.request.content)
    assert body["input"]["image"] == "https://api.replicate.com/v1/files/file-1"


@pytest.mark.asyncio
async def test_get_and_cancel():
    async with HttpClient("token") as http:
        with respx.mock() as router:
            router.get(f"{BASE}/abc").mock(
                return_value=httpx.Response(200, json=_prediction("processing"))
            )
            router.post(f"{BASE}/abc/cancel").mock(
                return_value=httpx.Response(200, json=_prediction("canceled"))
            )
            api = PredictionsApi(http)
            fetched = await api.get("abc")
            canceled = await api.cancel("abc")
    assert fetched.status is PredictionStatus.PROCESSING
    assert canceled.is_canceled()


@pytest.mark.asyncio
async def test_list_pages():
    page = {
        "results": [_prediction("succeeded"), _prediction("failed", id="def")],
        "next": "/v1/predictions?cursor=abc",
        "previous": None,
    }
    async with HttpClient("token") as http:
        with respx.mock() as router:
            router.get(BASE, params={"cursor": "abc"}).mock(
                return_value=httpx.Response(200, json={"results": []})
            )
            router.get(BASE).mock(return_value=httpx.Response(200, json=page))
            api = PredictionsApi(http)
            first = await api.list()
            second = await api.list(first.next)
    assert [p.id for p in first.results] == ["abc", "def"]
    assert first.has_next()
    assert not first.has_previous()
    assert second.is_empty()


@pytest.mark.asyncio
async def test_invalid_token_rejection():
    async with HttpClient("invalid_token_123") as http:
        with respx.mock() as router:
            router.get(BASE).mock(return_value=httpx.Response(401, json={"detail": "no"}))
            with pytest.raises(AuthError, match="Invalid API token"):
                await PredictionsApi(http).list()


@pytest.mark.asyncio
async def test_wait_for_completion_polls_until_done():
    async with HttpClient("token") as http:
        with respx.mock() as router:
            route = router.get(f"{BASE}/abc").mock(
                side_effect=[
                    httpx.Response(200, json=_prediction("processing")),
                    httpx.Response(200, json=_prediction("succeeded", output="hello")),
                ]
            )
            prediction = await PredictionsApi(http).wait_for_completion(
                "abc", poll_interval=0.01
            )
    assert prediction.output == "hello"
    assert route.call_count == 2


@pytest.mark.asyncio
async def test_wait_for_completion_raises_on_failure():
    async with HttpClient("token") as http:
        with respx.mock() as router:
            router.get(f"{BASE}/abc").mock(
                return_value=httpx.Response(
                    200, json=_prediction("failed", error="boom", logs="trace")
                )
            )
            with pytest.raises(ModelExecutionError) as info:
                await PredictionsApi(http).wait_for_completion("abc", poll_interval=0.01)
    assert info.value.prediction_id == "abc"
    assert info.value.error_message == "boom"
    assert info.value.logs == "trace"


@pytest.mark.asyncio
async def test_wait_for_completion_returns_canceled():
    async with HttpClient("token") as http:
        with respx.mock() as router:
            router.get(f"{BASE}/abc").mock(
                return_value=httpx.Response(200, json=_prediction("canceled"))
            )
            prediction = await PredictionsApi(http).wait_for_completion("abc")
    assert prediction.status is PredictionStatus.CANCELED


@pytest.mark.asyncio
async def test_wait_for_completion_times_out():
    async with HttpClient("token") as http:
        with respx.mock() as router:
            router.get(f"{BASE}/abc").mock(
                return_value=httpx.Response(200, json=_prediction("processing"))
            )
            with pytest.raises(ReplicateTimeoutError, match="abc"):
                await PredictionsApi(http).wait_for_completion(
                    "abc", max_duration=0.05, poll_interval=0.01
                )


@pytest.mark.asyncio
async def test_send_and_wait_with_timeout():
    async with HttpClient("token") as http:
        with respx.mock() as router:
            router.post(BASE).mock(
                return_value=httpx.Response(201, json=_prediction("starting"))
            )
            router.get(f"{BASE}/abc").mock(
                return_value=httpx.Response(200, json=_prediction("succeeded", output=[1]))
            )
            prediction = await (
                PredictionBuilder(PredictionsApi(http), "v1")
                .input("text", "hi")
                .send_and_wait_with_timeout(5)
            )
    assert prediction.is_successful()
    assert prediction.output == [1]