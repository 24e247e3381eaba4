import asyncio
import io
import json

import pytest
import requests
from PIL import Image

from asciimaker import remote
from asciimaker.errors import RemoteGenerationError
from asciimaker.remote import DEFAULT_MODEL, GeneratedImage, RunwareClient, build_inference_task, fetch_image


class FakeSocket:
    """Websocket stand-in that answers authentication and inference tasks."""

    def __init__(self, fail_inference=False, api_error=False, silent=False, garbled=False):
        self.sent = []
        self.closed = False
        self.fail_inference = fail_inference
        self.api_error = api_error
        self.silent = silent
        self.garbled = garbled
        self._inbox = asyncio.Queue()

    async def send(self, message):
        tasks = json.loads(message)
        self.sent.extend(tasks)
        for task in tasks:
            if task["taskType"] == "authentication":
                reply = {"data": [{"taskType": "authentication", "connectionSessionUUID": "session-1"}]}
            elif self.silent:
                continue
            elif self.garbled:
                await self._inbox.put("<html>Bad Gateway</html>")
                continue
            elif self.api_error:
                reply = {"errors": [{"code": "invalidApiKey", "message": "Invalid API key"}]}
            elif self.fail_inference:
                reply = {"data": [{"taskUUID": task["taskUUID"], "error": True, "errorMessage": "NSFW prompt"}]}
            else:
                # An unrelated task first, which the client must skip
                await self._inbox.put(json.dumps({"data": [{"taskUUID": "other", "imageURL": "x"}]}))
                reply = {
                    "data": [
                        {
                            "taskType": "imageInference",
                            "taskUUID": task["taskUUID"],
                            "imageURL": "https://example.com/image.webp",
                            "positivePrompt": task["positivePrompt"],
                            "seed": 1234,
                            "NSFWContent": False,
                        }
                    ]
                }
            await self._inbox.put(json.dumps(reply))

    async def recv(self):
        return await self._inbox.get()

    async def close(self):
        self.closed = True


def fake_connect(socket):
    async def connect(endpoint):
        return socket

    return connect


def run_generation(socket, timeout=5.0, **options):
    async def run():
        async with RunwareClient("key", timeout=timeout, connect=fake_connect(socket)) as client:
            return await client.generate_image("a cat", **options)

    return asyncio.run(run())


def test_build_inference_task_defaults():
    task = build_inference_task("a cat", "uuid-1")
    assert task["taskType"] == "imageInference"
    assert task["taskUUID"] == "uuid-1"
    assert task["positivePrompt"] == "a cat"
    assert task["model"] == DEFAULT_MODEL
    assert (task["width"], task["height"]) == (768, 768)
    assert task["steps"] == 4
    assert task["outputFormat"] == "WEBP"
    assert task["scheduler"] == "FlowMatchEulerDiscreteScheduler"
    assert "seed" not in task


def test_build_inference_task_options():
    task = build_inference_task("a cat", "uuid-1", seed=7, cfg_scale=3, output_format="PNG")
    assert task["seed"] == 7
    assert task["CFGScale"] == 3
    assert task["outputFormat"] == "PNG"


def test_prompt_weighting_dropped_for_default_model():
    assert "promptWeighting" not in build_inference_task("p", "u", prompt_weighting="compel")
    task = build_inference_task("p", "u", prompt_weighting="compel", model="other:1@1")
    assert task["promptWeighting"] == "compel"


def test_unknown_option_rejected():
    with pytest.raises(TypeError, match="steps"):
        build_inference_task("p", "u", steps=10)


def test_generate_image():
    socket = FakeSocket()
    image = run_generation(socket)
    assert image == GeneratedImage(
        image_url="https://example.com/image.webp", positive_prompt="a cat", seed=1234, nsfw_content=False
    )
    assert socket.sent[0] == {"taskType": "authentication", "apiKey": "key"}
    assert socket.sent[1]["taskType"] == "imageInference"
    assert socket.closed


def test_generation_error_reported():
    with pytest.raises(RemoteGenerationError, match="NSFW prompt"):
        run_generation(FakeSocket(fail_inference=True))


def test_api_error_reported():
    with pytest.raises(RemoteGenerationError, match="Invalid API key"):
        run_generation(FakeSocket(api_error=True))


def test_malformed_response_reported():
    with pytest.raises(RemoteGenerationError, match="Malformed response"):
        run_generation(FakeSocket(garbled=True))


def test_timeout_reported():
    with pytest.raises(RemoteGenerationError, match="No response"):
        run_generation(FakeSocket(silent=True), timeout=0.05)


def test_connect_failure_reported():
    async def refuse(endpoint):
        raise OSError("connection refused")

    async def run():
        async with RunwareClient("key", connect=refuse):
            pass

    with pytest.raises(RemoteGenerationError, match="connection refused"):
        asyncio.run(run())


def test_api_key_required():
    with pytest.raises(RemoteGenerationError):
        RunwareClient("")


def test_generated_image_requires_url():
    with pytest.raises(RemoteGenerationError):
        GeneratedImage.from_item({"taskUUID": "u"})


class FakeResponse:
    def __init__(self, content, status=200):
        self.content = content
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


def png_bytes(size=(8, 4), colour=(255, 255, 255)):
    buf = io.BytesIO()
    Image.new("RGB", size, colour).save(buf, format="PNG")
    return buf.getvalue()


def test_fetch_image(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return FakeResponse(png_bytes())

    monkeypatch.setattr(remote.requests, "get", fake_get)
    grid = fetch_image("https://example.com/a.png", timeout=3)
    assert (grid.width, grid.height) == (8, 4)
    assert calls == [("https://example.com/a.png", 3)]


def test_fetch_image_http_error(monkeypatch):
    monkeypatch.setattr(remote.requests, "get", lambda url, timeout: FakeResponse(b"", status=404))
    with pytest.raises(RemoteGenerationError, match="404"):
        fetch_image("https://example.com/missing.png")


def test_fetch_image_network_error(monkeypatch):
    def fail(url, timeout):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(remote.requests, "get", fail)
    with pytest.raises(RemoteGenerationError, match="unreachable"):
        fetch_image("https://example.com/a.png")


def test_fetch_image_bad_content(monkeypatch):
    monkeypatch.setattr(remote.requests, "get", lambda url, timeout: FakeResponse(b"<html>"))
    with pytest.raises(RemoteGenerationError, match="decoded"):
        fetch_image("https://example.com/a.png")
