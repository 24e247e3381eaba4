"""
Client for the Runware image-inference websocket API.

Generation is a single request/response exchange with its own timeout. The
resulting image is downloaded and decoded into a PixelGrid before any
quantization happens; nothing here is retried.
"""
from __future__ import annotations

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass

import requests
import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from asciimaker.config import DEFAULT_TIMEOUT
from asciimaker.engine import PixelGrid
from asciimaker.errors import ImageDecodeError, RemoteGenerationError
from asciimaker.rasterizer import load_image

logger = logging.getLogger(__name__)

API_ENDPOINT = "wss://ws-api.runware.ai/v1"
DEFAULT_MODEL = "runware:100@1"

_TASK_DEFAULTS = {
    "model": DEFAULT_MODEL,
    "width": 768,
    "height": 768,
    "numberResults": 1,
    "outputFormat": "WEBP",
    "steps": 4,
    "CFGScale": 1,
    "scheduler": "FlowMatchEulerDiscreteScheduler",
    "strength": 0.8,
    "lora": [],
}

# Python keyword -> API field
_OPTION_NAMES = {
    "model": "model",
    "number_results": "numberResults",
    "output_format": "outputFormat",
    "cfg_scale": "CFGScale",
    "scheduler": "scheduler",
    "strength": "strength",
    "prompt_weighting": "promptWeighting",
    "seed": "seed",
    "lora": "lora",
}


@dataclass(frozen=True)
class GeneratedImage:
    image_url: str
    positive_prompt: str
    seed: int | None = None
    nsfw_content: bool = False

    @classmethod
    def from_item(cls, item: dict) -> GeneratedImage:
        if not item.get("imageURL"):
            raise RemoteGenerationError("Response contained no imageURL")
        return cls(
            image_url=item["imageURL"],
            positive_prompt=item.get("positivePrompt", ""),
            seed=item.get("seed"),
            nsfw_content=bool(item.get("NSFWContent", False)),
        )


def build_inference_task(prompt: str, task_uuid: str, **options) -> dict:
    """Build one imageInference task message body."""
    unknown = set(options) - set(_OPTION_NAMES)
    if unknown:
        raise TypeError(f"Unknown generation options: {', '.join(sorted(unknown))}")

    task = {"taskType": "imageInference", "taskUUID": task_uuid, "positivePrompt": prompt}
    task.update(_TASK_DEFAULTS)
    for name, value in options.items():
        if value is not None:
            task[_OPTION_NAMES[name]] = value

    if not task.get("seed"):
        task.pop("seed", None)
    if task["model"] == DEFAULT_MODEL:
        task.pop("promptWeighting", None)
    return task


def _raise_for_errors(response: dict) -> None:
    errors = response.get("errors") or ([response["error"]] if response.get("error") else [])
    if errors:
        first = errors[0]
        if isinstance(first, dict):
            message = first.get("message") or first.get("errorMessage") or json.dumps(first)
        else:
            message = str(first)
        raise RemoteGenerationError(f"Runware error: {message}")


class RunwareClient:
    """Async context manager holding one authenticated websocket connection."""

    def __init__(self, api_key: str, endpoint: str = API_ENDPOINT, timeout: float = DEFAULT_TIMEOUT, connect=None):
        if not api_key:
            raise RemoteGenerationError("A Runware API key is required")
        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout = timeout
        self.session_uuid: str | None = None
        self._connect = connect or websockets.connect
        self._ws = None

    async def __aenter__(self) -> RunwareClient:
        try:
            self._ws = await asyncio.wait_for(self._connect(self.endpoint), self.timeout)
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            raise RemoteGenerationError(f"Could not connect to {self.endpoint}: {e}") from e
        try:
            await self.authenticate()
        except BaseException:
            await self.__aexit__(None, None, None)
            raise
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None

    async def _send(self, tasks: list[dict]) -> None:
        await self._ws.send(json.dumps(tasks))

    async def _wait_for(self, match) -> dict:
        """Receive messages until a data item satisfies `match`."""

        async def receive():
            while True:
                message = await self._ws.recv()
                try:
                    response = json.loads(message)
                except ValueError as e:
                    raise RemoteGenerationError(f"Malformed response: {e}") from e
                _raise_for_errors(response)
                for item in response.get("data", []):
                    if match(item):
                        return item

        try:
            return await asyncio.wait_for(receive(), self.timeout)
        except asyncio.TimeoutError as e:
            raise RemoteGenerationError(f"No response within {self.timeout}s") from e
        except ConnectionClosed as e:
            raise RemoteGenerationError(f"Connection closed: {e}") from e

    async def authenticate(self) -> None:
        task = {"taskType": "authentication", "apiKey": self.api_key}
        if self.session_uuid:
            task["connectionSessionUUID"] = self.session_uuid
        await self._send([task])
        item = await self._wait_for(lambda item: item.get("taskType") == "authentication")
        self.session_uuid = item.get("connectionSessionUUID")
        logger.debug("Authenticated, session %s", self.session_uuid)

    async def generate_image(self, prompt: str, **options) -> GeneratedImage:
        task_uuid = str(uuid.uuid4())
        await self._send([build_inference_task(prompt, task_uuid, **options)])
        logger.debug("Sent imageInference task %s", task_uuid)
        item = await self._wait_for(lambda item: item.get("taskUUID") == task_uuid)
        if item.get("error"):
            raise RemoteGenerationError(item.get("errorMessage") or "Image generation failed")
        return GeneratedImage.from_item(item)


def fetch_image(url: str, timeout: float = DEFAULT_TIMEOUT) -> PixelGrid:
    """Download and decode a generated image."""
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise RemoteGenerationError(f"Could not download {url}: {e}") from e
    try:
        return load_image(response.content)
    except ImageDecodeError as e:
        raise RemoteGenerationError(f"Downloaded image could not be decoded: {e}") from e


def generate_image_grid(prompt: str, api_key: str, timeout: float = DEFAULT_TIMEOUT, **options) -> PixelGrid:
    """Generate an image from a prompt and return it decoded, blocking until done."""

    async def run() -> GeneratedImage:
        async with RunwareClient(api_key, timeout=timeout) as client:
            return await client.generate_image(prompt, **options)

    image = asyncio.run(run())
    logger.info("Generated image %s", image.image_url)
    return fetch_image(image.image_url, timeout=timeout)
