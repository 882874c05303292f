from collections.abc import Callable

import httpx
import pytest

from cheap_asr.api_client import SpeechApiClient
from cheap_asr.callbacks import CallbackRegistry
from cheap_asr.schemas import TranscriptionRequest

API_BASE = "https://api.test/v2"


@pytest.fixture
def make_request() -> Callable[..., TranscriptionRequest]:
    def _make(**overrides) -> TranscriptionRequest:
        data = {"token": "secret-token", "input_url": "https://example.com/audio.mp3"}
        data.update(overrides)
        return TranscriptionRequest.model_validate(data)

    return _make


@pytest.fixture
def registry() -> CallbackRegistry:
    return CallbackRegistry(base_url="https://bridge.test")


@pytest.fixture
def recorded():
    """Requests seen by the fake remote API, in order."""
    return []


@pytest.fixture
def make_client(recorded) -> Callable[..., SpeechApiClient]:
    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> SpeechApiClient:
        def _record(request: httpx.Request) -> httpx.Response:
            recorded.append(request)
            return handler(request)

        return SpeechApiClient(base_url=API_BASE, transport=httpx.MockTransport(_record))

    return _make
