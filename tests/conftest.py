"""Test configuration, fakes and fixtures for the timelens pipeline."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

# Ensure the repo root (shared, timelens) is on path when running from tests/
_root = Path(__file__).resolve().parent.parent
if str(_root) not in sys.path:
    sys.path.insert(0, str(_root))

from shared.schemas import (
    AssetHandle,
    AssetState,
    FunctionCall,
    GenerationResponse,
    MediaAsset,
)

MP4_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64


class ScriptedBackend:
    """
    Backend double. `statuses` is consumed one item per get_status call; an
    Exception item is raised instead of returned. Once exhausted, PROCESSING
    is reported forever.
    """

    def __init__(self, statuses=(), response: GenerationResponse | None = None, upload_error=None):
        self.statuses = list(statuses)
        self.response = response or GenerationResponse()
        self.upload_error = upload_error
        self.uploads: list[tuple[bytes, str, str]] = []
        self.status_calls = 0
        self.requests = []

    async def upload(self, data, display_name, mime_type):
        self.uploads.append((data, display_name, mime_type))
        if self.upload_error is not None:
            raise self.upload_error
        return AssetHandle(id="files/test-1", display_name=display_name, mime_type=mime_type)

    async def get_status(self, handle):
        self.status_calls += 1
        item = self.statuses.pop(0) if self.statuses else AssetState.PROCESSING
        if isinstance(item, Exception):
            raise item
        return MediaAsset(
            id=handle.id,
            uri=f"https://files.example/{handle.id}",
            mime_type=handle.mime_type,
            state=item,
            display_name=handle.display_name,
        )

    async def generate_content(self, request):
        self.requests.append(request)
        return self.response


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays without waiting."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)

    @property
    def total(self) -> float:
        return sum(self.delays)


def calls_response(*calls: tuple[str, dict]) -> GenerationResponse:
    return GenerationResponse(function_calls=[FunctionCall(name=n, args=a) for n, a in calls])


@pytest.fixture
def handle():
    return AssetHandle(id="files/test-1", display_name="clip.mp4", mime_type="video/mp4")


@pytest.fixture
def ready_asset():
    return MediaAsset(
        id="files/test-1",
        uri="https://files.example/files/test-1",
        mime_type="video/mp4",
        state=AssetState.READY,
        display_name="clip.mp4",
    )


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def video_file(tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(MP4_BYTES)
    return path
