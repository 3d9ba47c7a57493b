import asyncio
import io
from pathlib import Path
from types import SimpleNamespace
from typing import Optional

import pytest
from PIL import Image

from portraitstudio.config import Config


def make_cfg(tmp_path: Path, **overrides) -> Config:
    kwargs = dict(
        host="127.0.0.1",
        port=7861,
        api_key="test-key",
        model="gemini-2.5-flash-image-preview",
        status_interval_s=0.01,
    )
    kwargs.update(overrides)
    return Config(**kwargs)


def image_bytes(fmt: str = "PNG", color=(200, 30, 30), size=(16, 16)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color=color).save(buf, format=fmt)
    return buf.getvalue()


class FakePortraitClient:
    """Stands in for GeminiPortraitClient inside the controller."""

    def __init__(self, result: str = "", exc: Optional[Exception] = None, gated: bool = False):
        self.result = result
        self.exc = exc
        self.gated = gated
        self.gate: Optional[asyncio.Event] = None
        self.calls: list[tuple[str, str, str]] = []

    def release(self) -> None:
        assert self.gate is not None
        self.gate.set()

    async def generate(self, base64_image: str, mime_type: str, prompt: str) -> str:
        self.calls.append((base64_image, mime_type, prompt))
        if self.gated:
            if self.gate is None:
                self.gate = asyncio.Event()
            await self.gate.wait()
        if self.exc is not None:
            raise self.exc
        return self.result


def genai_response(*parts) -> SimpleNamespace:
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))])


def image_part(data: bytes, mime_type: str = "image/png") -> SimpleNamespace:
    return SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type), text=None)


def text_part(text: str) -> SimpleNamespace:
    return SimpleNamespace(inline_data=None, text=text)


class FakeModels:
    def __init__(self, response=None, exc: Optional[Exception] = None):
        self.response = response
        self.exc = exc
        self.calls: list[dict] = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.exc is not None:
            raise self.exc
        return self.response


def fake_genai(response=None, exc: Optional[Exception] = None) -> SimpleNamespace:
    return SimpleNamespace(aio=SimpleNamespace(models=FakeModels(response, exc)))


@pytest.fixture
def cfg(tmp_path: Path) -> Config:
    return make_cfg(tmp_path)
