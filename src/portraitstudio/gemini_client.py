from __future__ import annotations

import base64
import logging
from typing import Any, Optional

from google import genai
from google.genai import types

from .config import Config
from .encoding import decode_b64
from .errors import ConfigError, EmptyResponse, TransportError
from .prompts import one_line


logger = logging.getLogger(__name__)

EMPTY_RESPONSE_MESSAGE = (
    "API did not return an image. The prompt may have been blocked or the response was empty."
)


def _iter_parts(response: Any):
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return
    content = getattr(candidates[0], "content", None)
    for part in getattr(content, "parts", None) or []:
        yield part


def extract_image_b64(response: Any) -> Optional[str]:
    """Base64 of the first part carrying inline image data, or None."""
    for part in _iter_parts(response):
        inline = getattr(part, "inline_data", None)
        if inline is None or not inline.data:
            continue
        data = inline.data
        # The SDK hands back raw bytes; some transports keep the base64 text.
        if isinstance(data, str):
            return data
        return base64.b64encode(data).decode("ascii")
    return None


class GeminiPortraitClient:
    """One request per call: image + instruction in, first returned image out."""

    def __init__(self, cfg: Config, client: Any = None):
        self._cfg = cfg
        if client is None:
            if not cfg.api_key:
                raise ConfigError("GEMINI_API_KEY environment variable is not set.")
            client = genai.Client(api_key=cfg.api_key)
        self._client = client

    @property
    def model(self) -> str:
        return self._cfg.model

    async def generate(self, base64_image: str, mime_type: str, prompt: str) -> str:
        try:
            raw = decode_b64(base64_image)
        except ValueError as e:
            raise TransportError(f"Failed to generate portrait: {e}") from e

        logger.info(
            "generate model=%s mime=%s img_len=%s prompt=%r",
            self.model,
            mime_type,
            len(raw),
            one_line(prompt),
        )

        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=[
                    types.Part.from_bytes(data=raw, mime_type=mime_type),
                    types.Part.from_text(text=prompt),
                ],
                config=types.GenerateContentConfig(response_modalities=["IMAGE", "TEXT"]),
            )
        except Exception as e:
            logger.exception("Upstream request error: %s", e)
            raise TransportError(f"Failed to generate portrait: {e}") from e

        b64 = extract_image_b64(response)
        if b64 is None:
            logger.warning("No image returned from model=%s", self.model)
            raise EmptyResponse(EMPTY_RESPONSE_MESSAGE)
        return b64
