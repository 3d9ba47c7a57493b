from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import IOFailure
from .validation import UploadCandidate


logger = logging.getLogger(__name__)

READ_FAILED_MESSAGE = "Failed to read image file."


@dataclass(frozen=True)
class EncodedImage:
    data: str  # base64, standard alphabet
    mime_type: str
    preview_url: str  # data URL, displayable as-is


def to_data_url(mime_type: str, b64: str) -> str:
    return f"data:{mime_type};base64,{b64}"


def encode_bytes(raw: bytes, mime_type: str) -> EncodedImage:
    b64 = base64.b64encode(raw).decode("ascii")
    return EncodedImage(data=b64, mime_type=mime_type, preview_url=to_data_url(mime_type, b64))


def decode_b64(b64: str) -> bytes:
    try:
        return base64.b64decode(b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e


async def _read_source(candidate: UploadCandidate) -> bytes:
    src = candidate.source
    if isinstance(src, Path):
        return await asyncio.to_thread(src.read_bytes)
    return bytes(src)


async def encode(candidate: UploadCandidate) -> EncodedImage:
    try:
        raw = await _read_source(candidate)
    except OSError as e:
        logger.warning("could not read upload %r: %s", candidate.name, e)
        raise IOFailure(READ_FAILED_MESSAGE) from e
    return encode_bytes(raw, candidate.mime_type)
