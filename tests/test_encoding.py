import asyncio
import base64
from pathlib import Path

import pytest

from portraitstudio.encoding import decode_b64, encode
from portraitstudio.errors import IOFailure
from portraitstudio.validation import UploadCandidate


def test_encode_bytes_payload_and_preview():
    raw = b"\xff\xd8\xff\xe0fake-jpeg"
    enc = asyncio.run(encode(UploadCandidate.from_bytes(raw, "image/jpeg")))
    assert enc.mime_type == "image/jpeg"
    assert base64.b64decode(enc.data) == raw
    assert enc.preview_url == f"data:image/jpeg;base64,{enc.data}"


def test_encode_is_deterministic(tmp_path: Path):
    raw = bytes(range(256)) * 8
    p = tmp_path / "a.png"
    p.write_bytes(raw)
    a = asyncio.run(encode(UploadCandidate(mime_type="image/png", size=len(raw), source=p)))
    b = asyncio.run(encode(UploadCandidate.from_bytes(raw, "image/png")))
    assert a == b


def test_unreadable_source_raises_io_failure(tmp_path: Path):
    cand = UploadCandidate(mime_type="image/png", size=10, source=tmp_path / "missing.png")
    with pytest.raises(IOFailure, match="Failed to read image file."):
        asyncio.run(encode(cand))


def test_decode_b64_rejects_garbage():
    with pytest.raises(ValueError):
        decode_b64("not base64!!")
