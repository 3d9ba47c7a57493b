from __future__ import annotations

import io
from dataclasses import dataclass

from PIL import Image

from .encoding import decode_b64


PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
DOWNLOAD_FILENAME = "ai_portrait.png"
DOWNLOAD_CONTENT_TYPE = "image/png"


@dataclass(frozen=True)
class DownloadArtifact:
    filename: str
    content_type: str
    payload: bytes

    @property
    def content_disposition(self) -> str:
        return f'attachment; filename="{self.filename}"'


def to_png_bytes(raw: bytes) -> bytes:
    # Models usually answer with PNG already; anything else is re-encoded.
    if raw.startswith(PNG_SIGNATURE):
        return raw
    with Image.open(io.BytesIO(raw)) as img:
        img.load()
        if img.mode not in ("RGB", "RGBA", "L", "LA", "P"):
            img = img.convert("RGBA")
        buf = io.BytesIO()
        img.save(buf, format="PNG")
    return buf.getvalue()


def build_download(result_b64: str, filename: str = DOWNLOAD_FILENAME) -> DownloadArtifact:
    return DownloadArtifact(
        filename=filename,
        content_type=DOWNLOAD_CONTENT_TYPE,
        payload=to_png_bytes(decode_b64(result_b64)),
    )
