from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Union

from .errors import ValidationError


ALLOWED_MIME_TYPES = ("image/jpeg", "image/png", "image/webp", "image/heic")
MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MiB

ByteSource = Union[bytes, Path]


@dataclass(frozen=True)
class UploadCandidate:
    mime_type: str
    size: int
    source: ByteSource
    name: str = ""

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str, name: str = "") -> "UploadCandidate":
        return cls(mime_type=mime_type, size=len(data), source=bytes(data), name=name)


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    reason: str = ""
    mime_type: str = ""  # normalized, set only when accepted


def validate(candidate: Optional[UploadCandidate]) -> ValidationResult:
    """
    Check the declared media type and byte length of an upload.

    Pure: never reads the source. An absent or zero-length candidate is rejected.
    """
    if candidate is None or candidate.size <= 0:
        return ValidationResult(False, "No image file was provided.")

    mime = (candidate.mime_type or "").strip().lower()
    if mime not in ALLOWED_MIME_TYPES:
        shown = candidate.mime_type or "unknown"
        return ValidationResult(
            False,
            f"Unsupported file type: {shown}. Please upload a JPEG, PNG, WEBP or HEIC image.",
        )

    if candidate.size > MAX_UPLOAD_BYTES:
        return ValidationResult(False, "File size exceeds 10MB. Please upload a smaller image.")

    return ValidationResult(True, mime_type=mime)


def ensure_valid(candidate: Optional[UploadCandidate]) -> UploadCandidate:
    res = validate(candidate)
    if not res.ok:
        raise ValidationError(res.reason)
    assert candidate is not None
    return replace(candidate, mime_type=res.mime_type)
