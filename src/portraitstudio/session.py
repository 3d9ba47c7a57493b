from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .encoding import EncodedImage
from .styles import DEFAULT_STYLE, LOADING_MESSAGES, StylePreset
from .validation import UploadCandidate


@dataclass
class SessionState:
    candidate: Optional[UploadCandidate] = None
    encoded: Optional[EncodedImage] = None

    style: StylePreset = DEFAULT_STYLE
    custom_prompt: str = ""

    generating: bool = False
    loading_message: str = LOADING_MESSAGES[0]

    result_b64: Optional[str] = None  # base64 of the generated image
    error: Optional[str] = None

    generation_token: int = 0

    def bump_generation_token(self) -> int:
        self.generation_token += 1
        return self.generation_token

    @property
    def phase(self) -> str:
        if self.generating:
            return "generating"
        if self.result_b64 is not None:
            return "result"
        if self.encoded is not None:
            return "preview"
        return "idle"

    @property
    def result_url(self) -> Optional[str]:
        if self.result_b64 is None:
            return None
        return f"data:image/png;base64,{self.result_b64}"

    def reset(self) -> None:
        """Back to the initial state. The token is kept so late results stay stale."""
        self.candidate = None
        self.encoded = None
        self.style = DEFAULT_STYLE
        self.custom_prompt = ""
        self.generating = False
        self.loading_message = LOADING_MESSAGES[0]
        self.result_b64 = None
        self.error = None

    def snapshot(self) -> dict[str, Any]:
        return {
            "phase": self.phase,
            "style": self.style.id,
            "custom_prompt": self.custom_prompt,
            "generating": self.generating,
            "loading_message": self.loading_message if self.generating else "",
            "preview_url": self.encoded.preview_url if self.encoded else None,
            "result_url": self.result_url,
            "error": self.error,
        }
