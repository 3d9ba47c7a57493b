from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from .encoding import EncodedImage
from .styles import StylePreset


_WS_RE = re.compile(r"\s+")


def normalize_text(text: Optional[str]) -> str:
    return (text or "").strip()


def compose(style_prompt: str, free_text: Optional[str]) -> str:
    """Style prompt, followed by the user's extra request when there is one."""
    extra = normalize_text(free_text)
    if not extra:
        return style_prompt
    return f"{style_prompt} {extra}"


def one_line(text: str, limit: int = 80) -> str:
    # For log lines only.
    t = _WS_RE.sub(" ", text).strip()
    return t if len(t) <= limit else t[: limit - 3] + "..."


@dataclass(frozen=True)
class GenerationRequest:
    image: EncodedImage
    prompt: str

    @classmethod
    def build(
        cls,
        image: Optional[EncodedImage],
        style: Optional[StylePreset],
        free_text: Optional[str] = None,
    ) -> "GenerationRequest":
        if image is None:
            raise ValueError("A validated image is required before generating.")
        if style is None:
            raise ValueError("A style must be selected before generating.")
        return cls(image=image, prompt=compose(style.prompt, free_text))
