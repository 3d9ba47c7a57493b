from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StylePreset:
    id: str
    name: str
    description: str
    prompt: str

    def summary(self) -> dict[str, str]:
        return {"id": self.id, "name": self.name, "description": self.description}


_KEEP_FACE = (
    "Keep the person's facial features, identity and expression recognizable; "
    "do not change age or ethnicity."
)

# First entry is the default selection.
STYLES: tuple[StylePreset, ...] = (
    StylePreset(
        id="studio",
        name="Studio Portrait",
        description="Clean professional headshot with soft studio lighting and a neutral backdrop.",
        prompt=(
            "Transform this photo into a professional studio portrait: soft key light with gentle fill, "
            "neutral grey seamless backdrop, sharp focus on the eyes, natural skin texture, 85mm lens look. "
            + _KEEP_FACE
        ),
    ),
    StylePreset(
        id="renaissance",
        name="Renaissance",
        description="Oil painting in the manner of the Italian Renaissance masters.",
        prompt=(
            "Repaint this photo as a Renaissance oil portrait: sfumato shading, warm earthy palette, "
            "dark background with subtle landscape, period clothing, fine canvas texture. "
            + _KEEP_FACE
        ),
    ),
    StylePreset(
        id="vintage",
        name="Vintage Film",
        description="1970s analog film photo with warm grain and faded colors.",
        prompt=(
            "Restyle this photo as a 1970s analog film portrait: warm color cast, visible film grain, "
            "slightly faded highlights, soft vignette. "
            + _KEEP_FACE
        ),
    ),
    StylePreset(
        id="noir",
        name="Film Noir",
        description="High-contrast black and white with dramatic shadows.",
        prompt=(
            "Turn this photo into a film noir portrait: black and white, hard side light, deep shadows, "
            "venetian blind light pattern, 1940s wardrobe. "
            + _KEEP_FACE
        ),
    ),
    StylePreset(
        id="watercolor",
        name="Watercolor",
        description="Loose watercolor painting with soft bleeding edges.",
        prompt=(
            "Paint this photo as a watercolor portrait: loose brush strokes, soft color bleeds, "
            "white paper showing through, delicate linework. "
            + _KEEP_FACE
        ),
    ),
    StylePreset(
        id="anime",
        name="Anime",
        description="Modern anime illustration with clean lines and vivid color.",
        prompt=(
            "Redraw this photo as a modern anime illustration: clean line art, cel shading, vivid colors, "
            "expressive eyes, simple gradient background. "
            + _KEEP_FACE
        ),
    ),
)

DEFAULT_STYLE = STYLES[0]

LOADING_MESSAGES: tuple[str, ...] = (
    "Analyzing your photo...",
    "Mixing the palette...",
    "Sketching the composition...",
    "Adding artistic details...",
    "Applying the final touches...",
)


def get_style(style_id: str) -> Optional[StylePreset]:
    sid = (style_id or "").strip().lower()
    for s in STYLES:
        if s.id == sid:
            return s
    return None


def find_by_name(name: str) -> Optional[StylePreset]:
    n = (name or "").strip().lower()
    for s in STYLES:
        if s.name.lower() == n:
            return s
    return None
