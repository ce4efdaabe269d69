"""Aspect-ratio presets and size-token resolution.

A size token is either a preset ratio such as ``"16:9"`` or a raw
``"WxH"`` / ``"W:H"`` pair. Resolution yields pixel dimensions plus, when the
reduced ratio is one the providers understand, a canonical ratio string that
is forwarded upstream as an aspect hint.
"""
from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class RatioPreset:
    width: int
    height: int
    label: str = ""


@dataclass(frozen=True)
class ResolvedSize:
    width: float
    height: float
    aspect_ratio: str | None = None


DEFAULT_SIZE = "1:1"
FALLBACK_SIZE = ResolvedSize(width=1024, height=1024, aspect_ratio="1:1")

ALLOWED_ASPECTS: frozenset[str] = frozenset(
    {"1:1", "2:3", "3:2", "3:4", "4:3", "4:5", "5:4", "9:16", "16:9", "21:9"}
)

# Ordered as the UI lists them: landscape, square, portrait, other.
GEMINI_RATIO_PRESETS: dict[str, RatioPreset] = {
    "21:9": RatioPreset(1680, 720, "横向き 21:9"),
    "16:9": RatioPreset(1280, 720, "横向き 16:9"),
    "4:3": RatioPreset(1200, 900, "横向き 4:3"),
    "3:2": RatioPreset(1200, 800, "横向き 3:2"),
    "1:1": RatioPreset(1024, 1024, "正方形 1:1"),
    "9:16": RatioPreset(720, 1280, "縦向き 9:16"),
    "3:4": RatioPreset(900, 1200, "縦向き 3:4"),
    "2:3": RatioPreset(800, 1200, "縦向き 2:3"),
    "5:4": RatioPreset(1280, 1024, "その他 5:4"),
    "4:5": RatioPreset(1024, 1280, "その他 4:5"),
}

IMAGEN_RATIO_PRESETS: dict[str, RatioPreset] = {
    "16:9": RatioPreset(1408, 768, "横向き 16:9"),
    "4:3": RatioPreset(1280, 896, "横向き 4:3"),
    "1:1": RatioPreset(1024, 1024, "正方形 1:1"),
    "9:16": RatioPreset(768, 1408, "縦向き 9:16"),
    "3:4": RatioPreset(896, 1280, "縦向き 3:4"),
}


def _parse_dimension(raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return int(value) if value.is_integer() else value


def simplify_ratio(width: float, height: float) -> str:
    """Reduce ``width:height`` by their greatest common divisor."""
    if not (float(width).is_integer() and float(height).is_integer()):
        return f"{width}:{height}"
    width, height = int(width), int(height)
    divisor = math.gcd(width, height)
    if divisor == 0:
        return "0:0"
    return f"{width // divisor}:{height // divisor}"


def resolve_size(
    size: str,
    presets: dict[str, RatioPreset] = GEMINI_RATIO_PRESETS,
    allowed: frozenset[str] = ALLOWED_ASPECTS,
) -> ResolvedSize:
    preset = presets.get(size)
    if preset:
        return ResolvedSize(width=preset.width, height=preset.height, aspect_ratio=size)

    halves = size.split("x") if "x" in size else size.split(":")
    width = _parse_dimension(halves[0])
    height = _parse_dimension(halves[1] if len(halves) > 1 else None)
    if width is None or height is None:
        return FALLBACK_SIZE

    ratio = simplify_ratio(width, height)
    return ResolvedSize(
        width=width,
        height=height,
        aspect_ratio=ratio if ratio in allowed else None,
    )
