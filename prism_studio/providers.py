"""Provider adapters: request payload shape and response image extraction.

Each adapter knows one upstream wire shape. The HTTP call itself lives in
``upstream.py`` and is shared by every adapter.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .aspect import (
    ALLOWED_ASPECTS,
    GEMINI_RATIO_PRESETS,
    IMAGEN_RATIO_PRESETS,
    RatioPreset,
    ResolvedSize,
    resolve_size,
)
from .errors import EmptyResultError

GEMINI_IMAGE_ENDPOINT = (
    "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash-image:generateContent"
)
IMAGEN_IMAGE_ENDPOINT = (
    "https://generativelanguage.googleapis.com/v1beta/models/imagen-3.0-generate-002:generateImages"
)


def build_prompt_fragments(prompt: str, resolved: ResolvedSize) -> list[str]:
    fragments: list[str] = []
    width, height, ratio = resolved.width, resolved.height, resolved.aspect_ratio
    if width and height and ratio:
        fragments.append(
            f"Instruction: Respect aspect ratio {ratio} (approx {width}x{height}px). "
            "Do NOT return square images unless the ratio is 1:1."
        )
        fragments.append(f"Also keep framing around {width}:{height} and avoid square crops.")
    fragments.append(prompt)
    return fragments


def _list_field(container: Any, key: str) -> list[Any]:
    value = container.get(key) if isinstance(container, dict) else None
    return value if isinstance(value, list) else []


def _inline_data(container: dict[str, Any]) -> str | None:
    inline_data = container.get("inlineData") or container.get("inline_data")
    if isinstance(inline_data, dict) and inline_data.get("data"):
        return inline_data["data"]
    return None


class ImageProvider(ABC):
    provider_id: str
    label: str
    endpoint: str
    default_size: str
    presets: dict[str, RatioPreset]
    allowed_aspects: frozenset[str]

    def resolve(self, size: str) -> ResolvedSize:
        return resolve_size(size, presets=self.presets, allowed=self.allowed_aspects)

    @abstractmethod
    def build_payload(self, prompt: str, resolved: ResolvedSize) -> dict[str, Any]:
        """Return the JSON body for the upstream request."""

    @abstractmethod
    def extract_image(self, data: Any) -> str:
        """Return the first inline base64 image in ``data`` or raise EmptyResultError."""


class GeminiProvider(ImageProvider):
    provider_id = "gemini"
    label = "Gemini"
    endpoint = GEMINI_IMAGE_ENDPOINT
    default_size = "1:1"
    presets = GEMINI_RATIO_PRESETS
    allowed_aspects = ALLOWED_ASPECTS

    def build_payload(self, prompt: str, resolved: ResolvedSize) -> dict[str, Any]:
        parts = [{"text": text} for text in build_prompt_fragments(prompt, resolved)]
        payload: dict[str, Any] = {"contents": [{"role": "user", "parts": parts}]}
        if resolved.width and resolved.height and resolved.aspect_ratio:
            payload["generationConfig"] = {
                "imageConfig": {"aspectRatio": resolved.aspect_ratio},
            }
        return payload

    def extract_image(self, data: Any) -> str:
        for candidate in _list_field(data, "candidates"):
            if not isinstance(candidate, dict):
                continue
            for part in _list_field(candidate.get("content"), "parts"):
                if not isinstance(part, dict):
                    continue
                image_b64 = _inline_data(part)
                if image_b64:
                    return image_b64
        raise EmptyResultError()


class ImagenProvider(ImageProvider):
    provider_id = "imagen"
    label = "Imagen"
    endpoint = IMAGEN_IMAGE_ENDPOINT
    default_size = "1024x1024"
    presets = IMAGEN_RATIO_PRESETS
    allowed_aspects = frozenset(IMAGEN_RATIO_PRESETS)

    def build_payload(self, prompt: str, resolved: ResolvedSize) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "prompt": [{"text": text} for text in build_prompt_fragments(prompt, resolved)],
        }
        if resolved.width and resolved.height and resolved.aspect_ratio:
            payload["imageConfig"] = {
                "width": resolved.width,
                "height": resolved.height,
                "aspectRatio": resolved.aspect_ratio,
            }
        return payload

    def extract_image(self, data: Any) -> str:
        for entry in _list_field(data, "generatedImages"):
            if not isinstance(entry, dict):
                continue
            image = entry.get("image")
            image_b64 = _inline_data(entry) or (image.get("imageBytes") if isinstance(image, dict) else None)
            if image_b64:
                return image_b64
        raise EmptyResultError()


PROVIDERS: dict[str, type[ImageProvider]] = {
    GeminiProvider.provider_id: GeminiProvider,
    ImagenProvider.provider_id: ImagenProvider,
}


def get_provider(provider_id: str) -> ImageProvider:
    try:
        return PROVIDERS[provider_id]()
    except KeyError:
        raise ValueError(f"Unsupported image provider: {provider_id}") from None
