"""Client-side session state for the studio page.

``StudioSession`` mirrors what ``static/index.html`` does in the browser: it
holds the form fields and the list of generated images, calls
``/api/generate-image`` and keeps the newest result first.
"""
from __future__ import annotations

import base64
import logging
import time
import uuid
from dataclasses import dataclass, field

import httpx

from .aspect import DEFAULT_SIZE
from .errors import PROMPT_REQUIRED_MESSAGE

logger = logging.getLogger(__name__)

DATA_URL_PREFIX = "data:image/png;base64,"
DOWNLOAD_FILENAME = "generated.png"
NETWORK_ERROR_MESSAGE = "ネットワークエラーが発生しました。"
UNKNOWN_ERROR_MESSAGE = "エラーが発生しました。"

SAMPLE_PROMPTS = [
    "レトロなヴェイパーウェーブの彫像、ピンク背景、グリッチ",
    "ポップアートのバナナ、ビビッドドット、コミック調",
    "抽象的な幾何学パターン、バウハウス配色、強コントラスト",
    "サイバーパンク屋台、モノクロ漫画風、雨の夜",
]


@dataclass
class GeneratedImage:
    id: str
    url: str
    prompt: str
    size: str
    timestamp: int


@dataclass
class StudioSession:
    http: httpx.AsyncClient
    prompt: str = ""
    size: str = DEFAULT_SIZE
    images: list[GeneratedImage] = field(default_factory=list)
    error: str | None = None
    is_generating: bool = False
    max_images: int | None = None

    def use_sample_prompt(self, index: int) -> None:
        self.prompt = SAMPLE_PROMPTS[index]

    def find(self, image_id: str) -> GeneratedImage:
        for image in self.images:
            if image.id == image_id:
                return image
        raise KeyError(image_id)

    async def submit(self) -> GeneratedImage | None:
        """Generate one image from the current form; returns it on success."""
        if self.is_generating:
            return None

        prompt = self.prompt.strip()
        if not prompt:
            self.error = PROMPT_REQUIRED_MESSAGE
            return None

        size = self.size
        self.is_generating = True
        self.error = None
        try:
            response = await self.http.post(
                "/api/generate-image",
                json={"prompt": prompt, "size": size},
            )
            try:
                body = response.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            if not response.is_success or not body.get("imageUrl"):
                self.error = body.get("error") or UNKNOWN_ERROR_MESSAGE
                return None

            image = GeneratedImage(
                id=str(uuid.uuid4()),
                url=body["imageUrl"],
                prompt=prompt,
                size=size,
                timestamp=int(time.time() * 1000),
            )
            self.images.insert(0, image)
            if self.max_images is not None:
                del self.images[self.max_images:]
            return image
        except httpx.HTTPError as exc:
            logger.warning("generate-image call failed: %r", exc)
            self.error = NETWORK_ERROR_MESSAGE
            return None
        finally:
            self.is_generating = False

    async def regenerate(self, image_id: str) -> GeneratedImage | None:
        image = self.find(image_id)
        self.prompt = image.prompt
        self.size = image.size
        return await self.submit()

    def download(self, image_id: str) -> tuple[str, bytes]:
        image = self.find(image_id)
        if not image.url.startswith(DATA_URL_PREFIX):
            raise ValueError(f"Image {image_id} is not a base64 PNG data URL")
        return DOWNLOAD_FILENAME, base64.b64decode(image.url[len(DATA_URL_PREFIX):])
