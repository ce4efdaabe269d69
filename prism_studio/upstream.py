import json
import logging
from typing import Any

import httpx

from .aspect import ResolvedSize
from .errors import UpstreamError
from .providers import ImageProvider

logger = logging.getLogger(__name__)


def parse_json_safe(raw: str) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


def _upstream_error_message(data: Any, raw: str, status_code: int, provider_label: str) -> str:
    error_obj = data.get("error") if isinstance(data, dict) else None
    if isinstance(error_obj, dict) and error_obj.get("message"):
        return error_obj["message"]
    if raw:
        return raw
    return f"{provider_label} API からエラーが返却されました。(status {status_code})"


class ImageGenerationClient:
    """Calls the image API for one provider adapter with a fixed key."""

    def __init__(
        self,
        provider: ImageProvider,
        api_key: str,
        endpoint: str | None = None,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.provider = provider
        self.api_key = api_key
        self.endpoint = endpoint or provider.endpoint
        self.timeout = timeout
        self.transport = transport

    async def generate(self, prompt: str, size: str) -> str:
        """Return the base64 image for ``prompt`` rendered at ``size``."""
        resolved: ResolvedSize = self.provider.resolve(size)
        payload = self.provider.build_payload(prompt, resolved)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.endpoint,
                    params={"key": self.api_key},
                    headers={"Content-Type": "application/json"},
                    json=payload,
                )
        except httpx.HTTPError as exc:
            logger.warning("%s request failed: %r", self.provider.label, exc)
            raise UpstreamError(str(exc) or f"{self.provider.label} API に接続できませんでした。") from exc

        raw = response.text
        data = parse_json_safe(raw)

        if not response.is_success:
            logger.warning(
                "%s returned status=%d body=%s",
                self.provider.label,
                response.status_code,
                raw[:200],
            )
            raise UpstreamError(
                _upstream_error_message(data, raw, response.status_code, self.provider.label),
                upstream_status=response.status_code,
            )

        return self.provider.extract_image(data)
