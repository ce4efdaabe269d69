"""Server-side configuration, read once from the environment at startup."""
import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel

from .providers import PROVIDERS, get_provider


class Settings(BaseModel):
    api_key: str | None = None
    provider: str = "gemini"
    endpoint: str | None = None
    timeout: float = 120.0
    log_level: str = "INFO"

    @property
    def resolved_endpoint(self) -> str:
        return self.endpoint or get_provider(self.provider).endpoint


def load_settings() -> Settings:
    load_dotenv()
    provider = os.getenv("IMAGE_PROVIDER", "gemini").strip().lower()
    if provider not in PROVIDERS:
        raise ValueError(f"IMAGE_PROVIDER must be one of {sorted(PROVIDERS)}, got '{provider}'")

    return Settings(
        api_key=os.getenv("GEMINI_API_KEY") or None,
        provider=provider,
        endpoint=os.getenv("IMAGE_API_ENDPOINT") or None,
        timeout=float(os.getenv("IMAGE_API_TIMEOUT", "120")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
