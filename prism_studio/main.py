import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from .config import Settings, configure_logging, load_settings
from .errors import (
    GENERIC_FAILURE_MESSAGE,
    INVALID_REQUEST_MESSAGE,
    ConfigurationError,
    ImageGenerationError,
    PromptRequiredError,
    UpstreamError,
)
from .providers import get_provider
from .schemas import ErrorResponse, GenerateImageRequest, GenerateImageResponse
from .upstream import ImageGenerationClient

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


def _to_data_url(image_b64: str, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{image_b64}"


def _error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _image_client(request: Request) -> ImageGenerationClient:
    settings: Settings = request.app.state.settings
    if not settings.api_key:
        raise ConfigurationError()
    return ImageGenerationClient(
        provider=get_provider(settings.provider),
        api_key=settings.api_key,
        endpoint=settings.endpoint,
        timeout=settings.timeout,
        transport=request.app.state.upstream_transport,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info(
        "Prism Studio ready provider=%s endpoint=%s hasKey=%s",
        settings.provider,
        settings.resolved_endpoint,
        bool(settings.api_key),
    )
    yield


def create_app(
    settings: Settings | None = None,
    upstream_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings)
    get_provider(settings.provider)

    app = FastAPI(title="Prism AI Studio", lifespan=lifespan)
    app.state.settings = settings
    app.state.upstream_transport = upstream_transport

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_request(_: Request, exc: RequestValidationError) -> JSONResponse:
        logger.error("Malformed generate-image request: %s", exc.errors())
        return _error_response(INVALID_REQUEST_MESSAGE, 500)

    @app.get("/api/ratios")
    async def get_ratios(request: Request) -> dict[str, Any]:
        current: Settings = request.app.state.settings
        provider = get_provider(current.provider)
        return {
            "provider": provider.provider_id,
            "label": provider.label,
            "defaultSize": provider.default_size,
            "hasKey": bool(current.api_key),
            "ratios": [
                {
                    "value": ratio,
                    "label": preset.label or ratio,
                    "width": preset.width,
                    "height": preset.height,
                }
                for ratio, preset in provider.presets.items()
            ],
        }

    @app.post(
        "/api/generate-image",
        response_model=GenerateImageResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def generate_image(
        payload: GenerateImageRequest,
        request: Request,
    ) -> GenerateImageResponse | JSONResponse:
        try:
            prompt = (payload.prompt or "").strip()
            if not prompt:
                raise PromptRequiredError()

            client = _image_client(request)
            size = payload.size or client.provider.default_size
            logger.info(
                "generate-image request provider=%s size=%s promptLength=%d",
                client.provider.provider_id,
                size,
                len(prompt),
            )
            image_b64 = await client.generate(prompt=prompt, size=size)
        except PromptRequiredError as exc:
            return _error_response(str(exc), exc.status_code)
        except UpstreamError as exc:
            logger.error("Upstream error while generating image status=%s: %s", exc.upstream_status, exc)
            return _error_response(str(exc) or GENERIC_FAILURE_MESSAGE, exc.status_code)
        except ImageGenerationError as exc:
            logger.error("Error while generating image: %s", exc)
            return _error_response(str(exc) or GENERIC_FAILURE_MESSAGE, exc.status_code)
        except Exception as exc:
            logger.exception("Unexpected error while generating image")
            return _error_response(str(exc) or GENERIC_FAILURE_MESSAGE, 500)

        logger.info("generate-image success size=%s imageLength=%d", size, len(image_b64))
        return GenerateImageResponse(imageUrl=_to_data_url(image_b64))

    @app.get("/")
    async def root() -> FileResponse:
        return FileResponse(STATIC_DIR / "index.html")

    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")
    return app
