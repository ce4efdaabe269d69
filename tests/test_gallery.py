import asyncio
import base64

import httpx

from prism_studio.errors import PROMPT_REQUIRED_MESSAGE
from prism_studio.gallery import NETWORK_ERROR_MESSAGE, SAMPLE_PROMPTS, UNKNOWN_ERROR_MESSAGE, StudioSession

from .conftest import PNG_B64, FakeUpstream


def _session(app, **kwargs) -> StudioSession:
    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")
    return StudioSession(http=http, **kwargs)


def test_submit_prepends_generated_image(app) -> None:
    async def scenario() -> StudioSession:
        session = _session(app, prompt="a red fox", size="9:16")
        first = await session.submit()
        session.prompt = "a blue whale"
        second = await session.submit()
        await session.http.aclose()
        assert first is not None and second is not None
        return session

    session = asyncio.run(scenario())

    assert [image.prompt for image in session.images] == ["a blue whale", "a red fox"]
    newest = session.images[0]
    assert newest.url == f"data:image/png;base64,{PNG_B64}"
    assert newest.size == "9:16"
    assert newest.id != session.images[1].id
    assert newest.timestamp >= session.images[1].timestamp
    assert session.error is None
    assert session.is_generating is False


def test_blank_prompt_sets_error_without_request(app, upstream: FakeUpstream) -> None:
    async def scenario() -> StudioSession:
        session = _session(app, prompt="   ")
        assert await session.submit() is None
        await session.http.aclose()
        return session

    session = asyncio.run(scenario())

    assert session.error == PROMPT_REQUIRED_MESSAGE
    assert session.images == []
    assert upstream.requests == []


def test_server_error_message_is_shown(app, upstream: FakeUpstream) -> None:
    upstream.reply = lambda _request: httpx.Response(429, json={"error": {"message": "Quota exceeded."}})

    async def scenario() -> StudioSession:
        session = _session(app, prompt="a red fox")
        await session.submit()
        await session.http.aclose()
        return session

    session = asyncio.run(scenario())

    assert session.error == "Quota exceeded."
    assert session.images == []
    assert session.is_generating is False


def test_unreachable_server_sets_network_error() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    async def scenario() -> StudioSession:
        http = httpx.AsyncClient(transport=httpx.MockTransport(refuse), base_url="http://testserver")
        session = StudioSession(http=http, prompt="a red fox")
        await session.submit()
        await http.aclose()
        return session

    session = asyncio.run(scenario())

    assert session.error == NETWORK_ERROR_MESSAGE
    assert session.is_generating is False


def test_regenerate_resubmits_stored_prompt_and_size(app, upstream: FakeUpstream) -> None:
    async def scenario() -> StudioSession:
        session = _session(app, prompt="a red fox", size="16:9")
        original = await session.submit()
        session.prompt = "something else"
        session.size = "1:1"
        await session.regenerate(original.id)
        await session.http.aclose()
        return session

    session = asyncio.run(scenario())

    assert (session.prompt, session.size) == ("a red fox", "16:9")
    assert [(image.prompt, image.size) for image in session.images] == [("a red fox", "16:9")] * 2
    assert upstream.last_payload["generationConfig"]["imageConfig"]["aspectRatio"] == "16:9"


def test_download_decodes_data_url(app) -> None:
    async def scenario() -> StudioSession:
        session = _session(app, prompt="a red fox")
        await session.submit()
        await session.http.aclose()
        return session

    session = asyncio.run(scenario())
    filename, content = session.download(session.images[0].id)

    assert filename == "generated.png"
    assert content == base64.b64decode(PNG_B64)
    assert content.startswith(b"\x89PNG")


def test_max_images_evicts_oldest(app) -> None:
    async def scenario() -> StudioSession:
        session = _session(app, max_images=2)
        for index in range(3):
            session.use_sample_prompt(index)
            await session.submit()
        await session.http.aclose()
        return session

    session = asyncio.run(scenario())

    assert [image.prompt for image in session.images] == [SAMPLE_PROMPTS[2], SAMPLE_PROMPTS[1]]


def test_error_response_without_message_sets_unknown_error() -> None:
    async def scenario() -> StudioSession:
        http = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda _request: httpx.Response(502, text="Bad Gateway")),
            base_url="http://testserver",
        )
        session = StudioSession(http=http, prompt="a red fox")
        await session.submit()
        await http.aclose()
        return session

    session = asyncio.run(scenario())

    assert session.error == UNKNOWN_ERROR_MESSAGE
    assert session.images == []
