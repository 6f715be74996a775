from __future__ import annotations

import pytest
from aiohttp import test_utils, web

from knowledge_scraper.domain.errors import OrganizationError
from knowledge_scraper.llm.ollama_adapter import OllamaAdapter
from knowledge_scraper.llm.runtime import LLMRequest


def _request(json_output: bool = True) -> LLMRequest:
    return LLMRequest(
        prompt="Organize this",
        model="qwen2.5:3b",
        temperature=0.3,
        max_tokens=256,
        timeout_seconds=5,
        json_output=json_output,
    )


async def _serve(handler) -> test_utils.TestServer:
    app = web.Application()
    app.router.add_post("/api/generate", handler)
    server = test_utils.TestServer(app, host="127.0.0.1")
    await server.start_server()
    return server


@pytest.mark.asyncio
async def test_complete_returns_response_text() -> None:
    seen: list[dict] = []

    async def handler(request: web.Request) -> web.Response:
        seen.append(await request.json())
        return web.json_response({"response": '{"title": "Doc"}'})

    server = await _serve(handler)
    try:
        text = await OllamaAdapter(host="127.0.0.1", port=server.port).complete(_request())
    finally:
        await server.close()

    assert text == '{"title": "Doc"}'
    assert seen[0]["format"] == "json"
    assert seen[0]["stream"] is False
    assert seen[0]["options"] == {"temperature": 0.3, "num_predict": 256}


@pytest.mark.asyncio
async def test_complete_without_json_format() -> None:
    seen: list[dict] = []

    async def handler(request: web.Request) -> web.Response:
        seen.append(await request.json())
        return web.json_response({"response": "plain"})

    server = await _serve(handler)
    try:
        await OllamaAdapter(host="127.0.0.1", port=server.port).complete(_request(json_output=False))
    finally:
        await server.close()

    assert "format" not in seen[0]


@pytest.mark.asyncio
async def test_http_errors_become_organization_errors() -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.Response(status=500, text="model not loaded")

    server = await _serve(handler)
    try:
        with pytest.raises(OrganizationError) as exc:
            await OllamaAdapter(host="127.0.0.1", port=server.port).complete(_request())
    finally:
        await server.close()

    assert "status=500" in exc.value.info.detail


@pytest.mark.asyncio
async def test_error_payload_becomes_organization_error() -> None:
    async def handler(request: web.Request) -> web.Response:
        return web.json_response({"error": "model 'x' not found"})

    server = await _serve(handler)
    try:
        with pytest.raises(OrganizationError):
            await OllamaAdapter(host="127.0.0.1", port=server.port).complete(_request())
    finally:
        await server.close()
