"""Ollama adapter (POST /api/generate, non-streaming)."""

from __future__ import annotations

import asyncio
from typing import Any

import aiohttp

from ..domain.errors import NetworkTimeoutError, OrganizationError
from ..observability.logger import get_logger
from .runtime import LLMRequest, LLMRuntime

logger = get_logger(__name__)


class OllamaAdapter(LLMRuntime):
    def __init__(self, *, host: str, port: int):
        self._generate_url = f"http://{host}:{port}/api/generate"

    @staticmethod
    def _payload(req: LLMRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": req.model,
            "prompt": req.prompt,
            "stream": False,
            # Ollama calls the token cap `num_predict`.
            "options": {"temperature": float(req.temperature), "num_predict": int(req.max_tokens)},
        }
        if req.json_output:
            payload["format"] = "json"
        return payload

    async def complete(self, req: LLMRequest) -> str:
        timeout = aiohttp.ClientTimeout(total=max(1.0, float(req.timeout_seconds)))
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self._generate_url, json=self._payload(req)) as resp:
                    if resp.status >= 400:
                        body = await resp.text()
                        logger.warning("llm_request_failed", provider="ollama", model=req.model, status=resp.status)
                        raise OrganizationError("Ollama request failed", detail=f"status={resp.status} body={body[:500]}")
                    data = await resp.json()
        except asyncio.TimeoutError as e:
            raise NetworkTimeoutError("Ollama request timed out", detail=f"timeout={req.timeout_seconds}s") from e
        except aiohttp.ClientError as e:
            raise OrganizationError("Ollama is unreachable", detail=str(e)) from e

        if not isinstance(data, dict):
            raise OrganizationError("Ollama returned an unexpected payload")
        if data.get("error"):
            raise OrganizationError("Ollama returned an error", detail=str(data["error"]))
        text = data.get("response", "")
        if not isinstance(text, str):
            raise OrganizationError("Ollama returned an unexpected payload")
        return text
