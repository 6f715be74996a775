"""OpenAI adapter.

Uses the official async client; any OpenAI-compatible endpoint works via base_url.
"""

from __future__ import annotations

import openai
from openai import AsyncOpenAI

from ..domain.errors import NetworkTimeoutError, OrganizationError
from .runtime import LLMRequest, LLMRuntime

SYSTEM_PROMPT = "You are a helpful assistant that responds in JSON format when requested."


class OpenAIAdapter(LLMRuntime):
    def __init__(self, *, api_key: str, base_url: str | None = None):
        """
        Initialize OpenAI adapter.

        Args:
            api_key: OpenAI API key.
            base_url: Custom base URL (for OpenAI-compatible APIs). If None, uses OpenAI default.
        """
        if not api_key:
            raise ValueError("OpenAI API key required. Set OPENAI_API_KEY.")
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url or None)

    async def complete(self, req: LLMRequest) -> str:
        kwargs = {}
        if req.json_output:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            response = await self._client.chat.completions.create(
                model=req.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": req.prompt},
                ],
                temperature=float(req.temperature),
                max_tokens=int(req.max_tokens),
                timeout=max(1.0, float(req.timeout_seconds)),
                **kwargs,
            )
        except openai.APITimeoutError as e:
            raise NetworkTimeoutError("openai_timeout", detail=str(e)) from e
        except openai.OpenAIError as e:
            raise OrganizationError("openai_request_failed", detail=str(e)) from e

        if not response.choices:
            raise OrganizationError("openai_response_invalid", detail="no choices in response")
        text = response.choices[0].message.content or ""
        if not isinstance(text, str):
            raise OrganizationError("openai_response_invalid")
        return text
