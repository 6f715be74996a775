"""LLM runtime interface.

The organizer talks to LLMs through this interface so providers can be swapped.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LLMRequest:
    prompt: str
    model: str
    temperature: float
    max_tokens: int
    timeout_seconds: float
    json_output: bool = True


class LLMRuntime:
    async def complete(self, req: LLMRequest) -> str:  # pragma: no cover - interface
        raise NotImplementedError
