"""Client for the shared AI Gateway that backs the chat and study helpers."""

import logging

import httpx

from educationelly.core import config
from educationelly.core.errors import UpstreamError

logger = logging.getLogger(__name__)


class AIGatewayClient:
    def __init__(self, base_url: str, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    @classmethod
    def from_config(cls) -> "AIGatewayClient":
        return cls(config.AI_GATEWAY_URL)

    async def _request(self, method: str, path: str, failure_message: str, payload: dict | None = None) -> dict:
        try:
            async with httpx.AsyncClient(base_url=self.base_url, transport=self._transport) as client:
                response = await client.request(method, path, json=payload)
        except httpx.HTTPError as exc:
            logger.error("%s: %s", failure_message, exc)
            raise UpstreamError(failure_message, exc) from exc

        if response.is_error:
            logger.error("%s: AI Gateway error: %s", failure_message, response.status_code)
            raise UpstreamError(
                failure_message,
                f"AI Gateway error: {response.status_code}",
                upstream_status=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(failure_message, exc) from exc

    async def chat(self, messages: list[dict], context: dict) -> dict:
        return await self._request(
            "POST",
            "/api/ai/chat",
            "Failed to process chat",
            {"messages": messages, "context": context},
        )

    async def generate(self, prompt: str, max_tokens: int = 300) -> dict:
        return await self._request(
            "POST",
            "/api/ai/generate",
            "Failed to generate recommendations",
            {"prompt": prompt, "app": "education", "maxTokens": max_tokens},
        )

    async def flashcard(self, topic: str, content: str) -> dict:
        return await self._request(
            "POST",
            "/api/ai/flashcard",
            "Failed to generate flashcard",
            {"topic": topic, "content": content},
        )

    async def quiz(self, topic: str, difficulty: str, count: int) -> dict:
        return await self._request(
            "POST",
            "/api/ai/quiz",
            "Failed to generate quiz",
            {"topic": topic, "difficulty": difficulty, "count": count},
        )

    async def health(self) -> dict:
        try:
            async with httpx.AsyncClient(base_url=self.base_url, transport=self._transport) as client:
                response = await client.get("/health")
            return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamError("AI Gateway unavailable", exc, status_code=503) from exc
