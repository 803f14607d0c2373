"""Integration with OpenAI-compatible chat-completions endpoints."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from advisor.core.schema import UsageStats


class GenerativeServiceError(RuntimeError):
    """Raised when the remote generative service fails or rejects a call."""


@dataclass(slots=True)
class GenerationResult:
    """Container returned by :class:`GenerativeService` implementations."""

    content: str
    usage: UsageStats | None = None
    model: str | None = None
    choices: int = 1


class GenerativeService(Protocol):
    """Contract for text-generation integrations."""

    def complete(self, system_text: str, user_text: str) -> GenerationResult:
        """Generate a completion for the given system and user messages."""


class UnconfiguredGenerativeService:
    """Placeholder used when no API key is configured; every call fails."""

    def complete(self, system_text: str, user_text: str) -> GenerationResult:
        raise GenerativeServiceError("generative service is not configured (set GENERATIVE_API_KEY)")


class ChatCompletionsClient:
    """Client for the ``/chat/completions`` HTTP API."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-3.5-turbo",
        temperature: float = 0.7,
        max_tokens: int = 1000,
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        if not base_url.startswith(("http://", "https://")):
            raise ValueError("base_url must include scheme and host")

        self._api_key = api_key
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._request_url = f"{base_url.rstrip('/')}/chat/completions"
        self._client = http_client or httpx.Client(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _build_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    def _build_payload(self, system_text: str, user_text: str) -> dict[str, Any]:
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_text},
                {"role": "user", "content": user_text},
            ],
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }

    @staticmethod
    def _parse_usage(value: Any) -> UsageStats | None:
        if not isinstance(value, dict):
            return None
        try:
            return UsageStats(
                prompt_tokens=int(value.get("prompt_tokens") or 0),
                completion_tokens=int(value.get("completion_tokens") or 0),
                total_tokens=int(value.get("total_tokens") or 0),
            )
        except (TypeError, ValueError):
            return None

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    def complete(self, system_text: str, user_text: str) -> GenerationResult:
        payload = self._build_payload(system_text, user_text)
        try:
            response = self._client.post(self._request_url, headers=self._build_headers(), json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            raise GenerativeServiceError(
                f"chat completion failed with HTTP {exc.response.status_code}: {exc.response.text[:200]}"
            ) from exc
        except httpx.HTTPError as exc:
            raise GenerativeServiceError(f"chat completion request failed: {exc}") from exc
        except ValueError as exc:
            raise GenerativeServiceError("chat completion returned invalid JSON") from exc

        if not isinstance(body, dict):
            raise GenerativeServiceError("chat completion returned an unexpected payload")
        if body.get("error"):
            error = body["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise GenerativeServiceError(str(message))

        choices = body.get("choices") or []
        usage = self._parse_usage(body.get("usage"))
        model = body.get("model")
        if not choices:
            return GenerationResult(content="", usage=usage, model=model, choices=0)

        message = (choices[0] or {}).get("message") or {}
        content = message.get("content") or ""
        return GenerationResult(content=str(content), usage=usage, model=model, choices=len(choices))

    def close(self) -> None:  # pragma: no cover - best effort cleanup
        if self._owns_client:
            self._client.close()


__all__ = [
    "ChatCompletionsClient",
    "GenerationResult",
    "GenerativeService",
    "GenerativeServiceError",
    "UnconfiguredGenerativeService",
]
