from abc import ABC, abstractmethod
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import httpx

from levelup.core.resilience import get_breaker, retry_with_backoff
from levelup.core.settings import settings


def _estimate_tokens(text: str) -> int:
    # Lightweight deterministic estimate used for observability without provider-specific token APIs.
    return max(1, len((text or "").strip()) // 4)


class BaseLLMProvider(ABC):
    provider_name: str
    model_name: str = "none"

    @abstractmethod
    async def generate(self, prompt: str) -> tuple[str | None, dict]:
        raise NotImplementedError

    def _usage(self, prompt: str, text: str) -> dict:
        prompt_tokens = _estimate_tokens(prompt)
        completion_tokens = _estimate_tokens(text) if text else 0
        return {
            "provider": self.provider_name,
            "model": self.model_name,
            "prompt_tokens_estimate": prompt_tokens,
            "completion_tokens_estimate": completion_tokens,
            "total_tokens_estimate": prompt_tokens + completion_tokens,
        }


class GeminiLLMProvider(BaseLLMProvider):
    provider_name = "gemini"

    def __init__(self, model_name: str | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.model_name = model_name or settings.llm_model
        self._transport = transport

    @staticmethod
    def _sanitize_url(raw_url: str) -> str:
        parsed = urlparse(raw_url)
        if not parsed.query:
            return raw_url
        filtered = [(k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True) if k.lower() != "key"]
        return urlunparse(parsed._replace(query=urlencode(filtered)))

    def _api_url(self) -> str:
        api_url = settings.gemini_api_url.strip()
        if not api_url:
            api_url = (
                f"https://generativelanguage.googleapis.com/v1beta/models/"
                f"{self.model_name}:generateContent"
            )
        return self._sanitize_url(api_url)

    async def generate(self, prompt: str) -> tuple[str | None, dict]:
        if not settings.gemini_api_key:
            return None, {"provider": self.provider_name, "model": self.model_name, "reason": "missing_api_key"}

        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": 0.7, "maxOutputTokens": 256},
        }
        api_url = self._api_url()

        async def _call():
            async with httpx.AsyncClient(timeout=settings.llm_http_timeout_seconds, transport=self._transport) as client:
                response = await client.post(
                    api_url,
                    json=payload,
                    headers={"x-goog-api-key": settings.gemini_api_key},
                )
                response.raise_for_status()
                data = response.json()
            candidates = data.get("candidates", [])
            if not candidates:
                return None, {**self._usage(prompt, ""), "reason": "no_candidates"}
            parts = candidates[0].get("content", {}).get("parts", [])
            text = "\n".join(p.get("text", "") for p in parts if isinstance(p, dict)).strip()
            return (text or None), self._usage(prompt, text)

        breaker = get_breaker(f"llm:{self.provider_name}:{self.model_name}")
        return await breaker.call(lambda: retry_with_backoff(_call, max_attempts=settings.llm_max_retries))


class OllamaLLMProvider(BaseLLMProvider):
    provider_name = "ollama"

    def __init__(self, model_name: str | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.model_name = model_name or settings.ollama_model
        self._transport = transport

    async def generate(self, prompt: str) -> tuple[str | None, dict]:
        async def _call():
            async with httpx.AsyncClient(timeout=settings.llm_http_timeout_seconds, transport=self._transport) as client:
                response = await client.post(
                    f"{settings.ollama_base_url.rstrip('/')}/api/generate",
                    json={"model": self.model_name, "prompt": prompt, "stream": False},
                )
                response.raise_for_status()
                body = response.json()
            text = (body.get("response") or "").strip()
            return (text or None), self._usage(prompt, text)

        breaker = get_breaker(f"llm:{self.provider_name}:{self.model_name}")
        return await breaker.call(lambda: retry_with_backoff(_call, max_attempts=settings.llm_max_retries))


class NullLLMProvider(BaseLLMProvider):
    provider_name = "none"

    async def generate(self, prompt: str) -> tuple[str | None, dict]:
        return None, {**self._usage(prompt, ""), "reason": "unsupported_provider"}


def get_llm_provider() -> BaseLLMProvider:
    provider = (settings.llm_provider or "").strip().lower()
    if provider == "gemini":
        return GeminiLLMProvider(model_name=settings.llm_model)
    if provider == "ollama":
        return OllamaLLMProvider(model_name=settings.ollama_model)
    return NullLLMProvider()
