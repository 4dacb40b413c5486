"""Google Gemini adapter (generateContent REST API)."""

import httpx

from config import settings
from errors import AIError, AIErrorType, ProviderConfigurationError
from provider_base import DocumentAIProvider


class GeminiClient(DocumentAIProvider):
    name = "gemini"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        **kwargs,
    ):
        self._api_key = api_key or settings.GOOGLE_GEMINI_API_KEY
        if not self._api_key:
            raise ProviderConfigurationError("GOOGLE_GEMINI_API_KEY is not configured")
        self._model = model or settings.GEMINI_MODEL
        self._base_url = (base_url or settings.GEMINI_BASE_URL).rstrip("/")
        super().__init__(**kwargs)

    async def _generate(self, prompt: str, image_b64: str, mime_type: str) -> str:
        payload = {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": prompt},
                        {"inline_data": {"mime_type": mime_type, "data": image_b64}},
                    ],
                }
            ],
            "generationConfig": {
                "temperature": settings.AI_TEMPERATURE,
                "maxOutputTokens": settings.AI_MAX_TOKENS,
            },
        }
        resp = await self._client.post(
            f"{self._base_url}/models/{self._model}:generateContent",
            json=payload,
            headers={"x-goog-api-key": self._api_key},
        )
        resp.raise_for_status()
        return _reply_text(resp)


def _reply_text(resp: httpx.Response) -> str:
    candidates = resp.json().get("candidates") or []
    parts = candidates[0].get("content", {}).get("parts", []) if candidates else []
    text = "".join(part.get("text", "") for part in parts)
    if not text.strip():
        raise AIError(
            AIErrorType.VALIDATION,
            "No response content from Gemini",
            GeminiClient.name,
            raw_response=resp.text,
        )
    return text
