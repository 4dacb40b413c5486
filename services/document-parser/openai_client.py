"""OpenAI chat-completions adapter."""

import httpx

from config import settings
from errors import AIError, AIErrorType, ProviderConfigurationError
from provider_base import DocumentAIProvider


class OpenAIClient(DocumentAIProvider):
    name = "openai"
    api_key_setting = "OPENAI_API_KEY"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        **kwargs,
    ):
        self._api_key = api_key or getattr(settings, self.api_key_setting)
        if not self._api_key:
            raise ProviderConfigurationError(f"{self.api_key_setting} is not configured")
        self._model = model or self._default_model()
        self._base_url = (base_url or self._default_base_url()).rstrip("/")
        super().__init__(**kwargs)

    def _default_model(self) -> str:
        return settings.OPENAI_MODEL

    def _default_base_url(self) -> str:
        return settings.OPENAI_BASE_URL

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}"}

    async def _generate(self, prompt: str, image_b64: str, mime_type: str) -> str:
        payload = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": prompt},
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image_url",
                            "image_url": {
                                "url": f"data:{mime_type};base64,{image_b64}",
                                "detail": "high",
                            },
                        }
                    ],
                },
            ],
            "max_tokens": settings.AI_MAX_TOKENS,
            "temperature": settings.AI_TEMPERATURE,
        }
        resp = await self._client.post(
            f"{self._base_url}/chat/completions",
            json=payload,
            headers=self._headers(),
        )
        resp.raise_for_status()
        return self._reply_text(resp)

    def _reply_text(self, resp: httpx.Response) -> str:
        choices = resp.json().get("choices") or []
        content = (choices[0].get("message") or {}).get("content") if choices else None
        if not content:
            raise AIError(
                AIErrorType.VALIDATION,
                f"No response content from {self.name}",
                self.name,
                raw_response=resp.text,
            )
        return content
