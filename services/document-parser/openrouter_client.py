"""OpenRouter adapter: OpenAI-compatible API with attribution headers."""

from config import settings
from openai_client import OpenAIClient


class OpenRouterClient(OpenAIClient):
    name = "openrouter"
    api_key_setting = "OPENROUTER_API_KEY"

    def _default_model(self) -> str:
        return settings.OPENROUTER_MODEL

    def _default_base_url(self) -> str:
        return settings.OPENROUTER_BASE_URL

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["HTTP-Referer"] = settings.APP_URL
        headers["X-Title"] = settings.APP_TITLE
        return headers
