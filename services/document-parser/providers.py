"""Provider registry keyed by the names used in settings and rate limits."""

from errors import ProviderConfigurationError
from gemini_client import GeminiClient
from openai_client import OpenAIClient
from openrouter_client import OpenRouterClient
from provider_base import DocumentAIProvider

PROVIDERS: dict[str, type[DocumentAIProvider]] = {
    GeminiClient.name: GeminiClient,
    OpenAIClient.name: OpenAIClient,
    OpenRouterClient.name: OpenRouterClient,
}


def build_provider(name: str, **kwargs) -> DocumentAIProvider:
    """Instantiate a provider by name. Raises ProviderConfigurationError."""
    provider_cls = PROVIDERS.get(name)
    if provider_cls is None:
        raise ProviderConfigurationError(f"Unknown AI provider: {name}")
    return provider_cls(**kwargs)
