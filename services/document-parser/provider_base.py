"""Common contract and call path for vision-model provider adapters.

Each attempt: local rate-limit check, then image fetch + vendor call raced
against a fixed deadline, then JSON parsing. Attempts run inside the retry
manager; every failure escapes as a classified AIError.
"""

import asyncio
import base64
import logging
from abc import ABC, abstractmethod

import httpx

from config import settings
from errors import AIError, AIErrorType, classify_provider_error
from models import AIProviderResponse, DocumentType, FormTemplate
from parsing import parse_extraction_payload
from prompts import build_prompt
from rate_limiter import RateLimiter
from retry_manager import RetryConfig, with_retry

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"


class DocumentAIProvider(ABC):
    """A vision-capable model that extracts fields from a document image."""

    name: str

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        rate_limiter: RateLimiter | None = None,
        retry_config: RetryConfig | None = None,
        timeout: float | None = None,
    ):
        self._client = http_client or httpx.AsyncClient()
        self._owns_client = http_client is None
        self._rate_limiter = rate_limiter or RateLimiter()
        self._retry_config = retry_config or RetryConfig.from_settings()
        self._timeout = timeout if timeout is not None else settings.AI_TIMEOUT_SECONDS

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()

    async def extract_data_from_document(
        self,
        image_url: str,
        document_type: DocumentType,
        template: FormTemplate | None = None,
        guest_count: int | None = None,
    ) -> AIProviderResponse:
        """Extract structured data from the image at ``image_url``.

        Raises AIError once retries are exhausted or on a non-retryable kind.
        PromptConfigurationError escapes before any network call.
        """
        prompt = build_prompt(document_type, template, guest_count)

        async def _attempt() -> AIProviderResponse:
            self._rate_limiter.check_rate_limit(self.name)
            try:
                raw_text = await asyncio.wait_for(
                    self._fetch_and_generate(image_url, prompt),
                    timeout=self._timeout,
                )
            except asyncio.TimeoutError as e:
                logger.warning("%s call exceeded %.0fs deadline", self.name, self._timeout)
                raise AIError(AIErrorType.TIMEOUT, "Request timeout", self.name) from e
            except AIError:
                raise
            except Exception as e:
                raise classify_provider_error(e, self.name) from e

            data = parse_extraction_payload(raw_text, self.name)
            return AIProviderResponse(success=True, data=data, provider=self.name)

        return await with_retry(_attempt, self._retry_config)

    async def _fetch_and_generate(self, image_url: str, prompt: str) -> str:
        image_bytes, mime_type = await self._fetch_image(image_url)
        logger.info(
            "Calling %s: image=%d bytes type=%s",
            self.name, len(image_bytes), mime_type,
        )
        image_b64 = base64.b64encode(image_bytes).decode()
        return await self._generate(prompt, image_b64, mime_type)

    async def _fetch_image(self, image_url: str) -> tuple[bytes, str]:
        resp = await self._client.get(image_url)
        resp.raise_for_status()
        content_type = resp.headers.get("content-type", DEFAULT_IMAGE_MIME_TYPE)
        mime_type = content_type.split(";")[0].strip() or DEFAULT_IMAGE_MIME_TYPE
        return resp.content, mime_type

    @abstractmethod
    async def _generate(self, prompt: str, image_b64: str, mime_type: str) -> str:
        """Send prompt + inline image to the vendor and return the reply text."""
