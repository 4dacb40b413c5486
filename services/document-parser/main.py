"""FastAPI document parser service.

Runs AI field extraction for uploaded documents. Identity comes from the
auth layer in front of this service (X-User-Id), persistence from the
configured DocumentStore.
Images are fetched into memory only; only byte counts are logged.
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Header
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config import settings
from errors import ProviderConfigurationError
from models import DocumentStatus
from processor import DocumentProcessor
from provider_base import DocumentAIProvider
from providers import build_provider
from rate_limiter import RateLimiter
from store import DocumentStore, InMemoryDocumentStore

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_http_client: httpx.AsyncClient | None = None
_rate_limiter: RateLimiter | None = None
_store: DocumentStore | None = None
_processor: DocumentProcessor | None = None
_providers: dict[str, DocumentAIProvider] = {}


def _try_build_provider(name: str, **kwargs) -> DocumentAIProvider | None:
    try:
        return build_provider(name, **kwargs)
    except ProviderConfigurationError as e:
        logger.warning("AI provider %s unavailable: %s", name, e)
        return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the shared HTTP client, limiter, providers and processor."""
    global _http_client, _rate_limiter, _store, _processor

    _http_client = httpx.AsyncClient()
    _rate_limiter = RateLimiter()
    _store = InMemoryDocumentStore()

    for name in (settings.PRIMARY_PROVIDER, settings.SECONDARY_PROVIDER):
        provider = _try_build_provider(name, http_client=_http_client, rate_limiter=_rate_limiter)
        if provider is not None:
            _providers[name] = provider

    primary = _providers.get(settings.PRIMARY_PROVIDER)
    if primary is None:
        logger.info("Primary provider %s not configured; AI extraction disabled", settings.PRIMARY_PROVIDER)
    else:
        _processor = DocumentProcessor(
            _store, primary, _providers.get(settings.SECONDARY_PROVIDER),
        )
        logger.info("AI extraction enabled: providers=%s", sorted(_providers))

    yield

    _processor = None
    _store = None
    _rate_limiter = None
    _providers.clear()
    await _http_client.aclose()
    _http_client = None


app = FastAPI(title="Document Parser", version="1.0.0", lifespan=lifespan)


class ProcessRequest(BaseModel):
    enable_dual_verification: bool = False


class ProcessResponse(BaseModel):
    success: bool
    document_id: str
    extraction_id: str
    model_name: str
    fields_for_review: list[str]
    confidence_score: float
    guest_count: int | None = None


@app.post("/api/v1/documents/{document_id}/process", response_model=ProcessResponse)
async def process(
    document_id: str,
    request: ProcessRequest | None = None,
    x_user_id: str | None = Header(default=None),
):
    """Extract structured fields for an uploaded document."""
    if not x_user_id:
        return JSONResponse(status_code=401, content={"detail": "Unauthorized"})

    if _processor is None or _store is None:
        return JSONResponse(
            status_code=503,
            content={"detail": "AI document extraction is not available - no provider configured"},
        )

    document = await _store.get_document(document_id, x_user_id)
    if document is None:
        return JSONResponse(status_code=404, content={"detail": "Document not found"})

    if document.status == DocumentStatus.COMPLETED:
        return JSONResponse(status_code=400, content={"detail": "Document already processed"})

    dual = request.enable_dual_verification if request else False
    await _store.update_document_status(document_id, DocumentStatus.PROCESSING)

    try:
        result = await _processor.process_document(document_id, x_user_id, dual)
    except Exception as e:
        # The processor has already logged the error and marked the document failed
        logger.error("Document processing failed for %s: %s", document_id, e)
        return JSONResponse(
            status_code=500,
            content={"detail": "Document processing failed", "error": str(e)},
        )

    return ProcessResponse(
        success=True,
        document_id=document_id,
        extraction_id=result.extraction_id,
        model_name=result.model_name,
        fields_for_review=result.fields_to_review,
        confidence_score=result.confidence_score,
        guest_count=result.guest_count,
    )


@app.get("/health")
async def health():
    """Return service status, provider availability and local rate-limit usage."""
    base = {
        "status": "healthy",
        "extraction_available": _processor is not None,
        "providers": sorted(_providers),
    }

    if _rate_limiter is not None:
        base["rate_limits"] = {name: _rate_limiter.usage(name) for name in _providers}

    return base


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
