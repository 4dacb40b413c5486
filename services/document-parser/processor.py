"""Document processing orchestrator.

Load document -> primary extraction (front, then optional back) ->
optional secondary verification -> reconcile -> score -> persist.
A run either completes or is marked failed with a logged error; there is
no partial-completion status.
"""

import logging
import time
import traceback
from datetime import datetime, timezone

from confidence import score
from errors import AIError, DocumentFilesMissingError, DocumentNotFoundError
from models import (
    AIProviderResponse,
    Document,
    DocumentFile,
    DocumentStatus,
    DocumentType,
    ExtractedData,
    FormTemplate,
    GuestFormExtractionData,
    ProcessingResult,
)
from provider_base import DocumentAIProvider
from reconciliation import reconcile
from storage import image_url_for
from store import DocumentStore

logger = logging.getLogger(__name__)


def select_primary_file(files: list[DocumentFile]) -> DocumentFile:
    """The file tagged "front", else the first one."""
    return next((f for f in files if f.file_type == "front"), files[0])


def select_back_file(files: list[DocumentFile], primary: DocumentFile) -> DocumentFile | None:
    return next((f for f in files if f.file_type == "back" and f.id != primary.id), None)


def is_empty_guest(guest: ExtractedData) -> bool:
    """True when no field carries a value (a falsely detected table column)."""
    return all(
        value is None or (isinstance(value, str) and not value.strip())
        for value in guest.values()
    )


class DocumentProcessor:
    def __init__(
        self,
        store: DocumentStore,
        primary: DocumentAIProvider,
        secondary: DocumentAIProvider | None = None,
    ):
        self._store = store
        self._primary = primary
        self._secondary = secondary

    async def process_document(
        self,
        document_id: str,
        user_id: str | None = None,
        enable_dual_verification: bool = False,
    ) -> ProcessingResult:
        start = time.monotonic()
        step = "load_document"

        try:
            document = await self._store.get_document(document_id, user_id)
            if document is None:
                raise DocumentNotFoundError("Document not found or unauthorized")
            if not document.files:
                raise DocumentFilesMissingError("No files found for document")

            document_type = DocumentType.from_stored(document.document_type)
            template = await self._load_template(document, document_type)

            logger.info(
                "Processing document %s: type=%s files=%d dual=%s",
                document_id, document_type.value, len(document.files), enable_dual_verification,
            )

            step = "primary_extraction"
            primary_file = select_primary_file(document.files)
            image_url = image_url_for(primary_file)
            primary_result = await self._primary.extract_data_from_document(
                image_url, document_type, template, document.expected_guest_count,
            )

            if document_type != DocumentType.GUEST_FORM:
                back_file = select_back_file(document.files, primary_file)
                if back_file is not None:
                    step = "back_extraction"
                    primary_result = await self._merge_back_image(
                        primary_result, back_file, document_type,
                    )

            secondary_result: AIProviderResponse | None = None
            if enable_dual_verification and primary_result.success:
                step = "secondary_extraction"
                secondary_result = await self._verify_with_secondary(
                    image_url, document_type, template, document.expected_guest_count,
                )

            step = "reconciliation"
            final_data, fields_to_review = self._reconcile(primary_result, secondary_result)

            step = "scoring"
            confidence_score = score(primary_result, secondary_result)

            step = "persist"
            model_name = primary_result.provider
            if secondary_result is not None and secondary_result.success:
                model_name = f"{primary_result.provider}+{secondary_result.provider}"
            elapsed_ms = int((time.monotonic() - start) * 1000)

            result = await self._persist(
                document_id, model_name, final_data, fields_to_review,
                confidence_score, elapsed_ms,
            )

            step = "update_status"
            await self._store.update_document_status(document_id, DocumentStatus.COMPLETED)

            logger.info(
                "Document %s completed in %dms: model=%s confidence=%.2f review=%d",
                document_id, elapsed_ms, model_name, confidence_score, len(fields_to_review),
            )
            return result

        except Exception as e:
            try:
                await self._fail(document_id, step, e)
            except Exception:
                logger.exception("Could not record failure of document %s", document_id)
            raise

    async def _load_template(
        self, document: Document, document_type: DocumentType
    ) -> FormTemplate | None:
        if document_type != DocumentType.GUEST_FORM or not document.form_template_id:
            return None
        return await self._store.get_form_template(document.form_template_id)

    async def _merge_back_image(
        self,
        front: AIProviderResponse,
        back_file: DocumentFile,
        document_type: DocumentType,
    ) -> AIProviderResponse:
        """Overlay back-side fields onto the front result. Failures keep front only."""
        if not front.success or front.is_guest_form:
            return front
        try:
            back = await self._primary.extract_data_from_document(
                image_url_for(back_file), document_type,
            )
        except AIError as e:
            logger.warning("Back image extraction failed, keeping front data: %s", e.message)
            return front

        if back.is_guest_form or back.data is None:
            return front
        merged = {**(front.data or {}), **back.data}
        return front.model_copy(update={"data": merged})

    async def _verify_with_secondary(
        self,
        image_url: str,
        document_type: DocumentType,
        template: FormTemplate | None,
        guest_count: int | None,
    ) -> AIProviderResponse | None:
        if self._secondary is None:
            logger.warning("Dual verification requested but no secondary provider is configured")
            return None
        try:
            return await self._secondary.extract_data_from_document(
                image_url, document_type, template, guest_count,
            )
        except AIError as e:
            logger.warning("Secondary verification failed: %s", e.message)
            return AIProviderResponse(success=False, provider=e.provider, error=e.message)

    def _reconcile(
        self,
        primary: AIProviderResponse,
        secondary: AIProviderResponse | None,
    ) -> tuple[ExtractedData | GuestFormExtractionData, list[str]]:
        if primary.is_guest_form:
            return primary.data, []  # type: ignore[return-value]
        if secondary is None or secondary.is_guest_form:
            return dict(primary.data or {}), []  # type: ignore[arg-type]
        reconciliation = reconcile(primary, secondary)
        return reconciliation.final_data, reconciliation.fields_to_review

    async def _persist(
        self,
        document_id: str,
        model_name: str,
        final_data: ExtractedData | GuestFormExtractionData,
        fields_to_review: list[str],
        confidence_score: float,
        elapsed_ms: int,
    ) -> ProcessingResult:
        if isinstance(final_data, GuestFormExtractionData):
            guests = [g for g in final_data.guests if not is_empty_guest(g)]
            dropped = len(final_data.guests) - len(guests)
            if dropped:
                logger.info("Dropped %d empty guest column(s) for document %s", dropped, document_id)

            extraction = await self._store.create_extraction(
                document_id, model_name,
                {"guests": guests, "detectedGuestCount": final_data.detected_guest_count},
                fields_to_review, confidence_score, elapsed_ms,
            )
            await self._store.create_guest_extractions(extraction.id, document_id, guests)
            guest_count: int | None = len(guests)
        else:
            extraction = await self._store.create_extraction(
                document_id, model_name, final_data,
                fields_to_review, confidence_score, elapsed_ms,
            )
            guest_count = None

        return ProcessingResult(
            extraction_id=extraction.id,
            model_name=model_name,
            fields_to_review=fields_to_review,
            confidence_score=confidence_score,
            guest_count=guest_count,
        )

    async def _fail(self, document_id: str, step: str, error: Exception) -> None:
        error_type = error.type.value if isinstance(error, AIError) else "processing_failed"
        logger.error("Document %s failed at %s: %s", document_id, step, error)

        details = {
            "stack": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if isinstance(error, AIError):
            details["provider"] = error.provider
            if error.raw_response is not None:
                details["raw_response"] = error.raw_response[:2000]

        await self._store.log_processing_error(
            document_id, error_type, str(error) or type(error).__name__, step, details,
        )
        await self._store.update_document_status(document_id, DocumentStatus.FAILED)
