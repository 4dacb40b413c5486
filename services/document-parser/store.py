"""Persistence collaborator used by the document processor.

The real store (documents, extractions, guest rows, error log) is owned by
the web application. ``InMemoryDocumentStore`` backs local runs and tests.
"""

import uuid
from typing import Any, Protocol

from models import (
    Document,
    DocumentStatus,
    ExtractedData,
    ExtractionRecord,
    FormTemplate,
    GuestExtractionRecord,
    ProcessingErrorRecord,
)


class DocumentStore(Protocol):
    async def get_document(self, document_id: str, user_id: str | None = None) -> Document | None: ...

    async def get_form_template(self, template_id: str) -> FormTemplate | None: ...

    async def create_extraction(
        self,
        document_id: str,
        model_name: str,
        extraction_data: dict[str, Any],
        fields_for_review: list[str],
        confidence_score: float,
        processing_time_ms: int,
    ) -> ExtractionRecord: ...

    async def create_guest_extractions(
        self,
        extraction_id: str,
        document_id: str,
        guests: list[ExtractedData],
    ) -> list[GuestExtractionRecord]: ...

    async def log_processing_error(
        self,
        document_id: str | None,
        error_type: str,
        error_message: str,
        step_failed: str,
        error_details: dict[str, Any] | None = None,
    ) -> ProcessingErrorRecord: ...

    async def update_document_status(self, document_id: str, status: DocumentStatus) -> None: ...


class InMemoryDocumentStore:
    """Dict-backed DocumentStore."""

    def __init__(self):
        self.documents: dict[str, Document] = {}
        self.templates: dict[str, FormTemplate] = {}
        self.extractions: list[ExtractionRecord] = []
        self.guest_extractions: list[GuestExtractionRecord] = []
        self.errors: list[ProcessingErrorRecord] = []

    def add_document(self, document: Document) -> Document:
        self.documents[document.id] = document
        return document

    def add_template(self, template: FormTemplate) -> FormTemplate:
        self.templates[template.id] = template
        return template

    async def get_document(self, document_id: str, user_id: str | None = None) -> Document | None:
        document = self.documents.get(document_id)
        if document is None or (user_id is not None and document.user_id != user_id):
            return None
        return document

    async def get_form_template(self, template_id: str) -> FormTemplate | None:
        return self.templates.get(template_id)

    async def create_extraction(
        self,
        document_id: str,
        model_name: str,
        extraction_data: dict[str, Any],
        fields_for_review: list[str],
        confidence_score: float,
        processing_time_ms: int,
    ) -> ExtractionRecord:
        record = ExtractionRecord(
            id=_new_id(),
            document_id=document_id,
            model_name=model_name,
            extraction_data=extraction_data,
            fields_for_review=fields_for_review,
            confidence_score=confidence_score,
            processing_time_ms=processing_time_ms,
        )
        self.extractions.append(record)
        return record

    async def create_guest_extractions(
        self,
        extraction_id: str,
        document_id: str,
        guests: list[ExtractedData],
    ) -> list[GuestExtractionRecord]:
        records = [
            GuestExtractionRecord(
                id=_new_id(),
                extraction_id=extraction_id,
                document_id=document_id,
                guest_index=index,
                extracted_data=guest,
            )
            for index, guest in enumerate(guests, start=1)
        ]
        self.guest_extractions.extend(records)
        return records

    async def log_processing_error(
        self,
        document_id: str | None,
        error_type: str,
        error_message: str,
        step_failed: str,
        error_details: dict[str, Any] | None = None,
    ) -> ProcessingErrorRecord:
        record = ProcessingErrorRecord(
            id=_new_id(),
            document_id=document_id,
            error_type=error_type,
            error_message=error_message,
            step_failed=step_failed,
            error_details=error_details or {},
        )
        self.errors.append(record)
        return record

    async def update_document_status(self, document_id: str, status: DocumentStatus) -> None:
        document = self.documents.get(document_id)
        if document is not None:
            document.status = status


def _new_id() -> str:
    return uuid.uuid4().hex
