"""Pydantic models shared by the extraction pipeline and the store."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

ScalarValue = Union[str, int, float, None]

# Field name -> scalar value; None means "not found on the document"
ExtractedData = dict[str, ScalarValue]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentType(str, Enum):
    PASSPORT = "passport"
    DRIVING_LICENSE = "driving-license"
    GUEST_FORM = "guest-form"

    @classmethod
    def from_stored(cls, raw: str) -> "DocumentType":
        """Map a stored document type (including legacy names) to a strategy."""
        return _STORED_TYPES.get(raw, cls.PASSPORT)


_STORED_TYPES: dict[str, DocumentType] = {
    "passport": DocumentType.PASSPORT,
    "passport_front": DocumentType.PASSPORT,
    "driving-license": DocumentType.DRIVING_LICENSE,
    "driving_license": DocumentType.DRIVING_LICENSE,
    "driving_license_front": DocumentType.DRIVING_LICENSE,
    "driving_license_back": DocumentType.DRIVING_LICENSE,
    "guest-form": DocumentType.GUEST_FORM,
    "guest_form": DocumentType.GUEST_FORM,
}


class DocumentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class FormTemplate(BaseModel):
    id: str
    name: str
    description: str = ""
    fields: list[str] = []
    max_guests: int = Field(gt=0)
    is_active: bool = True


class GuestFormExtractionData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    guests: list[ExtractedData]
    detected_guest_count: int = Field(alias="detectedGuestCount")


class AIProviderResponse(BaseModel):
    """Normalized result of one provider call."""

    success: bool
    data: Union[GuestFormExtractionData, ExtractedData, None] = None
    provider: str
    error: Optional[str] = None

    @property
    def is_guest_form(self) -> bool:
        return isinstance(self.data, GuestFormExtractionData)


class ReconciliationResult(BaseModel):
    final_data: ExtractedData
    fields_to_review: list[str] = []


class DocumentFile(BaseModel):
    id: str
    file_key: str
    file_type: Optional[str] = None  # "front", "back" or untagged
    url: Optional[str] = None


class Document(BaseModel):
    id: str
    user_id: str
    document_type: str
    status: DocumentStatus = DocumentStatus.PENDING
    files: list[DocumentFile] = []
    form_template_id: Optional[str] = None
    expected_guest_count: Optional[int] = Field(default=None, gt=0)


class ExtractionRecord(BaseModel):
    id: str
    document_id: str
    model_name: str
    extraction_data: dict[str, Any]
    fields_for_review: list[str] = []
    confidence_score: float
    processing_time_ms: int = 0
    created_at: datetime = Field(default_factory=_utcnow)


class GuestExtractionRecord(BaseModel):
    id: str
    extraction_id: str
    document_id: str
    guest_index: int
    extracted_data: ExtractedData


class ProcessingErrorRecord(BaseModel):
    id: str
    document_id: Optional[str]
    error_type: str
    error_message: str
    step_failed: str
    error_details: dict[str, Any] = {}
    created_at: datetime = Field(default_factory=_utcnow)


class ProcessingResult(BaseModel):
    extraction_id: str
    model_name: str
    fields_to_review: list[str]
    confidence_score: float
    guest_count: Optional[int] = None
