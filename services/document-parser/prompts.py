"""Prompt construction per document type.

Passports and driving licenses use a fixed field list. Guest forms are
template driven: the template's fields and guest ceiling are interpolated
into an instruction that assumes one guest per table COLUMN.
"""

from errors import PromptConfigurationError
from models import DocumentType, FormTemplate

BASE_PROMPT = (
    "You are an expert document data extraction AI. Analyze the image of the "
    "document provided. Extract the key information and return it ONLY as a "
    "valid JSON object. Do not include any other text or markdown formatting. "
    "If a field is not readable or not present, use null."
)

REQUIRED_FIELDS: dict[DocumentType, list[str]] = {
    DocumentType.PASSPORT: [
        "firstName", "lastName", "documentNumber",
        "dateOfBirth", "expiryDate", "nationality",
    ],
    DocumentType.DRIVING_LICENSE: [
        "firstName", "lastName", "documentNumber",
        "dateOfBirth", "expiryDate", "address", "vehicleClasses",
    ],
}


def build_prompt(
    document_type: DocumentType,
    template: FormTemplate | None = None,
    guest_count: int | None = None,
) -> str:
    """Return the instruction text sent to a provider for this document."""
    if document_type == DocumentType.GUEST_FORM:
        if template is None:
            raise PromptConfigurationError("Guest form extraction requires a form template")
        return build_guest_form_prompt(template, guest_count)

    fields = ", ".join(f'"{field}"' for field in REQUIRED_FIELDS[document_type])
    return f"{BASE_PROMPT} The required fields are: {fields}."


def build_guest_form_prompt(template: FormTemplate, guest_count: int | None = None) -> str:
    if not template.fields:
        raise PromptConfigurationError(
            f"Form template {template.id!r} has no fields to extract"
        )

    field_list = ", ".join(template.fields)
    count_hint = ""
    if guest_count:
        count_hint = (
            f"\n- User indicated there are approximately {guest_count} guests "
            "on this form (treat this as a hint, not an exact requirement)"
        )
    field_lines = ",\n      ".join(
        f'"{field}": "extracted_value_or_null"' for field in template.fields
    )

    return f"""You are analyzing a guest registration form image. This is a table format where each COLUMN represents a different guest and each ROW represents a specific piece of information.

FORM STRUCTURE:
- This is a table with guests as COLUMNS (vertical layout), not rows
- Each guest occupies one column
- Rows contain different data fields for each guest
- Fields expected: {field_list}
- Maximum expected guests: {template.max_guests}{count_hint}

EXTRACTION RULES:
1. Scan each column from left to right (Guest 1, Guest 2, Guest 3, etc.)
2. For each guest column, extract all available field values from top to bottom
3. If a field is empty or missing, use null. Never omit a key
4. If handwriting is unclear, use your best interpretation

Return the data in this exact JSON format:
{{
  "guests": [
    {{
      {field_lines}
    }}
  ],
  "detectedGuestCount": number_of_guests_found
}}

Extract data for ALL guests visible in the image, even if some fields are empty.
Return ONLY the JSON object, with no text before or after it."""
