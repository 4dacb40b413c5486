"""Shared test fixtures for document parser tests."""

import json
import sys
from pathlib import Path

import pytest

# Add parent directory to path so we can import the modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from errors import AIError  # noqa: E402
from models import (  # noqa: E402
    AIProviderResponse,
    Document,
    DocumentFile,
    FormTemplate,
)
from store import InMemoryDocumentStore  # noqa: E402


class FakeProvider:
    """Scripted stand-in for a DocumentAIProvider.

    Each call pops the next item from ``script``: an AIProviderResponse is
    returned, an exception is raised.
    """

    def __init__(self, name: str, script: list):
        self.name = name
        self.script = list(script)
        self.calls: list[dict] = []

    async def extract_data_from_document(self, image_url, document_type, template=None, guest_count=None):
        self.calls.append({
            "image_url": image_url,
            "document_type": document_type,
            "template": template,
            "guest_count": guest_count,
        })
        item = self.script.pop(0)
        if isinstance(item, (AIError, Exception)):
            raise item
        return item


def ok(provider: str, data) -> AIProviderResponse:
    return AIProviderResponse(success=True, data=data, provider=provider)


@pytest.fixture
def no_sleep():
    """Async sleep replacement that records requested delays."""
    delays: list[float] = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    _sleep.delays = delays  # type: ignore[attr-defined]
    return _sleep


@pytest.fixture
def guest_template() -> FormTemplate:
    return FormTemplate(
        id="tpl-hotel",
        name="Hotel registration",
        fields=["firstName", "lastName"],
        max_guests=5,
    )


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def passport_document(store: InMemoryDocumentStore) -> Document:
    return store.add_document(Document(
        id="doc-passport",
        user_id="user-1",
        document_type="passport",
        status="processing",
        files=[DocumentFile(id="f1", file_key="u/passport.jpg", file_type="front",
                            url="https://img.test/passport.jpg")],
    ))


@pytest.fixture
def license_document(store: InMemoryDocumentStore) -> Document:
    return store.add_document(Document(
        id="doc-license",
        user_id="user-1",
        document_type="driving_license",
        status="processing",
        files=[
            DocumentFile(id="b1", file_key="u/back.jpg", file_type="back",
                         url="https://img.test/back.jpg"),
            DocumentFile(id="f1", file_key="u/front.jpg", file_type="front",
                         url="https://img.test/front.jpg"),
        ],
    ))


@pytest.fixture
def guest_document(store: InMemoryDocumentStore, guest_template: FormTemplate) -> Document:
    store.add_template(guest_template)
    return store.add_document(Document(
        id="doc-guests",
        user_id="user-1",
        document_type="guest-form",
        status="processing",
        form_template_id=guest_template.id,
        expected_guest_count=2,
        files=[DocumentFile(id="g1", file_key="u/form.jpg", url="https://img.test/form.jpg")],
    ))


@pytest.fixture
def mock_passport_response() -> str:
    """Mock model reply for a passport extraction."""
    return json.dumps({
        "firstName": "Ana",
        "lastName": "Lee",
        "documentNumber": "X1234567",
        "dateOfBirth": "1990-01-15",
        "expiryDate": "2031-01-14",
        "nationality": "PRT",
    })


@pytest.fixture
def mock_markdown_response() -> str:
    """Mock model reply wrapped in a markdown code fence."""
    return '```json\n{"firstName": "Ana", "lastName": "Lee"}\n```'


@pytest.fixture
def mock_guest_form_response() -> str:
    return json.dumps({
        "guests": [
            {"firstName": "A", "lastName": "Silva"},
            {"firstName": None, "lastName": None},
        ],
        "detectedGuestCount": 2,
    })
