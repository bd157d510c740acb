"""
Pytest configuration and shared fakes.

Registers the `integration` marker / --run-integration option and provides
in-process stand-ins for the Gemini extractor so no test touches the network.
"""

import asyncio

import pytest

from invoice_assistant.api.deps import InvoiceSession, get_session
from invoice_assistant.api.main import app
from invoice_assistant.models.invoice import ExtractedFields, Invoice, InvoiceItem, InvoiceStatus
from invoice_assistant.services.upload_orchestrator import UploadedImage


def pytest_addoption(parser):
    """Add custom command-line options"""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests against the real Gemini API"
    )


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test requiring a real Gemini API key"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --run-integration is specified"""
    if config.getoption("--run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="need --run-integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


SAMPLE_FIELDS = ExtractedFields(
    date="2024/05/01",
    number="AB12345678",
    vendor="測試商店",
    totalAmount=150,
    items=[InvoiceItem(name="咖啡", quantity=1, price=150)],
)


def image(filename: str = "invoice.jpg", data: bytes = b"\xff\xd8fake-jpeg", content_type: str = "image/jpeg"):
    return UploadedImage(filename=filename, content_type=content_type, data=data)


def completed_invoice(invoice_id: str, **overrides) -> Invoice:
    fields = {
        "id": invoice_id,
        "date": "2024/05/01",
        "number": "AB12345678",
        "vendor": "測試商店",
        "total_amount": 150,
        "items": [InvoiceItem(name="咖啡", quantity=1, price=150)],
        "status": InvoiceStatus.COMPLETED,
    }
    fields.update(overrides)
    return Invoice(**fields)


class FakeExtractor:
    """Returns (or raises) queued results in call order"""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    async def extract(self, image_bytes: bytes, mime_type: str) -> ExtractedFields:
        self.calls.append((image_bytes, mime_type))
        result = self.results.pop(0) if self.results else SAMPLE_FIELDS
        if isinstance(result, Exception):
            raise result
        return result


class GatedExtractor:
    """Blocks every call until `release()`; tracks how many calls overlap"""

    def __init__(self, result=SAMPLE_FIELDS):
        self.result = result
        self.started = asyncio.Event()
        self.gate = asyncio.Event()
        self.in_flight = 0
        self.max_in_flight = 0

    def release(self):
        self.gate.set()

    async def extract(self, image_bytes: bytes, mime_type: str) -> ExtractedFields:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.started.set()
        try:
            await self.gate.wait()
        finally:
            self.in_flight -= 1
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.fixture
def use_session():
    """Install a fresh in-memory session (with the given extractor) into the app"""
    def _install(extractor=None) -> InvoiceSession:
        session = InvoiceSession(extractor=extractor or FakeExtractor())
        app.dependency_overrides[get_session] = lambda: session
        return session

    yield _install
    app.dependency_overrides.clear()
