from pydantic import BaseModel
from ..models.invoice import Invoice
from ..services.gemini_extractor import GeminiInvoiceExtractor
from ..services.storage import InMemoryInvoiceStore, PreviewRegistry
from ..services.upload_orchestrator import InvoiceExtractor, UploadOrchestrator


class InvoiceListResponse(BaseModel):
    uploading: bool
    count: int
    invoices: list[Invoice]


class UploadResponse(BaseModel):
    accepted: int


class InvoiceSession:
    """Everything one running app holds in memory: invoices, previews and the upload worker"""

    def __init__(self, extractor: InvoiceExtractor | None = None):
        self.store = InMemoryInvoiceStore()
        self.previews = PreviewRegistry()
        self.orchestrator = UploadOrchestrator(
            store=self.store,
            extractor=extractor or GeminiInvoiceExtractor(),
            previews=self.previews,
        )


_default_session = InvoiceSession()


def get_session() -> InvoiceSession:
    """FastAPI dependency; override in tests via app.dependency_overrides"""
    return _default_session
