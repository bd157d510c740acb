"""
Batch upload processing.

Each uploaded image becomes a placeholder invoice, then is sent to the
extraction model. Files are handled strictly one at a time: the next file is
not touched until the previous extraction has succeeded or failed, so at most
one request to the model is in flight per batch.
"""
import uuid
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Protocol

from loguru import logger

from .storage import InvoiceStoreBase, PreviewRegistry
from ..models.invoice import ExtractedFields, InvoiceStatus, new_placeholder


DEFAULT_CONTENT_TYPE = "image/jpeg"


class InvoiceExtractor(Protocol):
    async def extract(self, image_bytes: bytes, mime_type: str) -> ExtractedFields: ...


@dataclass
class UploadedImage:
    """
    An uploaded file already pulled into memory.

    Request files are closed once the response has been sent, so the HTTP
    layer copies them into these before handing the batch to the background
    task.
    """
    filename: str
    content_type: str
    data: bytes

    async def read(self) -> bytes:
        return self.data


def new_invoice_id() -> str:
    # 122 random bits; a collision is treated as impossible
    return uuid.uuid4().hex


class UploadOrchestrator:
    def __init__(
        self,
        store: InvoiceStoreBase,
        extractor: InvoiceExtractor,
        previews: PreviewRegistry,
        id_factory: Callable[[], str] = new_invoice_id,
    ):
        self.store = store
        self.extractor = extractor
        self.previews = previews
        self.id_factory = id_factory
        self._active_batches = 0

    @property
    def is_uploading(self) -> bool:
        return self._active_batches > 0

    async def handle_files(self, files: Optional[Iterable[UploadedImage]]) -> None:
        """
        Process a batch of uploaded images sequentially, in the order given.

        Never raises for a single bad file: its invoice is marked as error
        and the batch continues.
        """
        files = list(files or [])
        if not files:
            return

        self._active_batches += 1
        logger.info("Processing upload batch", file_count=len(files))
        try:
            for upload in files:
                await self._process_one(upload)
        finally:
            self._active_batches -= 1

    async def _process_one(self, upload: UploadedImage) -> None:
        invoice_id = self.id_factory()
        content_type = upload.content_type or DEFAULT_CONTENT_TYPE

        image_url = self.previews.register(invoice_id, upload.data, content_type)
        self.store.insert_front(new_placeholder(invoice_id, image_url))

        try:
            image_bytes = await upload.read()
            extracted = await self.extractor.extract(image_bytes, content_type)
        except Exception as e:
            logger.bind(invoice_id=invoice_id, filename=upload.filename).error(f"Extraction failed: {e}")
            self.store.patch(invoice_id, status=InvoiceStatus.ERROR)
            return

        applied = self.store.patch(
            invoice_id,
            **extracted.model_dump(),
            status=InvoiceStatus.COMPLETED,
        )
        if applied:
            logger.info("Invoice extracted", invoice_id=invoice_id, filename=upload.filename)
        else:
            logger.info("Invoice deleted before extraction finished", invoice_id=invoice_id)
