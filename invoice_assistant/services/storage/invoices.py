"""
In-memory invoice store.
Lives for the lifetime of the process; nothing is written to disk.
"""
from collections import OrderedDict
from typing import Optional

from loguru import logger

from .invoice_store_base import InvoiceStoreBase
from ...models.invoice import Invoice, InvoiceUpdate


class InMemoryInvoiceStore(InvoiceStoreBase):
    def __init__(self):
        self._invoices: "OrderedDict[str, Invoice]" = OrderedDict()

    def insert_front(self, invoice: Invoice) -> None:
        if invoice.id in self._invoices:
            raise ValueError(f"Invoice id already exists: {invoice.id}")
        self._invoices[invoice.id] = invoice.model_copy(deep=True)
        self._invoices.move_to_end(invoice.id, last=False)

    def patch(self, invoice_id: str, **fields) -> bool:
        current = self._invoices.get(invoice_id)
        if current is None:
            logger.debug("Dropping update for missing invoice", invoice_id=invoice_id)
            return False

        fields.pop("id", None)
        self._invoices[invoice_id] = Invoice.model_validate({**current.model_dump(), **fields})
        return True

    def replace(self, invoice_id: str, update: InvoiceUpdate) -> Optional[Invoice]:
        current = self._invoices.get(invoice_id)
        if current is None:
            return None

        updated = Invoice(
            id=current.id,
            status=current.status,
            image_url=current.image_url,
            **update.model_dump(),
        )
        self._invoices[invoice_id] = updated
        return updated.model_copy(deep=True)

    def remove(self, invoice_id: str) -> bool:
        return self._invoices.pop(invoice_id, None) is not None

    def get(self, invoice_id: str) -> Optional[Invoice]:
        invoice = self._invoices.get(invoice_id)
        return invoice.model_copy(deep=True) if invoice is not None else None

    def list_all(self) -> list[Invoice]:
        return [invoice.model_copy(deep=True) for invoice in self._invoices.values()]

    def __len__(self) -> int:
        return len(self._invoices)
