from .invoice_store_base import InvoiceStoreBase
from .invoices import InMemoryInvoiceStore
from .previews import PreviewImage, PreviewRegistry

__all__ = ["InvoiceStoreBase", "InMemoryInvoiceStore", "PreviewImage", "PreviewRegistry"]
