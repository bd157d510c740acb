"""
Abstract base class for invoice collection stores.

Defines the interface the upload orchestrator and the HTTP layer rely on,
so the in-memory store can be swapped or faked in tests.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ...models.invoice import Invoice, InvoiceUpdate


class InvoiceStoreBase(ABC):
    """
    Ordered collection of invoices keyed by id, most recently inserted first.

    Mutations are synchronous; callers in the event loop never suspend in
    the middle of one.
    """

    @abstractmethod
    def insert_front(self, invoice: Invoice) -> None:
        """
        Add a new invoice at the head of the collection.

        Args:
            invoice: Invoice with an id not yet present in the store

        Raises:
            ValueError: If the id already exists (caller bug, ids are random)
        """
        pass

    @abstractmethod
    def patch(self, invoice_id: str, **fields) -> bool:
        """
        Merge fields into an existing invoice.

        Args:
            invoice_id: Invoice identifier
            **fields: Invoice attributes to overwrite

        Returns:
            True if the invoice was updated, False if it no longer exists.
            A missing id is not an error: the invoice may have been deleted
            while its extraction was still in flight.
        """
        pass

    @abstractmethod
    def replace(self, invoice_id: str, update: InvoiceUpdate) -> Optional[Invoice]:
        """
        Overwrite all user-editable fields of an invoice.

        Args:
            invoice_id: Invoice identifier
            update: New values for date, number, vendor, total_amount and items

        Returns:
            The updated invoice (id, status and image_url unchanged),
            or None if not found.
        """
        pass

    @abstractmethod
    def remove(self, invoice_id: str) -> bool:
        """
        Delete an invoice.

        Returns:
            True if it existed, False otherwise
        """
        pass

    @abstractmethod
    def get(self, invoice_id: str) -> Optional[Invoice]:
        """Get a copy of one invoice, or None if not found"""
        pass

    @abstractmethod
    def list_all(self) -> list[Invoice]:
        """
        List all invoices, most recent first.

        Returns:
            Snapshot copies; mutating them does not affect the store.
        """
        pass
