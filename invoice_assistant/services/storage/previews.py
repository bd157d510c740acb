"""
Preview images for uploaded invoices.

Holds the uploaded bytes so the table can show a thumbnail. Entries live until
the process exits or their invoice is deleted; they are never sent anywhere
after the extraction call.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class PreviewImage:
    data: bytes
    content_type: str


class PreviewRegistry:
    def __init__(self, url_prefix: str = "/invoices"):
        self.url_prefix = url_prefix
        self._previews: dict[str, PreviewImage] = {}

    def register(self, invoice_id: str, data: bytes, content_type: str) -> str:
        """Store preview bytes and return the URL they are served from"""
        self._previews[invoice_id] = PreviewImage(data=data, content_type=content_type)
        return self.url_for(invoice_id)

    def url_for(self, invoice_id: str) -> str:
        return f"{self.url_prefix}/{invoice_id}/image"

    def get(self, invoice_id: str) -> Optional[PreviewImage]:
        return self._previews.get(invoice_id)

    def release(self, invoice_id: str) -> None:
        self._previews.pop(invoice_id, None)
