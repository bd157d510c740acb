from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictStr, field_validator

# Sentinel shown in text fields until extraction resolves
PROCESSING_PLACEHOLDER = "辨識中..."


class InvoiceStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class InvoiceItem(BaseModel):
    # Strict numbers: "3" or true is a malformed item, not a quantity
    name: StrictStr
    quantity: StrictFloat
    price: StrictFloat


class Invoice(BaseModel):
    id: str
    date: str
    number: str
    vendor: str
    total_amount: float = 0.0
    items: list[InvoiceItem] = Field(default_factory=list)
    status: InvoiceStatus = InvoiceStatus.PROCESSING
    image_url: str | None = None  # Preview link, valid only while the process lives


class ExtractedFields(BaseModel):
    """Fields returned by the remote model, keyed the way the response schema names them."""
    model_config = ConfigDict(populate_by_name=True)

    date: StrictStr
    number: StrictStr
    vendor: StrictStr
    total_amount: StrictFloat = Field(alias="totalAmount")
    items: list[InvoiceItem] = Field(default_factory=list)

    @field_validator("items", mode="before")
    @classmethod
    def _null_items_to_empty(cls, value):
        return [] if value is None else value


class InvoiceUpdate(BaseModel):
    """User-editable fields of an invoice (everything except id, status and preview)"""
    date: str
    number: str
    vendor: str
    total_amount: StrictFloat = 0.0
    items: list[InvoiceItem] = Field(default_factory=list)


def new_placeholder(invoice_id: str, image_url: str | None = None) -> Invoice:
    return Invoice(
        id=invoice_id,
        date=PROCESSING_PLACEHOLDER,
        number=PROCESSING_PLACEHOLDER,
        vendor=PROCESSING_PLACEHOLDER,
        total_amount=0.0,
        items=[],
        status=InvoiceStatus.PROCESSING,
        image_url=image_url,
    )
