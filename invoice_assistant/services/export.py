"""
Clipboard, CSV and Excel renditions of the invoice table.

Only completed invoices are exported; rows still processing or in error are
left out of every format. When nothing is completed the renderers return None
and the caller produces nothing.
"""
import csv
import io
import time
from typing import Iterable, Optional

from openpyxl import Workbook
from openpyxl.styles import Font

from ..models.invoice import Invoice, InvoiceItem, InvoiceStatus

CLIPBOARD_HEADERS = ["日期", "發票號碼", "商家", "總金額"]
EXPORT_HEADERS = ["日期", "發票號碼", "商家", "總金額", "明細"]
ITEM_SEPARATOR = "; "
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def completed_only(invoices: Iterable[Invoice]) -> list[Invoice]:
    return [i for i in invoices if i.status == InvoiceStatus.COMPLETED]


def format_number(value: float) -> str:
    """150.0 -> '150', 12.5 -> '12.5'"""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def items_summary(items: Iterable[InvoiceItem]) -> str:
    return ITEM_SEPARATOR.join(f"{item.name}({format_number(item.quantity)})" for item in items)


def _export_row(invoice: Invoice) -> list[str]:
    return [
        invoice.date,
        invoice.number,
        invoice.vendor,
        format_number(invoice.total_amount),
        items_summary(invoice.items),
    ]


def to_clipboard_text(invoices: Iterable[Invoice]) -> Optional[str]:
    """Tab-separated table for pasting into a spreadsheet (no item details)."""
    rows = completed_only(invoices)
    if not rows:
        return None

    lines = ["\t".join(CLIPBOARD_HEADERS)]
    for i in rows:
        lines.append("\t".join([i.date, i.number, i.vendor, format_number(i.total_amount)]))
    return "\n".join(lines)


def to_csv(invoices: Iterable[Invoice]) -> Optional[bytes]:
    """UTF-8 CSV with a byte-order mark so Excel picks the right encoding."""
    rows = completed_only(invoices)
    if not rows:
        return None

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for invoice in rows:
        writer.writerow(_export_row(invoice))
    return buffer.getvalue().encode("utf-8-sig")


def to_xlsx(invoices: Iterable[Invoice]) -> Optional[bytes]:
    rows = completed_only(invoices)
    if not rows:
        return None

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Invoices"

    sheet.append(EXPORT_HEADERS)
    for cell in sheet[1]:
        cell.font = Font(bold=True)

    for invoice in rows:
        sheet.append([
            invoice.date,
            invoice.number,
            invoice.vendor,
            invoice.total_amount,
            items_summary(invoice.items),
        ])

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def export_filename(extension: str, now: Optional[float] = None) -> str:
    """invoices_<unix-epoch-millis>.<extension>"""
    timestamp = time.time() if now is None else now
    return f"invoices_{int(timestamp * 1000)}.{extension}"
