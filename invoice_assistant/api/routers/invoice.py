from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, Response, UploadFile, status
from loguru import logger
from ..deps import InvoiceListResponse, InvoiceSession, UploadResponse, get_session
from ...models.invoice import Invoice, InvoiceStatus, InvoiceUpdate
from ...services import export
from ...services.upload_orchestrator import UploadedImage

router = APIRouter(prefix="/invoices", tags=["invoices"])


async def read_uploads(files: list[UploadFile]) -> list[UploadedImage]:
    """Copy request files into memory before the response closes them"""
    uploads = []
    for file in files:
        uploads.append(UploadedImage(
            filename=file.filename or "upload",
            content_type=file.content_type or "",
            data=await file.read(),
        ))
    return uploads


def _download(content: bytes | None, media_type: str, extension: str) -> Response:
    if content is None:
        # Nothing completed yet: no file, no error
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    filename = export.export_filename(extension)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_202_ACCEPTED)
async def upload(
    background_tasks: BackgroundTasks,
    files: list[UploadFile] = File(...),
    session: InvoiceSession = Depends(get_session),
):
    """
    Accept one or more invoice images for extraction.

    Files are processed in the background, one at a time and in the order
    sent. Progress is visible through GET /invoices: each file appears as a
    `processing` invoice and later turns `completed` or `error`.
    """
    uploads = await read_uploads(files)
    logger.info("Upload received", file_count=len(uploads))
    background_tasks.add_task(session.orchestrator.handle_files, uploads)
    return UploadResponse(accepted=len(uploads))


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(session: InvoiceSession = Depends(get_session)):
    """List all invoices, most recently uploaded first"""
    invoices = session.store.list_all()
    return InvoiceListResponse(
        uploading=session.orchestrator.is_uploading,
        count=len(invoices),
        invoices=invoices,
    )


@router.get("/export/csv")
async def export_csv(session: InvoiceSession = Depends(get_session)):
    """Download completed invoices as a BOM-prefixed UTF-8 CSV file"""
    return _download(export.to_csv(session.store.list_all()), export.CSV_MEDIA_TYPE, "csv")


@router.get("/export/xlsx")
def export_xlsx(session: InvoiceSession = Depends(get_session)):
    """Download completed invoices as an Excel workbook; built in the threadpool"""
    return _download(export.to_xlsx(session.store.list_all()), export.XLSX_MEDIA_TYPE, "xlsx")


@router.get("/export/clipboard")
async def export_clipboard(session: InvoiceSession = Depends(get_session)):
    """Tab-separated text of completed invoices, for copying into a spreadsheet"""
    text = export.to_clipboard_text(session.store.list_all())
    if text is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return Response(content=text, media_type="text/plain; charset=utf-8")


@router.get("/{invoice_id}", response_model=Invoice)
async def get_invoice(invoice_id: str, session: InvoiceSession = Depends(get_session)):
    invoice = session.store.get(invoice_id)
    if invoice is None:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice


@router.put("/{invoice_id}", response_model=Invoice)
async def update_invoice(
    invoice_id: str,
    update: InvoiceUpdate,
    session: InvoiceSession = Depends(get_session),
):
    """
    Save a manual edit of an invoice.

    Overwrites date, number, vendor, total_amount and items in one step;
    id and status are kept. Invoices still being extracted cannot be edited.
    """
    invoice = session.store.get(invoice_id)
    if invoice is None:
        raise HTTPException(status_code=404, detail="Invoice not found")
    if invoice.status == InvoiceStatus.PROCESSING:
        raise HTTPException(status_code=409, detail="Invoice is still being processed")

    updated = session.store.replace(invoice_id, update)
    logger.info("Invoice edited", invoice_id=invoice_id)
    return updated


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invoice(invoice_id: str, session: InvoiceSession = Depends(get_session)):
    """
    Delete an invoice.

    Deleting an invoice whose extraction is still running does not cancel the
    model call; its result is simply discarded when it arrives.
    """
    if not session.store.remove(invoice_id):
        raise HTTPException(status_code=404, detail="Invoice not found")
    session.previews.release(invoice_id)
    logger.info("Invoice deleted", invoice_id=invoice_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{invoice_id}/image")
async def get_invoice_image(invoice_id: str, session: InvoiceSession = Depends(get_session)):
    preview = session.previews.get(invoice_id)
    if preview is None:
        raise HTTPException(status_code=404, detail="Preview not found")
    return Response(content=preview.data, media_type=preview.content_type)
