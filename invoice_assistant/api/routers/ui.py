"""
Server-rendered pages: the invoice table, the upload form and the edit form.

The edit form works on a copy of the invoice; nothing in the store changes
until the form is submitted. Cancel is a plain link back to the table.
"""
from pathlib import Path

from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, Request, UploadFile, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from loguru import logger

from ..deps import InvoiceSession, get_session
from .invoice import read_uploads
from ...models.invoice import InvoiceItem, InvoiceStatus, InvoiceUpdate
from ...services.export import format_number

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["number"] = format_number

router = APIRouter(tags=["ui"])


def parse_float(value) -> float:
    """Form numbers: anything unparseable counts as 0"""
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def parse_int(value) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def update_from_form(form) -> InvoiceUpdate:
    names = form.getlist("item_name")
    quantities = form.getlist("item_quantity")
    prices = form.getlist("item_price")

    items = [
        InvoiceItem(name=name, quantity=parse_int(quantity), price=parse_float(price))
        for name, quantity, price in zip(names, quantities, prices)
    ]
    return InvoiceUpdate(
        date=form.get("date", ""),
        number=form.get("number", ""),
        vendor=form.get("vendor", ""),
        total_amount=parse_float(form.get("total_amount")),
        items=items,
    )


def _redirect_home() -> RedirectResponse:
    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/", response_class=HTMLResponse)
async def index(request: Request, session: InvoiceSession = Depends(get_session)):
    invoices = session.store.list_all()
    refresh = session.orchestrator.is_uploading or any(
        i.status == InvoiceStatus.PROCESSING for i in invoices
    )
    return templates.TemplateResponse(
        request,
        "index.html",
        {"invoices": invoices, "uploading": session.orchestrator.is_uploading, "refresh": refresh},
    )


@router.post("/upload")
async def upload_from_page(
    background_tasks: BackgroundTasks,
    files: list[UploadFile] = File(...),
    session: InvoiceSession = Depends(get_session),
):
    # A form submitted with no file chosen sends one part with an empty filename
    uploads = await read_uploads([f for f in files if f.filename])
    if uploads:
        background_tasks.add_task(session.orchestrator.handle_files, uploads)
    return _redirect_home()


@router.get("/invoices/{invoice_id}/edit", response_class=HTMLResponse)
async def edit_form(invoice_id: str, request: Request, session: InvoiceSession = Depends(get_session)):
    invoice = session.store.get(invoice_id)
    if invoice is None:
        raise HTTPException(status_code=404, detail="Invoice not found")
    if invoice.status == InvoiceStatus.PROCESSING:
        return _redirect_home()
    return templates.TemplateResponse(request, "edit.html", {"invoice": invoice})


@router.post("/invoices/{invoice_id}/edit")
async def save_edit(invoice_id: str, request: Request, session: InvoiceSession = Depends(get_session)):
    invoice = session.store.get(invoice_id)
    if invoice is None:
        raise HTTPException(status_code=404, detail="Invoice not found")
    if invoice.status == InvoiceStatus.PROCESSING:
        raise HTTPException(status_code=409, detail="Invoice is still being processed")

    form = await request.form()
    session.store.replace(invoice_id, update_from_form(form))
    logger.info("Invoice edited from form", invoice_id=invoice_id)
    return _redirect_home()


@router.post("/invoices/{invoice_id}/delete")
async def delete_from_page(invoice_id: str, session: InvoiceSession = Depends(get_session)):
    if session.store.remove(invoice_id):
        session.previews.release(invoice_id)
        logger.info("Invoice deleted from page", invoice_id=invoice_id)
    return _redirect_home()
