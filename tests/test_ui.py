"""
Tests for the server-rendered table and edit form.
"""

import io

from fastapi.testclient import TestClient

from conftest import FakeExtractor, completed_invoice
from invoice_assistant.api.main import app
from invoice_assistant.api.routers.ui import parse_float, parse_int
from invoice_assistant.models.invoice import InvoiceItem, InvoiceStatus, new_placeholder
from invoice_assistant.services.gemini_extractor import ExtractionError

client = TestClient(app)


def test_index_empty_table(use_session):
    use_session()
    r = client.get("/")
    assert r.status_code == 200
    assert "尚未上傳任何發票" in r.text
    assert "複製表格" not in r.text


def test_index_lists_invoices_and_refreshes_while_processing(use_session):
    session = use_session()
    session.store.insert_front(completed_invoice("abc", vendor="<b>全家</b>"))
    session.store.insert_front(new_placeholder("busy"))

    r = client.get("/")
    assert r.status_code == 200
    assert "共 2 張發票" in r.text
    assert "&lt;b&gt;全家&lt;/b&gt;" in r.text
    assert 'http-equiv="refresh"' in r.text
    assert "/invoices/abc/edit" in r.text
    assert "/invoices/busy/edit" not in r.text


def test_index_without_processing_does_not_refresh(use_session):
    session = use_session()
    session.store.insert_front(completed_invoice("abc"))

    r = client.get("/")
    assert 'http-equiv="refresh"' not in r.text


def test_upload_from_page_redirects_home(use_session):
    session = use_session()

    r = client.post(
        "/upload",
        files=[("files", ("a.jpg", io.BytesIO(b"jpeg"), "image/jpeg"))],
        follow_redirects=False,
    )
    assert r.status_code == 303
    assert r.headers["location"] == "/"
    assert session.store.list_all()[0].status == InvoiceStatus.COMPLETED


def test_upload_from_page_forwards_zero_byte_file(use_session):
    session = use_session(FakeExtractor(ExtractionError("empty image")))

    r = client.post(
        "/upload",
        files=[("files", ("empty.jpg", io.BytesIO(b""), "image/jpeg"))],
        follow_redirects=False,
    )
    assert r.status_code == 303
    assert session.orchestrator.extractor.calls == [(b"", "image/jpeg")]
    invoices = session.store.list_all()
    assert len(invoices) == 1
    assert invoices[0].status == InvoiceStatus.ERROR


def test_edit_form_shows_copy_of_invoice(use_session):
    session = use_session()
    session.store.insert_front(completed_invoice("abc"))

    r = client.get("/invoices/abc/edit")
    assert r.status_code == 200
    assert 'value="測試商店"' in r.text
    assert 'value="150"' in r.text
    assert 'value="咖啡"' in r.text


def test_edit_form_for_processing_invoice_goes_home(use_session):
    session = use_session()
    session.store.insert_front(new_placeholder("busy"))

    r = client.get("/invoices/busy/edit", follow_redirects=False)
    assert r.status_code == 303


def test_save_edit_coerces_numbers(use_session):
    session = use_session()
    session.store.insert_front(completed_invoice(
        "abc",
        items=[InvoiceItem(name="咖啡", quantity=1, price=150), InvoiceItem(name="蛋糕", quantity=1, price=80)],
    ))

    r = client.post(
        "/invoices/abc/edit",
        data={
            "date": "2024/05/03",
            "number": "AB12345678",
            "vendor": "新商店",
            "total_amount": "abc",
            "item_name": ["咖啡", "蛋糕"],
            "item_quantity": ["3", "many"],
            "item_price": ["45.5", ""],
        },
        follow_redirects=False,
    )
    assert r.status_code == 303

    invoice = session.store.get("abc")
    assert invoice.id == "abc"
    assert invoice.status == InvoiceStatus.COMPLETED
    assert invoice.vendor == "新商店"
    assert invoice.total_amount == 0
    assert [(i.name, i.quantity, i.price) for i in invoice.items] == [("咖啡", 3, 45.5), ("蛋糕", 0, 0)]


def test_cancel_edit_leaves_store_untouched(use_session):
    session = use_session()
    session.store.insert_front(completed_invoice("abc"))
    before = session.store.get("abc")

    client.get("/invoices/abc/edit")
    client.get("/")

    assert session.store.get("abc") == before


def test_delete_from_page(use_session):
    session = use_session()
    session.store.insert_front(completed_invoice("abc"))

    r = client.post("/invoices/abc/delete", follow_redirects=False)
    assert r.status_code == 303
    assert session.store.get("abc") is None

    # Deleting twice is harmless
    r = client.post("/invoices/abc/delete", follow_redirects=False)
    assert r.status_code == 303


def test_form_number_parsing():
    assert parse_float("12.5") == 12.5
    assert parse_float("") == 0
    assert parse_float(None) == 0
    assert parse_int("3.9") == 3
    assert parse_int("x") == 0
