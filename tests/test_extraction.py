import asyncio

import ledgerloop.extraction
from ledgerloop.extraction import (
    normalize_scanned_invoice, parse_invoice_document, to_ledger_invoice, _content_block,
)


def test_normalize_keeps_valid_reply():
    scanned = normalize_scanned_invoice({"id": "INV-7", "customerName": "Acme", "amount": "1200.50",
                                         "dueDate": "2024-11-01", "confidence": "high", "issue": None})
    assert scanned == {"id": "INV-7", "customerName": "Acme", "amount": 1200.5, "dueDate": "2024-11-01",
                       "status": "Unpaid", "confidence": "high"}


def test_normalize_downgrades_unknown_confidence():
    scanned = normalize_scanned_invoice({"id": "INV-7", "amount": 5, "confidence": "certain",
                                         "issue": "Image is blurry"})
    assert scanned["confidence"] == "low"
    assert scanned["issue"] == "Image is blurry"


def test_normalize_rejects_unusable_replies():
    assert normalize_scanned_invoice(["INV-7"]) is None
    assert normalize_scanned_invoice({"amount": 5}) is None
    assert normalize_scanned_invoice({"id": "INV-7", "amount": "twelve"}) is None
    assert normalize_scanned_invoice({"id": "INV-7", "amount": True}) is None


def test_demo_record_without_api_key():
    scanned = asyncio.run(parse_invoice_document(b"%PDF", "inv.pdf", "application/pdf"))
    assert scanned["confidence"] == "medium"
    assert scanned["issue"] == "Demo Mode: API Key missing"
    assert scanned["status"] == "Unpaid"


def test_extraction_with_collaborator(monkeypatch):
    seen = {}

    async def fake_call(prompt, label, content_blocks=None, system=None, client=None):
        seen["blocks"] = content_blocks
        return {"id": "INV-42", "customerName": "Omega", "amount": 99.9, "dueDate": "2024-12-01",
                "confidence": "medium"}

    monkeypatch.setattr(ledgerloop.extraction, "USE_REAL_API", True)
    monkeypatch.setattr(ledgerloop.extraction, "call_claude_json", fake_call)
    scanned = asyncio.run(parse_invoice_document(b"\x89PNG", "scan.png", "image/png"))
    assert scanned["id"] == "INV-42"
    assert seen["blocks"][0]["type"] == "image"


def test_extraction_failure_returns_none(monkeypatch):
    async def failing_call(*args, **kwargs):
        raise ValueError("not json")

    monkeypatch.setattr(ledgerloop.extraction, "USE_REAL_API", True)
    monkeypatch.setattr(ledgerloop.extraction, "call_claude_json", failing_call)
    assert asyncio.run(parse_invoice_document(b"...", "scan.pdf", "application/pdf")) is None


def test_content_block_types():
    assert _content_block(b"x", "application/pdf")["type"] == "document"
    assert _content_block(b"x", "image/tiff")["source"]["media_type"] == "image/png"


def test_to_ledger_invoice_strips_review_fields():
    invoice = to_ledger_invoice({"id": "I", "customerName": "C", "amount": 1.0, "dueDate": "",
                                 "status": "Unpaid", "confidence": "low", "issue": "cut off"})
    assert "confidence" not in invoice and "issue" not in invoice
