import json

import pytest
from fastapi.testclient import TestClient

from ledgerloop.server import app


@pytest.fixture
def client():
    return TestClient(app)


def post_ledger(client):
    client.post("/api/invoices", data={"invoices": json.dumps([
        {"id": "INV-1", "customerName": "Alpha", "amount": 100.0, "dueDate": "2024-10-15"},
        {"id": "INV-2", "customerName": "Beta", "amount": 50.0, "dueDate": "2024-10-18"},
    ])})
    client.post("/api/transactions", data={"transactions": json.dumps([
        {"id": "T1", "date": "2024-10-16", "description": "PAYMENT INV-1", "amount": 100.0},
        {"id": "T2", "date": "2024-10-23", "description": "Fee", "amount": 150.0},
        {"id": "T3", "date": "2024-10-23", "description": "Fee", "amount": 150.0},
    ])})


def test_health(client):
    body = client.get("/api/health").json()
    assert body["status"] == "ok"


def test_add_and_list_ledger(client):
    post_ledger(client)
    assert client.get("/api/invoices").json()["count"] == 2
    assert client.get("/api/transactions", params={"unreconciled": True}).json()["count"] == 3


def test_bad_json_form_field_is_rejected(client):
    r = client.post("/api/invoices", data={"invoices": "{not json"})
    assert r.status_code == 400
    r = client.post("/api/transactions", data={"transactions": json.dumps({"id": "T1"})})
    assert r.status_code == 400


def test_invoice_filters(client):
    post_ledger(client)
    r = client.get("/api/invoices", params={"status": "all", "sort": "amount-asc"})
    assert [i["id"] for i in r.json()["invoices"]] == ["INV-2", "INV-1"]
    assert client.get("/api/invoices", params={"sort": "random"}).status_code == 400
    assert client.get("/api/invoices", params={"status": "Paid"}).status_code == 400


def test_reconcile_confirm_and_audit(client):
    post_ledger(client)
    body = client.post("/api/reconcile").json()
    assert body["summary"] == {"total": 1, "hard": 1, "fuzzy": 0}
    suggestion = body["suggestions"][0]
    assert (suggestion["invoiceId"], suggestion["transactionId"], suggestion["confidence"]) == ("INV-1", "T1", 100)

    r = client.post("/api/matches/confirm",
                    data={"invoice_id": "INV-1", "transaction_id": "T1",
                          "suggestions": json.dumps(body["suggestions"])},
                    headers={"X-User-Name": "Dana"})
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert r.json()["remainingSuggestions"] == []

    log = client.get("/api/audit-log").json()["entries"]
    assert len(log) == 1
    assert log[0]["user"] == "Dana"

    again = client.post("/api/matches/confirm", data={"invoice_id": "INV-1", "transaction_id": "T2"})
    assert again.status_code == 200
    assert again.json()["success"] is False
    assert client.get("/api/audit-log").json()["count"] == 1


def test_anomalies_and_dashboard(client):
    post_ledger(client)
    anomalies = client.get("/api/anomalies").json()
    assert anomalies["flaggedTransactionIds"] == ["T2", "T3"]
    dash = client.get("/api/dashboard").json()
    assert dash["invoice_count"] == 2
    assert len(dash["anomalies"]) == 1


def test_scan_review_queue(client):
    r = client.post("/api/invoices/scan", files={"file": ("invoice.pdf", b"%PDF-1.4", "application/pdf")})
    assert r.json()["success"] is True
    assert client.get("/api/invoices/scanned").json()["count"] == 1

    r = client.post("/api/invoices/scanned/0/approve",
                    data={"fields": json.dumps({"customerName": "Corrected Ltd"})})
    invoice = r.json()["invoice"]
    assert invoice["customerName"] == "Corrected Ltd"
    assert "confidence" not in invoice
    assert client.get("/api/invoices/scanned").json()["count"] == 0
    assert client.get("/api/invoices").json()["count"] == 1

    assert client.delete("/api/invoices/scanned/0").status_code == 404


def test_erp_sync(client):
    assert client.post("/api/erp/netsuite/sync").json()["count"] == 2
    assert client.post("/api/erp/netsuite/sync").json()["count"] == 0
    assert client.post("/api/erp/quickbooks/sync").status_code == 400


def test_chat_todo_and_demo_data(client):
    assert client.post("/api/chat", data={"message": "hello"}).json()["text"]
    assert len(client.post("/api/todo").json()["tasks"]) == 3

    body = client.post("/api/demo-data").json()
    assert body == {"success": True, "source": "fallback", "invoices": 6, "transactions": 6}
    reconcile = client.post("/api/reconcile").json()
    assert [s["invoiceId"] for s in reconcile["suggestions"]] == ["INV-2024-001"]


def test_policy_roundtrip(client):
    r = client.post("/api/policy", data={"policy": json.dumps({"fuzzy_min_confidence": 70})})
    assert r.json()["policy"]["fuzzy_min_confidence"] == 70
    assert client.get("/api/policy").json()["policy"]["fuzzy_min_confidence"] == 70


def test_reset_and_export(client):
    post_ledger(client)
    assert len(client.get("/api/export").json()["invoices"]) == 2
    client.post("/api/matches/confirm", data={"invoice_id": "INV-1", "transaction_id": "T1"})
    client.post("/api/reset")
    exported = client.get("/api/export").json()
    assert exported["invoices"] == [] and exported["transactions"] == []
    assert exported["scanned_invoices"] == []
    assert [e["details"] for e in exported["audit_log"]] == ["Reconciled Invoice INV-1 against Transaction T1"]
