from ledgerloop.ledger import (
    to_invoice_record, to_transaction_record, append_invoices, append_transactions,
    confirm_match, replace_ledger, reset_ledger, filter_invoices, ledger_summary,
)


def seed(db):
    append_invoices(db, [
        {"id": "INV-1", "customerName": "Alpha", "amount": 100, "dueDate": "2024-10-20"},
        {"id": "INV-2", "customerName": "Beta", "amount": 300, "dueDate": "2024-10-10"},
        {"id": "INV-3", "customerName": "Gamma", "amount": 200, "dueDate": "2024-10-15", "status": "Pending"},
    ])
    append_transactions(db, [
        {"id": "T1", "date": "2024-10-20", "description": "INV-1", "amount": 100},
        {"id": "T2", "date": "2024-10-21", "description": "misc", "amount": 40},
    ])


def test_invoice_record_defaults():
    record = to_invoice_record({"customer_name": "Acme", "amount": "12.5", "due_date": "2024-01-01",
                                "status": "Overdue"})
    assert record["customerName"] == "Acme"
    assert record["amount"] == 12.5
    assert record["dueDate"] == "2024-01-01"
    assert record["status"] == "Unpaid"
    assert len(record["id"]) == 8


def test_transaction_record_accepts_reference_alias():
    record = to_transaction_record({"id": "T1", "amount": 5, "reference": "R-1"})
    assert record["referenceNumber"] == "R-1"
    assert record["isReconciled"] is False
    assert "matchedInvoiceId" not in record


def test_transaction_record_only_trusts_a_real_true():
    assert to_transaction_record({"id": "T1", "amount": 5, "isReconciled": "false"})["isReconciled"] is False
    assert to_transaction_record({"id": "T2", "amount": 5, "isReconciled": 1})["isReconciled"] is False
    record = to_transaction_record({"id": "T3", "amount": 5, "isReconciled": True, "matchedInvoiceId": "INV-1"})
    assert record["isReconciled"] is True and record["matchedInvoiceId"] == "INV-1"


def test_append_keeps_existing_entries(db):
    seed(db)
    append_invoices(db, [{"id": "INV-1", "customerName": "Alpha again", "amount": 1}])
    assert [i["id"] for i in db["invoices"]] == ["INV-1", "INV-2", "INV-3", "INV-1"]
    assert db["invoices"][0]["customerName"] == "Alpha"


def test_confirm_match_settles_both_sides(db):
    seed(db)
    assert confirm_match(db, "INV-1", "T1") is True
    assert db["invoices"][0]["status"] == "Paid"
    assert "paidAt" in db["invoices"][0]
    assert db["transactions"][0]["matchedInvoiceId"] == "INV-1"
    assert db["transactions"][0]["isReconciled"] is True


def test_confirm_match_on_paid_invoice_changes_nothing(db):
    seed(db)
    confirm_match(db, "INV-1", "T1")
    before = ([dict(i) for i in db["invoices"]], [dict(t) for t in db["transactions"]])

    assert confirm_match(db, "INV-1", "T2") is False
    assert confirm_match(db, "INV-2", "T1") is False
    assert confirm_match(db, "NOPE", "T2") is False
    assert (db["invoices"], db["transactions"]) == before


def test_replace_and_reset_keep_audit_log(db):
    seed(db)
    db["audit_log"].append({"id": "a"})
    replace_ledger(db, [{"id": "N1", "amount": 1}], [])
    assert [i["id"] for i in db["invoices"]] == ["N1"]
    assert db["transactions"] == []
    reset_ledger(db)
    assert db["invoices"] == [] and db["scanned_invoices"] == []
    assert db["audit_log"] == [{"id": "a"}]


def test_filter_invoices_hides_paid_and_sorts(db):
    seed(db)
    confirm_match(db, "INV-1", "T1")
    assert [i["id"] for i in filter_invoices(db["invoices"], status="all")] == ["INV-2", "INV-3"]
    assert [i["id"] for i in filter_invoices(db["invoices"], status="Unpaid")] == ["INV-2"]
    assert [i["id"] for i in filter_invoices(db["invoices"], status="all", sort="amount-asc")] == ["INV-3", "INV-2"]
    assert [i["id"] for i in filter_invoices(db["invoices"], search="gam", status="all")] == ["INV-3"]


def test_ledger_summary(db):
    seed(db)
    confirm_match(db, "INV-1", "T1")
    summary = ledger_summary(db)
    assert summary["cash_position"] == 100
    assert summary["outstanding_receivables"] == 300
    assert summary["reconciliation_health"] == 50
    assert summary["unreconciled_count"] == 1
    assert {"date": "2024-10-20", "invoiced": 100, "collected": 100} in summary["trend"]


def test_ledger_summary_empty(db):
    summary = ledger_summary(db)
    assert summary["reconciliation_health"] == 0
    assert summary["trend"] == []
