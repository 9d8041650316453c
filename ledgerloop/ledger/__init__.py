"""
LedgerLoop — Ledger Store

In-memory invoice and transaction collections and their mutations.

  - append_invoices / append_transactions: additive merge, no de-duplication
  - confirm_match: invoice → Paid, transaction → reconciled, together or not at all
  - replace_ledger / reset_ledger: demo data load and reset
  - filter_invoices / ledger_summary: read-side helpers for the reconciliation
    view and the dashboard

Single writer. Every mutation is synchronous, so a confirmation is never
interleaved with another mutation.
"""

import uuid
from datetime import datetime

from ledgerloop.config import INVOICE_STATUSES
from ledgerloop.db import _n


# ============================================================
# RECORD NORMALIZATION
# ============================================================
def to_invoice_record(raw: dict) -> dict:
    """Normalize an incoming invoice (upload, sync, extraction) into a ledger record."""
    status = raw.get("status")
    if status not in INVOICE_STATUSES:
        status = "Unpaid"
    record = {
        "id": str(raw.get("id") or "").strip() or str(uuid.uuid4())[:8].upper(),
        "customerName": raw.get("customerName") or raw.get("customer_name") or "Unknown",
        "amount": round(_n(raw.get("amount")), 2),
        "dueDate": str(raw.get("dueDate") or raw.get("due_date") or ""),
        "status": status,
    }
    if raw.get("description"):
        record["description"] = str(raw["description"])
    return record


def to_transaction_record(raw: dict) -> dict:
    """Normalize an incoming bank transaction into a ledger record."""
    record = {
        "id": str(raw.get("id") or "").strip() or str(uuid.uuid4())[:8].upper(),
        "date": str(raw.get("date") or ""),
        "description": str(raw.get("description") or ""),
        "amount": round(_n(raw.get("amount")), 2),
        "referenceNumber": str(raw.get("referenceNumber") or raw.get("reference") or ""),
        "isReconciled": raw.get("isReconciled") is True,
    }
    if record["isReconciled"] and raw.get("matchedInvoiceId"):
        record["matchedInvoiceId"] = str(raw["matchedInvoiceId"])
    return record


# ============================================================
# MUTATIONS
# ============================================================
def append_invoices(db: dict, invoices: list) -> list:
    """Append invoices. Existing entries are left untouched. Returns the added records."""
    added = [to_invoice_record(i) for i in invoices]
    db["invoices"].extend(added)
    return added


def append_transactions(db: dict, transactions: list) -> list:
    """Append bank transactions. Returns the added records."""
    added = [to_transaction_record(t) for t in transactions]
    db["transactions"].extend(added)
    return added


def confirm_match(db: dict, invoice_id: str, transaction_id: str) -> bool:
    """Mark the invoice Paid and the transaction reconciled against it.

    No-op (returns False) unless both ids name a live record: an invoice that
    is not yet Paid and a transaction that is not yet reconciled.
    """
    inv = next((i for i in db["invoices"]
                if i["id"] == invoice_id and i.get("status") != "Paid"), None)
    txn = next((t for t in db["transactions"]
                if t["id"] == transaction_id and not t.get("isReconciled")), None)
    if inv is None or txn is None:
        print(f"[Ledger] Ignoring confirmation {invoice_id} ↔ {transaction_id}: "
              f"{'invoice' if inv is None else 'transaction'} not open")
        return False

    now = datetime.now().isoformat()
    inv["status"] = "Paid"; inv["paidAt"] = now
    txn["isReconciled"] = True; txn["matchedInvoiceId"] = inv["id"]; txn["reconciledAt"] = now
    return True


def replace_ledger(db: dict, invoices: list, transactions: list):
    """Swap in a whole new dataset (demo data). Audit history is kept."""
    db["invoices"] = [to_invoice_record(i) for i in invoices]
    db["transactions"] = [to_transaction_record(t) for t in transactions]


def reset_ledger(db: dict):
    db["invoices"] = []
    db["transactions"] = []
    db["scanned_invoices"] = []


# ============================================================
# QUERIES
# ============================================================
def open_invoices(db: dict) -> list:
    return [i for i in db["invoices"] if i.get("status") == "Unpaid"]


def unreconciled_transactions(db: dict) -> list:
    return [t for t in db["transactions"] if not t.get("isReconciled")]


def filter_invoices(invoices: list, search: str = "", status: str = "Unpaid",
                    sort: str = "date-asc") -> list:
    """Reconciliation view: never shows Paid invoices."""
    needle = (search or "").lower()
    rows = [i for i in invoices
            if i.get("status") != "Paid"
            and (status == "all" or i.get("status") == status)
            and (needle in (i.get("customerName") or "").lower() or needle in i["id"].lower())]

    if sort == "date-asc":
        rows.sort(key=lambda i: i.get("dueDate") or "")
    elif sort == "date-desc":
        rows.sort(key=lambda i: i.get("dueDate") or "", reverse=True)
    elif sort == "amount-desc":
        rows.sort(key=lambda i: i["amount"], reverse=True)
    elif sort == "amount-asc":
        rows.sort(key=lambda i: i["amount"])
    return rows


def ledger_summary(db: dict) -> dict:
    """Dashboard metrics: cash position, receivables, reconciliation health, trend."""
    invoices, transactions = db["invoices"], db["transactions"]
    reconciled = [t for t in transactions if t.get("isReconciled")]
    unpaid = [i for i in invoices if i.get("status") == "Unpaid"]

    health = round(len(reconciled) / len(transactions) * 100) if transactions else 0

    dates = sorted({d for d in [i.get("dueDate") for i in invoices] + [t.get("date") for t in transactions] if d})
    trend = [{"date": d,
              "invoiced": round(sum(i["amount"] for i in invoices if i.get("dueDate") == d), 2),
              "collected": round(sum(t["amount"] for t in reconciled if t.get("date") == d), 2)}
             for d in dates]

    return {
        "cash_position": round(sum(t["amount"] for t in reconciled), 2),
        "outstanding_receivables": round(sum(i["amount"] for i in unpaid), 2),
        "reconciliation_health": health,
        "invoice_count": len(invoices), "unpaid_count": len(unpaid),
        "transaction_count": len(transactions), "reconciled_count": len(reconciled),
        "unreconciled_count": len(transactions) - len(reconciled),
        "trend": trend,
    }
