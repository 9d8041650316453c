"""
LedgerLoop — AI-Assisted Invoice ↔ Bank Reconciliation
FastAPI routing layer. All business logic lives in the ledgerloop.* modules.
"""

import os, json
from pathlib import Path

from fastapi import FastAPI, UploadFile, File, Form, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from ledgerloop.config import (
    USE_REAL_API, PERSIST_DATA, VERSION, DEFAULT_USER, NAVIGATION_DELAY_MS,
    ERP_PROVIDERS, INVOICE_SORTS, INVOICE_STATUS_FILTERS,
)
from ledgerloop.db import get_db, save_db
from ledgerloop.policy import get_policy, update_policy
from ledgerloop.ledger import (
    append_invoices, append_transactions, replace_ledger, reset_ledger, filter_invoices,
    unreconciled_transactions, ledger_summary,
)
from ledgerloop.anomalies import detect_duplicate_transactions, flag_duplicate_transactions
from ledgerloop.audit import get_audit_log
from ledgerloop.matching import reconcile, summarize_suggestions, confirm_and_record, prune_suggestions
from ledgerloop.extraction import parse_invoice_document, to_ledger_invoice
from ledgerloop.erp import sync_erp_invoices
from ledgerloop.assistant import get_chat_response, generate_smart_todo, generate_demo_data, chat_context

app = FastAPI(title="LedgerLoop", version=VERSION)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_credentials=True, allow_methods=["*"], allow_headers=["*"])

MEDIA_TYPES = {".pdf": "application/pdf", ".jpg": "image/jpeg", ".jpeg": "image/jpeg",
               ".png": "image/png", ".webp": "image/webp", ".gif": "image/gif"}


def _json_form(raw: str, field: str, expected: type):
    """Decode a JSON-encoded form field or fail with 400."""
    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        raise HTTPException(400, f"Invalid JSON in {field} parameter")
    if not isinstance(value, expected):
        raise HTTPException(400, f"{field} must be a JSON {expected.__name__}")
    return value


def _scan_entry(db, index: int) -> dict:
    queue = db["scanned_invoices"]
    if index < 0 or index >= len(queue):
        raise HTTPException(404, "Scanned invoice not found")
    return queue[index]


# ============================================================
# HEALTH
# ============================================================
@app.get("/api/health")
async def health():
    return {"status": "ok", "version": VERSION,
            "ai": "connected" if USE_REAL_API else "demo", "persist": PERSIST_DATA}


# ============================================================
# LEDGER
# ============================================================
@app.get("/api/invoices")
async def list_invoices(search: str = "", status: str = None, sort: str = None):
    db = get_db()
    if status is None and sort is None and not search:
        return {"invoices": db["invoices"], "count": len(db["invoices"])}
    status = status or "Unpaid"
    sort = sort or "date-asc"
    if status not in INVOICE_STATUS_FILTERS:
        raise HTTPException(400, f"Invalid status filter. Must be one of: {list(INVOICE_STATUS_FILTERS)}")
    if sort not in INVOICE_SORTS:
        raise HTTPException(400, f"Invalid sort. Must be one of: {list(INVOICE_SORTS)}")
    rows = filter_invoices(db["invoices"], search, status, sort)
    return {"invoices": rows, "count": len(rows)}


@app.post("/api/invoices")
async def add_invoices(invoices: str = Form(...)):
    items = _json_form(invoices, "invoices", list)
    db = get_db()
    added = append_invoices(db, [i for i in items if isinstance(i, dict)])
    save_db(db)
    print(f"[Ledger] Added {len(added)} invoices")
    return {"success": True, "added": added, "count": len(added)}


@app.get("/api/transactions")
async def list_transactions(unreconciled: bool = False):
    db = get_db()
    rows = unreconciled_transactions(db) if unreconciled else db["transactions"]
    return {"transactions": rows, "count": len(rows)}


@app.post("/api/transactions")
async def add_transactions(transactions: str = Form(...)):
    items = _json_form(transactions, "transactions", list)
    db = get_db()
    added = append_transactions(db, [t for t in items if isinstance(t, dict)])
    save_db(db)
    print(f"[Ledger] Added {len(added)} transactions")
    return {"success": True, "added": added, "count": len(added)}


# ============================================================
# SCAN REVIEW QUEUE
# ============================================================
@app.post("/api/invoices/scan")
async def scan_invoice(file: UploadFile = File(...)):
    ct = file.content_type or "application/octet-stream"
    ext = Path(file.filename or "doc").suffix.lower()
    if ct == "application/octet-stream" and ext in MEDIA_TYPES: ct = MEDIA_TYPES[ext]

    scanned = await parse_invoice_document(await file.read(), file.filename or "document", ct)
    if scanned is None:
        return {"success": False, "message": f"No invoice data could be extracted from {file.filename}"}

    db = get_db()
    db["scanned_invoices"].append(scanned)
    save_db(db)
    return {"success": True, "scanned": scanned, "index": len(db["scanned_invoices"]) - 1}


@app.get("/api/invoices/scanned")
async def list_scanned():
    queue = get_db()["scanned_invoices"]
    return {"scanned": queue, "count": len(queue)}


@app.post("/api/invoices/scanned/{index}/approve")
async def approve_scanned(index: int, fields: str = Form(None)):
    """Move a reviewed scan into the ledger, optionally with corrected fields."""
    db = get_db()
    scanned = dict(_scan_entry(db, index))
    if fields:
        edits = _json_form(fields, "fields", dict)
        scanned.update({k: v for k, v in edits.items() if k in ("id", "customerName", "amount", "dueDate")})
    db["scanned_invoices"].pop(index)
    added = append_invoices(db, [to_ledger_invoice(scanned)])
    save_db(db)
    return {"success": True, "invoice": added[0]}


@app.delete("/api/invoices/scanned/{index}")
async def discard_scanned(index: int):
    db = get_db()
    _scan_entry(db, index)
    discarded = db["scanned_invoices"].pop(index)
    save_db(db)
    return {"success": True, "discarded": discarded}


# ============================================================
# ERP SYNC
# ============================================================
@app.post("/api/erp/{provider}/sync")
async def erp_sync(provider: str):
    if provider not in ERP_PROVIDERS:
        raise HTTPException(400, f"Unknown ERP provider. Must be one of: {list(ERP_PROVIDERS)}")
    db = get_db()
    added = await sync_erp_invoices(db, provider)
    save_db(db)
    return {"success": True, "provider": provider, "added": added, "count": len(added)}


# ============================================================
# ANOMALIES
# ============================================================
@app.get("/api/anomalies")
async def list_anomalies():
    db = get_db()
    groups = detect_duplicate_transactions(db["transactions"])
    return {"anomalies": groups,
            "flaggedTransactionIds": [t["id"] for t in flag_duplicate_transactions(db["transactions"])]}


# ============================================================
# RECONCILIATION
# ============================================================
@app.post("/api/reconcile")
async def run_reconciliation():
    db = get_db()
    suggestions = await reconcile(db)
    summary = summarize_suggestions(suggestions)
    print(f"[Match] {summary['total']} suggestions ({summary['hard']} hard, {summary['fuzzy']} fuzzy)")
    return {"suggestions": suggestions, "summary": summary}


@app.post("/api/matches/confirm")
async def confirm_pair(invoice_id: str = Form(...), transaction_id: str = Form(...),
                       suggestions: str = Form(None), x_user_name: str = Header(None)):
    db = get_db()
    result = confirm_and_record(db, invoice_id, transaction_id, x_user_name or DEFAULT_USER)
    if suggestions is not None:
        current = _json_form(suggestions, "suggestions", list)
        result["remainingSuggestions"] = prune_suggestions(
            [s for s in current if isinstance(s, dict)], invoice_id, transaction_id)
    return result


@app.get("/api/audit-log")
async def audit_log(limit: int = None):
    entries = get_audit_log(get_db(), limit)
    return {"entries": entries, "count": len(entries)}


# ============================================================
# DASHBOARD & ASSISTANT
# ============================================================
@app.get("/api/dashboard")
async def dashboard():
    db = get_db()
    return {**ledger_summary(db), "anomalies": detect_duplicate_transactions(db["transactions"])}


@app.post("/api/todo")
async def smart_todo():
    db = get_db()
    tasks = await generate_smart_todo(db["invoices"], db["transactions"])
    return {"tasks": tasks}


@app.post("/api/chat")
async def chat(message: str = Form(...), history: str = Form("[]"), view: str = Form("dashboard")):
    hist = _json_form(history, "history", list)
    reply = await get_chat_response(hist, message, chat_context(get_db(), view))
    if reply.get("navigateTo"):
        reply["navigationDelayMs"] = NAVIGATION_DELAY_MS
    return reply


@app.post("/api/demo-data")
async def load_demo_data():
    data = await generate_demo_data()
    db = get_db()
    replace_ledger(db, data["invoices"], data["transactions"])
    save_db(db)
    print(f"[Demo] Loaded {len(db['invoices'])} invoices, {len(db['transactions'])} transactions ({data['source']})")
    return {"success": True, "source": data["source"],
            "invoices": len(db["invoices"]), "transactions": len(db["transactions"])}


# ============================================================
# POLICY
# ============================================================
@app.get("/api/policy")
async def read_policy():
    return {"policy": get_policy()}


@app.post("/api/policy")
async def write_policy(policy: str = Form(...)):
    updates = _json_form(policy, "policy", dict)
    return {"success": True, "policy": update_policy(updates)}


# ============================================================
# ADMIN
# ============================================================
@app.post("/api/reset")
async def reset_all():
    """Clear invoices, transactions and the scan queue. The audit log is kept."""
    db = get_db()
    reset_ledger(db)
    save_db(db)
    print("[DB] Ledger reset")
    return {"success": True}


@app.get("/api/export")
async def export_all():
    return get_db()


if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    print(f"Starting LedgerLoop v{VERSION} on port {port}")
    print(f"Claude API: {'Connected' if USE_REAL_API else 'Demo Mode'}")
    uvicorn.run(app, host="0.0.0.0", port=port)
