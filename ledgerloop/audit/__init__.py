"""
LedgerLoop — Audit Recorder

Append-only log of confirmed matches. Newest entry first; entries are never
edited or removed, and readers only ever get copies.

Actions:
  Match   — recorded on every applied confirmation (suggested or manual)
  Unmatch — reserved; accepted here, triggered by no flow
"""

import uuid
from datetime import datetime

from ledgerloop.config import AUDIT_ACTIONS, DEFAULT_USER


def record_entry(db: dict, action: str, details: str, user: str = None) -> dict:
    """Prepend one audit entry. Returns a copy of it."""
    if action not in AUDIT_ACTIONS:
        raise ValueError(f"Unknown audit action '{action}'. Must be one of: {', '.join(AUDIT_ACTIONS)}")
    entry = {"id": str(uuid.uuid4())[:8], "timestamp": datetime.now().isoformat(),
             "action": action, "details": details, "user": user or DEFAULT_USER}
    db["audit_log"].insert(0, entry)
    return dict(entry)


def record_match(db: dict, invoice_id: str, transaction_id: str, user: str = None) -> dict:
    return record_entry(db, "Match",
                        f"Reconciled Invoice {invoice_id} against Transaction {transaction_id}", user)


def get_audit_log(db: dict, limit: int = None) -> list:
    entries = db.get("audit_log", [])
    if limit is not None:
        entries = entries[:max(0, limit)]
    return [dict(e) for e in entries]
