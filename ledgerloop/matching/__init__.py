"""
LedgerLoop — Matching Engine Module

Invoice ↔ bank transaction reconciliation in two tiers.

  1. Hard match (deterministic, local):
       |transaction.amount − invoice.amount| < 0.01, compared in whole cents
       AND (invoice id inside the transaction description, case-insensitive
            OR reference number == invoice id, case-insensitive)
     Confidence 100. Greedy and order-dependent: for each Unpaid invoice in
     input order, the first unclaimed transaction that qualifies wins. No
     backtracking, no global assignment.

  2. Vibe match (fuzzy, delegated): invoices and transactions left over from
     tier 1 go to the semantic-match collaborator (Claude by default). Its
     answer is re-validated here: ids must come from the request, confidence
     must clear the policy threshold and stays below 100, and no id may be
     used twice. Any collaborator failure means "no fuzzy matches".

Final list = hard matches ++ validated fuzzy matches. No re-ranking.
"""

import json

from ledgerloop.config import (
    USE_REAL_API, HARD_MATCH_TOLERANCE, HARD_MATCH_CONFIDENCE, HARD_MATCH_REASONING
)
from ledgerloop.policy import get_policy
from ledgerloop.db import _n, save_db
from ledgerloop.ledger import confirm_match
from ledgerloop.audit import record_match


# ============================================================
# VIBE MATCH PROMPT (for Claude-powered collaborator)
# ============================================================
VIBE_MATCH_PROMPT = """You are an expert financial auditor reconciling a B2B ledger.

Task: find matches between UNPAID INVOICES and UNRECONCILED BANK TRANSACTIONS that the automated exact-match pass missed.

Matching logic:
1. Customer name: look for fuzzy matches between the invoice "customer" and the transaction "description"
   (e.g. "PT. INDO JAYA" matches "Indo Jaya Tbk" or "Transfer from I. Jaya").
2. Amount variance: small differences are acceptable (bank fees, exchange rate variance, admin fees),
   roughly 1-2% of the total. If the amount is significantly different, do NOT match unless the reference is explicit.
3. Each invoice and each transaction may appear in at most one match.

UNPAID INVOICES:
{invoices_json}

UNRECONCILED TRANSACTIONS:
{transactions_json}

Respond ONLY with a JSON array:
[{{"invoiceId": "INV-1", "transactionId": "TXN-9", "confidence": 82, "reasoning": "Customer name match with $5 fee variance"}}]

Only return matches with confidence > {min_confidence:g}. Confidence 100 is reserved; use at most 99.
If nothing matches: []"""

FUZZY_MAX_CONFIDENCE = HARD_MATCH_CONFIDENCE - 1


# ============================================================
# HARD MATCH
# ============================================================
def _is_hard_match(invoice: dict, txn: dict) -> bool:
    if abs(round(_n(txn.get("amount")) * 100) - round(_n(invoice.get("amount")) * 100)) >= round(HARD_MATCH_TOLERANCE * 100):
        return False
    inv_id = str(invoice.get("id") or "").lower()
    if not inv_id:
        return False
    id_in_desc = inv_id in str(txn.get("description") or "").lower()
    ref = str(txn.get("referenceNumber") or "").lower()
    return id_in_desc or ref == inv_id


def run_hard_match(invoices: list, transactions: list) -> tuple:
    """Deterministic first-match-wins pairing.

    Returns (suggestions, remaining_invoices, remaining_transactions); the
    remainders are the Unpaid invoices and unreconciled transactions nobody
    claimed, in input order.
    """
    open_inv = [i for i in invoices if i.get("status") == "Unpaid"]
    open_txn = [t for t in transactions if not t.get("isReconciled")]

    suggestions, claimed_inv, claimed_txn = [], set(), set()
    for inv in open_inv:
        if inv["id"] in claimed_inv:
            continue
        match = next((t for t in open_txn
                      if t["id"] not in claimed_txn and _is_hard_match(inv, t)), None)
        if match:
            suggestions.append({"invoiceId": inv["id"], "transactionId": match["id"],
                "confidence": HARD_MATCH_CONFIDENCE, "reasoning": HARD_MATCH_REASONING,
                "source": "hard"})
            claimed_inv.add(inv["id"])
            claimed_txn.add(match["id"])

    remaining_inv = [i for i in open_inv if i["id"] not in claimed_inv]
    remaining_txn = [t for t in open_txn if t["id"] not in claimed_txn]
    return suggestions, remaining_inv, remaining_txn


# ============================================================
# VIBE MATCH — request, collaborator, validation
# ============================================================
def build_fuzzy_request(invoices: list, transactions: list, policy: dict = None) -> dict:
    """Bounded payload for the semantic-match collaborator."""
    policy = policy or get_policy()
    return {
        "reducedInvoices": [{"id": i["id"], "customer": i.get("customerName", ""), "amount": _n(i.get("amount"))}
                            for i in invoices[:policy["fuzzy_max_invoices"]]],
        "reducedTransactions": [{"id": t["id"], "description": t.get("description", ""),
                                 "amount": _n(t.get("amount")), "reference": t.get("referenceNumber", "")}
                                for t in transactions[:policy["fuzzy_max_transactions"]]],
    }


async def vibe_match_with_claude(request: dict) -> list:
    """Default semantic-match collaborator. Raises on any API or parse failure."""
    from ledgerloop.ai import call_claude_json

    prompt = VIBE_MATCH_PROMPT.format(
        invoices_json=json.dumps(request["reducedInvoices"], indent=2),
        transactions_json=json.dumps(request["reducedTransactions"], indent=2),
        min_confidence=get_policy()["fuzzy_min_confidence"])
    return await call_claude_json(prompt, "VibeMatch")


def validate_fuzzy_matches(response, request: dict, min_confidence: float) -> list:
    """Keep only collaborator pairs that are safe to show.

    Dropped: non-objects, ids outside the request, non-numeric confidence,
    confidence at or below the threshold, and pairs reusing an id.
    """
    if not isinstance(response, list):
        print(f"[Match] Vibe match returned {type(response).__name__}, expected list — ignoring")
        return []

    inv_ids = {i["id"] for i in request["reducedInvoices"]}
    txn_ids = {t["id"] for t in request["reducedTransactions"]}
    used_inv, used_txn = set(), set()
    approved, dropped = [], 0

    for item in response:
        if not isinstance(item, dict):
            dropped += 1; continue
        inv_id, txn_id = item.get("invoiceId"), item.get("transactionId")
        if not isinstance(inv_id, str) or not isinstance(txn_id, str):
            dropped += 1; continue
        if inv_id not in inv_ids or txn_id not in txn_ids:
            dropped += 1; continue
        if inv_id in used_inv or txn_id in used_txn:
            dropped += 1; continue

        conf = item.get("confidence")
        if isinstance(conf, bool) or not isinstance(conf, (int, float)):
            dropped += 1; continue
        if not conf > min_confidence:
            dropped += 1; continue

        approved.append({"invoiceId": inv_id, "transactionId": txn_id,
            "confidence": min(conf, FUZZY_MAX_CONFIDENCE),
            "reasoning": str(item.get("reasoning") or "AI match"),
            "source": "fuzzy"})
        used_inv.add(inv_id)
        used_txn.add(txn_id)

    if dropped:
        print(f"[Match] Discarded {dropped} of {len(response)} vibe match candidates")
    return approved


# ============================================================
# COORDINATOR
# ============================================================
async def get_reconciliation_suggestions(invoices: list, transactions: list, collaborator=None) -> list:
    """Hard matches, then validated fuzzy matches for the leftovers.

    `collaborator` is any async callable taking the request dict and returning
    a list of {invoiceId, transactionId, confidence, reasoning}. Defaults to
    Claude when an API key is configured.
    """
    hard, rem_inv, rem_txn = run_hard_match(invoices, transactions)
    if not rem_inv or not rem_txn:
        return hard

    policy = get_policy()
    if not policy["fuzzy_matching_enabled"]:
        return hard
    if collaborator is None:
        if not USE_REAL_API:
            print("[Match] ANTHROPIC_API_KEY not configured — returning hard matches only")
            return hard
        collaborator = vibe_match_with_claude

    request = build_fuzzy_request(rem_inv, rem_txn, policy)
    try:
        response = await collaborator(request)
    except Exception as e:
        print(f"[Match] Vibe match failed ({type(e).__name__}: {e}) — returning hard matches only")
        return hard

    fuzzy = validate_fuzzy_matches(response, request, policy["fuzzy_min_confidence"])

    # The ledger may have moved while the collaborator was thinking
    live_inv = {i["id"] for i in invoices if i.get("status") == "Unpaid"}
    live_txn = {t["id"] for t in transactions if not t.get("isReconciled")}
    return [s for s in hard + fuzzy
            if s["invoiceId"] in live_inv and s["transactionId"] in live_txn]


async def reconcile(db: dict, collaborator=None) -> list:
    """Run a full matching pass over the current ledger."""
    return await get_reconciliation_suggestions(db["invoices"], db["transactions"], collaborator)


def summarize_suggestions(suggestions: list) -> dict:
    return {"total": len(suggestions),
            "hard": sum(1 for s in suggestions if s.get("source") == "hard"),
            "fuzzy": sum(1 for s in suggestions if s.get("source") == "fuzzy")}


# ============================================================
# CONFIRMATION
# ============================================================
def confirm_and_record(db: dict, invoice_id: str, transaction_id: str, user: str = None) -> dict:
    """Apply a confirmed pairing and audit it. A no-op confirmation leaves no audit entry."""
    applied = confirm_match(db, invoice_id, transaction_id)
    if not applied:
        return {"success": False, "auditEntry": None}
    entry = record_match(db, invoice_id, transaction_id, user)
    save_db(db)
    return {"success": True, "auditEntry": entry}


def prune_suggestions(suggestions: list, invoice_id: str, transaction_id: str) -> list:
    """Drop suggestions that name either side of a just-confirmed pair."""
    return [s for s in suggestions
            if s.get("invoiceId") != invoice_id and s.get("transactionId") != transaction_id]
