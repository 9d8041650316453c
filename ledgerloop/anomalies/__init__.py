"""
LedgerLoop — Anomaly Detection Module

Duplicate-charge detection over unreconciled bank transactions.

Rule:
  DUPLICATE_TRANSACTION — two or more unreconciled transactions share the
  exact same (date, amount). Every member of the group is reported, not just
  the extras. No near-amount or cross-date matching.

Groups come back in the order their first member appears in the input.
"""

from ledgerloop.db import _n


def detect_duplicate_transactions(transactions: list) -> list:
    """Group unreconciled transactions by exact (date, amount); return groups of size > 1."""
    groups = {}
    for t in transactions:
        if t.get("isReconciled"):
            continue
        groups.setdefault((t.get("date"), t.get("amount")), []).append(t)

    return [{"type": "DUPLICATE_TRANSACTION",
             "date": date, "amount": amount,
             "count": len(members),
             "transactionIds": [m["id"] for m in members],
             "transactions": members,
             "description": f"{len(members)} unreconciled transactions on {date} for {_n(amount):,.2f}. Possible duplicate charge."}
            for (date, amount), members in groups.items() if len(members) > 1]


def flag_duplicate_transactions(transactions: list) -> list:
    """Flattened member list, group by group."""
    return [t for g in detect_duplicate_transactions(transactions) for t in g["transactions"]]
