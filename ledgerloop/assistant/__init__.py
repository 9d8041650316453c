"""
LedgerLoop — Assistant Module

Claude-backed helpers around the ledger. None of them can change ledger
state by themselves, and each has a local fallback:

  - get_chat_response: chat reply + optional navigation directive
    (navigate_to / inspect_anomaly tools). Fallback: canned reply.
  - generate_smart_todo: 3-5 prioritized tasks from ledger state.
    Fallback: static starter list (no key) or [] (error).
  - generate_demo_data: realistic demo ledger exercising hard, fuzzy and
    variance matches plus one duplicate-charge anomaly.
    Fallback: FALLBACK_DEMO_DATA.
"""
import copy as _copy

from ledgerloop.config import USE_REAL_API, AI_PRIMARY_MODEL, AI_MAX_TOKENS, VIEWS
from ledgerloop.ai import call_claude_json, get_client
from ledgerloop.anomalies import flag_duplicate_transactions
from ledgerloop.ledger import open_invoices, unreconciled_transactions


# ============================================================
# CHAT
# ============================================================
CHAT_SYSTEM_PROMPT = """You are "Ledger Larry", the assistant inside the LedgerLoop reconciliation app.

App context:
- Current view: {view}
- Invoices: {invoice_count} ({unpaid_count} unpaid)
- Unreconciled transactions: {unreconciled_count}

Tools:
1. navigate_to(view_name) — views: {views}. Use it when the user asks to go somewhere ("go to upload", "I want to reconcile").
2. inspect_anomaly() — use it when the user asks to see problems or anomalies. Opens the dashboard.

Use the tools proactively. If no tool is needed, just reply with text.
Tone: helpful, professional, slightly witty junior accountant."""

CHAT_TOOLS = [
    {"name": "navigate_to", "description": "Navigates the application to a specific page.",
     "input_schema": {"type": "object",
                      "properties": {"view_name": {"type": "string", "enum": list(VIEWS),
                                                   "description": "The page to navigate to."}},
                      "required": ["view_name"]}},
    {"name": "inspect_anomaly", "description": "Shows detected anomalies (opens the dashboard).",
     "input_schema": {"type": "object", "properties": {}}},
]

CHAT_OFFLINE_REPLY = "I'm offline right now (no ANTHROPIC_API_KEY configured). Use the sidebar to get around."
CHAT_ERROR_REPLY = "Sorry, I'm having trouble connecting to the ledger right now."


def _to_messages(history: list, message: str) -> list:
    """UI chat history → Anthropic messages: user/assistant only, alternating, user first."""
    messages = []
    for m in (history or []) + [{"role": "user", "text": message}]:
        if not isinstance(m, dict) or m.get("isToolCall") or not m.get("text"):
            continue
        role = {"user": "user", "model": "assistant", "assistant": "assistant"}.get(m.get("role"))
        if role is None:
            continue
        if messages and messages[-1]["role"] == role:
            messages[-1]["content"] += "\n\n" + str(m["text"])
        elif messages or role == "user":
            messages.append({"role": role, "content": str(m["text"])})
    return messages


def _navigation_target(name: str, args: dict):
    if name == "navigate_to":
        view = (args or {}).get("view_name")
        return view if view in VIEWS else None
    if name == "inspect_anomaly":
        return "dashboard"
    return None


async def get_chat_response(history: list, message: str, context: dict, client=None) -> dict:
    """Reply to the user. Returns {"text", "navigateTo"?}."""
    if not USE_REAL_API and client is None:
        return {"text": CHAT_OFFLINE_REPLY}

    system = CHAT_SYSTEM_PROMPT.format(
        view=context.get("view", "dashboard"), invoice_count=context.get("invoiceCount", 0),
        unpaid_count=context.get("unpaidCount", 0), unreconciled_count=context.get("unreconciledCount", 0),
        views=", ".join(VIEWS))
    try:
        client = client or get_client()
        msg = await client.messages.create(model=AI_PRIMARY_MODEL, max_tokens=AI_MAX_TOKENS,
            system=system, tools=CHAT_TOOLS, messages=_to_messages(history, message))
    except Exception as e:
        print(f"[Chat] Error: {type(e).__name__}: {e}")
        return {"text": CHAT_ERROR_REPLY}

    text = "".join(b.text for b in msg.content if getattr(b, "type", "") == "text").strip()
    tool = next((b for b in msg.content if getattr(b, "type", "") == "tool_use"), None)
    if tool is not None:
        target = _navigation_target(tool.name, tool.input)
        if target:
            print(f"[Chat] Tool {tool.name} → {target}")
            return {"text": f"Navigating you to {target}...", "navigateTo": target}
        print(f"[Chat] Ignoring tool call {tool.name}({tool.input})")
    return {"text": text or "I'm not sure how to help with that."}


# ============================================================
# SMART TO-DO LIST
# ============================================================
TODO_PROMPT = """You are an intelligent financial assistant. Analyze the current state of the ledger and create a prioritized to-do list.

Current state:
- Unpaid invoices: {unpaid_count}
- Unreconciled transactions: {unreconciled_count}
- Potential anomalies (same amount on the same day): {anomalies}

Instructions:
- Create 3-5 concise, actionable tasks.
- If there are anomalies, prioritize investigating them.
- Many unpaid invoices → suggest following up (Collection).
- Many unreconciled transactions → suggest reconciling (Reconciliation).

Respond ONLY with a JSON array:
[{{"id": "1", "task": "short task", "priority": "High" or "Medium" or "Low", "type": "Reconciliation" or "Collection" or "Review"}}]"""

TODO_PRIORITIES = ("High", "Medium", "Low")
TODO_TYPES = ("Reconciliation", "Collection", "Review")

STARTER_TODO = [
    {"id": "1", "task": "Upload Invoices", "priority": "High", "type": "Collection"},
    {"id": "2", "task": "Upload Bank Statements", "priority": "High", "type": "Reconciliation"},
    {"id": "3", "task": "Check for Duplicate Transactions", "priority": "Medium", "type": "Review"},
]


async def generate_smart_todo(invoices: list, transactions: list) -> list:
    if not USE_REAL_API:
        return [dict(t) for t in STARTER_TODO]

    flagged = flag_duplicate_transactions(transactions)
    prompt = TODO_PROMPT.format(
        unpaid_count=sum(1 for i in invoices if i.get("status") == "Unpaid"),
        unreconciled_count=sum(1 for t in transactions if not t.get("isReconciled")),
        anomalies=", ".join(t.get("description", "") for t in flagged) if flagged else "None")
    try:
        result = await call_claude_json(prompt, "ToDo")
    except Exception as e:
        print(f"[ToDo] Failed to generate to-do list: {type(e).__name__}: {e}")
        return []
    if not isinstance(result, list):
        return []
    return [{"id": str(t.get("id")), "task": str(t["task"]), "priority": t["priority"], "type": t["type"]}
            for t in result
            if isinstance(t, dict) and t.get("task")
            and t.get("priority") in TODO_PRIORITIES and t.get("type") in TODO_TYPES]


# ============================================================
# DEMO DATA
# ============================================================
DEMO_DATA_PROMPT = """Generate a realistic B2B dataset for a financial reconciliation demo: 8 invoices and 8 bank transactions.

Requirements:
- Fuzzy matches: 3 pairs where the invoice customer name is SLIGHTLY different from the transaction description
  (e.g. "Alpha Solutions Ltd" vs "TRF FROM ALPHA SOLS", "Omega Healthcare Inc" vs "OMEGA HEALTH WIRE").
- Hard matches: 3 pairs with exactly the same amount and the invoice id in the transaction reference.
- Variance match: 1 pair where the transaction is slightly less than the invoice (e.g. a $15 bank fee deducted).
- Leave 1 invoice unpaid and 1 transaction unrelated.
- Anomaly: 2 transactions on the same date with the same amount and description (e.g. "Double Charge").

Respond ONLY with JSON:
{"invoices": [{"id": "INV-...", "customerName": "...", "amount": 100.0, "dueDate": "YYYY-MM-DD", "status": "Unpaid"}],
 "transactions": [{"id": "TXN-...", "date": "YYYY-MM-DD", "description": "...", "amount": 100.0, "referenceNumber": "...", "isReconciled": false}]}"""

FALLBACK_DEMO_DATA = {
    "invoices": [
        {"id": "INV-2024-001", "customerName": "TechStart Solutions", "amount": 12500.00, "dueDate": "2024-10-15", "status": "Unpaid"},
        {"id": "INV-2024-002", "customerName": "GreenLeaf Logistics", "amount": 4200.50, "dueDate": "2024-10-18", "status": "Unpaid"},
        {"id": "INV-2024-003", "customerName": "Quantum Systems", "amount": 8900.00, "dueDate": "2024-10-20", "status": "Unpaid"},
        {"id": "INV-2024-004", "customerName": "BlueSky Ventures", "amount": 3150.00, "dueDate": "2024-10-22", "status": "Unpaid"},
        {"id": "INV-2024-005", "customerName": "Apex Construction", "amount": 15750.00, "dueDate": "2024-10-25", "status": "Unpaid"},
        {"id": "INV-2024-006", "customerName": "Nebula Creative", "amount": 2500.00, "dueDate": "2024-10-28", "status": "Unpaid"},
    ],
    "transactions": [
        # hard match: exact amount + id in description
        {"id": "TXN-1001", "date": "2024-10-16", "description": "TECHSTART SOLUTIONS INV-2024-001", "amount": 12500.00, "referenceNumber": "REF-001", "isReconciled": False},
        # fuzzy: name variance
        {"id": "TXN-1002", "date": "2024-10-19", "description": "TRF FROM GREENLEAF LOG", "amount": 4200.50, "referenceNumber": "WIRE-202", "isReconciled": False},
        # fuzzy: amount short by bank fee
        {"id": "TXN-1003", "date": "2024-10-21", "description": "QUANTUM SYS PAYMENT", "amount": 8885.00, "referenceNumber": "ACH-993", "isReconciled": False},
        {"id": "TXN-1004", "date": "2024-10-22", "description": "Unknown Deposit", "amount": 500.00, "referenceNumber": "UNK-111", "isReconciled": False},
        # duplicate charge
        {"id": "TXN-1005", "date": "2024-10-23", "description": "Duplicate Service Charge", "amount": 150.00, "referenceNumber": "FEE-001", "isReconciled": False},
        {"id": "TXN-1006", "date": "2024-10-23", "description": "Duplicate Service Charge", "amount": 150.00, "referenceNumber": "FEE-002", "isReconciled": False},
    ],
}


def _fallback_demo_data() -> dict:
    return _copy.deepcopy(FALLBACK_DEMO_DATA)


async def generate_demo_data() -> dict:
    """Returns {"invoices": [...], "transactions": [...], "source": "ai" | "fallback"}."""
    if not USE_REAL_API:
        print("[Demo] No API key: using fallback demo data")
        return {**_fallback_demo_data(), "source": "fallback"}
    try:
        data = await call_claude_json(DEMO_DATA_PROMPT, "Demo")
    except Exception as e:
        print(f"[Demo] Failed to generate demo data, using fallback: {type(e).__name__}: {e}")
        return {**_fallback_demo_data(), "source": "fallback"}

    invoices = data.get("invoices") if isinstance(data, dict) else None
    transactions = data.get("transactions") if isinstance(data, dict) else None
    if not isinstance(invoices, list) or not invoices or not isinstance(transactions, list):
        print("[Demo] Generated data was empty or malformed, using fallback")
        return {**_fallback_demo_data(), "source": "fallback"}
    return {"invoices": [i for i in invoices if isinstance(i, dict)],
            "transactions": [t for t in transactions if isinstance(t, dict)],
            "source": "ai"}


def chat_context(db: dict, view: str) -> dict:
    """Ledger snapshot handed to the chat collaborator."""
    return {"view": view if view in VIEWS else "dashboard",
            "invoiceCount": len(db["invoices"]),
            "unpaidCount": len(open_invoices(db)),
            "unreconciledCount": len(unreconciled_transactions(db))}


__all__ = ["get_chat_response", "generate_smart_todo", "generate_demo_data", "chat_context",
           "FALLBACK_DEMO_DATA", "STARTER_TODO", "CHAT_TOOLS"]
