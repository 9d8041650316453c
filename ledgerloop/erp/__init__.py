"""
LedgerLoop — ERP Sync

Stand-in adapters for the supported ERPs. Each provider returns its open
invoices; the real connectors live behind the same call.

Sync never duplicates: invoices whose id is already in the ledger are
skipped before the append.
"""

from ledgerloop.config import ERP_PROVIDERS
from ledgerloop.ledger import append_invoices

# ============================================================
# PROVIDER DATASETS
# ============================================================
ERP_DATASETS = {
    "odoo": [
        {"id": "ODOO-2024-8821", "customerName": "MegaCorp Industries", "amount": 12500.00,
         "dueDate": "2024-11-01", "status": "Unpaid", "description": "Consulting Services Q4"},
        {"id": "ODOO-2024-8822", "customerName": "StartUp Dynamics", "amount": 4200.50,
         "dueDate": "2024-11-05", "status": "Unpaid", "description": "Software License Renewal"},
    ],
    "netsuite": [
        {"id": "NET-99201", "customerName": "Oracle Systems Inc", "amount": 25000.00,
         "dueDate": "2024-10-30", "status": "Unpaid", "description": "Cloud Infrastructure Q3"},
        {"id": "NET-99202", "customerName": "BlueSky Ventures", "amount": 3150.00,
         "dueDate": "2024-11-10", "status": "Unpaid", "description": "Venture Consulting"},
    ],
    "sap": [
        {"id": "SAP-1000293", "customerName": "Global Manufacturing GmbH", "amount": 154200.00,
         "dueDate": "2024-11-15", "status": "Unpaid", "description": "Bulk Machinery Order"},
    ],
    "xero": [
        {"id": "XERO-INV-001", "customerName": "Local Coffee Roasters", "amount": 450.00,
         "dueDate": "2024-10-28", "status": "Unpaid", "description": "Monthly Bean Supply"},
        {"id": "XERO-INV-002", "customerName": "Design Studio 4", "amount": 1200.00,
         "dueDate": "2024-10-29", "status": "Unpaid", "description": "Website Redesign Deposit"},
    ],
}


async def fetch_erp_invoices(provider: str) -> list:
    """Invoices currently open in the given ERP. Unknown provider → []."""
    return [dict(i) for i in ERP_DATASETS.get(provider, [])]


async def sync_erp_invoices(db: dict, provider: str) -> list:
    """Pull invoices from an ERP and append the ones the ledger doesn't have yet."""
    if provider not in ERP_PROVIDERS:
        print(f"[ERP] Unknown provider '{provider}'")
        return []
    fetched = await fetch_erp_invoices(provider)
    existing = {i["id"] for i in db["invoices"]}
    new = [i for i in fetched if i["id"] not in existing]
    added = append_invoices(db, new) if new else []
    print(f"[ERP] {provider}: {len(fetched)} fetched, {len(added)} new")
    return added
