"""
LedgerLoop — AI-Assisted Receivables Reconciliation (v1.0.0)

Architecture:
  ledgerloop/
  ├── config/      — Constants, feature flags, enumerations
  ├── db/          — In-process store, optional JSON snapshot
  ├── policy/      — Fuzzy-match policy, runtime configuration
  ├── ledger/      — Invoice/transaction records, confirmation, dashboard metrics
  ├── anomalies/   — Duplicate-charge detection
  ├── audit/       — Append-only match audit log
  ├── ai/          — Anthropic client wrapper (JSON replies)
  ├── matching/    — Hard match + validated vibe match, confirmation
  ├── extraction/  — Invoice document → scanned invoice for review
  ├── erp/         — ERP invoice sync adapters
  ├── assistant/   — Chat navigation, smart to-do list, demo data
  └── server.py    — FastAPI routing layer

Each module is self-contained with clear imports and no circular dependencies.
"""
