"""
LedgerLoop — Configuration & Constants
Environment variables, feature flags, matching constants, and enumerations.
"""
import os
from pathlib import Path

# ============================================================
# PATHS
# ============================================================
BASE_DIR = Path(__file__).parent.parent.parent
DATA_DIR = Path(os.environ.get("LEDGERLOOP_DATA_DIR", str(BASE_DIR / "data")))
DB_PATH = DATA_DIR / "ledger.json"

# ============================================================
# FEATURE FLAGS
# ============================================================
USE_REAL_API = bool(os.environ.get("ANTHROPIC_API_KEY"))
PERSIST_DATA = os.environ.get("PERSIST_DATA", "false").lower() == "true"

# ============================================================
# AI COLLABORATOR
# ============================================================
AI_PRIMARY_MODEL = os.environ.get("LEDGERLOOP_MODEL", "claude-sonnet-4-20250514")
AI_MAX_TOKENS = int(os.environ.get("AI_MAX_TOKENS", "4000"))
AI_TIMEOUT_SECONDS = float(os.environ.get("AI_TIMEOUT_SECONDS", "60"))

# ============================================================
# HARD MATCH
# ============================================================
# Absolute, currency-agnostic epsilon. Not part of the runtime policy:
# confidence 100 depends on it.
HARD_MATCH_TOLERANCE = 0.01
HARD_MATCH_CONFIDENCE = 100
HARD_MATCH_REASONING = "Hard Match: exact amount and invoice identifier found in transaction details"

# ============================================================
# LEDGER ENUMERATIONS
# ============================================================
INVOICE_STATUSES = ("Unpaid", "Pending", "Paid")
EXTRACTION_CONFIDENCE_LEVELS = ("high", "medium", "low")
AUDIT_ACTIONS = ("Match", "Unmatch")
INVOICE_SORTS = ("date-asc", "date-desc", "amount-desc", "amount-asc")
INVOICE_STATUS_FILTERS = ("all", "Unpaid", "Pending")

# ============================================================
# SESSION / UI
# ============================================================
DEFAULT_USER = os.environ.get("LEDGERLOOP_DEFAULT_USER", "Current User")
VIEWS = ("dashboard", "upload", "reconciliation", "settings")
NAVIGATION_DELAY_MS = 800

# ============================================================
# ERP
# ============================================================
ERP_PROVIDERS = ("odoo", "netsuite", "sap", "xero")

# ============================================================
# VERSION
# ============================================================
VERSION = "1.0.0"
