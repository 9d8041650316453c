"""
LedgerLoop — Match Policy Module

Runtime state for the fuzzy-match policy. The coordinator reads it on every
run, so updates apply to the next "reconcile now" request.

Architecture:
  - DEFAULT_POLICY: base configuration with env var overrides
  - _active_policy: mutable runtime state, updated via API
  - get_policy() / update_policy() / reset_policy()
"""

import os
import copy as _copy


# ============================================================
# DEFAULT POLICY — base configuration with env var overrides
# ============================================================
DEFAULT_POLICY = {
    # ── FUZZY MATCHING ──
    "fuzzy_matching_enabled": os.environ.get("FUZZY_MATCHING_ENABLED", "true").lower() == "true",
    "fuzzy_min_confidence": float(os.environ.get("FUZZY_MIN_CONFIDENCE", "65")),

    # ── REQUEST BOUNDS ──
    "fuzzy_max_invoices": int(os.environ.get("FUZZY_MAX_INVOICES", "100")),
    "fuzzy_max_transactions": int(os.environ.get("FUZZY_MAX_TRANSACTIONS", "200")),
}


# ============================================================
# RUNTIME STATE — mutable, updated via API
# ============================================================
_active_policy = _copy.deepcopy(DEFAULT_POLICY)


def get_policy() -> dict:
    """Get the active match policy."""
    return _active_policy


def update_policy(updates: dict) -> dict:
    """Update specific policy fields. Returns the full updated policy."""
    for key, value in updates.items():
        if key not in _active_policy:
            continue
        expected_type = type(DEFAULT_POLICY[key])
        if expected_type == bool:
            if isinstance(value, bool):
                _active_policy[key] = value
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            if key == "fuzzy_min_confidence":
                # 100 is reserved for hard matches
                value = max(0.0, min(99.0, float(value)))
            else:
                value = max(1, int(value))
            _active_policy[key] = value
    return _active_policy


def reset_policy():
    """Reset policy to defaults. Used in testing."""
    _active_policy.clear()
    _active_policy.update(_copy.deepcopy(DEFAULT_POLICY))
