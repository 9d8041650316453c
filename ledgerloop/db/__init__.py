"""
LedgerLoop — Store Layer
Single in-process store. Optional JSON snapshot when PERSIST_DATA is on.
"""
import json
from ledgerloop.config import DB_PATH, DATA_DIR, PERSIST_DATA

# ============================================================
# EMPTY DB SCHEMA
# ============================================================
EMPTY_DB = {
    "invoices": [], "transactions": [],
    "audit_log": [], "scanned_invoices": [],
}

def _fresh_db():
    """Return a fresh empty database."""
    return json.loads(json.dumps(EMPTY_DB))

# ============================================================
# FILE BACKEND
# ============================================================
_db_cache = None

def _file_load():
    global _db_cache
    if PERSIST_DATA and DB_PATH.exists():
        try:
            with open(DB_PATH) as f:
                _db_cache = json.load(f)
                # Ensure all collections exist
                for k, v in EMPTY_DB.items():
                    if k not in _db_cache:
                        _db_cache[k] = type(v)()
        except (json.JSONDecodeError, IOError) as e:
            print(f"[DB] Could not read {DB_PATH.name}: {e}, starting empty")
            _db_cache = _fresh_db()
    else:
        _db_cache = _fresh_db()
    return _db_cache

def _file_save(db):
    global _db_cache
    _db_cache = db
    if PERSIST_DATA:
        DATA_DIR.mkdir(parents=True, exist_ok=True)
        tmp = DB_PATH.with_suffix(".tmp")
        with open(tmp, "w") as f:
            json.dump(db, f, indent=2, default=str)
        tmp.replace(DB_PATH)

def _file_get():
    if _db_cache is None:
        return _file_load()
    return _db_cache

# ============================================================
# PUBLIC API
# ============================================================
save_db = _file_save
get_db = _file_get

def reset_db():
    """Drop everything and start from an empty store."""
    db = _fresh_db()
    save_db(db)
    return db

if PERSIST_DATA:
    print(f"[DB] Using file snapshot ({DB_PATH})")
else:
    print("[DB] Using in-memory store")

# ============================================================
# UTILITIES
# ============================================================
def _n(val, default=0):
    """Safe numeric conversion: None/empty → default, strings → float."""
    if val is None or val == "":
        return float(default)
    try:
        return float(val)
    except (ValueError, TypeError):
        return float(default)
