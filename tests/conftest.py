import pytest

import ledgerloop.db
import ledgerloop.matching
import ledgerloop.extraction
import ledgerloop.assistant
from ledgerloop.db import reset_db
from ledgerloop.policy import reset_policy


@pytest.fixture(autouse=True)
def offline_store(monkeypatch):
    """No API key, no snapshot file, empty store and default policy for every test."""
    monkeypatch.setattr(ledgerloop.db, "PERSIST_DATA", False)
    for mod in (ledgerloop.matching, ledgerloop.extraction, ledgerloop.assistant):
        monkeypatch.setattr(mod, "USE_REAL_API", False)
    reset_policy()
    yield reset_db()
    reset_policy()


@pytest.fixture
def db():
    return ledgerloop.db.get_db()
