import os
import sys
import tempfile
from pathlib import Path

# --- ensure project root is importable ---
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# the app creates its own engine on import; point it somewhere disposable
_SCRATCH = Path(tempfile.mkdtemp(prefix="trainlog_tests_"))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_SCRATCH / 'app.db'}")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session

from trainlog.db import get_session, init_db, make_engine
from trainlog.main import app


@pytest.fixture(scope="session")
def engine():
    url = os.getenv("TEST_DATABASE_URL") or f"sqlite:///{_SCRATCH / 'test.db'}"
    eng = make_engine(url)
    yield eng
    eng.dispose()


@pytest.fixture
def fresh_engine(engine):
    """Empty tables for every test."""
    SQLModel.metadata.drop_all(engine)
    init_db(engine)
    return engine


@pytest.fixture
def db(fresh_engine):
    with Session(fresh_engine) as s:
        yield s


@pytest.fixture
def client(fresh_engine):
    def _session_override():
        with Session(fresh_engine) as s:
            yield s

    app.dependency_overrides[get_session] = _session_override
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
