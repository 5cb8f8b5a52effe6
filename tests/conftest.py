import os
import tempfile

# database.py builds its engine at import time, so point it somewhere disposable first
_BOOTSTRAP_DIR = tempfile.mkdtemp(prefix="reef-logbook-tests-")
os.environ["DATABASE_PATH"] = os.path.join(_BOOTSTRAP_DIR, "bootstrap.db")
os.environ.pop("DATABASE_URL", None)
os.environ.pop("REEF_REMOTE_URL", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from database import get_db, init_db, make_engine
from main import app


@pytest.fixture
def session_factory(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'reef.db'}")
    init_db(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
