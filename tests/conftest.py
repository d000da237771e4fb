import os
import sys
import tempfile
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient


# Ensure `import backend.jobboard...` works regardless of where pytest is run from.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Must be set before backend.jobboard.config is imported anywhere.
_SESSION_DIR = Path(tempfile.mkdtemp(prefix="jobboard-tests-"))
os.environ["DISABLE_DOTENV"] = "1"
os.environ["APP_ENV"] = "test"
os.environ["DATA_DIR"] = str(_SESSION_DIR / "storage")
os.environ["UPLOAD_DIR"] = str(_SESSION_DIR / "uploads")
os.environ.pop("JWT_SECRET", None)
os.environ.pop("JWT_REFRESH_SECRET", None)
os.environ.pop("ALLOW_LEGACY_USER_HEADER", None)


@pytest.fixture()
def store(tmp_path_factory: pytest.TempPathFactory):
    """A fresh flat-file store per test."""
    from backend.jobboard.storage import FlatFileStore

    s = FlatFileStore(tmp_path_factory.mktemp("store") / "storage")
    s.initialize()
    return s


@pytest.fixture()
def app(store) -> FastAPI:
    """
    The real app, with every router dependency pointed at the per-test store.
    """
    from backend.jobboard.main import app as fastapi_app
    from backend.jobboard.storage import get_store

    fastapi_app.dependency_overrides[get_store] = lambda: store
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def legacy_header_enabled(monkeypatch):
    from backend.jobboard import config

    monkeypatch.setattr(config, "ALLOW_LEGACY_USER_HEADER", True)


@pytest.fixture()
def make_user(store):
    """Create a user straight in the store, bypassing the HTTP layer."""
    counter = {"n": 0}

    def _make(role: str = "employee", **overrides):
        counter["n"] += 1
        data = {
            "name": f"User {counter['n']}",
            "email": f"user{counter['n']}@example.com",
            "phone": "555-0100",
            "role": role,
        }
        if role == "employer":
            data.update(company_name="Acme", company_location="Berlin", company_description="")
        else:
            data["experiences"] = []
        data.update(overrides)
        return store.create_user(data)

    return _make
