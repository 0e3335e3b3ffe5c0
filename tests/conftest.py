"""
Test configuration and fixtures.

The app talks to an in-memory FakeSupabase installed in place of the real
client; tokens are minted with the real codec.
"""

import os

os.environ["JWT_SECRET"] = "test-jwt-secret-key-for-testing-only-0123456789"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SUPABASE_URL"] = "http://localhost:54321"
os.environ["SUPABASE_KEY"] = "test-key"

import pytest
from fastapi.testclient import TestClient

from app.core import database
from app.core.config import settings
from app.core.security import create_access_token
from app.main import app
from app.schemas.auth import DirectorClaims, HodClaims, StaffClaims, StudentClaims

from tests.fake_supabase import FakeSupabase


@pytest.fixture
def db():
    fake = FakeSupabase()
    database.set_supabase(fake)
    yield fake
    database.set_supabase(None)


@pytest.fixture
def client(db):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(path))
    return path


def bearer(claims) -> dict:
    return {"Authorization": f"Bearer {create_access_token(claims)}"}


@pytest.fixture
def director_headers():
    return bearer(DirectorClaims(id=1))


@pytest.fixture
def hod_headers():
    return bearer(HodClaims(id=2, department_id=10))


@pytest.fixture
def teacher_headers():
    return bearer(StaffClaims(id=3, role="class_teacher", class_id=100))


@pytest.fixture
def faculty_headers():
    return bearer(StaffClaims(id=4, role="faculty", class_id=100))


@pytest.fixture
def student_headers():
    return bearer(StudentClaims(id=500, class_id=100, batch_id=200))
