# tests/conftest.py
import os
import tempfile
from datetime import datetime

# Configure before the app modules read settings
_upload_dir = tempfile.mkdtemp(prefix="lab-booking-uploads-")
os.environ["INIT_DB_ON_STARTUP"] = "false"
os.environ["SEED_DEFAULT_DATA"] = "false"
os.environ["UPLOAD_DIR"] = _upload_dir
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_upload_dir, "unused.db")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.auth import create_access_token, get_password_hash
from app.clock import get_clock
from app.database import Base, get_db
from app.main import app
from app.models import Equipment, EquipmentStatus, EquipmentPermission, User, UserRole
from app.services.storage import LocalStorage, get_storage

# Fixed "now": every scenario date in January 2024 lies in the future
NOW = datetime(2024, 1, 1, 9, 0)


@pytest.fixture(scope="function")
def test_engine():
    tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    tmp.close()
    engine = create_engine(f"sqlite:///{tmp.name}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()
        os.unlink(tmp.name)


@pytest.fixture(scope="function")
def session_factory(test_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def test_db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path), "/uploads", max_size_mb=1)


@pytest.fixture(scope="function")
def client(test_db_session, storage):
    def override_get_db():
        try:
            yield test_db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: (lambda: NOW)
    app.dependency_overrides[get_storage] = lambda: storage

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


# --- Factories ---
@pytest.fixture
def make_user(test_db_session):
    counter = {"n": 0}

    def _make_user(username=None, role=UserRole.STAFF, password="secret123", **kwargs):
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        u = User(
            username=username,
            email=kwargs.pop("email", f"{username}@example.com"),
            hashed_password=get_password_hash(password),
            role=role,
            **kwargs,
        )
        test_db_session.add(u)
        test_db_session.commit()
        return u
    return _make_user


@pytest.fixture
def make_equipment(test_db_session):
    def _make_equipment(name="SEM", status=EquipmentStatus.AVAILABLE, location="1F Analysis Room"):
        e = Equipment(name=name, status=status.value, location=location)
        test_db_session.add(e)
        test_db_session.commit()
        return e
    return _make_equipment


@pytest.fixture
def make_grant(test_db_session):
    def _make_grant(equipment, user, level, granted_by=None):
        p = EquipmentPermission(
            equipment_id=equipment.id,
            user_id=user.id,
            permission_level=level.value,
            granted_by=granted_by.id if granted_by else None,
        )
        test_db_session.add(p)
        test_db_session.commit()
        return p
    return _make_grant


@pytest.fixture
def admin(make_user):
    return make_user("admin", role=UserRole.ADMIN)


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {create_access_token(user)}"}
    return _auth_headers
