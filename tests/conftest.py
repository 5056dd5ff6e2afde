import os
import sys
from pathlib import Path

# Ajoute la racine du projet au PYTHONPATH EN PREMIER
sys.path.insert(0, str(Path(__file__).parent.parent))

os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Créer engine SQLite pour tests AVANT d'importer l'app
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///./test_taskflow.db"
test_engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

# PATCH: remplacer le engine et SessionLocal avant d'importer main
import taskflow.core.database
taskflow.core.database.engine = test_engine
taskflow.core.database.SessionLocal = TestingSessionLocal

from taskflow.core.database import Base, get_db
from taskflow.core.security import create_access_token
from taskflow.main import app
from taskflow.models.user import User
from taskflow.services.storage import LocalDiskStorage, get_storage


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_teardown():
    """Crée et nettoie la DB avant/après chaque test"""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture(autouse=True)
def storage(upload_dir):
    """Stockage local dans un dossier temporaire"""
    local = LocalDiskStorage(upload_dir)
    app.dependency_overrides[get_storage] = lambda: local
    yield local
    app.dependency_overrides.pop(get_storage, None)


@pytest.fixture
def client():
    """Client de test FastAPI"""
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture
def db():
    """Session DB pour les tests"""
    db = TestingSessionLocal()
    yield db
    db.close()


@pytest.fixture
def make_user():
    """Fabrique d'utilisateurs en base"""
    def _make(email, role="user", password="pass123"):
        db = TestingSessionLocal()
        user = User(email=email, role=role)
        user.set_password(password)
        db.add(user)
        db.commit()
        db.refresh(user)
        db.close()
        return user
    return _make


@pytest.fixture
def admin_user(make_user):
    return make_user("admin@example.com", role="admin")


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}
    return _headers


@pytest.fixture
def future():
    def _future(days=5):
        return (datetime.utcnow() + timedelta(days=days)).isoformat()
    return _future


@pytest.fixture
def create_task(client, auth_headers, future):
    """Crée une tâche via l'API et retourne le JSON"""
    def _create(creator, assignees, **fields):
        body = {
            "title": "Préparer la démo",
            "description": "Slides + script",
            "due_date": future(),
            "assigned_to": [u.id for u in assignees],
        }
        body.update(fields)
        response = client.post("/tasks", headers=auth_headers(creator), json=body)
        assert response.status_code == 201, response.text
        return response.json()
    return _create
