import os
import sys
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


# Ensure `import backend.hiresphere...` works regardless of where pytest is run from.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Keep collection-time imports of the config module away from any local .env.
os.environ.setdefault("DISABLE_DOTENV", "1")

PASSWORD = "Testpass123!"


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite3"


@pytest.fixture()
def app(test_db_path: Path) -> FastAPI:
    """
    Create a FastAPI app wired to a temporary SQLite DB.

    The production `app` object is not used so startup hooks never touch a real database.
    """
    # Must be set before importing the database module so the engine is built for SQLite.
    os.environ["DISABLE_DOTENV"] = "1"
    os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{test_db_path}"
    # Never try to send real email from tests.
    for key in ("SMTP_HOST", "SMTP_USER", "SMTP_PASS"):
        os.environ.pop(key, None)

    from backend.hiresphere import database as db

    engine = create_engine(
        os.environ["DATABASE_URL"],
        connect_args={"check_same_thread": False},
    )
    db.enable_sqlite_foreign_keys(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # Patch the shared database module so router dependencies use the test DB.
    db.engine = engine
    db.SessionLocal = TestingSessionLocal

    # Import models so Base metadata is populated, then create tables.
    from backend.hiresphere import models  # noqa: F401

    db.Base.metadata.drop_all(bind=engine)
    db.Base.metadata.create_all(bind=engine)

    from backend.hiresphere.main import include_routers, register_exception_handlers

    fastapi_app = FastAPI()
    include_routers(fastapi_app)
    register_exception_handlers(fastapi_app)

    return fastapi_app


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def db_session(app: FastAPI):
    """
    Direct SQLAlchemy session bound to the same temporary SQLite DB used by the test app.
    """
    from backend.hiresphere.database import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def signup(client: TestClient):
    """Register through the API and return {"id", "email", "headers", "data"}."""

    def _signup(email: str, role: str = "JobSeeker", name: str = "Test", surname: str = "User") -> dict:
        r = client.post(
            "/api/auth/register",
            json={
                "email": email,
                "password": PASSWORD,
                "confirm_password": PASSWORD,
                "name": name,
                "surname": surname,
                "role": role,
            },
        )
        assert r.status_code == 200, r.text
        data = r.json()
        return {
            "id": data["user"]["id"],
            "email": email,
            "headers": _auth_headers(data["access_token"]),
            "data": data,
        }

    return _signup


@pytest.fixture()
def admin(client: TestClient, db_session) -> dict:
    """Admins can't self-register; insert one directly and log in."""
    from backend.hiresphere.enums import Role
    from backend.hiresphere.models.user import User
    from backend.hiresphere.utils.security import hash_password

    user = User(
        email="admin@example.com",
        password_hash=hash_password(PASSWORD),
        role=Role.ADMIN,
        name="Ada",
        surname="Admin",
    )
    db_session.add(user)
    db_session.commit()

    r = client.post("/api/auth/login", json={"email": "admin@example.com", "password": PASSWORD})
    assert r.status_code == 200, r.text
    data = r.json()
    return {"id": user.id, "email": user.email, "headers": _auth_headers(data["access_token"]), "data": data}


@pytest.fixture()
def employer(signup) -> dict:
    return signup("employer@example.com", role="Employer", name="Erin", surname="Employer")


@pytest.fixture()
def seeker(signup) -> dict:
    return signup("seeker@example.com", role="JobSeeker", name="Sam", surname="Seeker")


@pytest.fixture()
def category(client: TestClient, admin: dict) -> dict:
    r = client.post("/api/category", json={"name": "Software Engineering"}, headers=admin["headers"])
    assert r.status_code == 201, r.text
    return r.json()["category"]


@pytest.fixture()
def company(client: TestClient, employer: dict) -> dict:
    r = client.post(
        "/api/company",
        json={"name": "Acme Corp", "website": "acme.example.com", "location": "Berlin"},
        headers=employer["headers"],
    )
    assert r.status_code == 201, r.text
    return r.json()["company"]


@pytest.fixture()
def job(client: TestClient, employer: dict, company: dict, category: dict) -> dict:
    r = client.post(
        "/api/job",
        json={
            "company_id": company["id"],
            "category_id": category["id"],
            "title": "Backend Engineer",
            "description": "Build and run the HireSphere API services.",
            "salary_from": 50000,
            "salary_to": 70000,
            "location": "Berlin",
            "job_type": "FullTime",
            "tags": ["python", "fastapi"],
        },
        headers=employer["headers"],
    )
    assert r.status_code == 201, r.text
    return r.json()["job"]
