import os
import tempfile
from decimal import Decimal
from pathlib import Path

# Set environment variables BEFORE any imports that might use settings
# Use a temporary directory for test database to avoid permission issues
_test_db_dir = tempfile.mkdtemp()
_test_db_path = os.path.join(_test_db_dir, "test_pos.db")
os.environ["DATABASE_URL"] = f"sqlite:///{_test_db_path}"
os.environ["SECRET_KEY"] = "test-secret-key-min-32-characters-long-for-testing"
os.environ["ALGORITHM"] = "HS256"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "30"
os.environ["FIRST_ADMIN_EMAIL"] = "admin@test.example.com"

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session

from pos.main import app
from pos.core.security import create_access_token
from pos.repositories.role import get_role_by_name
from pos.db.models.user import User as UserModel
from pos.repositories.scoped import TenantScope

ROOT_DIR = Path(__file__).resolve().parent.parent


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test and run migrations."""
    temp_db_dir = tempfile.mkdtemp()
    test_db_path = os.path.join(temp_db_dir, "test.db")
    test_db_url = f"sqlite:///{test_db_path}"

    test_engine = create_engine(
        test_db_url,
        connect_args={"check_same_thread": False},
        poolclass=None,  # Don't use connection pooling for SQLite
    )

    # Enable WAL mode to reduce locking issues
    @event.listens_for(test_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=test_engine
    )

    # Run Alembic migrations to set up the database schema and seed data
    alembic_cfg = Config(str(ROOT_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(ROOT_DIR / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", test_db_url)
    command.upgrade(alembic_cfg, "head")

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        test_engine.dispose()

        # Clean up - remove test database file and directory
        for suffix in ["", "-wal", "-shm"]:
            path = f"{test_db_path}{suffix}"
            if os.path.exists(path):
                os.remove(path)
        if os.path.exists(temp_db_dir):
            os.rmdir(temp_db_dir)


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database dependency override."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    from pos.api.deps import get_db

    app.dependency_overrides[get_db] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def db(db_session):
    """Alias for db_session to match test naming conventions."""
    return db_session


@pytest.fixture(scope="function")
def platform_admin_token(db: Session) -> str:
    """Token of the platform admin seeded by migration 003."""
    from pos.core.config import settings

    user = db.query(UserModel).filter(UserModel.email == settings.first_admin_email).first()
    if not user:
        raise RuntimeError("Platform admin not found. Check migration 003.")
    return create_access_token(data={"sub": user.id})


@pytest.fixture(scope="function")
def make_tenant(db: Session):
    """Factory creating tenants through the service layer."""
    from pos.services.tenant import create_tenant

    def _make(slug: str, **kwargs):
        kwargs.setdefault("name", slug.title())
        return create_tenant(db, slug=slug, **kwargs)

    return _make


@pytest.fixture(scope="function")
def make_user_token(db: Session):
    """Factory creating a user with a role in a tenant and returning its token."""

    def _make(email: str, role_name: str, tenant_id: int | None) -> str:
        role = get_role_by_name(db, role_name)
        if not role:
            raise RuntimeError(f"Role {role_name} not found")
        user = UserModel(email=email, name=email.split("@")[0], role_id=role.id, tenant_id=tenant_id)
        db.add(user)
        db.commit()
        db.refresh(user)
        return create_access_token(data={"sub": user.id})

    return _make


@pytest.fixture(scope="function")
def store(make_tenant):
    """A taxed store in New York time."""
    return make_tenant(
        "corner-shop",
        name="Corner Shop",
        currency="USD",
        timezone="America/New_York",
        tax_enabled=True,
        default_tax_rate=Decimal("8.5"),
    )


@pytest.fixture(scope="function")
def other_store(make_tenant):
    return make_tenant("other-shop", name="Other Shop", timezone="Europe/Madrid")


@pytest.fixture(scope="function")
def store_scope(store) -> TenantScope:
    return TenantScope(tenant_id=store.id, slug=store.slug)


@pytest.fixture(scope="function")
def other_scope(other_store) -> TenantScope:
    return TenantScope(tenant_id=other_store.id, slug=other_store.slug)


@pytest.fixture(scope="function")
def admin_token(store, make_user_token) -> str:
    return make_user_token("owner@corner.example.com", "admin", store.id)


@pytest.fixture(scope="function")
def manager_token(store, make_user_token) -> str:
    return make_user_token("manager@corner.example.com", "manager", store.id)


@pytest.fixture(scope="function")
def cashier_token(store, make_user_token) -> str:
    return make_user_token("cashier@corner.example.com", "cashier", store.id)


@pytest.fixture(scope="function")
def other_admin_token(other_store, make_user_token) -> str:
    return make_user_token("owner@other.example.com", "admin", other_store.id)
