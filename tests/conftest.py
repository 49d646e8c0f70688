from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.adapters.auth.crypto import JWTAuthAdapter
from src.adapters.dev_email import DevEmailAdapter
from src.adapters.kv_store import InMemoryKVStore
from src.adapters.payment_stub import PaymentStubAdapter
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteUserRepo
from src.api import deps
from src.app_shell.rate_limit import RateLimiter
from src.domain.entities import User
from src.rules.loader import load_rules
from src.rules.models import Rules

ROOT = Path(__file__).resolve().parents[1]
MIGRATIONS_DIR = str(ROOT / "migrations")


@pytest.fixture
def rules() -> Rules:
    """Load the REAL rules from the project root."""
    return load_rules(ROOT / "rules.yaml")


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """A migrated, seeded SQLite database in a temp dir."""
    path = str(tmp_path / "onlypc.db")
    SQLiteMigrator(path, MIGRATIONS_DIR).run_migrations()
    return path


@pytest.fixture
def settings(tmp_path: Path, db_path: str) -> deps.Settings:
    s = deps.Settings()
    s.data_dir = str(tmp_path)
    s.db_path = db_path
    s.redis_url = None
    s.recaptcha_secret = None
    s.cloudinary_cloud = None
    s.smtp_host = None
    s.cookie_secure = False
    return s


@pytest.fixture
def kv() -> InMemoryKVStore:
    return InMemoryKVStore()


@pytest.fixture
def email_sender() -> DevEmailAdapter:
    return DevEmailAdapter()


@pytest.fixture
def gateway() -> PaymentStubAdapter:
    return PaymentStubAdapter()


@pytest.fixture
def client(
    settings: deps.Settings,
    rules: Rules,
    kv: InMemoryKVStore,
    email_sender: DevEmailAdapter,
    gateway: PaymentStubAdapter,
) -> Iterator[TestClient]:
    """
    TestClient over the real app with process singletons swapped out.

    The lifespan is not entered, so no migrations run against ./data.
    """
    from src.api.main import app

    limiter = RateLimiter(rules.rate_limits)
    app.dependency_overrides[deps.get_settings] = lambda: settings
    app.dependency_overrides[deps.get_rules] = lambda: rules
    app.dependency_overrides[deps.get_kv_store] = lambda: kv
    app.dependency_overrides[deps.get_email_sender] = lambda: email_sender
    app.dependency_overrides[deps.get_payment_gateway] = lambda: gateway
    app.dependency_overrides[deps.get_rate_limiter] = lambda: limiter

    yield TestClient(app)

    app.dependency_overrides.clear()


# --- Users ---


def _create_user(db_path: str, email: str, role_id: int, password_hash: str = "x") -> User:
    return SQLiteUserRepo(db_path).save(
        User(email=email, password_hash=password_hash, role_id=role_id)
    )


def _auth_headers(user: User) -> dict[str, str]:
    assert user.id is not None
    token = JWTAuthAdapter().create_token(user.id, user.email, user.role_id, ttl_minutes=60)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(db_path: str) -> Callable[..., User]:
    """Factory: make_user(email, role_id=2, password_hash="x")."""

    def _make(email: str, role_id: int = 2, password_hash: str = "x") -> User:
        return _create_user(db_path, email, role_id, password_hash)

    return _make


@pytest.fixture
def headers_for() -> Callable[[User], dict[str, str]]:
    """Bearer headers for a stored user."""
    return _auth_headers


@pytest.fixture
def client_user(db_path: str) -> User:
    return _create_user(db_path, "client@example.com", role_id=2)


@pytest.fixture
def manager_user(db_path: str) -> User:
    return _create_user(db_path, "manager@example.com", role_id=3)


@pytest.fixture
def admin_user(db_path: str) -> User:
    return _create_user(db_path, "admin@example.com", role_id=1)
