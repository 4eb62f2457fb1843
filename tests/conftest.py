"""
Suite-wide fixtures.

- Environment is pinned *before* any hrm_console import so Settings() sees a
  local SQLite database and the SQL data backend.
- FakeDataService: in-memory DataService that records every call, used to
  assert that refusals never reach the backend.
- FakeIdentityService: password table plus issued bearer tokens.
- SQLite in-memory engine (StaticPool + foreign keys) for SqlDataService and
  API tests.
"""

import os
import uuid
from datetime import datetime, timedelta, timezone

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("DATA_BACKEND", "sql")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hrm_console.core.errors import AuthError, DataConflict, DataServiceError
from hrm_console.database.base import Base
from hrm_console.database.session import init_db
from hrm_console.models.enums import ProfileStatus, Role
from hrm_console.schemas import ProfileRecord
from hrm_console.services.data_service import (
    PRODUCTS,
    PROFILES,
    TABLES,
    USER_PERMISSIONS,
    DataService,
)
from hrm_console.services.identity import Identity, IdentityService

START = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)


# ============================================================================
# Clock
# ============================================================================
class FakeClock:
    """Returns ``now`` and moves forward one second per call."""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        value = self.now
        self.now = self.now + timedelta(seconds=1)
        return value


@pytest.fixture
def clock():
    return FakeClock()


# ============================================================================
# In-memory data service
# ============================================================================
_UNIQUE = {
    PROFILES: [("email",)],
    PRODUCTS: [("product_code",)],
    USER_PERMISSIONS: [("super_admin_id", "target_user_id")],
}

_DEFAULTS = {
    PROFILES: {"full_name": None, "role": "user", "status": "active", "created_by": None},
    PRODUCTS: {"status": "active", "created_by": None, "activated_by": None, "activated_at": None},
    USER_PERMISSIONS: {"can_delete": True, "can_block": True, "is_hidden": False},
}


def _plain(value):
    return getattr(value, "value", value)


class FakeDataService(DataService):
    def __init__(self):
        self.tables = {table: {} for table in TABLES}
        self.calls = []

    def select(self, table, filters=None, order_by=None, descending=False):
        self.calls.append(("select", table))
        wanted = {k: _plain(v) for k, v in (filters or {}).items()}
        rows = [
            dict(row) for row in self.tables[table].values()
            if all(row.get(k) == v for k, v in wanted.items())
        ]
        if order_by:
            rows.sort(key=lambda r: (r.get(order_by) is None, r.get(order_by)), reverse=descending)
        return rows

    def insert(self, table, record):
        self.calls.append(("insert", table))
        return dict(self._insert(table, record))

    def update(self, table, values, match_id):
        self.calls.append(("update", table))
        row = self.tables[table].get(match_id)
        if row is None:
            return None
        row.update({k: _plain(v) for k, v in values.items() if k != "id"})
        return dict(row)

    def delete(self, table, match_id):
        self.calls.append(("delete", table))
        self.tables[table].pop(match_id, None)
        if table == PROFILES:
            overlays = self.tables[USER_PERMISSIONS]
            for key, row in list(overlays.items()):
                if match_id in (row["super_admin_id"], row["target_user_id"]):
                    del overlays[key]

    def upsert(self, table, record, on_conflict):
        self.calls.append(("upsert", table))
        values = {k: _plain(v) for k, v in record.items()}
        for row in self.tables[table].values():
            if all(row.get(c) == values[c] for c in on_conflict):
                row.update({
                    k: v for k, v in values.items()
                    if k not in on_conflict and k not in ("id", "created_at")
                })
                return dict(row)
        return dict(self._insert(table, values))

    def _insert(self, table, record):
        row = dict(_DEFAULTS[table])
        row.update({k: _plain(v) for k, v in record.items()})
        row.setdefault("id", str(uuid.uuid4()))
        now = datetime.now(timezone.utc)
        row.setdefault("created_at", now)
        row.setdefault("updated_at", now)
        for columns in _UNIQUE[table]:
            for other in self.tables[table].values():
                if all(other.get(c) == row.get(c) for c in columns):
                    raise DataConflict(
                        f'duplicate key value violates unique constraint on {table} ({", ".join(columns)})'
                    )
        self.tables[table][row["id"]] = row
        return row

    def count(self, table):
        return len(self.tables[table])


class FailingDataService(FakeDataService):
    """Every call fails the way an unreachable backend does."""

    def select(self, table, filters=None, order_by=None, descending=False):
        self.calls.append(("select", table))
        raise DataServiceError("Data service unreachable: connection refused")

    def update(self, table, values, match_id):
        self.calls.append(("update", table))
        raise DataServiceError("Data service unreachable: connection refused")


@pytest.fixture
def data():
    return FakeDataService()


@pytest.fixture
def failing_data():
    return FailingDataService()


@pytest.fixture
def make_profile(data):
    """Seed a profile row and return its record."""
    counter = {"n": 0}

    def _make(role=Role.user, status=ProfileStatus.active, email=None, full_name=None, store=None):
        counter["n"] += 1
        n = counter["n"]
        row = (store or data).insert(
            PROFILES,
            {
                "id": str(uuid.uuid4()),
                "email": email or f"person{n}@example.com",
                "full_name": full_name if full_name is not None else f"Person {n}",
                "role": role,
                "status": status,
                "created_at": START + timedelta(minutes=n),
                "updated_at": START + timedelta(minutes=n),
            },
        )
        return ProfileRecord.model_validate(row)

    return _make


# ============================================================================
# Identity service
# ============================================================================
class FakeIdentityService(IdentityService):
    def __init__(self):
        self.accounts = {}  # email -> (id, password)
        self.tokens = {}  # token -> Identity
        self.revoked = []

    def register(self, email, password, user_id=None):
        user_id = user_id or str(uuid.uuid4())
        self.accounts[email] = (user_id, password)
        return user_id

    def issue_token(self, user_id, email):
        token = f"token-{uuid.uuid4().hex}"
        self.tokens[token] = Identity(id=user_id, email=email, access_token=token)
        return token

    def sign_in(self, email, password):
        account = self.accounts.get(email)
        if account is None or account[1] != password:
            raise AuthError("Invalid login credentials")
        token = self.issue_token(account[0], email)
        return self.tokens[token]

    def sign_up(self, email, password):
        if email in self.accounts:
            raise AuthError("User already registered")
        user_id = self.register(email, password)
        token = self.issue_token(user_id, email)
        return self.tokens[token]

    def sign_out(self, access_token):
        self.revoked.append(access_token)
        self.tokens.pop(access_token, None)

    def get_user(self, access_token):
        identity = self.tokens.get(access_token)
        if identity is None:
            raise AuthError("Invalid authentication credentials")
        return identity


@pytest.fixture
def identity():
    return FakeIdentityService()


# ============================================================================
# SQLite in-memory database
# ============================================================================
@pytest.fixture(scope="session")
def sqlite_engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ARG001
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    init_db(bind=engine)
    return engine


@pytest.fixture
def Session(sqlite_engine):
    factory = sessionmaker(bind=sqlite_engine, autocommit=False, autoflush=False)
    yield factory
    with sqlite_engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db(Session):
    session = Session()
    try:
        yield session
    finally:
        session.close()


# ============================================================================
# HTTP client
# ============================================================================
@pytest.fixture
def client(Session, identity):
    from fastapi.testclient import TestClient

    from hrm_console.api.dependencies import get_identity_service
    from hrm_console.database.session import get_db
    from main import app

    def _get_db():
        session = Session()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_identity_service] = lambda: identity
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
