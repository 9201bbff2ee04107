# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.

FakeSupabase mimics the subset of the supabase-py query builder the app
uses (select/eq/in_/order/limit, insert/upsert/update/delete + execute)
over in-memory tables, and records every read and write so tests can
assert on query ordering and on the absence of side effects.
"""

import copy
import uuid
from collections import Counter, defaultdict
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from core.permissions import PERMISSIONS, ROLE_PERMISSIONS
from dependencies.auth import create_access_token, get_db_client
from main import create_app
from models.access import Identity


# ============================================================
# FAKE SUPABASE
# ============================================================
class FakeResult:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.op = "select"
        self.columns = "*"
        self.filters = []
        self.payload = None
        self.on_conflict = None
        self.limit_n = None
        self.order_by = None

    # --- builders -------------------------------------------------
    def select(self, columns="*"):
        self.op = "select"
        self.columns = columns
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def insert(self, rows):
        self.op = "insert"
        self.payload = rows
        return self

    def upsert(self, rows, on_conflict=None):
        self.op = "upsert"
        self.payload = rows
        self.on_conflict = on_conflict
        return self

    def update(self, values):
        self.op = "update"
        self.payload = values
        return self

    def delete(self):
        self.op = "delete"
        return self

    # --- execution ------------------------------------------------
    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def _project(self, row):
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        wanted = [c.strip() for c in self.columns.split(",")]
        return {c: copy.deepcopy(row.get(c)) for c in wanted}

    def execute(self):
        if self.table_name in self.db.failing_tables:
            raise Exception(f"connection refused ({self.table_name})")

        rows = self.db.tables[self.table_name]

        if self.op == "select":
            self.db.reads[self.table_name] += 1
            self.db.read_log.append(self.table_name)
            found = [r for r in rows if self._matches(r)]
            if self.order_by:
                column, desc = self.order_by
                found.sort(key=lambda r: r.get(column), reverse=desc)
            if self.limit_n is not None:
                found = found[: self.limit_n]
            return FakeResult([self._project(r) for r in found])

        self.db.writes.append((self.op, self.table_name))

        if self.op == "insert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for item in payload:
                row = dict(item)
                row.setdefault("id", str(uuid.uuid4()))
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return FakeResult(inserted)

        if self.op == "upsert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            keys = [k.strip() for k in (self.on_conflict or "id").split(",")]
            out = []
            for item in payload:
                existing = next(
                    (r for r in rows if all(r.get(k) == item.get(k) for k in keys)),
                    None,
                )
                if existing is not None:
                    existing.update(item)
                    out.append(copy.deepcopy(existing))
                else:
                    row = dict(item)
                    row.setdefault("id", str(uuid.uuid4()))
                    rows.append(row)
                    out.append(copy.deepcopy(row))
            return FakeResult(out)

        if self.op == "update":
            changed = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    changed.append(copy.deepcopy(row))
            return FakeResult(changed)

        if self.op == "delete":
            removed = [r for r in rows if self._matches(r)]
            self.db.tables[self.table_name] = [r for r in rows if not self._matches(r)]
            return FakeResult(removed)

        raise AssertionError(f"unsupported op {self.op}")


class FakeSupabase:
    def __init__(self):
        self.tables = defaultdict(list)
        self.reads = Counter()
        self.read_log = []
        self.writes = []
        self.failing_tables = set()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def seed(self, table: str, rows: list):
        self.tables[table].extend(dict(r) for r in rows)

    def reset_counters(self):
        self.reads.clear()
        self.read_log.clear()
        self.writes.clear()


# ============================================================
# FIXTURE WORLD
# ============================================================
ORG_A = "11111111-1111-4111-8111-111111111111"
ORG_B = "22222222-2222-4222-8222-222222222222"

USERS = {
    # user id: org id
    "u-admin": ORG_A,
    "u-viewer": ORG_A,
    "u-manager": ORG_A,
    "u-staff": ORG_A,
    "u-bldg-admin": ORG_A,
    "u-resident": ORG_A,
    "u-nobody": ORG_A,
    "u-other-org": ORG_B,
    "u-platform": None,
    "u-platform-plain": None,
}

ROLE_IDS = {role_key: f"r-{role_key}" for role_key in ROLE_PERMISSIONS}


def build_world() -> FakeSupabase:
    db = FakeSupabase()

    db.seed("orgs", [{"id": ORG_A}, {"id": ORG_B}])
    db.seed(
        "users",
        [
            {"id": uid, "email": f"{uid}@example.com", "org_id": org, "is_active": True}
            for uid, org in USERS.items()
        ]
        + [{"id": "u-inactive", "email": "gone@example.com", "org_id": ORG_A, "is_active": False}],
    )

    db.seed(
        "permissions",
        [{"key": k, "name": k, "description": d} for k, d in PERMISSIONS.items()],
    )
    db.seed(
        "roles",
        [
            {"id": ROLE_IDS[k], "key": k, "name": k, "description": None, "is_system": True}
            for k in ROLE_PERMISSIONS
        ],
    )
    db.seed(
        "role_permissions",
        [
            {"role_id": ROLE_IDS[role_key], "permission_key": key}
            for role_key, keys in ROLE_PERMISSIONS.items()
            for key in keys
        ],
    )
    db.seed(
        "user_roles",
        [
            {"user_id": "u-admin", "role_id": ROLE_IDS["admin"]},
            {"user_id": "u-viewer", "role_id": ROLE_IDS["viewer"]},
            {"user_id": "u-other-org", "role_id": ROLE_IDS["super_admin"]},
            {"user_id": "u-platform", "role_id": ROLE_IDS["platform_superadmin"]},
        ],
    )

    db.seed(
        "buildings",
        [
            {"id": "b-1", "org_id": ORG_A, "name": "Harbor View"},
            {"id": "b-2", "org_id": ORG_A, "name": "Kapiolani Tower"},
            {"id": "b-foreign", "org_id": ORG_B, "name": "Elsewhere"},
        ],
    )
    db.seed(
        "building_assignments",
        [
            {"id": "a-1", "building_id": "b-1", "user_id": "u-manager", "type": "MANAGER"},
            {"id": "a-2", "building_id": "b-1", "user_id": "u-manager", "type": "STAFF"},
            {"id": "a-3", "building_id": "b-1", "user_id": "u-staff", "type": "STAFF"},
            {"id": "a-4", "building_id": "b-1", "user_id": "u-bldg-admin", "type": "BUILDING_ADMIN"},
        ],
    )
    db.seed(
        "occupancies",
        [
            {
                "id": "o-1",
                "building_id": "b-1",
                "unit_id": "unit-101",
                "resident_user_id": "u-resident",
                "status": "ACTIVE",
            },
            {
                "id": "o-2",
                "building_id": "b-2",
                "unit_id": "unit-201",
                "resident_user_id": "u-resident",
                "status": "ENDED",
            },
        ],
    )
    db.seed(
        "units",
        [
            {"id": "unit-101", "building_id": "b-1", "label": "101"},
            {"id": "unit-102", "building_id": "b-1", "label": "102"},
        ],
    )
    db.seed(
        "maintenance_requests",
        [
            {
                "id": "req-1",
                "building_id": "b-1",
                "org_id": ORG_A,
                "assigned_to_user_id": "u-staff",
                "status": "ASSIGNED",
            },
            {
                "id": "req-2",
                "building_id": "b-1",
                "org_id": ORG_A,
                "assigned_to_user_id": None,
                "status": "OPEN",
            },
        ],
    )

    db.reset_counters()
    return db


def identity_for(user_id: str) -> Identity:
    return Identity(user_id=user_id, email=f"{user_id}@example.com", org_id=USERS.get(user_id))


# ============================================================
# FIXTURES
# ============================================================
@pytest.fixture
def fake_db() -> FakeSupabase:
    return build_world()


@pytest.fixture(scope="function")
def app(fake_db):
    """Create a test FastAPI application wired to the fake store."""
    application = create_app()
    application.dependency_overrides[get_db_client] = lambda: fake_db
    return application


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    """Build Authorization headers for a fixture user."""

    def _headers(user_id: str, **extra) -> dict:
        token = create_access_token(user_id, USERS.get(user_id))
        headers = {"Authorization": f"Bearer {token}"}
        headers.update(extra)
        return headers

    return _headers
