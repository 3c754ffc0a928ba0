"""
Pytest fixtures: an in-memory Supabase double that counts backend calls
"""

import itertools
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from typing import Any, Dict, List, Optional

from app.core.state import AppState
from app.database.supabase_client import SupabaseClient
from app.modules.auth.service import AuthGateway
from app.modules.subscriptions.service import SubscriptionsGateway


class FakeQuery:
    """Just enough of the postgrest builder chain for the gateways"""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload: Optional[Dict[str, Any]] = None
        self.filters: List[tuple] = []
        self.order_by: Optional[tuple] = None
        self.single_row = False

    def select(self, *columns):
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", dict(payload)
        return self

    def update(self, payload):
        self.op, self.payload = "update", dict(payload)
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def maybe_single(self):
        self.single_row = True
        return self

    async def execute(self):
        self.db.calls += 1
        self.db.queries.append(self)
        if self.db.next_error is not None:
            error, self.db.next_error = self.db.next_error, None
            raise error

        rows = self.db.tables.setdefault(self.table, [])
        matched = [r for r in rows if all(r.get(c) == v for c, v in self.filters)]

        if self.op == "insert":
            row = {
                "id": f"s{next(self.db.ids)}",
                "created_at": "2024-01-01T00:00:00+00:00",
                "updated_at": None,
                **self.payload,
            }
            rows.append(row)
            return SimpleNamespace(data=[dict(row)])
        if self.op == "update":
            for row in matched:
                row.update(self.payload)
            return SimpleNamespace(data=[dict(r) for r in matched])
        if self.op == "delete":
            self.db.tables[self.table] = [r for r in rows if r not in matched]
            return SimpleNamespace(data=[dict(r) for r in matched])

        if self.order_by:
            column, desc = self.order_by
            matched = sorted(matched, key=lambda r: r[column], reverse=desc)
        if self.single_row:
            return SimpleNamespace(data=dict(matched[0])) if matched else None
        return SimpleNamespace(data=[dict(r) for r in matched])


class FakeSupabase:
    def __init__(self):
        self.calls = 0
        self.queries: List[FakeQuery] = []
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.next_error: Optional[Exception] = None
        self.ids = itertools.count(100)

        self.auth = MagicMock()
        self.auth.get_user = AsyncMock(return_value=None)
        self.auth.sign_in_with_password = AsyncMock()
        self.auth.sign_up = AsyncMock()
        self.auth.sign_out = AsyncMock(return_value=None)
        self.auth.sign_in_with_oauth = AsyncMock()
        self.auth.exchange_code_for_session = AsyncMock()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def fail_next(self, error: Exception) -> None:
        self.next_error = error

    def auth_calls(self) -> int:
        return sum(
            m.await_count for m in (
                self.auth.get_user, self.auth.sign_in_with_password, self.auth.sign_up,
                self.auth.sign_out, self.auth.sign_in_with_oauth,
                self.auth.exchange_code_for_session,
            )
        )

    def emit(self, event: str, session: Any) -> None:
        """Fire the callback registered through auth.on_auth_state_change"""
        callback = self.auth.on_auth_state_change.call_args[0][0]
        callback(event, session)


def make_user(user_id: str = "u1", email: str = "user@example.com") -> Dict[str, Any]:
    return {"id": user_id, "email": email, "user_metadata": {}, "app_metadata": {}}


def make_row(subscription_id: str, user_id: str = "u1", **overrides) -> Dict[str, Any]:
    row = {
        "id": subscription_id,
        "user_id": user_id,
        "name": "Spotify",
        "amount": 9.99,
        "currency": "USD",
        "billing_cycle": "monthly",
        "next_billing_date": "2024-03-01",
        "status": "active",
        "created_at": "2024-01-01T00:00:00+00:00",
        "updated_at": None,
    }
    row.update(overrides)
    return row


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def store():
    return AppState()


@pytest.fixture
def auth_gateway(fake_supabase, store):
    return AuthGateway(fake_supabase, store)


@pytest.fixture
def subscriptions_gateway(fake_supabase, store):
    return SubscriptionsGateway(fake_supabase, store)


@pytest.fixture
def signed_in(store):
    """Store with principal u1 loaded"""
    store.auth.set_user(make_user("u1"))
    return store


@pytest.fixture
def supabase_client(fake_supabase):
    """Install the fake as the process-wide client for app.main startup"""
    SupabaseClient.reset_client()
    SupabaseClient._client = fake_supabase
    yield fake_supabase
    SupabaseClient.reset_client()
