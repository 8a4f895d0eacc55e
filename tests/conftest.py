"""Pytest configuration and fixtures."""

import os
from collections import defaultdict
from collections.abc import Callable, Generator
from contextlib import ExitStack
from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Any
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from postgrest.exceptions import APIError

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-for-unit-tests")

# Every module that holds its own reference to get_supabase_client
SUPABASE_CLIENT_TARGETS = (
    "src.core.supabase.get_supabase_client",
    "src.services.profile_service.get_supabase_client",
    "src.services.conversation_service.get_supabase_client",
    "src.services.message_service.get_supabase_client",
    "src.services.notification_service.get_supabase_client",
)


class FakeResponse:
    """Mimics the APIResponse fields the services read."""

    def __init__(self, data: Any = None, count: int | None = None) -> None:
        self.data = data
        self.count = count


class FakeQuery:
    """A PostgREST query chain evaluated against FakeSupabase rows."""

    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self.db = db
        self.table = table
        self.action = "select"
        self.columns = "*"
        self.count: str | None = None
        self.values: dict[str, Any] = {}
        self.filters: list[Callable[[dict[str, Any]], bool]] = []
        self.orders: list[tuple[str, bool]] = []
        self.row_limit: int | None = None
        self.single = False

    def select(self, columns: str = "*", count: str | None = None) -> "FakeQuery":
        self.columns = columns
        self.count = count
        return self

    def insert(self, values: dict[str, Any]) -> "FakeQuery":
        self.action = "insert"
        self.values = values
        return self

    def update(self, values: dict[str, Any]) -> "FakeQuery":
        self.action = "update"
        self.values = values
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        if isinstance(value, bool):
            self.filters.append(lambda row: row.get(column) is value)
        else:
            self.filters.append(lambda row: str(row.get(column)) == str(value))
        return self

    def in_(self, column: str, values: list[Any]) -> "FakeQuery":
        allowed = {str(value) for value in values}
        self.filters.append(lambda row: str(row.get(column)) in allowed)
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self.orders.append((column, desc))
        return self

    def limit(self, size: int) -> "FakeQuery":
        self.row_limit = size
        return self

    def maybe_single(self) -> "FakeQuery":
        self.single = True
        return self

    def execute(self) -> FakeResponse:
        if self.action == "insert":
            return FakeResponse([self.db.insert(self.table, self.values)])

        rows = [row for row in self.db.tables[self.table] if all(f(row) for f in self.filters)]

        if self.action == "update":
            for row in rows:
                row.update(self.values)
            return FakeResponse([dict(row) for row in rows])

        for column, desc in reversed(self.orders):
            rows.sort(key=lambda row: row[column], reverse=desc)
        total = len(rows)
        if self.row_limit is not None:
            rows = rows[: self.row_limit]

        result = [self.db.project(self.table, row, self.columns) for row in rows]
        if self.single:
            return FakeResponse(result[0] if result else None)
        return FakeResponse(result, count=total if self.count else None)


class FakeRpc:
    """Deferred database function call."""

    def __init__(self, handler: Callable[[dict[str, Any]], list[dict[str, Any]]], params: dict[str, Any]) -> None:
        self.handler = handler
        self.params = params

    def execute(self) -> FakeResponse:
        return FakeResponse(self.handler(self.params))


class FakeSupabase:
    """In-memory stand-in for the Supabase client with the messaging schema.

    Rows are stored newest-insert-first, so anything that relies on
    insertion order instead of an explicit order() shows up in tests.
    The two database functions keep the behavior of the migration:
    a unique pair_key and a non-decreasing created_at per conversation.
    """

    UNIQUE = {"profiles": ("user_id",), "conversations": ("pair_key",)}

    def __init__(self) -> None:
        self.tables: defaultdict[str, list[dict[str, Any]]] = defaultdict(list)
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.race_next_create = False
        self._message_ids = count(1)

    def timestamp(self) -> str:
        return self.now.isoformat()

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)

    def add_profile(self, profile_id: str, user_id: str, display_name: str) -> dict[str, Any]:
        return self.insert(
            "profiles",
            {"id": profile_id, "user_id": user_id, "display_name": display_name, "email": None},
        )

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: dict[str, Any]) -> FakeRpc:
        handlers = {
            "create_direct_conversation": self._create_direct_conversation,
            "append_direct_message": self._append_direct_message,
        }
        return FakeRpc(handlers[name], params)

    def insert(self, table: str, values: dict[str, Any]) -> dict[str, Any]:
        for column in self.UNIQUE.get(table, ()):
            if any(row.get(column) == values.get(column) for row in self.tables[table]):
                raise APIError(
                    {
                        "code": "23505",
                        "message": f'duplicate key value violates unique constraint "{table}_{column}_key"',
                        "details": None,
                        "hint": None,
                    }
                )

        row = {"id": str(uuid4()), "created_at": self.timestamp(), **values}
        if table == "notifications":
            row.setdefault("read", False)
        self.tables[table].insert(0, row)
        return dict(row)

    def project(self, table: str, row: dict[str, Any], columns: str) -> dict[str, Any]:
        result = dict(row)
        if table == "conversations" and "conversation_participants(" in columns:
            result["conversation_participants"] = [
                {"profile_id": p["profile_id"], "last_read_at": p.get("last_read_at")}
                for p in self.tables["conversation_participants"]
                if p["conversation_id"] == row["id"]
            ]
        return result

    def _create_direct_conversation(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        if self.race_next_create:
            # Another request commits the same pair first
            self.race_next_create = False
            self._create_direct_conversation(params)

        conversation = self.insert(
            "conversations",
            {"pair_key": params["p_pair_key"], "last_message_at": self.timestamp()},
        )
        for profile_id in (params["p_profile_a"], params["p_profile_b"]):
            self.tables["conversation_participants"].insert(
                0,
                {"conversation_id": conversation["id"], "profile_id": profile_id, "last_read_at": None},
            )
        return [conversation]

    def _append_direct_message(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        conversation = next(
            row for row in self.tables["conversations"] if row["id"] == params["p_conversation_id"]
        )
        created_at = max(self.timestamp(), conversation["last_message_at"])
        message = {
            "id": next(self._message_ids),
            "conversation_id": params["p_conversation_id"],
            "sender_id": params["p_sender_id"],
            "receiver_id": params["p_receiver_id"],
            "content": params["p_content"],
            "read": False,
            "created_at": created_at,
        }
        self.tables["messages"].insert(0, message)
        conversation["last_message_at"] = created_at
        return [dict(message)]


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from src.core.config import get_settings

    get_settings.cache_clear()

    settings = get_settings()
    yield settings

    get_settings.cache_clear()


@pytest.fixture
def supabase_tables() -> defaultdict[str, MagicMock]:
    """One MagicMock per table name, so query chains on different tables do not collide."""
    return defaultdict(MagicMock)


@pytest.fixture
def mock_supabase_client(
    supabase_tables: defaultdict[str, MagicMock],
) -> Generator[MagicMock, None, None]:
    """Provide a mocked Supabase client shared by every service.

    Yields:
        MagicMock: Mocked Supabase client for testing.
    """
    mock_client = MagicMock()
    mock_client.table.side_effect = lambda name: supabase_tables[name]

    # Default response for the readiness probe
    mock_response = MagicMock()
    mock_response.data = []
    supabase_tables["profiles"].select.return_value.limit.return_value.execute.return_value = (
        mock_response
    )

    with ExitStack() as stack:
        for target in SUPABASE_CLIENT_TARGETS:
            stack.enter_context(patch(target, return_value=mock_client))
        yield mock_client


@pytest.fixture
def client(mock_supabase_client: MagicMock) -> Generator[TestClient, None, None]:
    """Provide a test client for the FastAPI application.

    Args:
        mock_supabase_client: Mocked Supabase client fixture.

    Yields:
        TestClient: FastAPI test client.
    """
    from src.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def fake_supabase() -> Generator[FakeSupabase, None, None]:
    """Provide a stateful in-memory Supabase shared by every service.

    Yields:
        FakeSupabase: Fake client holding the messaging tables.
    """
    db = FakeSupabase()
    with ExitStack() as stack:
        for target in SUPABASE_CLIENT_TARGETS:
            stack.enter_context(patch(target, return_value=db))
        yield db
