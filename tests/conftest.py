import json
from collections.abc import Callable
from datetime import datetime
from typing import Any

import httpx
import pytest
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from restorelog.domain.constants import (
    OPERATION_METAFIELD_CLEARED,
    OPERATION_TAGS_REMOVED,
)
from restorelog.domain.entities import LogEntry, LogItem, MetafieldData
from restorelog.infrastructure.database.models import OperationLog  # noqa: F401
from restorelog.infrastructure.shopify.client import AdminApiClient

TEST_ENDPOINT = "https://test-shop.myshopify.com/admin/api/2025-01/graphql.json"

Responder = dict[str, Any] | httpx.Response | Callable[[dict[str, Any]], Any]


class FakeAdminApi:
    """Stands in for the Admin GraphQL endpoint.

    Responses are registered per marker; the most recently registered marker
    found in a request's query wins. Unmatched requests get empty ``data``.
    """

    def __init__(self):
        self.calls: list[dict[str, Any]] = []
        self._responders: list[tuple[str, Responder]] = []

    def on(self, marker: str, response: Responder) -> None:
        self._responders.append((marker, response))

    def calls_for(self, marker: str) -> list[dict[str, Any]]:
        return [c for c in self.calls if marker in c["query"]]

    def handle(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.calls.append(payload)

        for marker, response in reversed(self._responders):
            if marker not in payload["query"]:
                continue
            if callable(response):
                response = response(payload.get("variables") or {})
            if isinstance(response, httpx.Response):
                return response
            return httpx.Response(200, json={"data": response})

        return httpx.Response(200, json={"data": {}})

    def client(self) -> AdminApiClient:
        return AdminApiClient(
            TEST_ENDPOINT,
            "test-token",
            transport=httpx.MockTransport(self.handle),
        )


@pytest.fixture(name="engine")
def engine_fixture():
    # SQLite configuration for unit tests
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="session_factory")
def session_factory_fixture(engine):
    return lambda: Session(engine)


@pytest.fixture(name="admin_api")
def admin_api_fixture() -> FakeAdminApi:
    return FakeAdminApi()


@pytest.fixture(name="admin_client")
def admin_client_fixture(admin_api: FakeAdminApi) -> AdminApiClient:
    return admin_api.client()


def tag_entry(
    *items: tuple[str, list[str]], object_type: str = "Product", log_id: int | None = 1
) -> LogEntry:
    return LogEntry(
        id=log_id,
        user_name="alice",
        operation=OPERATION_TAGS_REMOVED,
        object_type=object_type,
        time=datetime(2025, 3, 1, 12, 0),
        value=tuple(
            LogItem(id=item_id, removed_tags=tuple(tags), success=True)
            for item_id, tags in items
        ),
    )


def metafield_entry(
    *items: tuple[str, dict[str, Any]],
    object_type: str = "Order",
    log_id: int | None = 1,
) -> LogEntry:
    return LogEntry(
        id=log_id,
        user_name="alice",
        operation=OPERATION_METAFIELD_CLEARED,
        object_type=object_type,
        time=datetime(2025, 3, 1, 12, 0),
        value=tuple(
            LogItem(id=item_id, data=MetafieldData.from_dict(data), success=True)
            for item_id, data in items
        ),
    )
