"""테스트 인프라 — 메모리 기록용 DB 클라이언트 및 Model 픽스처.

Test infrastructure — Recording database clients and Model fixtures.
RecordingClient implements the database client contract in memory;
RecordingPostgres captures the SQL the real client would send instead of
opening a connection.
"""

from typing import Any, Sequence

import pytest

from pgmodel.database import Postgres
from pgmodel.models.base import Model, ModelConfig
from pgmodel.schemas.common import OnConflict, QueryResult, Row
from pgmodel.utils.query_log import QueryLogger


# ---------------------------------------------------------------------------
# 기록용 클라이언트 — Recording clients
# ---------------------------------------------------------------------------
class RecordingClient:
    """호출을 기록하고 미리 정한 결과를 돌려주는 DB 클라이언트."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.rows: list[Row] = []
        self.count_rows: list[Row] = [{"count": "0"}]
        self.returned: list[Row] = [{"id": 1}]

    async def query(self, text: str, values: Sequence[Any] | None = None) -> list[Row]:
        self.calls.append(("query", (text, values)))
        return list(self.rows)

    async def select(self, table_name, conditions=None, order_by=None, extra=""):
        self.calls.append(("select", (table_name, conditions, order_by, extra)))
        return list(self.rows)

    async def select_one(self, table_name, conditions=None, order_by=None):
        self.calls.append(("select_one", (table_name, conditions, order_by)))
        return self.rows[0] if self.rows else None

    async def count(self, table_name, conditions=None, extra=""):
        self.calls.append(("count", (table_name, conditions, extra)))
        return list(self.count_rows)

    async def insert(self, table_name, changes, returning="*", on_conflict: OnConflict | None = None):
        self.calls.append(("insert", (table_name, changes, returning, on_conflict)))
        return QueryResult(rows=list(self.returned), row_count=len(self.returned))

    async def update(self, table_name, changes, conditions):
        self.calls.append(("update", (table_name, changes, conditions)))
        return QueryResult(row_count=1)

    async def delete(self, table_name, conditions):
        self.calls.append(("delete", (table_name, conditions)))
        return QueryResult(row_count=1)

    def last(self, name: str) -> tuple[Any, ...]:
        """마지막 name 호출의 인자를 반환합니다."""
        for call_name, args in reversed(self.calls):
            if call_name == name:
                return args
        raise AssertionError(f"{name} was never called")


class RecordingPostgres(Postgres):
    """연결 없이 실행될 SQL과 값을 기록하는 Postgres."""

    def __init__(self) -> None:
        super().__init__(query_logger=QueryLogger(token="", dataset=""))
        self.statements: list[tuple[str, list[Any]]] = []
        self.result: QueryResult = QueryResult()

    async def execute(self, text: str, values: Sequence[Any] | None = None) -> QueryResult:
        self.statements.append((text, list(values or ())))
        return self.result


# ---------------------------------------------------------------------------
# 픽스처 — Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def client() -> RecordingClient:
    return RecordingClient()


@pytest.fixture
def pg() -> RecordingPostgres:
    return RecordingPostgres()


@pytest.fixture
def parcel_model(client: RecordingClient) -> type[Model]:
    """parcels 테이블용 Model (타임스탬프 사용)."""

    class Parcel(Model):
        config = ModelConfig(table_name="parcels", db=client)

    return Parcel


@pytest.fixture
def district_model(client: RecordingClient) -> type[Model]:
    """districts 테이블용 Model (타임스탬프 미사용, 기본 키 "slug")."""

    class District(Model):
        config = ModelConfig(table_name="districts", primary_key="slug", with_timestamps=False, db=client)

    return District
