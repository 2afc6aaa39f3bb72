"""PostgreSQL 클라이언트 모듈 — 비동기 엔진 및 CRUD 쿼리.

PostgreSQL client module.
Sets up the async SQLAlchemy engine (asyncpg driver) and implements the
database client contract used by :class:`pgmodel.models.base.Model`:
``query``, ``select``, ``select_one``, ``count``, ``insert``, ``update``
and ``delete``. SQL text is assembled by :mod:`pgmodel.utils.query_builder`
and sent as-is with ``$N`` placeholders, which asyncpg understands natively.

Usage:
    from pgmodel.database import postgres
    await postgres.connect()
    rows = await postgres.select("parcels", {"owner": "0xabc"})
"""

import time
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from pgmodel.config import settings
from pgmodel.schemas.common import Changes, Conditions, OnConflict, OrderBy, QueryResult, Row
from pgmodel.utils.exceptions import MissingChangesError, MissingConditionsError, NotConnectedError
from pgmodel.utils.query_builder import (
    assignment_fields,
    column_fields,
    conflict_clause,
    conflict_values,
    order_by_clause,
    quote_identifier,
    value_placeholders,
    where_clause,
)
from pgmodel.utils.query_log import QueryLogger


@runtime_checkable
class DatabaseClient(Protocol):
    """Model이 요구하는 데이터베이스 클라이언트 규약.

    Database client contract required by the Model gateway.
    """

    async def query(self, text: str, values: Sequence[Any] | None = None) -> list[Row]: ...

    async def select(
        self,
        table_name: str,
        conditions: Conditions | None = None,
        order_by: OrderBy | None = None,
        extra: str = "",
    ) -> list[Row]: ...

    async def select_one(
        self,
        table_name: str,
        conditions: Conditions | None = None,
        order_by: OrderBy | None = None,
    ) -> Row | None: ...

    async def count(
        self, table_name: str, conditions: Conditions | None = None, extra: str = ""
    ) -> list[Row]: ...

    async def insert(
        self,
        table_name: str,
        changes: Changes,
        returning: str = "*",
        on_conflict: OnConflict | None = None,
    ) -> QueryResult: ...

    async def update(self, table_name: str, changes: Changes, conditions: Conditions) -> QueryResult: ...

    async def delete(self, table_name: str, conditions: Conditions) -> QueryResult: ...


def to_async_url(url: str) -> str:
    """연결 문자열을 asyncpg 드라이버 URL로 변환합니다.

    ``postgres://`` and ``postgresql://`` URLs are rewritten to
    ``postgresql+asyncpg://``; anything else is returned unchanged.
    """
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    return url


class Postgres:
    """PostgreSQL 비동기 클라이언트.

    Async PostgreSQL client built on a SQLAlchemy ``AsyncEngine``.
    Every statement runs in its own ``engine.begin()`` block on a pooled
    connection; the client never batches or serializes calls.

    Attributes:
        engine: 비동기 엔진, connect() 전에는 None (Async engine, None until connected)
    """

    def __init__(self, query_logger: QueryLogger | None = None) -> None:
        self.engine: AsyncEngine | None = None
        self.query_logger: QueryLogger = query_logger or QueryLogger()

    async def connect(self, url: str | None = None) -> AsyncEngine:
        """PostgreSQL 엔진을 생성합니다.

        Create the async engine. No connection is opened until the first query.

        Args:
            url: 연결 문자열, None이면 설정값 사용 (Connection URL; settings.DATABASE_URL when None)

        Returns:
            AsyncEngine: 생성된 엔진 (The created engine)
        """
        # pool_pre_ping=True: 커넥션 풀에서 꺼낸 연결의 유효성을 사전 확인 (Validates connections before use)
        self.engine = create_async_engine(
            to_async_url(url or settings.DATABASE_URL),
            echo=settings.DEBUG,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
            # 트랜잭션 모드 풀러에서 prepared statement 캐시 비활성화
            # Disable prepared statement caches for transaction-mode poolers
            connect_args={"statement_cache_size": 0},
        )
        return self.engine

    async def close(self) -> None:
        """엔진과 풀의 모든 연결을 닫습니다 — Dispose the engine and its pool."""
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None

    async def execute(self, text: str, values: Sequence[Any] | None = None) -> QueryResult:
        """SQL 한 문장을 실행합니다.

        Execute one statement with positional ``$N`` values and commit it.
        Driver errors propagate unchanged after being logged.

        Args:
            text: 실행할 SQL (SQL text with ``$N`` placeholders)
            values: 플레이스홀더에 바인딩할 값 (Values for the placeholders, in order)

        Returns:
            QueryResult: 반환 행과 영향받은 행 수 (Returned rows and affected row count)
        """
        if self.engine is None:
            raise NotConnectedError()

        params = tuple(values or ())
        start_time = time.perf_counter()
        try:
            async with self.engine.begin() as conn:
                result = await conn.exec_driver_sql(text, params)
                rows = [dict(row) for row in result.mappings().all()] if result.returns_rows else []
                row_count = result.rowcount
        except Exception as exc:
            self.query_logger.record(text, params, (time.perf_counter() - start_time) * 1000, error=exc)
            raise

        self.query_logger.record(text, params, (time.perf_counter() - start_time) * 1000, row_count)
        return QueryResult(rows=rows, row_count=row_count)

    async def query(self, text: str, values: Sequence[Any] | None = None) -> list[Row]:
        """SQL을 실행하고 행 목록을 반환합니다 — Run raw SQL and return its rows."""
        result = await self.execute(text, values)
        return result.rows

    async def count(
        self, table_name: str, conditions: Conditions | None = None, extra: str = ""
    ) -> list[Row]:
        """조건에 맞는 행 수를 조회합니다.

        Count rows. Returns the raw rows of ``SELECT COUNT(*) as count``.

        Args:
            table_name: 테이블 이름 (Table name)
            conditions: WHERE 조건, None이면 전체 (WHERE mapping; all rows when None)
            extra: 쿼리 끝에 붙일 SQL (SQL appended at the end of the query)
        """
        return await self._select("SELECT COUNT(*) as count", table_name, conditions, None, extra)

    async def select(
        self,
        table_name: str,
        conditions: Conditions | None = None,
        order_by: OrderBy | None = None,
        extra: str = "",
    ) -> list[Row]:
        """조건에 맞는 모든 행을 조회합니다.

        Select rows from a table.

        Args:
            table_name: 테이블 이름 (Table name)
            conditions: WHERE 조건 매핑 (WHERE mapping, column → value)
            order_by: ORDER BY 매핑 (ORDER BY mapping, column → "ASC"/"DESC")
            extra: 쿼리 끝에 붙일 SQL (SQL appended at the end, e.g. "LIMIT 10")

        Returns:
            list[Row]: 조회된 행 목록 (Matching rows, possibly empty)
        """
        return await self._select("SELECT *", table_name, conditions, order_by, extra)

    async def select_one(
        self,
        table_name: str,
        conditions: Conditions | None = None,
        order_by: OrderBy | None = None,
    ) -> Row | None:
        """조건에 맞는 첫 번째 행을 조회합니다 — First matching row or None."""
        rows = await self._select("SELECT *", table_name, conditions, order_by, "LIMIT 1")
        return rows[0] if rows else None

    async def insert(
        self,
        table_name: str,
        changes: Changes,
        returning: str = "*",
        on_conflict: OnConflict | None = None,
    ) -> QueryResult:
        """행을 삽입합니다.

        Insert a row. Without a conflict target the statement ends in
        ``ON CONFLICT DO NOTHING``, in which case no row may come back.

        Example:
            insert("users", {"name": "Name"}) =>
            INSERT INTO users("name") VALUES($1) ON CONFLICT DO NOTHING RETURNING *

        Args:
            table_name: 테이블 이름 (Table name)
            changes: 삽입할 값 (Column → value to insert)
            returning: RETURNING 대상 컬럼 (Column(s) to return)
            on_conflict: ON CONFLICT 명세 (Conflict target and changes)

        Returns:
            QueryResult: RETURNING 결과 (Rows produced by RETURNING)

        Raises:
            MissingChangesError: 삽입할 값이 없을 때 (No values to insert)
        """
        if not changes:
            raise MissingChangesError(table_name, "insert into")

        values = list(changes.values())
        text = (
            f"INSERT INTO {table_name}({', '.join(column_fields(changes))}) "
            f"VALUES({', '.join(value_placeholders(changes))}) "
            f"{conflict_clause(on_conflict, len(values))} "
            f"RETURNING {returning}"
        )
        return await self.execute(text, values + conflict_values(on_conflict))

    async def update(self, table_name: str, changes: Changes, conditions: Conditions) -> QueryResult:
        """행을 업데이트합니다.

        Update rows. Values are ``changes`` followed by ``conditions``; the
        WHERE placeholders continue after the SET ones.

        Example:
            update("users", {"name": "New"}, {"id": 22}) =>
            UPDATE users SET "name" = $1 WHERE "id" = $2

        Raises:
            MissingChangesError: 변경 값이 없을 때 (No changes supplied)
            MissingConditionsError: WHERE 조건이 없을 때 (No conditions supplied)
        """
        if not changes:
            raise MissingChangesError(table_name, "update")
        if not conditions:
            raise MissingConditionsError(table_name, "update")

        change_values = list(changes.values())
        condition_values = list(conditions.values())
        text = (
            f"UPDATE {table_name} SET {', '.join(assignment_fields(changes))} "
            f"{where_clause(conditions, len(change_values))}"
        )
        return await self.execute(text, change_values + condition_values)

    async def delete(self, table_name: str, conditions: Conditions) -> QueryResult:
        """조건에 맞는 행을 삭제합니다.

        Delete rows. A missing WHERE clause is refused before any I/O.

        Raises:
            MissingConditionsError: WHERE 조건이 없을 때 (No conditions supplied)
        """
        if not conditions:
            raise MissingConditionsError(table_name, "delete from")

        text = f"DELETE FROM {table_name} {where_clause(conditions)}"
        return await self.execute(text, list(conditions.values()))

    async def create_table(
        self,
        table_name: str,
        columns: Sequence[str],
        sequence_name: str | None = None,
        primary_key: str = "id",
    ) -> None:
        """테이블이 없으면 생성합니다.

        Create a table if it does not exist, backed by a sequence used as
        autoincrement id.

        Example:
            await postgres.create_table("users", [
                "\"id\" int NOT NULL DEFAULT nextval('users_id_seq')",
                "\"name\" varchar(42) NOT NULL",
            ])

        Args:
            table_name: 테이블 이름 (Table name)
            columns: 컬럼 정의 목록 (Column definitions)
            sequence_name: 시퀀스 이름, 기본값 "<table>_id_seq", 빈 문자열이면 생략
                           (Sequence name; defaults to "<table>_id_seq", "" skips it)
            primary_key: 기본 키 컬럼 (Primary key column)
        """
        if sequence_name is None:
            sequence_name = f"{table_name}_id_seq"

        if sequence_name:
            await self.create_sequence(sequence_name)

        definitions = list(columns) + [f"PRIMARY KEY ({quote_identifier(primary_key)})"]
        await self.execute(
            f"CREATE TABLE IF NOT EXISTS {quote_identifier(table_name)} ({', '.join(definitions)})"
        )

        if sequence_name:
            await self.alter_sequence_ownership(sequence_name, table_name, primary_key)

    async def create_index(
        self,
        table_name: str,
        name: str,
        fields: Sequence[str],
        unique: bool = False,
    ) -> None:
        """인덱스가 없으면 생성합니다 — Create an index if it does not exist."""
        kind = "UNIQUE INDEX" if unique else "INDEX"
        await self.execute(
            f"CREATE {kind} IF NOT EXISTS {name} ON {table_name} ({', '.join(fields)})"
        )

    async def create_sequence(self, name: str) -> None:
        """시퀀스가 없으면 생성합니다 — Create a sequence if it does not exist."""
        await self.execute(f"CREATE SEQUENCE IF NOT EXISTS {name}")

    async def alter_sequence_ownership(self, name: str, owner: str, column_name: str = "id") -> None:
        """시퀀스를 테이블 컬럼에 귀속시킵니다 — Tie a sequence to a table column."""
        await self.execute(f"ALTER SEQUENCE {name} OWNED BY {owner}.{column_name}")

    async def truncate(self, table_name: str) -> QueryResult:
        """테이블을 비우고 시퀀스를 초기화합니다 — Truncate a table and restart its identity."""
        return await self.execute(f"TRUNCATE {table_name} RESTART IDENTITY")

    async def _select(
        self,
        method: str,
        table_name: str,
        conditions: Conditions | None,
        order_by: OrderBy | None,
        extra: str = "",
    ) -> list[Row]:
        values: list[Any] = list(conditions.values()) if conditions else []
        parts = [
            f"{method} FROM {quote_identifier(table_name)}",
            where_clause(conditions),
            order_by_clause(order_by),
            extra,
        ]
        return await self.query(" ".join(part for part in parts if part), values)


# 기본 클라이언트 — Default client used when a ModelConfig names none
postgres: Postgres = Postgres()
