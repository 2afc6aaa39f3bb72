"""Postgres 클라이언트 SQL 생성 테스트.

Postgres client tests — SQL text and value lists sent to the driver,
contract violations raised before any I/O, and URL handling.
"""

import pytest

from pgmodel.database import DatabaseClient, Postgres, to_async_url
from pgmodel.schemas.common import OnConflict, QueryResult
from pgmodel.utils.exceptions import MissingChangesError, MissingConditionsError, NotConnectedError


class TestSelect:
    """SELECT 테스트."""

    async def test_select_all(self, pg):
        """조건 없는 조회."""
        await pg.select("parcels")
        assert pg.statements == [('SELECT * FROM "parcels"', [])]

    async def test_select_with_conditions_order_and_extra(self, pg):
        """조건, 정렬, 추가 SQL 포함 조회."""
        await pg.select("parcels", {"x": 1, "y": 2}, {"x": "DESC"}, "LIMIT 10")
        assert pg.statements == [
            ('SELECT * FROM "parcels" WHERE "x" = $1 AND "y" = $2 ORDER BY "x" DESC LIMIT 10', [1, 2])
        ]

    async def test_select_returns_rows(self, pg):
        pg.result = QueryResult(rows=[{"id": 1}, {"id": 2}])
        assert await pg.select("parcels") == [{"id": 1}, {"id": 2}]

    async def test_select_one_appends_limit(self, pg):
        """select_one은 LIMIT 1을 붙이고 첫 행을 반환."""
        pg.result = QueryResult(rows=[{"id": 5}])
        row = await pg.select_one("parcels", {"id": 5})
        assert row == {"id": 5}
        assert pg.statements == [('SELECT * FROM "parcels" WHERE "id" = $1 LIMIT 1', [5])]

    async def test_select_one_missing(self, pg):
        """결과가 없으면 None."""
        assert await pg.select_one("parcels", {"id": 404}) is None

    async def test_count(self, pg):
        await pg.count("parcels", {"owner": "0xa"})
        assert pg.statements == [('SELECT COUNT(*) as count FROM "parcels" WHERE "owner" = $1', ["0xa"])]


class TestInsert:
    """INSERT 테스트."""

    async def test_plain_insert_does_nothing_on_conflict(self, pg):
        """충돌 명세가 없으면 DO NOTHING."""
        await pg.insert("parcels", {"x": 1, "y": 2}, "id")
        assert pg.statements == [
            ('INSERT INTO parcels("x", "y") VALUES($1, $2) ON CONFLICT DO NOTHING RETURNING id', [1, 2])
        ]

    async def test_upsert_values_are_concatenated(self, pg):
        """INSERT 값 뒤에 충돌 변경 값이 이어짐."""
        spec = OnConflict(target=["x", "y"], changes={"owner": "0xb"})
        await pg.insert("parcels", {"x": 1, "y": 2, "owner": "0xa"}, "id", spec)

        text, values = pg.statements[0]
        assert text == (
            'INSERT INTO parcels("x", "y", "owner") VALUES($1, $2, $3) '
            'ON CONFLICT (x, y) DO UPDATE SET "owner" = $4 RETURNING id'
        )
        assert values == [1, 2, "0xa", "0xb"]

    async def test_insert_without_changes_fails_before_io(self, pg):
        """값 없이 삽입 시 쿼리 전에 실패."""
        with pytest.raises(MissingChangesError):
            await pg.insert("parcels", None)
        with pytest.raises(MissingChangesError):
            await pg.insert("parcels", {})
        assert pg.statements == []


class TestUpdate:
    """UPDATE 테스트."""

    async def test_where_placeholders_follow_set(self, pg):
        """변경 2개, 조건 1개면 WHERE는 $3."""
        await pg.update("parcels", {"owner": "0xa", "name": "Home"}, {"id": 9})
        assert pg.statements == [
            ('UPDATE parcels SET "owner" = $1, "name" = $2 WHERE "id" = $3', ["0xa", "Home", 9])
        ]

    async def test_update_without_conditions_fails(self, pg):
        """조건 없이 업데이트 시 실패."""
        with pytest.raises(MissingConditionsError):
            await pg.update("parcels", {"owner": "0xa"}, None)
        assert pg.statements == []

    async def test_update_without_changes_fails(self, pg):
        with pytest.raises(MissingChangesError):
            await pg.update("parcels", None, {"id": 1})
        assert pg.statements == []


class TestDelete:
    """DELETE 테스트."""

    async def test_delete(self, pg):
        await pg.delete("parcels", {"id": 3, "owner": "0xa"})
        assert pg.statements == [('DELETE FROM parcels WHERE "id" = $1 AND "owner" = $2', [3, "0xa"])]

    async def test_delete_without_conditions_fails_before_io(self, pg):
        """조건 없이 삭제 시 쿼리 없이 실패."""
        with pytest.raises(MissingConditionsError):
            await pg.delete("parcels", None)
        with pytest.raises(MissingConditionsError):
            await pg.delete("parcels", {})
        assert pg.statements == []


class TestSchemaHelpers:
    """테이블/인덱스/시퀀스 헬퍼 테스트."""

    async def test_create_table_with_sequence(self, pg):
        await pg.create_table("users", ["\"id\" int NOT NULL DEFAULT nextval('users_id_seq')", '"name" text'])
        assert [text for text, _ in pg.statements] == [
            "CREATE SEQUENCE IF NOT EXISTS users_id_seq",
            'CREATE TABLE IF NOT EXISTS "users" ("id" int NOT NULL DEFAULT nextval(\'users_id_seq\'), '
            '"name" text, PRIMARY KEY ("id"))',
            "ALTER SEQUENCE users_id_seq OWNED BY users.id",
        ]

    async def test_create_table_without_sequence(self, pg):
        """빈 시퀀스 이름이면 시퀀스 생략."""
        await pg.create_table("tags", ['"slug" text'], sequence_name="", primary_key="slug")
        assert [text for text, _ in pg.statements] == [
            'CREATE TABLE IF NOT EXISTS "tags" ("slug" text, PRIMARY KEY ("slug"))'
        ]

    async def test_create_unique_index(self, pg):
        await pg.create_index("parcels", "parcels_xy_idx", ["x", "y"], unique=True)
        assert pg.statements[0][0] == "CREATE UNIQUE INDEX IF NOT EXISTS parcels_xy_idx ON parcels (x, y)"

    async def test_truncate(self, pg):
        await pg.truncate("parcels")
        assert pg.statements[0][0] == "TRUNCATE parcels RESTART IDENTITY"


class TestConnection:
    """연결 관련 테스트."""

    async def test_execute_before_connect_fails(self):
        """connect 전 실행 시 NotConnectedError."""
        with pytest.raises(NotConnectedError):
            await Postgres().execute("SELECT 1")

    async def test_close_without_engine_is_noop(self):
        client = Postgres()
        await client.close()
        assert client.engine is None

    def test_to_async_url(self):
        assert to_async_url("postgres://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"
        assert to_async_url("postgresql://u@h/db") == "postgresql+asyncpg://u@h/db"
        assert to_async_url("postgresql+asyncpg://u@h/db") == "postgresql+asyncpg://u@h/db"

    def test_postgres_satisfies_contract(self, client):
        """Postgres와 테스트 클라이언트 모두 규약을 만족."""
        assert isinstance(Postgres(), DatabaseClient)
        assert isinstance(client, DatabaseClient)
