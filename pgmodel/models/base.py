"""기본 Model 클래스 — 테이블별 CRUD 게이트웨이.

Base Model class — Per-table CRUD gateway over a database client.
Class-level methods run queries against ``config.table_name``; instances
hold one row in ``attributes`` and forward it to the class-level methods.

Usage:
    class Parcel(Model[ParcelRow]):
        config = ModelConfig(table_name="parcels")

    rows = await Parcel.find({"owner": "0xabc"}, {"created_at": "DESC"})
    parcel = Parcel({"x": 1, "y": 2})
    await parcel.create()
"""

from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, Field

from pgmodel.database import DatabaseClient, postgres
from pgmodel.schemas.common import Conditions, OnConflict, OrderBy, PrimaryKey, QueryResult, Row
from pgmodel.utils.exceptions import MissingChangesError, MissingConditionsError, MissingConfigError

# 제네릭 타입 변수 — 행 매핑의 형태를 나타냄
# Generic type variable representing the shape of a row mapping
RowT = TypeVar("RowT", bound=Mapping[str, Any])


def _default_db() -> DatabaseClient:
    return postgres


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ModelConfig(BaseModel):
    """테이블별 Model 설정.

    Per-table Model configuration.

    Attributes:
        table_name: 테이블 이름 (Table name)
        primary_key: 기본 키 컬럼 (Primary key column, default "id")
        with_timestamps: created_at/updated_at 자동 설정 여부
                         (Whether created_at/updated_at are filled automatically)
        db: 데이터베이스 클라이언트, 생략 시 기본 postgres 클라이언트
            (DatabaseClient instance; the default postgres client when omitted,
             None for attribute-only models)
    """

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    table_name: str
    primary_key: str = "id"
    with_timestamps: bool = True
    db: DatabaseClient | None = Field(default_factory=_default_db)


class gatewaymethod:
    """클래스/인스턴스 접근에 따라 다른 구현으로 분기하는 디스크립터.

    Descriptor dispatching on access: ``Model.create(row)`` reaches the
    class-level gateway operation, ``instance.create()`` the instance-level
    one registered with :meth:`instance`.
    """

    def __init__(self, class_func: Callable[..., Any]) -> None:
        self.class_func = class_func
        self.instance_func: Callable[..., Any] | None = None
        self.__doc__ = class_func.__doc__

    def instance(self, func: Callable[..., Any]) -> "gatewaymethod":
        self.instance_func = func
        return self

    def __get__(self, obj: Any, owner: type | None = None) -> Callable[..., Any]:
        if obj is None or self.instance_func is None:
            return self.class_func.__get__(owner, owner)
        return self.instance_func.__get__(obj, owner)


def _is_blank(value: Any) -> bool:
    """경로 노드가 비어 있는지 확인 — None, False, 0 and "" are blank; containers never are."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (Mapping, list, tuple)):
        return False
    return not value


def _child(node: Any, key: Any) -> Any:
    if isinstance(node, Mapping):
        return node.get(key)
    if isinstance(node, (list, tuple)) and isinstance(key, int) and -len(node) <= key < len(node):
        return node[key]
    return None


class Model(Generic[RowT]):
    """제네릭 엔티티 게이트웨이.

    Generic entity gateway. Subclasses set ``config``; rows are plain dicts.

    Attributes:
        config: 테이블 설정 (Table configuration, set per subclass)
        attributes: 현재 메모리상의 행 (Current in-memory row)
    """

    config: ClassVar[ModelConfig]

    def __init__(self, attributes: RowT | None = None) -> None:
        self.attributes: RowT = attributes if attributes is not None else {}  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.attributes!r})"

    # ------------------------------------------------------------------
    # 클래스 레벨 게이트웨이 — Class-level gateway operations
    # ------------------------------------------------------------------

    @classmethod
    def get_config(cls) -> ModelConfig:
        """설정을 반환합니다 — Return ``config`` or raise MissingConfigError."""
        config = getattr(cls, "config", None)
        if config is None:
            raise MissingConfigError(cls.__name__)
        return config

    @classmethod
    async def find(
        cls,
        conditions: Conditions | None = None,
        order_by: OrderBy | None = None,
        extra: str = "",
    ) -> list[Row]:
        """조건에 맞는 모든 행을 조회합니다.

        Return the rows matching the conditions.

        Args:
            conditions: WHERE 조건, None이면 전체 (WHERE mapping; every row when None)
            order_by: 정렬 매핑 (Column → "ASC"/"DESC")
            extra: 쿼리 끝에 붙일 SQL (SQL appended at the end of the query)

        Returns:
            list[Row]: 조회된 행 목록, 없으면 빈 목록 (Matching rows, empty when none)
        """
        config = cls.get_config()
        return await config.db.select(config.table_name, conditions, order_by, extra)

    @classmethod
    async def find_one(
        cls,
        primary_key_or_conditions: PrimaryKey | Conditions,
        order_by: OrderBy | None = None,
    ) -> Row | None:
        """기본 키 또는 조건으로 단일 행을 조회합니다.

        Return the row for a primary key value or a conditions mapping.
        Non-mapping arguments are looked up as ``{primary_key: value}``.

        Returns:
            Row | None: 조회된 행 또는 None (Found row or None)
        """
        config = cls.get_config()
        if isinstance(primary_key_or_conditions, Mapping):
            conditions: Conditions = primary_key_or_conditions
        else:
            conditions = {config.primary_key: primary_key_or_conditions}
        return await config.db.select_one(config.table_name, conditions, order_by)

    @classmethod
    async def count(cls, conditions: Conditions | None = None, extra: str = "") -> int:
        """조건에 맞는 행 수를 반환합니다 — Count rows; 0 when no row comes back."""
        config = cls.get_config()
        rows = await config.db.count(config.table_name, conditions, extra)
        return int(rows[0]["count"]) if rows else 0

    @classmethod
    async def query(cls, text: str, values: Sequence[Any] | None = None) -> list[Row]:
        """원시 SQL을 클라이언트로 전달합니다 — Forward raw SQL to the client."""
        return await cls.get_config().db.query(text, values)

    @classmethod
    async def insert(
        cls,
        row: Row,
        on_conflict: OnConflict | None = None,
        returning: str = "*",
    ) -> Row:
        """행을 삽입하고 기본 키를 행에 기록합니다.

        Insert ``row`` and write the returned primary key back onto it.

        When timestamps are enabled, missing ``created_at``/``updated_at``
        are filled with one shared instant; values already on the row win.
        A conflict spec without changes updates with a copy of the enriched
        row, and its ``updated_at`` is defaulted on its own. The caller's
        ``on_conflict`` is never modified.

        If the statement returns no row (``ON CONFLICT DO NOTHING`` hit),
        the row is returned without a primary key update.

        Args:
            row: 삽입할 행, 제자리에서 갱신됨 (Row to insert, enriched in place)
            on_conflict: ON CONFLICT 명세 (Conflict target and changes)
            returning: RETURNING 대상 (Column(s) to return)

        Raises:
            MissingChangesError: 행이 없거나 비어 있음 (Missing or empty row)

        Returns:
            Row: 인자로 받은 행 (The same row object)
        """
        config = cls.get_config()
        if not row:
            raise MissingChangesError(config.table_name, "insert into")

        now = _now()

        if config.with_timestamps:
            if not row.get("created_at"):
                row["created_at"] = now
            if not row.get("updated_at"):
                row["updated_at"] = now

        if on_conflict is not None:
            changes = dict(row) if on_conflict.changes is None else dict(on_conflict.changes)
            if config.with_timestamps and not changes.get("updated_at"):
                changes["updated_at"] = now
            on_conflict = OnConflict(target=list(on_conflict.target), changes=changes)

        result: QueryResult = await config.db.insert(config.table_name, row, returning, on_conflict)

        new_row = result.rows[0] if result.rows else None
        if new_row is not None and config.primary_key in new_row:
            row[config.primary_key] = new_row[config.primary_key]

        return row

    @gatewaymethod
    async def create(cls, row: Row) -> Row:
        """행을 삽입합니다 — Insert a row, returning it with its primary key."""
        return await cls.insert(row, returning=cls.get_config().primary_key)

    @gatewaymethod
    async def upsert(cls, row: Row, on_conflict: OnConflict | None = None) -> Row:
        """행을 삽입하거나 충돌 시 갱신합니다.

        Insert a row or update it on conflict. The default conflict target is
        the primary key and the default changes are the row itself.
        """
        config = cls.get_config()
        if on_conflict is None:
            on_conflict = OnConflict(target=[config.primary_key])
        return await cls.insert(row, on_conflict, returning=config.primary_key)

    @gatewaymethod
    async def update(cls, changes: Row, conditions: Conditions) -> QueryResult:
        """조건에 맞는 행을 갱신합니다.

        Update the rows matching ``conditions``. With timestamps enabled a
        missing ``updated_at`` is set on ``changes`` before the query.

        Raises:
            MissingChangesError: 변경 값이 없을 때 (No changes supplied)
            MissingConditionsError: WHERE 조건이 없을 때 (No conditions supplied)
        """
        config = cls.get_config()
        if not changes:
            raise MissingChangesError(config.table_name, "update")
        if not conditions:
            raise MissingConditionsError(config.table_name, "update")

        if config.with_timestamps and not changes.get("updated_at"):
            changes["updated_at"] = _now()
        return await config.db.update(config.table_name, changes, conditions)

    @gatewaymethod
    async def delete(cls, conditions: Conditions) -> QueryResult:
        """조건에 맞는 행을 삭제합니다.

        Delete the rows matching ``conditions``.

        Raises:
            MissingConditionsError: WHERE 조건이 없을 때 (No conditions supplied)
        """
        config = cls.get_config()
        if not conditions:
            raise MissingConditionsError(config.table_name, "delete from")
        return await config.db.delete(config.table_name, conditions)

    # ------------------------------------------------------------------
    # 인스턴스 레벨 — Instance-level forwarding
    # ------------------------------------------------------------------

    @property
    def table_name(self) -> str:
        return self.get_config().table_name

    @property
    def primary_key(self) -> str:
        return self.get_config().primary_key

    def get_default_query(self) -> Row:
        """기본 키 조건을 반환합니다 — ``{primary_key: current value}``."""
        return {self.primary_key: self.get(self.primary_key)}

    async def retrieve(self, conditions: Conditions | None = None) -> "Model[RowT]":
        """행을 다시 조회하여 새 인스턴스로 반환합니다.

        Fetch the row again by primary key, or by ``conditions`` when given.
        A hit returns a new instance; a miss returns ``self`` untouched.
        """
        query = conditions if conditions else self.get_default_query()
        row = await type(self).find_one(query)
        if row is None:
            return self
        return type(self)(row)  # type: ignore[arg-type]

    retreive = retrieve

    @create.instance
    async def create(self) -> Row:
        row = await type(self).create(self.attributes)
        if self.primary_key in row:
            self.set(self.primary_key, row[self.primary_key])
        return row

    @upsert.instance
    async def upsert(self, on_conflict: OnConflict | None = None) -> Row:
        row = await type(self).upsert(self.attributes, on_conflict)
        if self.primary_key in row:
            self.set(self.primary_key, row[self.primary_key])
        return row

    @update.instance
    async def update(self, conditions: Conditions | None = None) -> QueryResult:
        query = conditions if conditions else self.get_default_query()
        return await type(self).update(self.attributes, query)

    @delete.instance
    async def delete(self, conditions: Conditions | None = None) -> QueryResult:
        query = conditions if conditions else self.get_default_query()
        return await type(self).delete(query)

    # ------------------------------------------------------------------
    # 속성 접근 — Attribute helpers (in memory only)
    # ------------------------------------------------------------------

    def is_empty(self) -> bool:
        """속성이 비어 있는지 확인합니다 — True when there are no attributes."""
        return not self.attributes

    def get(self, key: str) -> Any:
        return self.attributes.get(key)

    def get_all(self) -> RowT:
        return self.attributes

    def get_in(self, key_path: Sequence[Any]) -> Any:
        """중첩된 속성 값을 조회합니다.

        Follow ``key_path`` through nested mappings. Returns None for an
        empty path or as soon as a node along the way is blank.
        """
        if len(key_path) == 0:
            return None

        value: Any = self.attributes
        for key in key_path:
            if _is_blank(value):
                return None
            value = _child(value, key)
        return value

    def set(self, key: str, value: Any) -> "Model[RowT]":
        self.attributes[key] = value  # type: ignore[index]
        return self

    def set_in(self, key_path: Sequence[Any], value: Any) -> "Model[RowT] | None":
        """중첩된 속성 값을 설정합니다.

        Set a nested attribute. Returns None without mutating anything if a
        container along the path is blank or cannot hold the key; otherwise
        the last key is set (created if missing) and ``self`` is returned.
        Only the containers are checked, never the value being replaced.
        """
        nested: Any = self.attributes
        last = len(key_path) - 1

        for index, key in enumerate(key_path):
            if _is_blank(nested):
                return None
            if index < last:
                nested = _child(nested, key)
            elif isinstance(nested, dict):
                nested[key] = value
            elif isinstance(nested, list) and isinstance(key, int) and -len(nested) <= key < len(nested):
                nested[key] = value
            else:
                return None
        return self

    def assign(self, template: Mapping[str, Any]) -> "Model[RowT]":
        """속성을 얕게 병합합니다 — Shallow-merge ``template`` into a new attributes dict."""
        self.attributes = {**self.attributes, **template}  # type: ignore[assignment]
        return self
