"""공통 타입 및 Pydantic 스키마 정의.

Common type aliases and Pydantic schema definitions shared by the
query builder, the Postgres client and the Model gateway.
"""

from collections.abc import Mapping
from typing import Any, Union

from pydantic import BaseModel, Field

# === 행/조건 타입 별칭 (Row and condition aliases) ===

Row = dict[str, Any]  # 컬럼 이름 → 값 (Column name → value)
Conditions = Mapping[str, Any]  # WHERE 등가 조건 (Equality predicates, ANDed)
Changes = Mapping[str, Any]  # SET 변경 값 (New values per column)
OrderBy = Mapping[str, str]  # 컬럼 → "ASC"/"DESC" (Column → direction, passed through)
PrimaryKey = Union[str, int]


class OnConflict(BaseModel):
    """INSERT ... ON CONFLICT 절 설명 스키마.

    Conflict specification for upserts.
    An empty target produces ``ON CONFLICT DO NOTHING``; a target together
    with changes produces ``ON CONFLICT (target) DO UPDATE SET ...``.

    Attributes:
        target: 충돌 대상 컬럼 목록 (Columns forming the uniqueness constraint)
        changes: 충돌 시 적용할 변경 값 (Changes applied on conflict, optional)
    """

    target: list[str] = Field(default_factory=list)
    changes: dict[str, Any] | None = None


class QueryResult(BaseModel):
    """쿼리 실행 결과 스키마.

    Result of a single executed statement.

    Attributes:
        rows: 반환된 행 목록 (Returned rows, empty when the statement returns none)
        row_count: 영향받은 행 수 (Affected row count reported by the driver, -1 if unknown)
    """

    rows: list[Row] = Field(default_factory=list)
    row_count: int = -1
