"""SQL 조각 생성 유틸리티 모듈.

SQL fragment builder utility module.
Turns plain column/value mappings into parameterized SQL fragments with
PostgreSQL ``$N`` placeholders. Nothing here executes a query.

Every function iterates the mapping it receives exactly once, in the
mapping's own order. Callers build the value list from the same mapping
with ``list(mapping.values())`` so text and values stay aligned.

Example:
    >>> assignment_fields({"name": "x", "owner": "y"}, start=1)
    ['"name" = $2', '"owner" = $3']
"""

from collections.abc import Mapping
from typing import Any

from pgmodel.schemas.common import OnConflict

DO_NOTHING: str = "ON CONFLICT DO NOTHING"


def quote_identifier(name: str) -> str:
    """컬럼 이름을 큰따옴표로 감쌉니다 — Quote a column identifier.

    Embedded double quotes are doubled, as PostgreSQL expects.
    """
    return '"' + str(name).replace('"', '""') + '"'


def column_fields(columns: Mapping[str, Any]) -> list[str]:
    """매핑의 키를 따옴표 친 컬럼 목록으로 변환합니다.

    From ``{column1: 1, column2: "a"}`` to ``['"column1"', '"column2"']``.

    Args:
        columns: 컬럼 이름을 키로 갖는 매핑 (Mapping keyed by column name)

    Returns:
        list[str]: 따옴표 친 컬럼 이름 (Quoted column identifiers, in key order)
    """
    return [quote_identifier(name) for name in columns]


def assignment_fields(columns: Mapping[str, Any], start: int = 0) -> list[str]:
    """매핑을 ``"column" = $N`` 목록으로 변환합니다.

    From ``{column1: 1, column2: "a"}`` to ``['"column1" = $1', '"column2" = $2']``.
    The placeholder index starts at ``start + 1`` so two mappings can share
    one contiguous numbering (SET values followed by WHERE values).

    Args:
        columns: 컬럼 이름을 키로 갖는 매핑 (Mapping keyed by column name)
        start: 앞서 사용된 값의 개수 (Number of values bound before this mapping)

    Returns:
        list[str]: 할당 조각 목록 (Assignment fragments, in key order)
    """
    return [
        f"{quote_identifier(name)} = ${index + start + 1}"
        for index, name in enumerate(columns)
    ]


def value_placeholders(columns: Mapping[str, Any], start: int = 0) -> list[str]:
    """매핑을 ``$N`` 플레이스홀더 목록으로 변환합니다.

    From ``{column1: 1, column2: "a"}`` to ``['$1', '$2']``, same numbering
    rule as :func:`assignment_fields`.
    """
    return [f"${index + start + 1}" for index, _ in enumerate(columns)]


def order_clauses(order_by: Mapping[str, str]) -> list[str]:
    """정렬 매핑을 ``"column" DIRECTION`` 목록으로 변환합니다.

    From ``{column1: "DESC", column2: "ASC"}`` to
    ``['"column1" DESC', '"column2" ASC']``. The direction is not validated.
    """
    return [f"{quote_identifier(name)} {direction}" for name, direction in order_by.items()]


def where_clause(conditions: Mapping[str, Any] | None, start: int = 0) -> str:
    """WHERE 절을 생성합니다 — 조건이 없으면 빈 문자열.

    Build ``WHERE "a" = $1 AND "b" = $2`` or ``''`` for no conditions.
    """
    if not conditions:
        return ""
    return "WHERE " + " AND ".join(assignment_fields(conditions, start))


def order_by_clause(order_by: Mapping[str, str] | None) -> str:
    """ORDER BY 절을 생성합니다 — 정렬이 없으면 빈 문자열."""
    if not order_by:
        return ""
    return "ORDER BY " + ", ".join(order_clauses(order_by))


def conflict_clause(on_conflict: OnConflict | None, start: int = 0) -> str:
    """ON CONFLICT 절을 생성합니다.

    Build the conflict clause of an INSERT.
    With a target and changes it is ``ON CONFLICT (t1, t2) DO UPDATE SET ...``
    whose placeholders start after the ``start`` insert values, matching a
    value list of ``insert_values + conflict_change_values``. Anything else
    is ``ON CONFLICT DO NOTHING``.

    Args:
        on_conflict: 충돌 처리 명세 (Conflict specification, None for none)
        start: INSERT 값의 개수 (Number of insert values bound before the changes)

    Returns:
        str: ON CONFLICT 절 (The conflict clause)
    """
    if on_conflict is None or not on_conflict.target or not on_conflict.changes:
        return DO_NOTHING

    # 충돌 대상은 표현식일 수 있어 그대로 출력 — Targets are emitted verbatim
    target = ", ".join(on_conflict.target)
    assignments = ", ".join(assignment_fields(on_conflict.changes, start))
    return f"ON CONFLICT ({target}) DO UPDATE SET {assignments}"


def conflict_values(on_conflict: OnConflict | None) -> list[Any]:
    """ON CONFLICT 절에 바인딩할 값 목록 — Values bound by :func:`conflict_clause`."""
    if on_conflict is None or not on_conflict.target or not on_conflict.changes:
        return []
    return list(on_conflict.changes.values())
