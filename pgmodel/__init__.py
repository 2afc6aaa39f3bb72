"""pgmodel — PostgreSQL 행 매핑 및 SQL 조각 생성 라이브러리.

Thin PostgreSQL data-access layer: a generic per-table ``Model`` gateway
and a query fragment builder producing ``$N``-parameterized SQL.
"""

from pgmodel.database import DatabaseClient, Postgres, postgres
from pgmodel.models import Model, ModelConfig
from pgmodel.schemas.common import OnConflict, QueryResult, Row
from pgmodel.utils.exceptions import (
    ContractViolationError,
    MissingChangesError,
    MissingConditionsError,
    MissingConfigError,
    NotConnectedError,
)

__all__ = [
    "ContractViolationError",
    "DatabaseClient",
    "MissingChangesError",
    "MissingConditionsError",
    "MissingConfigError",
    "Model",
    "ModelConfig",
    "NotConnectedError",
    "OnConflict",
    "Postgres",
    "QueryResult",
    "Row",
    "postgres",
]
