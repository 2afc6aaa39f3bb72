"""데이터 접근 계층 예외 클래스 모듈.

Data access layer exception classes module.
Caller-contract violations are raised before any query is sent, so a
missing WHERE clause can never turn into a full-table UPDATE or DELETE.
Errors coming from the driver (constraint violations, connection errors)
are not wrapped and propagate as raised by SQLAlchemy/asyncpg.

Usage:
    from pgmodel.utils.exceptions import MissingConditionsError
    raise MissingConditionsError("parcels", "delete")
"""


class ContractViolationError(ValueError):
    """호출 규약 위반 예외의 부모 클래스.

    Base class for programmer errors detected before any I/O happens.
    """


class MissingChangesError(ContractViolationError):
    """변경 값 없이 INSERT/UPDATE를 시도할 때 사용.

    Raised when an insert or update is attempted without a changes mapping.

    Args:
        table_name: 대상 테이블 이름 (Target table name)
        operation: 수행하려던 작업 (Attempted operation, e.g. "insert")
    """

    def __init__(self, table_name: str, operation: str = "insert") -> None:
        self.table_name = table_name
        self.operation = operation
        super().__init__(
            f"Tried to {operation} {table_name} without any values. Supply a changes object"
        )


class MissingConditionsError(ContractViolationError):
    """WHERE 조건 없이 UPDATE/DELETE를 시도할 때 사용.

    Raised when an update or delete is attempted without a conditions mapping.

    Args:
        table_name: 대상 테이블 이름 (Target table name)
        operation: 수행하려던 작업 (Attempted operation, e.g. "delete")
    """

    def __init__(self, table_name: str, operation: str = "delete") -> None:
        self.table_name = table_name
        self.operation = operation
        super().__init__(
            f"Tried to {operation} {table_name} without a WHERE clause. Supply a conditions object"
        )


class MissingConfigError(ContractViolationError):
    """config 없이 Model 서브클래스를 사용할 때 사용.

    Raised when a Model subclass is used without a ``config`` attribute.
    """

    def __init__(self, model_name: str) -> None:
        self.model_name = model_name
        super().__init__(
            f"{model_name} has no config. Set `config = ModelConfig(table_name=...)` on the class"
        )


class NotConnectedError(RuntimeError):
    """connect() 호출 전에 클라이언트를 사용할 때 사용.

    Raised when a database client is used before ``connect()`` was awaited.
    """

    def __init__(self, detail: str = "Database client is not connected. Call `await connect()` first") -> None:
        super().__init__(detail)
