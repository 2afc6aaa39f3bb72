"""쿼리 로깅 모듈 — 표준 로거 및 Axiom 전송.

Query logging module.
Records every statement executed by the Postgres client: SQL text, value
count, duration, row count and error reason. Events go to the standard
library logger and, when configured, to Axiom.
Bound values are only included when ``QUERY_LOG_VALUES`` is enabled.
"""

import logging
from typing import Any, Sequence

from axiom_py import Client as AxiomClient

from pgmodel.config import settings

logger = logging.getLogger(__name__)


def _truncate(value: Any, max_len: int = 2000) -> Any:
    """로그 크기 제한 — Truncate large values to prevent oversized logs."""
    if isinstance(value, str) and len(value) > max_len:
        return value[:max_len] + "...(truncated)"
    return value


def _squash(statement: str) -> str:
    """여러 줄 SQL을 한 줄로 — Collapse whitespace runs in a statement."""
    return " ".join(statement.split())


class QueryLogger:
    """실행된 쿼리를 로거와 Axiom에 기록합니다.

    Records executed statements to the standard logger and optionally Axiom.

    Args:
        token: Axiom API 토큰 (Axiom token; settings value when None)
        dataset: Axiom 데이터셋 (Axiom dataset; settings value when None)
        include_values: 바인딩 값 포함 여부 (Include bound values in events)
        client: 미리 생성된 Axiom 클라이언트 (Prebuilt Axiom client, mostly for tests)
    """

    def __init__(
        self,
        token: str | None = None,
        dataset: str | None = None,
        include_values: bool | None = None,
        client: Any | None = None,
    ) -> None:
        token = settings.AXIOM_API_TOKEN if token is None else token
        self._dataset: str = settings.AXIOM_DATASET if dataset is None else dataset
        self._include_values: bool = (
            settings.QUERY_LOG_VALUES if include_values is None else include_values
        )
        self._client: Any | None = client

        # Axiom 미설정시 로거만 사용 — Logger only when Axiom is not configured
        if self._client is None and token and self._dataset:
            self._client = AxiomClient(token=token)

    @property
    def ships_to_axiom(self) -> bool:
        return self._client is not None and bool(self._dataset)

    def build_event(
        self,
        statement: str,
        values: Sequence[Any],
        duration_ms: float,
        row_count: int | None = None,
        error: BaseException | None = None,
    ) -> dict[str, Any]:
        """로그 이벤트 구성 — Build the structured log event."""
        event: dict[str, Any] = {
            "statement": _truncate(_squash(statement)),
            "value_count": len(values),
            "duration_ms": round(duration_ms, 2),
        }
        if row_count is not None:
            event["row_count"] = row_count
        if self._include_values:
            event["values"] = [_truncate(v) if isinstance(v, str) else repr(v) for v in values[:50]]
        if error is not None:
            event["error"] = f"{type(error).__name__}: {str(error)[:300]}"
        return event

    def record(
        self,
        statement: str,
        values: Sequence[Any],
        duration_ms: float,
        row_count: int | None = None,
        error: BaseException | None = None,
    ) -> dict[str, Any]:
        """쿼리 실행 결과를 기록합니다.

        Record one executed statement.

        Args:
            statement: 실행한 SQL (Executed SQL text)
            values: 바인딩 값 (Bound values)
            duration_ms: 실행 시간 밀리초 (Execution time in milliseconds)
            row_count: 영향받은 행 수 (Affected row count, if known)
            error: 실행 중 발생한 예외 (Exception raised by the driver, if any)

        Returns:
            dict[str, Any]: 기록된 이벤트 (The recorded event)
        """
        event = self.build_event(statement, values, duration_ms, row_count, error)

        if error is None:
            logger.debug("query ok in %sms: %s", event["duration_ms"], event["statement"])
        else:
            logger.warning("query failed in %sms: %s (%s)", event["duration_ms"], event["statement"], event["error"])

        if self.ships_to_axiom:
            # Axiom 전송 실패가 쿼리 결과에 영향주지 않도록 — Never break a query on log failure
            try:
                self._client.ingest_events(self._dataset, [event])
            except Exception as exc:
                logger.warning("axiom ingest failed: %s", exc)

        return event
