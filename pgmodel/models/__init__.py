"""Model 패키지 — 테이블 게이트웨이의 중앙 임포트 지점.

Model package — Central import point for the table gateway.

Modules:
    base: 제네릭 Model, ModelConfig (Generic Model gateway and its per-table configuration)
"""

from pgmodel.models.base import Model, ModelConfig

__all__ = ["Model", "ModelConfig"]
