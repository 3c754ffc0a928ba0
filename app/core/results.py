from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

from app.core.errors import GatewayError

T = TypeVar("T")


class GatewayResult(BaseModel, Generic[T]):
    """Uniform `{data, error}` shape returned by every gateway operation"""

    data: Optional[T] = None
    error: Optional[GatewayError] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Optional[T] = None) -> "GatewayResult[T]":
        return cls(data=data, error=None)

    @classmethod
    def failure(cls, error: GatewayError) -> "GatewayResult[T]":
        return cls(data=None, error=error)
