from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class UpstreamErrorKind(str, Enum):
    MISSING_CREDENTIAL = "MISSING_CREDENTIAL"   # ETSY_API_KEY not set
    RATE_LIMITED = "RATE_LIMITED"               # 429 after all retries
    NOT_FOUND = "NOT_FOUND"                     # 404, shop/section doesn't exist
    UPSTREAM_ERROR = "UPSTREAM_ERROR"           # other non-2xx from Etsy
    NETWORK_ERROR = "NETWORK_ERROR"             # transport failed (DNS, reset, timeout)
    UNKNOWN = "UNKNOWN"                         # unparseable body, unexpected payload


class UpstreamFailure(BaseModel):
    kind: UpstreamErrorKind
    message: str
    status: Optional[int] = None
    model_config = {"frozen": True}


class Result(BaseModel, Generic[T]):
    """
    Either a success payload or a typed failure.
    Upstream-facing operations return this instead of raising; callers branch on `ok`.
    """
    ok: bool
    data: Optional[T] = None
    error: Optional[UpstreamFailure] = None

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @classmethod
    def success(cls, data: Any) -> "Result":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, kind: UpstreamErrorKind, message: str, status: Optional[int] = None) -> "Result":
        return cls(ok=False, error=UpstreamFailure(kind=kind, message=message, status=status))

    @property
    def kind(self) -> Optional[UpstreamErrorKind]:
        return self.error.kind if self.error else None
