from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    details: Optional[dict] = None
    status_code: Optional[int] = None

    @staticmethod
    def success(value: T) -> "Result[T]":
        return Result(ok=True, value=value)

    @staticmethod
    def failure(
        error: str,
        code: str = "unknown",
        *,
        details: Optional[dict] = None,
        status_code: Optional[int] = None,
    ) -> "Result[T]":
        return Result(ok=False, error=error, error_code=code, details=details, status_code=status_code)

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default
