from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a call to Gemini or Google Sheets: a value or an error message"""
    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value=None):
        return cls(value=value)

    @classmethod
    def failure(cls, error):
        message = str(error)
        if not message and isinstance(error, Exception):
            # str(exc) is empty for some client errors
            message = error.__class__.__name__
        return cls(error=message or "Unknown error")
