from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel


class Outcome(str, Enum):
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    # A compensating or non-critical step failed; logged, never raised.
    BEST_EFFORT_FAILED = "best_effort_failed"


class Result(BaseModel):
    outcome: Outcome
    detail: Optional[str] = None
    value: Optional[Any] = None

    @classmethod
    def ok(cls, value: Any = None) -> "Result":
        return cls(outcome=Outcome.SUCCEEDED, value=value)

    @classmethod
    def skipped(cls, detail: str) -> "Result":
        return cls(outcome=Outcome.SKIPPED, detail=detail)

    @classmethod
    def best_effort_failed(cls, detail: str) -> "Result":
        return cls(outcome=Outcome.BEST_EFFORT_FAILED, detail=detail)

    @property
    def succeeded(self) -> bool:
        return self.outcome == Outcome.SUCCEEDED
