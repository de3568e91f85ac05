import math
from enum import StrEnum
from enum import auto
from typing import Any
from typing import Self

from pydantic import GetCoreSchemaHandler
from pydantic_core import CoreSchema
from pydantic_core import core_schema


def format_milliseconds(value: float) -> str:
    """Render a duration in ms without a trailing .0 (30000.0 -> "30000", 12.5 -> "12.5")."""
    if float(value).is_integer():
        return str(int(value))
    return str(float(value))


class Milliseconds(float):
    """A strictly positive, finite duration, in milliseconds."""

    def __new__(cls, value: float) -> Self:
        if not math.isfinite(value) or value <= 0:
            raise ValueError(f"{cls.__name__} must be finite and > 0, got {value}")
        return super().__new__(cls, value)

    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        source_type: Any,
        handler: GetCoreSchemaHandler,
    ) -> CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls,
            core_schema.float_schema(gt=0, allow_inf_nan=False),
        )

    def to_seconds(self) -> float:
        return self / 1000.0


class EvaluationOutcome(StrEnum):
    """Result of a single predicate evaluation."""

    @staticmethod
    def _generate_next_value_(
        name: str,
        start: int,
        count: int,
        last_values: list[str],
    ) -> str:
        return name.upper()

    # The predicate produced a truthy value
    SUCCESS = auto()
    # The predicate produced a falsy value
    PENDING = auto()
    # The predicate raised
    FAILED = auto()
