from typing import Final

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from imbue.poll_until.primitives import Milliseconds

DEFAULT_DELAY_MS: Final[Milliseconds] = Milliseconds(500)
DEFAULT_TIMEOUT_MS: Final[Milliseconds] = Milliseconds(30_000)


class PollOptions(BaseModel):
    """How often to evaluate a predicate, and how long to keep trying.

    Immutable once constructed, so the values resolved at the start of a poll
    stay fixed for the lifetime of that poll.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=False,
    )

    delay_ms: Milliseconds = Field(
        default=DEFAULT_DELAY_MS,
        description="How long to wait between evaluations",
    )
    timeout_ms: Milliseconds = Field(
        default=DEFAULT_TIMEOUT_MS,
        description="Maximum time, measured from the start of the poll, before giving up with a timeout",
    )

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms.to_seconds()

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms.to_seconds()
