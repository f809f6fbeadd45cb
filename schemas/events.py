"""Check event schema.

Events are emitted by the executor while checkers run so a display can show
progress in real time. The engine and any display are decoupled — the
engine works the same whether or not anything is listening.
"""

from enum import Enum

from pydantic import BaseModel


class EventType(str, Enum):
    """The lifecycle stages a checker call can emit events for.

    Values:
        STARTED: Checker call has been dispatched.
        COMPLETE: Checker returned a value.
        SKIPPED: Checker reported the signal is not applicable here.
        ERROR: Checker raised or timed out.
    """

    STARTED = "started"
    COMPLETE = "complete"
    SKIPPED = "skipped"
    ERROR = "error"


class CheckEvent(BaseModel):
    """A single event emitted during one checker call.

    Attributes:
        probe: Name of the checker the event is about.
        event_type: Lifecycle stage this event represents.
        message: Human-readable description (e.g. "timed out after 5.0s").
        timestamp_ms: Milliseconds since the fan-out started.
    """

    probe: str
    event_type: EventType
    message: str
    timestamp_ms: float
