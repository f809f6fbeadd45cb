"""Evidence schemas.

A ProbeOutcome is what the executor records for one checker call — the raw
value, or why there is no value. Evidence is what the normalizer turns each
outcome into: one reliability-weighted observation per diagnostic signal.
Scorers reason over evidence — they never see the raw probe values.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ProbeStatus(str, Enum):
    """How a single checker call settled."""

    OK = "ok"
    NOT_APPLICABLE = "not_applicable"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class ProbeOutcome(BaseModel):
    """The settled result of one checker call.

    Attributes:
        probe: Name of the checker that was called (e.g. "permissions").
        status: Whether the call produced a value, was not applicable,
            raised, or timed out.
        value: The checker's return value when status is OK, else None.
        error: Human-readable failure reason for FAILED and TIMED_OUT.
        elapsed_ms: Wall-clock time the call took, measured by the executor.
    """

    model_config = ConfigDict(frozen=True)

    probe: str
    status: ProbeStatus
    value: Any = None
    error: str | None = None
    elapsed_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status == ProbeStatus.OK


class Evidence(BaseModel):
    """A normalized observation about one diagnostic signal for one run.

    Attributes:
        signal_id: Catalog signal this evidence is about
            (e.g. "health_permissions").
        observed: Normalized observed value (e.g. "denied", "fresh"). None
            means the check was attempted but could not be completed, so
            nothing is known about the signal.
        reliability: How far the observation can be trusted, 0.0-1.0.
            Unknown evidence always has reliability 0.0.
    """

    model_config = ConfigDict(frozen=True)

    signal_id: str
    observed: str | None
    reliability: float = Field(ge=0.0, le=1.0)

    @property
    def is_usable(self) -> bool:
        """True if this evidence may take part in a Bayesian update."""
        return self.observed is not None and self.reliability > 0.0
