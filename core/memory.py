"""Run memory for a single diagnostic run.

RunMemory is the typed, append-only store that lives for the duration of
one DiagnosticEngine.run_diagnostic() call. It is created at the start of
the run, written to as probe outcomes settle and evidence is normalized, and
read by the scorer and the report assembler.

It is not a database. It does not persist between runs. When
run_diagnostic() returns, the memory object is discarded — so an abandoned
run can never leak state into the next one.

Lifecycle within one run:
    1. DiagnosticEngine creates an empty RunMemory
    2. Probe outcomes from the executor are written into it
    3. The normalizer's evidence (and unknown/skipped records) are written
    4. IssueScorer reads memory.usable_evidence()
    5. ReportAssembler reads check records to build the reasoning trace
"""

from dataclasses import dataclass

from core.catalog import SignalDefinition
from schemas.evidence import Evidence, ProbeOutcome


@dataclass(frozen=True)
class CheckRecord:
    """What happened to one catalog signal in this run.

    Attributes:
        signal: The catalog signal that was attempted.
        evidence: The normalized evidence, or None if the signal was not
            applicable and its evidence was omitted.
    """

    signal: SignalDefinition
    evidence: Evidence | None

    @property
    def not_applicable(self) -> bool:
        return self.evidence is None

    @property
    def failed(self) -> bool:
        return self.evidence is not None and not self.evidence.is_usable


class RunMemory:
    """Typed, append-only in-RAM store for one run.

    All writes are append-only — outcomes and check records can be added but
    never removed or modified.

    Attributes:
        _outcomes: Probe name to the ProbeOutcome of its checker call.
        _records: One CheckRecord per attempted signal, in insertion order.
    """

    def __init__(self) -> None:
        """Initialise empty memory."""
        self._outcomes: dict[str, ProbeOutcome] = {}
        self._records: list[CheckRecord] = []

    def add_outcomes(self, outcomes: dict[str, ProbeOutcome]) -> None:
        """Record the settled outcomes of a fan-out.

        Raises:
            ValueError: If an outcome for the same probe was already recorded.
        """
        duplicate = self._outcomes.keys() & outcomes.keys()
        if duplicate:
            raise ValueError(f"Outcomes already recorded for probes: {sorted(duplicate)}")
        self._outcomes.update(outcomes)

    def outcome_for(self, probe: str) -> ProbeOutcome | None:
        return self._outcomes.get(probe)

    def add_record(self, record: CheckRecord) -> None:
        self._records.append(record)

    def get_records(self) -> list[CheckRecord]:
        """Return all check records. Returns a copy."""
        return list(self._records)

    def get_evidence(self) -> list[Evidence]:
        """Return every evidence record, including unknown ones."""
        return [r.evidence for r in self._records if r.evidence is not None]

    def usable_evidence(self) -> list[Evidence]:
        """Return only evidence that may take part in Bayesian updates."""
        return [e for e in self.get_evidence() if e.is_usable]
