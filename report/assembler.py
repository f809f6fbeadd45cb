"""Report assembler — turns a scored run into a DiagnosticReport.

The assembler owns the verdict. Given the ranked reportable issues, the
detected causal chains and the check records of one run, it decides:

1. Primary vs secondary — the top-ranked issue is primary, unless tracking
   is working, in which case every remaining (minor) issue is secondary.
2. Tracking status — evaluated in this order:
       no usable evidence                               → unknown
       fresh data and every reportable issue is minor   → working
       nothing reportable and fresh data not confirmed  → unknown
       primary severity ≥ 0.9 or no recent data at all  → broken
       otherwise                                        → degraded
3. Overall confidence — with a primary issue, a blend of its confidence
   and severity. Without one, the share of checks that completed times
   the confidence that no non-minor issue is present, floored at 0.5.

It is deterministic and never raises for well-formed input.
"""

import logging
from datetime import date

from core.memory import CheckRecord
from report.reasoning import ReasoningGenerator
from schemas.activity import ActivitySample
from schemas.issue import ScoredIssue
from schemas.report import CausalChain, DiagnosticReport, TrackingStatus
from scoring.bayes import clamp_unit

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_SIGNAL = "recent_activity"

BROKEN_SEVERITY = 0.9
MINOR_SEVERITY = 0.2

PRIMARY_CONFIDENCE_WEIGHT = 0.7
PRIMARY_SEVERITY_WEIGHT = 0.3
NO_ISSUE_CONFIDENCE_FLOOR = 0.5


class ReportAssembler:
    """Builds the final DiagnosticReport for one run.

    Attributes:
        reasoning: Generator for the reasoning trace.
    """

    def __init__(self, reasoning: ReasoningGenerator | None = None) -> None:
        self.reasoning = reasoning or ReasoningGenerator()

    def assemble(
        self,
        ranked: list[ScoredIssue],
        scored: list[ScoredIssue],
        chains: list[CausalChain],
        records: list[CheckRecord],
        samples: list[ActivitySample] | None = None,
        as_of: date | None = None,
    ) -> DiagnosticReport:
        """Assemble the report.

        Args:
            ranked: Reportable issues, best first (IssueScorer.select output).
            scored: Every scored issue of the run, reportable or not.
            chains: Causal chains among the reportable issues.
            records: One CheckRecord per attempted signal, in catalog order.
            samples: Activity samples read during the run, if any.
            as_of: The date freshness was judged against. Defaults to today.

        Returns:
            The DiagnosticReport for this run.
        """
        usable = [r for r in records if r.evidence is not None and r.evidence.is_usable]
        recent_activity = _observed(records, RECENT_ACTIVITY_SIGNAL)

        status = self._status(ranked, usable, recent_activity)
        if status == TrackingStatus.WORKING:
            primary, secondary = None, list(ranked)
        else:
            primary = ranked[0] if ranked else None
            secondary = list(ranked[1:])

        confidence = self._overall_confidence(primary, scored, records, usable)
        trace = self.reasoning.generate(primary, secondary, chains, status, records)

        logger.info(
            "Assembled report: status=%s primary=%s secondary=%d chains=%d confidence=%.2f",
            status.value,
            primary.issue_type.value if primary else None,
            len(secondary),
            len(chains),
            confidence,
        )
        return DiagnosticReport(
            primary_issue=primary,
            secondary_issues=secondary,
            causal_chains=chains,
            tracking_status=status,
            overall_confidence=confidence,
            is_working_despite_issues=status == TrackingStatus.WORKING and bool(secondary),
            reasoning=trace,
            recent_samples=list(samples or []),
            as_of=as_of or date.today(),
        )

    # ── Private helpers ───────────────────────────────────────────────────────

    def _status(self, ranked: list[ScoredIssue], usable: list[CheckRecord],
                recent_activity: str | None) -> TrackingStatus:
        if not usable:
            return TrackingStatus.UNKNOWN

        fresh = recent_activity == "fresh"
        if fresh and all(issue.severity <= MINOR_SEVERITY for issue in ranked):
            return TrackingStatus.WORKING

        if not ranked:
            return TrackingStatus.UNKNOWN

        if ranked[0].severity >= BROKEN_SEVERITY or recent_activity == "none":
            return TrackingStatus.BROKEN
        return TrackingStatus.DEGRADED

    def _overall_confidence(self, primary: ScoredIssue | None, scored: list[ScoredIssue],
                            records: list[CheckRecord], usable: list[CheckRecord]) -> float:
        if primary is not None:
            return clamp_unit(
                PRIMARY_CONFIDENCE_WEIGHT * primary.confidence
                + PRIMARY_SEVERITY_WEIGHT * primary.severity
            )

        applicable = sum(1 for r in records if not r.not_applicable)
        if applicable == 0:
            return NO_ISSUE_CONFIDENCE_FLOOR

        coverage = len(usable) / applicable
        blocking = [s.confidence for s in scored if s.severity > MINOR_SEVERITY]
        worst = max(blocking, default=0.0)
        return clamp_unit(max(NO_ISSUE_CONFIDENCE_FLOOR, coverage * (1.0 - worst)))


def _observed(records: list[CheckRecord], signal_id: str) -> str | None:
    for record in records:
        if record.signal.signal_id == signal_id and record.evidence is not None:
            return record.evidence.observed if record.evidence.is_usable else None
    return None
