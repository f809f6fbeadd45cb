"""Report schemas.

Defines the single output value of a diagnostic run (DiagnosticReport) and
the pieces it is built from. This is the only object that crosses the
engine boundary to the caller — the chatbot's response layer reads it to
compose an answer.
"""

import uuid
from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from schemas.activity import ActivitySample
from schemas.issue import IssueType, ScoredIssue


class TrackingStatus(str, Enum):
    """Overall verdict on whether activity tracking works.

    Values:
        WORKING: Fresh activity is flowing; at most minor notes remain.
        DEGRADED: An issue exists but activity is still partially flowing.
        BROKEN: A blocking issue exists, or no activity reaches the app.
        UNKNOWN: Not enough checks completed to tell.
    """

    WORKING = "working"
    DEGRADED = "degraded"
    BROKEN = "broken"
    UNKNOWN = "unknown"


class CausalChain(BaseModel):
    """A detected cause→effect link between two reported issues.

    Attributes:
        cause_issue_type: The upstream issue.
        effect_issue_type: The issue it explains.
        strength: Product of the two confidences, 0.0-1.0.
        explanation: Why the cause produces the effect, shown to the user
            under "Why this matters".
    """

    model_config = ConfigDict(frozen=True)

    cause_issue_type: IssueType
    effect_issue_type: IssueType
    strength: float = Field(ge=0.0, le=1.0)
    explanation: str = ""


class ReasoningTrace(BaseModel):
    """Audit record of one run.

    Attributes:
        checks_performed: One entry per catalog signal in declaration order,
            suffixed with its outcome. Lists every attempted check whether
            it succeeded, failed, or was not applicable.
        reasoning: Generated explanation of the diagnosis.
        skipped_checks: Labels of checks that were not applicable.
        failed_checks: Labels of checks that could not be completed.
    """

    model_config = ConfigDict(frozen=True)

    checks_performed: list[str]
    reasoning: str
    skipped_checks: list[str] = Field(default_factory=list)
    failed_checks: list[str] = Field(default_factory=list)


class DiagnosticReport(BaseModel):
    """Final output of DiagnosticEngine.run_diagnostic().

    Attributes:
        primary_issue: The highest-ranked reportable issue, or None when
            nothing blocks tracking.
        secondary_issues: Remaining reportable issues, ranked.
        causal_chains: Detected cause→effect links between reported issues.
        tracking_status: Overall verdict.
        overall_confidence: Confidence in the verdict as a whole, 0.0-1.0.
        is_working_despite_issues: Tracking works but minor issues were
            noted — distinguishes "fine, minor notes" from "fully clean".
        reasoning: Checks performed plus the generated explanation.
        recent_samples: Activity samples read during the run.
        as_of: The date the run judged freshness against.
        report_id: Auto-generated UUID for correlating logs with reports.
    """

    model_config = ConfigDict(frozen=True)

    primary_issue: ScoredIssue | None = None
    secondary_issues: list[ScoredIssue] = Field(default_factory=list)
    causal_chains: list[CausalChain] = Field(default_factory=list)
    tracking_status: TrackingStatus
    overall_confidence: float = Field(ge=0.0, le=1.0)
    is_working_despite_issues: bool = False
    reasoning: ReasoningTrace
    recent_samples: list[ActivitySample] = Field(default_factory=list)
    as_of: date = Field(default_factory=date.today)
    report_id: str = Field(default_factory=lambda: str(uuid.uuid4()))

    def today_steps(self) -> int:
        """Sum of steps recorded on the run date across all sources."""
        return sum(s.steps for s in self.recent_samples if s.date == self.as_of)
