"""Issue schemas.

IssueDefinition is one row of the static issue catalog: a diagnosable
condition with its prior, its impact weights, and which evidence bears on
it. ScoredIssue is what the scorer derives from a definition plus one run's
evidence. Definitions live for the whole process; scored issues live for
one run.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class IssueType(str, Enum):
    """Closed set of conditions the engine can diagnose.

    Extends str so values serialize to plain strings ("stale_data") in
    reports and logs.
    """

    PERMISSIONS_NOT_GRANTED = "permissions_not_granted"
    HEALTH_BRIDGE_NOT_INSTALLED = "health_bridge_not_installed"
    PLATFORM_NOT_AVAILABLE = "platform_not_available"
    HEALTH_SERVICE_UNAVAILABLE = "health_service_unavailable"
    BATTERY_OPTIMIZATION_ENABLED = "battery_optimization_enabled"
    LOW_POWER_MODE = "low_power_mode"
    BACKGROUND_SYNC_DISABLED = "background_sync_disabled"
    NO_DATA_SOURCES = "no_data_sources"
    STALE_DATA = "stale_data"
    APP_FORCE_QUIT = "app_force_quit"
    DEVICE_OFFLINE = "device_offline"
    MULTIPLE_CONFLICTING_SOURCES = "multiple_conflicting_sources"
    DATA_DISCREPANCY = "data_discrepancy"
    MANUAL_ENTRIES_DETECTED = "manual_entries_detected"


class EvidenceRule(BaseModel):
    """How one signal bears on one issue.

    Attributes:
        signal_id: The catalog signal this rule reads.
        indicates: Observed values that count as the symptom being present.
            Any other observed value counts as the symptom being absent.
        likelihood_given_true: Optional override of the definition's
            P(symptom | issue present). Used for corroborating signals that
            are weaker than the issue's direct probe.
        likelihood_given_false: Optional override of the definition's
            P(symptom | issue absent).
    """

    model_config = ConfigDict(frozen=True)

    signal_id: str
    indicates: frozenset[str]
    likelihood_given_true: float | None = Field(default=None, ge=0.0, le=1.0)
    likelihood_given_false: float | None = Field(default=None, ge=0.0, le=1.0)


class IssueDefinition(BaseModel):
    """One diagnosable condition in the static catalog.

    Attributes:
        issue_type: Catalog key.
        title: Short user-facing name used in reasoning text.
        prior_probability: Base rate of the issue before any evidence.
        severity: How badly the issue breaks tracking (1.0 blocks everything).
        actionability: How easily the user can fix it (1.0 is one tap).
        likelihood_given_true: P(symptom | issue present) for the issue's
            evidence rules unless a rule overrides it.
        likelihood_given_false: P(symptom | issue absent), same defaulting.
        evidence_rules: Signals that bear on this issue, applied in order.
        impact: Phrase completing "This issue ..." in the reasoning text.
    """

    model_config = ConfigDict(frozen=True)

    issue_type: IssueType
    title: str
    prior_probability: float = Field(ge=0.0, le=1.0)
    severity: float = Field(ge=0.0, le=1.0)
    actionability: float = Field(ge=0.0, le=1.0)
    likelihood_given_true: float = Field(ge=0.0, le=1.0)
    likelihood_given_false: float = Field(ge=0.0, le=1.0)
    evidence_rules: tuple[EvidenceRule, ...]
    impact: str = ""

    @property
    def relevant_signal_ids(self) -> tuple[str, ...]:
        return tuple(rule.signal_id for rule in self.evidence_rules)


class ScoredIssue(BaseModel):
    """A catalog issue scored against one run's evidence.

    Attributes:
        issue_type: Which catalog issue this is.
        confidence: Posterior probability that the issue is present.
        utility_score: Weighted ranking score
            (severity 0.4, confidence 0.4, actionability 0.2).
        severity: Copied from the definition so the report assembler can
            decide tracking status without a catalog lookup.
        evidence_used: Signal IDs whose evidence moved the posterior, in
            the order they were applied. Empty means prior-only confidence.
    """

    model_config = ConfigDict(frozen=True)

    issue_type: IssueType
    confidence: float = Field(ge=0.0, le=1.0)
    utility_score: float = Field(ge=0.0, le=1.0)
    severity: float = Field(ge=0.0, le=1.0)
    evidence_used: list[str] = Field(default_factory=list)
