"""Static diagnostic catalogs.

Three read-only tables drive the whole engine:

SIGNALS
    Every diagnostic signal the engine attempts on each run, in the fixed
    order the reasoning trace reports them. Several signals can be derived
    from one probe (the activity-data reader feeds four).

ISSUES
    Every diagnosable condition with its prior, impact weights and the
    evidence rules the scorer applies. Adding an issue is a data change
    here, not a code change in the scorer.

CAUSAL_LINKS
    Known cause→effect pairs the chain detector may report. Pairs absent
    from this table are never linked, however often they co-occur.

The tables are built once at import time and never mutated afterwards, so
concurrent runs share them without locking.
"""

from dataclasses import dataclass
from types import MappingProxyType

from schemas.issue import EvidenceRule, IssueDefinition, IssueType

# Probe names. Each registered SignalChecker answers for exactly one.
PROBE_CONNECTIVITY = "connectivity"
PROBE_PERMISSIONS = "permissions"
PROBE_PLATFORM = "platform"
PROBE_ACTIVITY_DATA = "activity_data"
PROBE_BATTERY_OPTIMIZATION = "battery_optimization"
PROBE_BACKGROUND_SYNC = "background_sync"
PROBE_LOW_POWER_MODE = "low_power_mode"
PROBE_APP_FORCE_QUIT = "app_force_quit"


@dataclass(frozen=True)
class SignalDefinition:
    """One diagnostic signal.

    Attributes:
        signal_id: Catalog key, cited by evidence rules.
        label: Human-readable check name shown in the reasoning trace.
        probe: Name of the checker whose result this signal is read from.
        reliability: Trust placed in a successful observation. Below 1.0
            for heuristics over noisy activity data.
    """

    signal_id: str
    label: str
    probe: str
    reliability: float = 1.0


SIGNALS: tuple[SignalDefinition, ...] = (
    SignalDefinition("device_connectivity", "Device connectivity", PROBE_CONNECTIVITY),
    SignalDefinition("health_permissions", "Health permissions status", PROBE_PERMISSIONS),
    SignalDefinition(
        "platform_availability",
        "Platform availability (Health Connect/HealthKit)",
        PROBE_PLATFORM,
    ),
    SignalDefinition("recent_activity", "Recent step data (last 24 hours)", PROBE_ACTIVITY_DATA, 0.90),
    SignalDefinition("data_sources", "Data sources (fitness apps/devices)", PROBE_ACTIVITY_DATA, 0.95),
    SignalDefinition("battery_optimization", "Battery optimization settings", PROBE_BATTERY_OPTIMIZATION),
    SignalDefinition("background_sync", "Background sync permissions", PROBE_BACKGROUND_SYNC),
    SignalDefinition("manual_entries", "Manual vs automatic entries", PROBE_ACTIVITY_DATA, 0.95),
    SignalDefinition("source_conflict", "Multiple source conflicts", PROBE_ACTIVITY_DATA, 0.90),
    SignalDefinition("low_power_mode", "Low Power Mode (iOS)", PROBE_LOW_POWER_MODE),
    SignalDefinition("app_force_quit", "App force-quit detection (iOS)", PROBE_APP_FORCE_QUIT, 0.70),
)

SIGNALS_BY_ID = MappingProxyType({s.signal_id: s for s in SIGNALS})

PROBES: tuple[str, ...] = tuple(dict.fromkeys(s.probe for s in SIGNALS))


def _rule(signal_id: str, *indicates: str, l_true: float | None = None,
          l_false: float | None = None) -> EvidenceRule:
    return EvidenceRule(
        signal_id=signal_id,
        indicates=frozenset(indicates),
        likelihood_given_true=l_true,
        likelihood_given_false=l_false,
    )


# Severity and actionability follow the support team's criticality table:
# 1.0 blocks all tracking, 0.8 breaks background tracking, 0.6 limits it,
# 0.4 may resolve itself, 0.2-0.3 is informational.
ISSUES: tuple[IssueDefinition, ...] = (
    IssueDefinition(
        issue_type=IssueType.PERMISSIONS_NOT_GRANTED,
        title="Permissions Not Granted",
        prior_probability=0.15,
        severity=1.0,
        actionability=1.0,
        likelihood_given_true=0.99,
        likelihood_given_false=0.01,
        evidence_rules=(_rule("health_permissions", "denied", "partial"),),
        impact="completely blocks step tracking - nothing works without it",
    ),
    IssueDefinition(
        issue_type=IssueType.HEALTH_BRIDGE_NOT_INSTALLED,
        title="Health Connect Not Installed",
        prior_probability=0.05,
        severity=1.0,
        actionability=0.8,
        likelihood_given_true=0.98,
        likelihood_given_false=0.02,
        evidence_rules=(_rule("platform_availability", "not_installed", "needs_update"),),
        impact="blocks all health data access on this Android version",
    ),
    IssueDefinition(
        issue_type=IssueType.PLATFORM_NOT_AVAILABLE,
        title="Health Platform Not Supported",
        prior_probability=0.02,
        severity=1.0,
        actionability=0.2,
        likelihood_given_true=0.98,
        likelihood_given_false=0.02,
        evidence_rules=(_rule("platform_availability", "not_supported"),),
        impact="means health tracking isn't supported on this device",
    ),
    IssueDefinition(
        issue_type=IssueType.HEALTH_SERVICE_UNAVAILABLE,
        title="Health Service Unavailable",
        prior_probability=0.05,
        severity=0.8,
        actionability=0.2,
        likelihood_given_true=0.95,
        likelihood_given_false=0.05,
        evidence_rules=(_rule("platform_availability", "unavailable"),),
        impact="prevents all health data access temporarily",
    ),
    IssueDefinition(
        issue_type=IssueType.BATTERY_OPTIMIZATION_ENABLED,
        title="Battery Optimization Blocking Sync",
        prior_probability=0.15,
        severity=0.8,
        actionability=1.0,
        likelihood_given_true=0.95,
        likelihood_given_false=0.05,
        evidence_rules=(
            _rule("battery_optimization", "enabled"),
            # Missing recent data corroborates, but it has many other causes.
            _rule("recent_activity", "stale", "none", l_true=0.80, l_false=0.40),
        ),
        impact="prevents background sync - steps only update when the app is open",
    ),
    IssueDefinition(
        issue_type=IssueType.LOW_POWER_MODE,
        title="Low Power Mode Enabled",
        prior_probability=0.10,
        severity=0.8,
        actionability=1.0,
        likelihood_given_true=0.95,
        likelihood_given_false=0.05,
        evidence_rules=(
            _rule("low_power_mode", "enabled"),
            _rule("app_force_quit", "detected", l_true=0.92, l_false=0.20),
        ),
        impact="pauses background sync to save battery",
    ),
    IssueDefinition(
        issue_type=IssueType.BACKGROUND_SYNC_DISABLED,
        title="Background Sync Disabled",
        prior_probability=0.10,
        severity=0.6,
        actionability=0.7,
        likelihood_given_true=0.95,
        likelihood_given_false=0.05,
        evidence_rules=(_rule("background_sync", "disabled"),),
        impact="prevents automatic step updates",
    ),
    IssueDefinition(
        issue_type=IssueType.NO_DATA_SOURCES,
        title="No Data Sources Found",
        prior_probability=0.10,
        severity=0.6,
        actionability=0.8,
        likelihood_given_true=0.90,
        likelihood_given_false=0.10,
        evidence_rules=(_rule("data_sources", "none"),),
        impact="means no apps or devices are tracking your steps",
    ),
    IssueDefinition(
        issue_type=IssueType.STALE_DATA,
        title="No Recent Step Data",
        prior_probability=0.20,
        severity=0.4,
        actionability=0.5,
        likelihood_given_true=0.90,
        likelihood_given_false=0.30,
        evidence_rules=(_rule("recent_activity", "stale", "none"),),
        impact="means steps aren't being recorded or synced",
    ),
    IssueDefinition(
        issue_type=IssueType.APP_FORCE_QUIT,
        title="App Force-Quit Detected",
        prior_probability=0.10,
        severity=0.4,
        actionability=0.5,
        likelihood_given_true=0.90,
        likelihood_given_false=0.15,
        evidence_rules=(_rule("app_force_quit", "detected"),),
        impact="stops iOS from syncing in the background",
    ),
    IssueDefinition(
        issue_type=IssueType.DEVICE_OFFLINE,
        title="Device Offline",
        prior_probability=0.05,
        severity=0.3,
        actionability=0.3,
        likelihood_given_true=0.99,
        likelihood_given_false=0.01,
        evidence_rules=(_rule("device_connectivity", "offline"),),
        impact="delays syncing, although local tracking still works",
    ),
    IssueDefinition(
        issue_type=IssueType.MULTIPLE_CONFLICTING_SOURCES,
        title="Multiple Data Sources Detected",
        prior_probability=0.20,
        severity=0.2,
        actionability=0.7,
        likelihood_given_true=0.85,
        likelihood_given_false=0.15,
        evidence_rules=(
            _rule("data_sources", "multiple"),
            _rule("source_conflict", "diverging", l_true=0.90, l_false=0.25),
        ),
        impact="can cause confusing or duplicate step counts",
    ),
    IssueDefinition(
        issue_type=IssueType.DATA_DISCREPANCY,
        title="Step Count Discrepancy Detected",
        prior_probability=0.15,
        severity=0.2,
        actionability=0.3,
        likelihood_given_true=0.85,
        likelihood_given_false=0.10,
        evidence_rules=(_rule("source_conflict", "diverging"),),
        impact="explains why different apps show different numbers",
    ),
    IssueDefinition(
        issue_type=IssueType.MANUAL_ENTRIES_DETECTED,
        title="Manual Entries Detected",
        prior_probability=0.20,
        severity=0.2,
        actionability=0.3,
        likelihood_given_true=0.90,
        likelihood_given_false=0.10,
        evidence_rules=(_rule("manual_entries", "present"),),
        impact="means some entries are filtered out of your totals",
    ),
)

ISSUES_BY_TYPE = MappingProxyType({d.issue_type: d for d in ISSUES})

# Catalog position doubles as the final tie-breaker when ranking issues.
ISSUE_ORDER = MappingProxyType({d.issue_type: i for i, d in enumerate(ISSUES)})


@dataclass(frozen=True)
class CausalLink:
    """A known cause→effect pair and why it holds."""

    cause: IssueType
    effect: IssueType
    explanation: str


CAUSAL_LINKS: tuple[CausalLink, ...] = (
    CausalLink(
        IssueType.BATTERY_OPTIMIZATION_ENABLED,
        IssueType.STALE_DATA,
        "Battery optimization prevents background sync, which stops steps "
        "from being recorded while the app is closed.",
    ),
    CausalLink(
        IssueType.LOW_POWER_MODE,
        IssueType.STALE_DATA,
        "Low Power Mode disables background app refresh, so steps stop "
        "syncing automatically.",
    ),
    CausalLink(
        IssueType.BACKGROUND_SYNC_DISABLED,
        IssueType.STALE_DATA,
        "With background sync off, new steps only arrive when you open the app.",
    ),
    CausalLink(
        IssueType.APP_FORCE_QUIT,
        IssueType.STALE_DATA,
        "After a force-quit, iOS stops delivering background updates until "
        "the app is opened again.",
    ),
    CausalLink(
        IssueType.NO_DATA_SOURCES,
        IssueType.STALE_DATA,
        "Without a fitness app or device tracking steps, there is no data to show.",
    ),
    CausalLink(
        IssueType.MULTIPLE_CONFLICTING_SOURCES,
        IssueType.DATA_DISCREPANCY,
        "Different fitness apps use different sensors and algorithms, so "
        "their step counts naturally disagree.",
    ),
)
