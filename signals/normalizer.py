"""Evidence normalizer — turns probe outcomes into evidence records.

This is the only class the engine calls to interpret checker results. For
every catalog signal it:
1. Looks up the outcome of the probe the signal is read from
2. Decides whether the signal is usable, unknown, or not applicable
3. Extracts the normalized observed value from the probe's typed result
4. Attaches the signal's configured reliability

Mapping rules:
    success              → Evidence(observed=<value>, reliability=<signal's>)
    not applicable       → no evidence (the issue keeps its prior)
    no checker for probe → no evidence
    error / timeout      → Evidence(observed=None, reliability=0.0)
    uninterpretable value→ Evidence(observed=None, reliability=0.0)

The normalizer never raises. A checker returning garbage is one more way
for a signal to be unknown.
"""

import logging
from datetime import date
from typing import Any, Callable

from core.catalog import SIGNALS, SignalDefinition
from core.memory import CheckRecord
from schemas.activity import ActivitySample, BatteryOptimization, PermissionStatus, PlatformSupport
from schemas.evidence import Evidence, ProbeOutcome, ProbeStatus
from signals.activity_analyzer import ActivityAnalyzer

logger = logging.getLogger(__name__)


class EvidenceNormalizer:
    """Converts probe outcomes into one evidence record per catalog signal.

    Attributes:
        _analyzer: Derives the activity-data signals; bound to the run's
            notion of "today" so freshness is reproducible.
        _extractors: Signal ID to a function mapping the probe's raw result
            to an observed string, or None when not applicable.
    """

    def __init__(self, today: date) -> None:
        self._analyzer = ActivityAnalyzer(today)
        self._extractors: dict[str, Callable[[Any], str | None]] = {
            "device_connectivity": lambda v: "online" if _as_bool(v) else "offline",
            "health_permissions": lambda v: PermissionStatus(v).value,
            "platform_availability": lambda v: PlatformSupport(v).value,
            "recent_activity": lambda v: self._analyzer.freshness(_as_samples(v)),
            "data_sources": lambda v: self._analyzer.data_sources(_as_samples(v)),
            "battery_optimization": _battery,
            "background_sync": lambda v: "enabled" if _as_bool(v) else "disabled",
            "manual_entries": lambda v: self._analyzer.manual_entries(_as_samples(v)),
            "source_conflict": lambda v: self._analyzer.source_conflict(_as_samples(v)),
            "low_power_mode": lambda v: "enabled" if _as_bool(v) else "disabled",
            "app_force_quit": lambda v: "detected" if _as_bool(v) else "not_detected",
        }

    def normalize_all(self, outcomes: dict[str, ProbeOutcome]) -> list[CheckRecord]:
        """Normalize every catalog signal, in catalog declaration order.

        Args:
            outcomes: Probe name to outcome, as returned by CheckExecutor.
                Probes missing from the dict had no registered checker.

        Returns:
            One CheckRecord per catalog signal, whatever the completion
            order of the underlying calls.
        """
        return [
            CheckRecord(signal=signal, evidence=self.normalize(signal, outcomes.get(signal.probe)))
            for signal in SIGNALS
        ]

    def normalize(self, signal: SignalDefinition, outcome: ProbeOutcome | None) -> Evidence | None:
        """Produce the evidence for one signal, or None if not applicable."""
        if outcome is None or outcome.status == ProbeStatus.NOT_APPLICABLE:
            return None

        if outcome.status != ProbeStatus.OK:
            return _unknown(signal)

        extractor = self._extractors.get(signal.signal_id)
        if extractor is None:
            logger.warning("No extractor for signal '%s' — recording as unknown.", signal.signal_id)
            return _unknown(signal)

        try:
            observed = extractor(outcome.value)
        except (TypeError, ValueError) as exc:
            logger.warning(
                "Could not interpret '%s' result for signal '%s': %s",
                outcome.probe,
                signal.signal_id,
                exc,
            )
            return _unknown(signal)

        if observed is None:
            return None

        return Evidence(
            signal_id=signal.signal_id,
            observed=observed,
            reliability=signal.reliability,
        )


# ── Private helpers ───────────────────────────────────────────────────────────

def _unknown(signal: SignalDefinition) -> Evidence:
    return Evidence(signal_id=signal.signal_id, observed=None, reliability=0.0)


def _as_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"expected bool, got {type(value).__name__}")
    return value


def _as_samples(value: Any) -> list[ActivitySample]:
    if not isinstance(value, (list, tuple)):
        raise TypeError(f"expected a list of samples, got {type(value).__name__}")
    return [ActivitySample.model_validate(item) for item in value]


def _battery(value: Any) -> str | None:
    status = BatteryOptimization(value)
    if status == BatteryOptimization.NOT_APPLICABLE:
        return None
    return status.value
