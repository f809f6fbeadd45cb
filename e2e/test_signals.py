"""Signal layer tests.

Covers ActivityAnalyzer and EvidenceNormalizer. No checkers run — probe
outcomes are built by hand, so everything is deterministic.

TestActivityAnalyzer    — freshness, source counting, manual entries, divergence
TestEvidenceNormalizer  — success, not applicable, failures, garbage values
"""

from datetime import date

import pytest

from core.catalog import SIGNALS, SIGNALS_BY_ID
from schemas.activity import ActivitySample, BatteryOptimization, DataSource, PermissionStatus, SourceKind
from schemas.evidence import ProbeOutcome, ProbeStatus
from signals.activity_analyzer import ActivityAnalyzer
from signals.normalizer import EvidenceNormalizer

TODAY = date(2026, 10, 18)
YESTERDAY = date(2026, 10, 17)

GOOGLE_FIT = DataSource(id="com.google.android.apps.fitness", name="Google Fit")
SAMSUNG = DataSource(id="com.sec.android.app.shealth", name="Samsung Health")
WATCH = DataSource(id="com.google.android.apps.wear", name="Pixel Watch", kind=SourceKind.WATCH)
MANUAL = DataSource(id="com.example.steps", name="Entered by you", kind=SourceKind.MANUAL)


# ── Helpers ───────────────────────────────────────────────────────────────────

def sample(steps: int, source: DataSource = GOOGLE_FIT, day: date = TODAY) -> ActivitySample:
    return ActivitySample(date=day, steps=steps, source=source)


def ok(probe: str, value) -> ProbeOutcome:
    return ProbeOutcome(probe=probe, status=ProbeStatus.OK, value=value)


# ── ActivityAnalyzer ──────────────────────────────────────────────────────────

class TestActivityAnalyzer:
    def setup_method(self):
        self.analyzer = ActivityAnalyzer(TODAY)

    def test_no_samples_is_none(self):
        assert self.analyzer.freshness([]) == "none"

    def test_steps_today_is_fresh(self):
        assert self.analyzer.freshness([sample(4200)]) == "fresh"

    def test_only_older_samples_is_stale(self):
        assert self.analyzer.freshness([sample(9000, day=YESTERDAY)]) == "stale"

    def test_zero_steps_today_is_stale(self):
        assert self.analyzer.freshness([sample(0), sample(9000, day=YESTERDAY)]) == "stale"

    def test_no_sources(self):
        assert self.analyzer.data_sources([]) == "none"

    def test_single_source_across_days(self):
        samples = [sample(4200), sample(9000, day=YESTERDAY)]
        assert self.analyzer.data_sources(samples) == "single"

    def test_multiple_sources(self):
        assert self.analyzer.data_sources([sample(4200), sample(4100, WATCH)]) == "multiple"

    def test_manual_source_not_counted(self):
        assert self.analyzer.data_sources([sample(4200), sample(800, MANUAL)]) == "single"
        assert self.analyzer.data_sources([sample(800, MANUAL)]) == "none"

    def test_manual_entries_detected(self):
        assert self.analyzer.manual_entries([sample(4200), sample(800, MANUAL)]) == "present"
        assert self.analyzer.manual_entries([sample(4200)]) == "absent"

    def test_sources_disagreeing_beyond_twenty_percent_diverge(self):
        # (10000 - 7000) / 10000 = 30%
        samples = [sample(10000), sample(7000, SAMSUNG)]
        assert self.analyzer.source_conflict(samples) == "diverging"

    def test_sources_within_twenty_percent_are_consistent(self):
        # (10000 - 9000) / 10000 = 10%
        samples = [sample(10000), sample(9000, SAMSUNG)]
        assert self.analyzer.source_conflict(samples) == "consistent"

    def test_sources_on_different_dates_are_not_compared(self):
        samples = [sample(10000), sample(2000, SAMSUNG, day=YESTERDAY)]
        assert self.analyzer.source_conflict(samples) == "consistent"

    def test_manual_entry_does_not_create_conflict(self):
        samples = [sample(10000), sample(500, MANUAL)]
        assert self.analyzer.source_conflict(samples) == "consistent"


# ── EvidenceNormalizer ────────────────────────────────────────────────────────

class TestEvidenceNormalizer:
    def setup_method(self):
        self.normalizer = EvidenceNormalizer(TODAY)

    def test_success_uses_signal_reliability(self):
        e = self.normalizer.normalize(SIGNALS_BY_ID["health_permissions"], ok("permissions", "denied"))
        assert e.observed == "denied"
        assert e.reliability == 1.0

    def test_enum_result_is_accepted(self):
        outcome = ok("permissions", PermissionStatus.PARTIAL)
        e = self.normalizer.normalize(SIGNALS_BY_ID["health_permissions"], outcome)
        assert e.observed == "partial"

    def test_missing_outcome_is_omitted(self):
        assert self.normalizer.normalize(SIGNALS_BY_ID["low_power_mode"], None) is None

    def test_not_applicable_outcome_is_omitted(self):
        outcome = ProbeOutcome(probe="low_power_mode", status=ProbeStatus.NOT_APPLICABLE)
        assert self.normalizer.normalize(SIGNALS_BY_ID["low_power_mode"], outcome) is None

    def test_battery_not_applicable_value_is_omitted(self):
        outcome = ok("battery_optimization", BatteryOptimization.NOT_APPLICABLE)
        assert self.normalizer.normalize(SIGNALS_BY_ID["battery_optimization"], outcome) is None

    @pytest.mark.parametrize("status", [ProbeStatus.FAILED, ProbeStatus.TIMED_OUT])
    def test_failure_is_unknown(self, status):
        outcome = ProbeOutcome(probe="permissions", status=status, error="boom")
        e = self.normalizer.normalize(SIGNALS_BY_ID["health_permissions"], outcome)
        assert e.observed is None
        assert e.reliability == 0.0

    def test_unexpected_enum_value_is_unknown(self):
        e = self.normalizer.normalize(SIGNALS_BY_ID["health_permissions"], ok("permissions", "maybe"))
        assert e.is_usable is False

    def test_non_bool_connectivity_is_unknown(self):
        e = self.normalizer.normalize(SIGNALS_BY_ID["device_connectivity"], ok("connectivity", "yes"))
        assert e.is_usable is False

    def test_malformed_samples_are_unknown(self):
        e = self.normalizer.normalize(SIGNALS_BY_ID["recent_activity"], ok("activity_data", [{"steps": 10}]))
        assert e.is_usable is False

    def test_boolean_probes(self):
        cases = [
            ("device_connectivity", "connectivity", False, "offline"),
            ("background_sync", "background_sync", False, "disabled"),
            ("low_power_mode", "low_power_mode", True, "enabled"),
            ("app_force_quit", "app_force_quit", True, "detected"),
        ]
        for signal_id, probe, value, expected in cases:
            e = self.normalizer.normalize(SIGNALS_BY_ID[signal_id], ok(probe, value))
            assert e.observed == expected

    def test_activity_probe_feeds_four_signals(self):
        outcomes = {"activity_data": ok("activity_data", [
            {"date": "2026-10-18", "steps": 10000, "source": {"id": "a", "name": "Fitbit"}},
            {"date": "2026-10-18", "steps": 6000, "source": {"id": "b", "name": "Garmin"}},
        ])}
        records = {r.signal.signal_id: r for r in self.normalizer.normalize_all(outcomes)}
        assert records["recent_activity"].evidence.observed == "fresh"
        assert records["recent_activity"].evidence.reliability == 0.90
        assert records["data_sources"].evidence.observed == "multiple"
        assert records["manual_entries"].evidence.observed == "absent"
        assert records["source_conflict"].evidence.observed == "diverging"

    def test_normalize_all_covers_catalog_in_order(self):
        records = self.normalizer.normalize_all({})
        assert [r.signal for r in records] == list(SIGNALS)
        assert all(r.not_applicable for r in records)
