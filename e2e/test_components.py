"""Component tests for the engine layer.

Covers RunMemory, CheckerRegistry, CheckExecutor, LiveDisplay and
DiagnosticEngine. No platform bindings required — all tests use scripted
checkers and in-memory data only.
"""

import asyncio
import io
from datetime import date

import pytest
from rich.console import Console
from rich.live import Live

from checkers.base import CheckerError, SignalChecker, SignalNotApplicable
from core.catalog import SIGNALS, SIGNALS_BY_ID
from core.config import EngineSettings
from core.engine import DiagnosticEngine
from core.executor import CheckExecutor
from core.memory import CheckRecord, RunMemory
from core.registry import CheckerRegistry
from display.live import LiveDisplay
from schemas.events import CheckEvent, EventType
from schemas.evidence import Evidence, ProbeOutcome, ProbeStatus
from schemas.report import DiagnosticReport, TrackingStatus
from stubs import ScriptedChecker, ScriptedProbe

TODAY = date(2026, 10, 18)


# ── Shared helpers ────────────────────────────────────────────────────────────

def scripted(name: str, **script) -> ScriptedChecker:
    return ScriptedChecker(name, ScriptedProbe(**script))


class CrashChecker(SignalChecker):
    name = "permissions"

    async def check(self):
        raise RuntimeError("permission handler crashed")


class UnavailableChecker(SignalChecker):
    name = "low_power_mode"

    async def check(self):
        raise SignalNotApplicable("Low Power Mode is iOS only")


class SlowChecker(SignalChecker):
    name = "activity_data"

    async def check(self):
        await asyncio.sleep(999)
        return []


def drain(queue: asyncio.Queue) -> list[CheckEvent]:
    events = []
    while not queue.empty():
        events.append(queue.get_nowait())
    return events


# ── RunMemory ─────────────────────────────────────────────────────────────────

class TestRunMemory:
    def test_starts_empty(self):
        mem = RunMemory()
        assert mem.get_records() == []
        assert mem.get_evidence() == []

    def test_duplicate_outcome_raises(self):
        mem = RunMemory()
        outcome = ProbeOutcome(probe="permissions", status=ProbeStatus.OK, value="granted")
        mem.add_outcomes({"permissions": outcome})
        with pytest.raises(ValueError, match="already recorded"):
            mem.add_outcomes({"permissions": outcome})

    def test_outcome_for_missing_probe_is_none(self):
        assert RunMemory().outcome_for("platform") is None

    def test_get_records_returns_copy(self):
        mem = RunMemory()
        mem.add_record(CheckRecord(signal=SIGNALS[0], evidence=None))
        copy = mem.get_records()
        copy.clear()
        assert len(mem.get_records()) == 1

    def test_usable_evidence_excludes_unknown_and_skipped(self):
        mem = RunMemory()
        mem.add_record(CheckRecord(
            signal=SIGNALS_BY_ID["health_permissions"],
            evidence=Evidence(signal_id="health_permissions", observed="denied", reliability=1.0),
        ))
        mem.add_record(CheckRecord(
            signal=SIGNALS_BY_ID["background_sync"],
            evidence=Evidence(signal_id="background_sync", observed=None, reliability=0.0),
        ))
        mem.add_record(CheckRecord(signal=SIGNALS_BY_ID["low_power_mode"], evidence=None))
        assert [e.signal_id for e in mem.usable_evidence()] == ["health_permissions"]
        assert len(mem.get_evidence()) == 2

    def test_check_record_outcome_flags(self):
        skipped = CheckRecord(signal=SIGNALS[0], evidence=None)
        failed = CheckRecord(signal=SIGNALS[0], evidence=Evidence(
            signal_id=SIGNALS[0].signal_id, observed=None, reliability=0.0))
        assert skipped.not_applicable and not skipped.failed
        assert failed.failed and not failed.not_applicable


# ── CheckerRegistry ───────────────────────────────────────────────────────────

class TestCheckerRegistry:
    def test_register_and_get_all(self):
        registry = CheckerRegistry()
        registry.register(scripted("permissions", value="granted"))
        assert len(registry) == 1
        assert registry.get_all()[0].name == "permissions"

    def test_duplicate_name_raises(self):
        registry = CheckerRegistry()
        registry.register(scripted("permissions", value="granted"))
        with pytest.raises(ValueError, match="already registered"):
            registry.register(scripted("permissions", value="denied"))

    def test_get_all_returns_copy(self):
        registry = CheckerRegistry()
        registry.register(scripted("permissions", value="granted"))
        copy = registry.get_all()
        copy.clear()
        assert len(registry) == 1


# ── CheckExecutor ─────────────────────────────────────────────────────────────

class TestCheckExecutor:
    async def test_successful_checker_returns_value(self):
        outcomes = await CheckExecutor().execute([scripted("permissions", value="granted")])
        assert outcomes["permissions"].status == ProbeStatus.OK
        assert outcomes["permissions"].value == "granted"

    async def test_crashing_checker_is_recorded_as_failed(self):
        outcomes = await CheckExecutor().execute(
            [scripted("platform", value="available"), CrashChecker()]
        )
        assert outcomes["platform"].status == ProbeStatus.OK
        assert outcomes["permissions"].status == ProbeStatus.FAILED
        assert "crashed" in outcomes["permissions"].error

    async def test_checker_error_is_recorded_as_failed(self):
        outcomes = await CheckExecutor().execute([scripted("background_sync", error="no channel")])
        assert outcomes["background_sync"].status == ProbeStatus.FAILED
        assert outcomes["background_sync"].error == "no channel"

    async def test_timed_out_checker_does_not_block_others(self):
        executor = CheckExecutor(timeout_seconds=0.1)
        outcomes = await executor.execute([scripted("permissions", value="denied"), SlowChecker()])
        assert outcomes["permissions"].status == ProbeStatus.OK
        assert outcomes["activity_data"].status == ProbeStatus.TIMED_OUT

    async def test_not_applicable_checker(self):
        outcomes = await CheckExecutor().execute([UnavailableChecker()])
        assert outcomes["low_power_mode"].status == ProbeStatus.NOT_APPLICABLE
        assert outcomes["low_power_mode"].error == "Low Power Mode is iOS only"

    async def test_checkers_run_concurrently(self):
        checkers = [
            scripted("permissions", value="granted", delay_seconds=0.3),
            scripted("platform", value="available", delay_seconds=0.3),
            scripted("background_sync", value=True, delay_seconds=0.3),
        ]
        loop = asyncio.get_running_loop()
        start = loop.time()
        await CheckExecutor().execute(checkers)
        assert loop.time() - start < 0.8

    async def test_elapsed_time_is_recorded(self):
        outcomes = await CheckExecutor().execute(
            [scripted("permissions", value="granted", delay_seconds=0.05)]
        )
        assert outcomes["permissions"].elapsed_ms > 0

    async def test_empty_checker_list_returns_empty(self):
        assert await CheckExecutor().execute([]) == {}

    async def test_events_emitted_for_each_stage(self):
        queue: asyncio.Queue = asyncio.Queue()
        await CheckExecutor(timeout_seconds=0.1).execute(
            [scripted("platform", value="available"), UnavailableChecker(), CrashChecker()],
            event_queue=queue,
        )
        events = drain(queue)
        by_probe: dict[str, list[EventType]] = {}
        for event in events:
            by_probe.setdefault(event.probe, []).append(event.event_type)
        assert by_probe["platform"] == [EventType.STARTED, EventType.COMPLETE]
        assert by_probe["low_power_mode"] == [EventType.STARTED, EventType.SKIPPED]
        assert by_probe["permissions"] == [EventType.STARTED, EventType.ERROR]


# ── LiveDisplay ───────────────────────────────────────────────────────────────

class TestLiveDisplay:
    def _event(self, probe, event_type, message="", timestamp_ms=1.0):
        return CheckEvent(probe=probe, event_type=event_type, message=message, timestamp_ms=timestamp_ms)

    def _rendered(self, display: LiveDisplay) -> str:
        console = Console(file=io.StringIO(), width=200)
        console.print(display.render())
        return console.file.getvalue()

    def test_outcome_follows_events(self):
        display = LiveDisplay(["permissions", "low_power_mode", "platform"])
        assert display.status_of("permissions") == "waiting"
        display.apply(self._event("permissions", EventType.STARTED))
        assert display.status_of("permissions") == "checking"
        display.apply(self._event("permissions", EventType.COMPLETE, "result: granted"))
        assert display.status_of("permissions") == "checked"
        display.apply(self._event("low_power_mode", EventType.SKIPPED, "iOS only"))
        assert display.status_of("low_power_mode") == "not applicable"
        display.apply(self._event("platform", EventType.ERROR, "timed out after 10.0s"))
        assert display.status_of("platform") == "could not be checked"

    def test_unknown_probe_is_ignored(self):
        display = LiveDisplay(["permissions"])
        display.apply(self._event("platform", EventType.ERROR, "boom"))
        assert display.status_of("platform") is None
        assert display.status_of("permissions") == "waiting"

    def test_rows_list_the_checks_each_probe_feeds(self):
        display = LiveDisplay(["activity_data"])
        text = self._rendered(display)
        for signal in SIGNALS:
            if signal.probe == "activity_data":
                assert signal.label in text

    def test_settled_row_shows_time_and_detail(self):
        display = LiveDisplay(["permissions"])
        display.apply(self._event("permissions", EventType.COMPLETE, "result: denied", 1250.0))
        text = self._rendered(display)
        assert "1.25s" in text
        assert "result: denied" in text

    async def test_consume_stops_at_sentinel(self):
        display = LiveDisplay(["permissions"])
        queue: asyncio.Queue = asyncio.Queue()
        await queue.put(self._event("permissions", EventType.COMPLETE, "result: granted"))
        await queue.put(None)
        live = Live(display.render(), console=Console(file=io.StringIO()), auto_refresh=False)
        await display.consume(queue, live)
        assert display.status_of("permissions") == "checked"


# ── DiagnosticEngine ──────────────────────────────────────────────────────────

class EchoNarrator:
    async def narrate(self, report: DiagnosticReport) -> str:
        return f"Narrated: {report.tracking_status.value}"


class BrokenNarrator:
    async def narrate(self, report: DiagnosticReport) -> str:
        raise RuntimeError("model unavailable")


class SilentNarrator:
    async def narrate(self, report: DiagnosticReport) -> str:
        return "   "


def make_engine(**kwargs) -> DiagnosticEngine:
    return DiagnosticEngine(today=lambda: TODAY, **kwargs)


class TestDiagnosticEngine:
    async def test_no_checkers_returns_unknown_report(self):
        report = await make_engine().run_diagnostic()
        assert isinstance(report, DiagnosticReport)
        assert report.tracking_status == TrackingStatus.UNKNOWN
        assert len(report.reasoning.checks_performed) == 11

    def test_register_raises_on_duplicate_name(self):
        engine = make_engine()
        engine.register(scripted("permissions", value="granted"))
        with pytest.raises(ValueError, match="already registered"):
            engine.register(scripted("permissions", value="denied"))

    def test_registered_probes_in_order(self):
        engine = make_engine()
        engine.register(scripted("platform", value="available"))
        engine.register(scripted("permissions", value="granted"))
        assert engine.registered_probes() == ["platform", "permissions"]

    async def test_crashing_checker_does_not_crash_engine(self):
        engine = make_engine()
        engine.register(CrashChecker())
        report = await engine.run_diagnostic()
        assert "Health permissions status: could not be checked" in report.reasoning.checks_performed

    async def test_each_run_gets_unique_id(self):
        engine = make_engine()
        engine.register(scripted("permissions", value="denied"))
        r1 = await engine.run_diagnostic()
        r2 = await engine.run_diagnostic()
        assert r1.report_id != r2.report_id
        assert r1.primary_issue == r2.primary_issue

    async def test_every_run_calls_every_checker(self):
        engine = make_engine()
        checker = scripted("permissions", value="granted")
        engine.register(checker)
        await engine.run_diagnostic()
        await engine.run_diagnostic()
        assert checker.calls == 2

    async def test_samples_are_attached_to_report(self):
        engine = make_engine()
        engine.register(scripted("activity_data", value=[
            {"date": "2026-10-18", "steps": 3100, "source": {"id": "a", "name": "Fitbit"}},
        ]))
        report = await engine.run_diagnostic()
        assert report.today_steps() == 3100

    async def test_report_uses_the_engine_clock_for_today(self):
        pinned = date(2024, 2, 29)
        engine = DiagnosticEngine(today=lambda: pinned)
        engine.register(scripted("activity_data", value=[
            {"date": "2024-02-29", "steps": 2500, "source": {"id": "a", "name": "Fitbit"}},
            {"date": "2024-02-28", "steps": 8000, "source": {"id": "a", "name": "Fitbit"}},
        ]))
        report = await engine.run_diagnostic()
        assert report.as_of == pinned
        assert report.today_steps() == 2500

    async def test_narrator_replaces_reasoning_text(self):
        engine = make_engine(narrator=EchoNarrator())
        engine.register(scripted("permissions", value="denied"))
        report = await engine.run_diagnostic()
        assert report.reasoning.reasoning == "Narrated: broken"
        assert len(report.reasoning.checks_performed) == 11

    @pytest.mark.parametrize("narrator", [BrokenNarrator(), SilentNarrator()])
    async def test_narrator_failure_keeps_template_reasoning(self, narrator):
        engine = make_engine(narrator=narrator)
        engine.register(scripted("permissions", value="denied"))
        report = await engine.run_diagnostic()
        assert "Permissions Not Granted" in report.reasoning.reasoning

    async def test_cancellation_propagates(self):
        engine = make_engine(settings=EngineSettings(check_timeout_seconds=30))
        engine.register(SlowChecker())
        task = asyncio.create_task(engine.run_diagnostic())
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    async def test_timeout_setting_is_applied(self):
        engine = make_engine(settings=EngineSettings(check_timeout_seconds=0.1))
        engine.register(SlowChecker())
        engine.register(scripted("permissions", value="denied"))
        report = await engine.run_diagnostic()
        assert "Recent step data (last 24 hours)" in report.reasoning.failed_checks
        assert report.primary_issue.issue_type.value == "permissions_not_granted"


def test_checker_error_is_an_exception():
    assert issubclass(CheckerError, Exception)
    assert SignalNotApplicable().reason == "not applicable on this platform"
