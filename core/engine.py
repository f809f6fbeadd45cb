"""Diagnostic engine — the top-level pipeline orchestrator.

DiagnosticEngine is the single entry point for the whole system. Callers
register signal checkers once, then call run_diagnostic() as many times as
needed. Each call is fully independent: fresh memory, fresh evidence, fresh
report.

Pipeline order inside run_diagnostic():
    1. Initialize RunMemory for this run
    2. Fan out to every registered checker via CheckExecutor
    3. Normalize probe outcomes into evidence via EvidenceNormalizer
    4. Score every catalog issue via IssueScorer
    5. Detect causal chains via CausalChainDetector
    6. Assemble the DiagnosticReport via ReportAssembler
    7. Optionally let an injected Narrator rewrite the reasoning text

The engine never imports a concrete checker. It depends only on core/,
checkers/base.py, signals/, scoring/, report/ and schemas/.
"""

import asyncio
import logging
from datetime import date
from typing import Callable, Protocol

from checkers.base import SignalChecker
from core.catalog import PROBE_ACTIVITY_DATA
from core.config import EngineSettings
from core.executor import CheckExecutor
from core.memory import RunMemory
from core.registry import CheckerRegistry
from report.assembler import ReportAssembler
from schemas.activity import ActivitySample
from schemas.report import DiagnosticReport
from scoring.chains import CausalChainDetector
from scoring.scorer import IssueScorer
from signals.normalizer import EvidenceNormalizer

logger = logging.getLogger(__name__)


class Narrator(Protocol):
    """Protocol for components that rewrite the reasoning text of a report.

    A narrator typically wraps a language model. It receives the finished
    report and returns replacement prose for reasoning.reasoning. Everything
    else in the report is left untouched.
    """

    async def narrate(self, report: DiagnosticReport) -> str:
        """Return the reasoning text to show the user."""


class DiagnosticEngine:
    """Orchestrates the full diagnostic pipeline.

    Holds a registry of checkers and a fixed set of pipeline components
    (executor, scorer, chain detector, assembler). These are created once at
    construction time and reused across all run_diagnostic() calls.

    Each call to run_diagnostic() creates its own RunMemory and normalizer,
    so runs are fully isolated — concurrent runs cannot interfere.

    Attributes:
        settings: Timeout and reporting threshold for this engine.
        _registry: Tracks all registered checkers.
        _executor: Runs checkers concurrently via asyncio.TaskGroup.
        _scorer: Bayesian scoring and utility ranking.
        _chains: Causal chain detection over scored issues.
        _assembler: Builds the final report and reasoning trace.
        _narrator: Optional reasoning rewriter. None means template text.
        _today: Returns the date freshness is judged against.
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        narrator: Narrator | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        """Initialise the engine with an empty checker registry.

        Args:
            settings: Engine settings. Defaults to EngineSettings(); entry
                points pass EngineSettings.from_env().
            narrator: Optional component that rewrites the reasoning text.
            today: Clock for activity freshness. Injectable so runs are
                reproducible in tests.
        """
        self.settings = settings or EngineSettings()
        self._registry = CheckerRegistry()
        self._executor = CheckExecutor(timeout_seconds=self.settings.check_timeout_seconds)
        self._scorer = IssueScorer(reporting_threshold=self.settings.reporting_threshold)
        self._chains = CausalChainDetector(reporting_threshold=self.settings.reporting_threshold)
        self._assembler = ReportAssembler()
        self._narrator = narrator
        self._today = today

    def register(self, checker: SignalChecker) -> None:
        """Register a checker to participate in every run.

        Args:
            checker: The checker to register. Its name property is the
                probe it answers for.

        Raises:
            ValueError: If a checker for the same probe is already registered.
        """
        self._registry.register(checker)
        logger.debug("Registered checker '%s'. Total checkers: %d.", checker.name, len(self._registry))

    def registered_probes(self) -> list[str]:
        """Probe names with a registered checker, in registration order."""
        return [checker.name for checker in self._registry.get_all()]

    async def run_diagnostic(self, event_queue: asyncio.Queue | None = None) -> DiagnosticReport:
        """Run every check once and return the diagnosis.

        The method never raises because of a checker: failures, timeouts
        and unavailable platforms all become part of the report. Only
        cancellation propagates, after in-flight checker tasks are cancelled.

        Args:
            event_queue: Optional asyncio.Queue receiving a CheckEvent for
                each checker lifecycle stage.

        Returns:
            The DiagnosticReport for this run.
        """
        checkers = self._registry.get_all()
        logger.info("Starting diagnostic run with %d registered checkers.", len(checkers))

        # Step 1: fresh memory for this run.
        memory = RunMemory()

        # Step 2: fan out. Every checker yields exactly one outcome.
        outcomes = await self._executor.execute(checkers, event_queue)
        memory.add_outcomes(outcomes)
        ok_count = sum(1 for o in outcomes.values() if o.succeeded)
        logger.info("%d/%d checkers returned a value.", ok_count, len(checkers))

        # Step 3: normalize. One record per catalog signal, in catalog order.
        today = self._today()
        for record in EvidenceNormalizer(today).normalize_all(outcomes):
            memory.add_record(record)

        # Step 4: score every catalog issue, then keep the reportable ones.
        scored = self._scorer.score(memory.usable_evidence())
        ranked = self._scorer.select(scored)
        logger.info("Scoring complete. %d reportable issues.", len(ranked))

        # Step 5: causal chains among reportable issues only.
        chains = self._chains.detect(scored)

        # Step 6: assemble.
        report = self._assembler.assemble(
            ranked=ranked,
            scored=scored,
            chains=chains,
            records=memory.get_records(),
            samples=self._recent_samples(memory),
            as_of=today,
        )

        # Step 7: optional narration over the finished report.
        return await self._narrate(report)

    # ── Private helpers ───────────────────────────────────────────────────────

    def _recent_samples(self, memory: RunMemory) -> list[ActivitySample]:
        outcome = memory.outcome_for(PROBE_ACTIVITY_DATA)
        if outcome is None or not outcome.succeeded or not isinstance(outcome.value, (list, tuple)):
            return []
        try:
            return [ActivitySample.model_validate(item) for item in outcome.value]
        except (TypeError, ValueError):
            # Already recorded as unknown evidence by the normalizer.
            return []

    async def _narrate(self, report: DiagnosticReport) -> DiagnosticReport:
        """Run the injected narrator, keeping the template text on any failure."""
        if self._narrator is None:
            return report

        try:
            text = await asyncio.wait_for(
                self._narrator.narrate(report),
                timeout=self.settings.check_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("Narrator timed out — keeping template reasoning.")
            return report
        except Exception as exc:
            logger.warning("Narrator failed — keeping template reasoning. Error: %s", exc)
            return report

        if not isinstance(text, str) or not text.strip():
            logger.warning("Narrator returned no text — keeping template reasoning.")
            return report

        reasoning = report.reasoning.model_copy(update={"reasoning": text.strip()})
        return report.model_copy(update={"reasoning": reasoning})
