"""Reasoning generator.

Builds the ReasoningTrace for a run: the audit list of every check that was
attempted, and a plain-English explanation of the diagnosis. All text is
deterministic template output — a language-model narrator can be layered on
top by the engine, but this generator is what the report falls back to.

The explanation always:
- names the primary issue (if any) with its confidence band and the reason
  for that confidence
- explains "why this matters" for every detected causal chain
- states truthfully which checks could not be completed
"""

from core.catalog import ISSUES_BY_TYPE
from core.memory import CheckRecord
from schemas.issue import IssueType, ScoredIssue
from schemas.report import CausalChain, ReasoningTrace, TrackingStatus

SIGNIFICANT_SECONDARY_CONFIDENCE = 0.70

CHECKED = "checked"
NOT_APPLICABLE = "not applicable"
NOT_CHECKED = "could not be checked"


def issue_title(issue_type: IssueType) -> str:
    definition = ISSUES_BY_TYPE.get(issue_type)
    return definition.title if definition else issue_type.value.replace("_", " ").title()


class ReasoningGenerator:
    """Turns the assembled diagnosis into a ReasoningTrace."""

    def generate(
        self,
        primary: ScoredIssue | None,
        secondary: list[ScoredIssue],
        chains: list[CausalChain],
        status: TrackingStatus,
        records: list[CheckRecord],
    ) -> ReasoningTrace:
        """Build the trace.

        Args:
            primary: The primary issue, or None.
            secondary: Ranked secondary issues.
            chains: Detected causal chains.
            status: The tracking verdict already decided by the assembler.
            records: One record per attempted check, in catalog order.

        Returns:
            A ReasoningTrace whose checks_performed has exactly one entry per
            record.
        """
        checks = [f"{r.signal.label}: {_outcome(r)}" for r in records]
        failed = [r.signal.label for r in records if r.failed]
        skipped = [r.signal.label for r in records if r.not_applicable]
        usable = len(records) - len(failed) - len(skipped)

        if primary is None:
            parts = [self._summary_without_primary(len(records), usable, status, secondary)]
        else:
            parts = [self._summary_with_primary(len(records), primary, secondary)]

        if chains:
            parts.append(self._why_this_matters(chains))

        if failed:
            parts.append(
                f"I could not complete {len(failed)} of {len(records)} checks "
                f"({', '.join(failed)}), so this diagnosis may be incomplete."
            )
        if skipped:
            parts.append(f"Not applicable on this device: {', '.join(skipped)}.")

        return ReasoningTrace(
            checks_performed=checks,
            reasoning="\n\n".join(parts),
            skipped_checks=skipped,
            failed_checks=failed,
        )

    # ── Private helpers ───────────────────────────────────────────────────────

    def _summary_without_primary(self, attempted: int, usable: int,
                                 status: TrackingStatus,
                                 secondary: list[ScoredIssue]) -> str:
        if usable == 0:
            return (
                f"I tried {attempted} checks but could not collect enough information "
                "to tell whether step tracking is working."
            )

        if status == TrackingStatus.WORKING and secondary:
            titles = ", ".join(issue_title(s.issue_type) for s in secondary)
            noun = "issue" if len(secondary) == 1 else "issues"
            return (
                f"I checked {attempted} potential issues and step tracking is working. "
                f"I noticed {len(secondary)} minor {noun} that are not blocking it: {titles}."
            )

        if status == TrackingStatus.WORKING:
            return (
                f"I checked {attempted} potential issues and found no problems blocking "
                "step tracking. Everything appears to be configured correctly."
            )

        return (
            f"I checked {attempted} potential issues and found nothing blocking step "
            "tracking, but I could not confirm that recent steps are arriving. "
            "It may need more time to sync."
        )

    def _summary_with_primary(self, attempted: int, primary: ScoredIssue,
                              secondary: list[ScoredIssue]) -> str:
        definition = ISSUES_BY_TYPE.get(primary.issue_type)
        percent = int(primary.confidence * 100)
        lines = [
            f"I checked {attempted} potential issues and identified "
            f"**{issue_title(primary.issue_type)}** as the primary problem "
            f"({percent}% confident).",
            "",
            "**Why I think this is the issue:**",
            f"• {_confidence_band(primary, percent)}",
        ]
        if definition is not None and definition.impact:
            lines.append(f"• This issue {definition.impact}")

        significant = [s for s in secondary if s.confidence >= SIGNIFICANT_SECONDARY_CONFIDENCE]
        if significant:
            titles = ", ".join(issue_title(s.issue_type) for s in significant)
            lines.append("")
            lines.append(
                f"**Also detected {len(significant)} other issue(s)** that may be "
                f"contributing: {titles}."
            )
        return "\n".join(lines)

    def _why_this_matters(self, chains: list[CausalChain]) -> str:
        lines = ["**Why this matters:**"]
        for chain in chains:
            lines.append(
                f"• {issue_title(chain.cause_issue_type)} → "
                f"{issue_title(chain.effect_issue_type)}: {chain.explanation}"
            )
        return "\n".join(lines)


def _outcome(record: CheckRecord) -> str:
    if record.not_applicable:
        return NOT_APPLICABLE
    if record.failed:
        return NOT_CHECKED
    return CHECKED


def _confidence_band(issue: ScoredIssue, percent: int) -> str:
    count = len(issue.evidence_used)
    if count > 1:
        basis = f"{count} independent signals point to it"
    elif count == 1:
        basis = "a direct check points to it"
    else:
        basis = "it is common on devices like yours"

    if issue.confidence >= 0.95:
        return f"High confidence ({percent}%) because {basis}"
    if issue.confidence >= 0.85:
        return f"Good confidence ({percent}%) because {basis}"
    if issue.confidence >= 0.70:
        return f"Moderate confidence ({percent}%) because {basis}, though it is not certain"
    return (
        f"Lower confidence ({percent}%) because {basis}, "
        "but this is my best guess from the available data"
    )
