"""Causal chain detector.

Scans the scored issue set for known cause→effect pairs. A link is only
reported when:
1. The pair exists in core.catalog.CAUSAL_LINKS, and
2. Both the cause and the effect clear the reporting threshold.

Strength is the product of the two confidences. Co-occurrence alone is
never enough: two reportable issues with no table entry are not linked.
"""

from core.catalog import CAUSAL_LINKS, CausalLink
from core.config import DEFAULT_REPORTING_THRESHOLD
from schemas.issue import ScoredIssue
from schemas.report import CausalChain
from scoring.bayes import clamp_unit


class CausalChainDetector:
    """Emits weighted causal links between co-occurring reportable issues."""

    def __init__(
        self,
        reporting_threshold: float = DEFAULT_REPORTING_THRESHOLD,
        links: tuple[CausalLink, ...] = CAUSAL_LINKS,
    ) -> None:
        self.reporting_threshold = reporting_threshold
        self.links = links

    def detect(self, scored: list[ScoredIssue]) -> list[CausalChain]:
        """Return the causal chains present in this run, in table order.

        Args:
            scored: Every scored issue of the run. Issues below the
                threshold are ignored here, not by the caller.
        """
        present = {
            s.issue_type: s for s in scored if s.confidence > self.reporting_threshold
        }

        chains: list[CausalChain] = []
        for link in self.links:
            cause = present.get(link.cause)
            effect = present.get(link.effect)
            if cause is None or effect is None:
                continue
            chains.append(CausalChain(
                cause_issue_type=link.cause,
                effect_issue_type=link.effect,
                strength=clamp_unit(cause.confidence * effect.confidence),
                explanation=link.explanation,
            ))
        return chains
