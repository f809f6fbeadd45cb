"""Issue scorer.

The IssueScorer takes one run's evidence and scores every catalog issue.
It handles two concerns:

1. Confidence — each issue starts at its prior and is updated by every
   usable piece of evidence its rules read, in rule order:
       posterior = (L_true * prior) / (L_true * prior + L_false * (1 - prior))
   Issues with no usable evidence keep their prior.

2. Utility — issues are ranked by a fixed policy formula:
       utility = severity * 0.4 + confidence * 0.4 + actionability * 0.2
   Severity and confidence matter equally; ease of remediation matters
   half as much.

Selection drops every issue at or below the reporting threshold and ranks
the rest. Equal scores are broken by higher severity, then by catalog
declaration order, so the ranking never depends on collection order.
"""

import functools
import logging

from core.catalog import ISSUE_ORDER, ISSUES
from core.config import DEFAULT_REPORTING_THRESHOLD
from schemas.evidence import Evidence
from schemas.issue import IssueDefinition, ScoredIssue
from scoring.bayes import bayesian_update, clamp_unit, weighted_likelihoods

logger = logging.getLogger(__name__)

SEVERITY_WEIGHT = 0.4
CONFIDENCE_WEIGHT = 0.4
ACTIONABILITY_WEIGHT = 0.2

# Scores within this distance of each other are tied.
SCORE_TIE_TOLERANCE = 1e-9


def utility_score(severity: float, confidence: float, actionability: float) -> float:
    return clamp_unit(
        clamp_unit(severity) * SEVERITY_WEIGHT
        + clamp_unit(confidence) * CONFIDENCE_WEIGHT
        + clamp_unit(actionability) * ACTIONABILITY_WEIGHT
    )


class IssueScorer:
    """Scores catalog issues against evidence and selects reportable ones.

    Stateless apart from its threshold: the same evidence always produces
    the same scored issues.

    Attributes:
        reporting_threshold: Issues need confidence strictly above this to
            be reported.
        definitions: The issue catalog to score. Defaults to core.catalog.ISSUES.
    """

    def __init__(
        self,
        reporting_threshold: float = DEFAULT_REPORTING_THRESHOLD,
        definitions: tuple[IssueDefinition, ...] = ISSUES,
    ) -> None:
        self.reporting_threshold = reporting_threshold
        self.definitions = definitions

    def score(self, evidence: list[Evidence]) -> list[ScoredIssue]:
        """Score every catalog issue. Returns one ScoredIssue per definition, in catalog order.

        Args:
            evidence: The run's evidence. Unknown evidence (observed=None or
                reliability 0.0) is ignored.
        """
        usable = {e.signal_id: e for e in evidence if e.is_usable}
        return [self._score_one(definition, usable) for definition in self.definitions]

    def select(self, scored: list[ScoredIssue]) -> list[ScoredIssue]:
        """Drop issues at or below the reporting threshold and rank the rest.

        Returns:
            Reportable issues, best first. Empty if nothing clears the
            threshold.
        """
        reportable = [s for s in scored if s.confidence > self.reporting_threshold]
        return sorted(reportable, key=functools.cmp_to_key(_compare_ranked))

    # ── Private helpers ───────────────────────────────────────────────────────

    def _score_one(self, definition: IssueDefinition,
                   usable: dict[str, Evidence]) -> ScoredIssue:
        confidence = clamp_unit(definition.prior_probability)
        used: list[str] = []

        for rule in definition.evidence_rules:
            evidence = usable.get(rule.signal_id)
            if evidence is None:
                continue

            l_true = rule.likelihood_given_true
            l_false = rule.likelihood_given_false
            l_true, l_false = weighted_likelihoods(
                definition.likelihood_given_true if l_true is None else l_true,
                definition.likelihood_given_false if l_false is None else l_false,
                symptom_present=evidence.observed in rule.indicates,
                reliability=evidence.reliability,
            )
            confidence = bayesian_update(confidence, l_true, l_false)
            used.append(rule.signal_id)

        score = utility_score(definition.severity, confidence, definition.actionability)
        logger.debug(
            "Scored %s: confidence=%.3f utility=%.3f evidence=%s",
            definition.issue_type.value,
            confidence,
            score,
            used or "prior only",
        )
        return ScoredIssue(
            issue_type=definition.issue_type,
            confidence=confidence,
            utility_score=score,
            severity=definition.severity,
            evidence_used=used,
        )


def _compare_ranked(a: ScoredIssue, b: ScoredIssue) -> int:
    """Order two issues best first: score, then severity, then catalog order."""
    if abs(a.utility_score - b.utility_score) > SCORE_TIE_TOLERANCE:
        return -1 if a.utility_score > b.utility_score else 1
    if a.severity != b.severity:
        return -1 if a.severity > b.severity else 1
    last = len(ISSUE_ORDER)
    return ISSUE_ORDER.get(a.issue_type, last) - ISSUE_ORDER.get(b.issue_type, last)
