"""Activity analyzer — deterministic signal derivation from activity samples.

Derives four signal values from the samples the activity-data checker read:
- Freshness: steps recorded today → "fresh"; samples but none today → "stale";
  no samples → "none"
- Data sources: distinct automatic sources → "none" / "single" / "multiple"
- Manual entries: any hand-entered sample → "present" / "absent"
- Source conflict: two automatic sources disagreeing by more than 20% on
  the same date → "diverging" / "consistent"

No LLM involved. Same samples and same "today" always produce the same values.
"""

from collections import defaultdict
from datetime import date

from schemas.activity import ActivitySample


class ActivityAnalyzer:
    """Derive activity-data signal values from a list of samples."""

    DIVERGENCE_THRESHOLD = 0.20  # (max - min) / max above this counts as diverging

    def __init__(self, today: date) -> None:
        self.today = today

    def freshness(self, samples: list[ActivitySample]) -> str:
        if not samples:
            return "none"
        today_steps = sum(s.steps for s in samples if s.date == self.today)
        return "fresh" if today_steps > 0 else "stale"

    def data_sources(self, samples: list[ActivitySample]) -> str:
        sources = {s.source.id for s in samples if not s.source.is_manual}
        if not sources:
            return "none"
        return "single" if len(sources) == 1 else "multiple"

    def manual_entries(self, samples: list[ActivitySample]) -> str:
        return "present" if any(s.source.is_manual for s in samples) else "absent"

    def source_conflict(self, samples: list[ActivitySample]) -> str:
        # date -> source id -> steps; manual entries are not a tracking source.
        by_date: dict[date, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        for s in samples:
            if not s.source.is_manual:
                by_date[s.date][s.source.id] += s.steps

        for counts in by_date.values():
            if len(counts) < 2:
                continue
            high = max(counts.values())
            low = min(counts.values())
            if high > 0 and (high - low) / high > self.DIVERGENCE_THRESHOLD:
                return "diverging"
        return "consistent"
