"""Live check board for the CLI.

One row per registered probe, listing the reasoning-trace checks that probe
feeds and how its call settled. Rows use the same outcome wording as the
report ("checked", "not applicable", "could not be checked"), so what the
user watches live matches what the reasoning trace says afterwards.

The board only reads CheckEvents from a queue; the engine never knows
whether one is attached.
"""

import asyncio
from dataclasses import dataclass

from rich.live import Live
from rich.table import Table

from core.catalog import SIGNALS
from schemas.events import CheckEvent, EventType

WAITING = "waiting"
CHECKING = "checking"
CHECKED = "checked"
NOT_APPLICABLE = "not applicable"
NOT_CHECKED = "could not be checked"

_OUTCOMES = {
    EventType.STARTED: CHECKING,
    EventType.COMPLETE: CHECKED,
    EventType.SKIPPED: NOT_APPLICABLE,
    EventType.ERROR: NOT_CHECKED,
}

_STYLES = {
    WAITING: "dim",
    CHECKING: "yellow",
    CHECKED: "green",
    NOT_APPLICABLE: "bright_black",
    NOT_CHECKED: "red",
}


@dataclass
class _Row:
    probe: str
    checks: str
    outcome: str = WAITING
    seconds: float | None = None
    detail: str = ""


class LiveDisplay:
    """Check board fed by the executor's event queue.

    Usage:
        display = LiveDisplay(engine.registered_probes())
        with Live(display.render(), refresh_per_second=12) as live:
            ...  # run the engine with an event queue
            await display.consume(event_queue, live)
    """

    def __init__(self, probe_names: list[str]) -> None:
        self._rows = {name: _Row(name, _checks_fed_by(name)) for name in probe_names}

    async def consume(self, queue: asyncio.Queue, live: Live) -> None:
        """Apply events until a None sentinel arrives."""
        while (event := await queue.get()) is not None:
            self.apply(event)
            live.update(self.render())

    def apply(self, event: CheckEvent) -> None:
        row = self._rows.get(event.probe)
        if row is None:
            return
        row.outcome = _OUTCOMES[event.event_type]
        if event.event_type != EventType.STARTED:
            row.seconds = event.timestamp_ms / 1000
            row.detail = event.message

    def status_of(self, probe: str) -> str | None:
        row = self._rows.get(probe)
        return row.outcome if row else None

    def render(self) -> Table:
        table = Table(title="Checks", title_justify="left", expand=False)
        table.add_column("Probe", style="bold")
        table.add_column("Feeds")
        table.add_column("Outcome")
        table.add_column("Time", justify="right")
        table.add_column("Detail", style="dim")
        for row in self._rows.values():
            table.add_row(
                row.probe,
                row.checks,
                f"[{_STYLES[row.outcome]}]{row.outcome}[/]",
                "" if row.seconds is None else f"{row.seconds:.2f}s",
                row.detail,
            )
        return table


def _checks_fed_by(probe: str) -> str:
    labels = [s.label for s in SIGNALS if s.probe == probe]
    return ", ".join(labels) or "-"
