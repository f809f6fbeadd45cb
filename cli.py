"""Step tracking diagnostics — CLI demo runner.

Runs the full diagnostic pipeline against a scripted scenario and renders
a live check board in the terminal using Rich. Shows the ranked issues,
causal chains and reasoning when every check has settled.

Usage:
    python cli.py                              # fixtures/permissions_denied.json
    python cli.py fixtures/battery_optimization.json

A scenario file looks like:
    {
        "description": "...",
        "today": "2026-10-18",
        "probes": {"permissions": {"value": "denied"}, ...}
    }
"today" pins the date freshness is judged against, so a fixture gives the
same diagnosis whenever it is run.
"""

import asyncio
import json
import pathlib
import sys
from datetime import date

from dotenv import load_dotenv
from rich.console import Console
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from core.catalog import ISSUES_BY_TYPE
from core.config import EngineSettings
from core.engine import DiagnosticEngine
from display.live import LiveDisplay
from schemas.report import DiagnosticReport, TrackingStatus
from stubs import register_scenario

console = Console()

_FIXTURE = pathlib.Path(__file__).parent / "fixtures" / "permissions_denied.json"

_STATUS_STYLES = {
    TrackingStatus.WORKING: "bold green",
    TrackingStatus.DEGRADED: "bold yellow",
    TrackingStatus.BROKEN: "bold red",
    TrackingStatus.UNKNOWN: "bold bright_black",
}


def load_scenario(path: pathlib.Path) -> tuple[dict, date | None, str]:
    """Read a scenario file. Returns (probes, pinned today, description)."""
    with open(path) as f:
        data = json.load(f)
    today = date.fromisoformat(data["today"]) if data.get("today") else None
    return data.get("probes", {}), today, data.get("description", "")


# ── Results ───────────────────────────────────────────────────────────────────

def _print_report(report: DiagnosticReport) -> None:
    """Render the ranked issue table, causal chains and reasoning."""
    style = _STATUS_STYLES[report.tracking_status]
    console.print()
    console.print(
        f"  tracking    [{style}]{report.tracking_status.value}[/{style}]"
        f"   [dim]confidence {report.overall_confidence:.0%}[/dim]"
    )

    ranked = ([report.primary_issue] if report.primary_issue else []) + report.secondary_issues
    if ranked:
        table = Table(title="Ranked Issues", show_lines=True, border_style="bright_black")
        table.add_column("#",          style="dim",  width=3, justify="right")
        table.add_column("Issue",      style="bold", min_width=30)
        table.add_column("Confidence", width=12,     justify="center")
        table.add_column("Severity",   width=10,     justify="center")
        table.add_column("Score",      width=8,      justify="center")
        table.add_column("Evidence",   style="dim",  min_width=20)

        for i, issue in enumerate(ranked, 1):
            conf_color = "green" if issue.confidence >= 0.85 else "yellow" if issue.confidence >= 0.7 else "red"
            sev_color  = "red" if issue.severity >= 0.8 else "yellow" if issue.severity >= 0.4 else "dim"
            marker = " (primary)" if issue is report.primary_issue else ""
            table.add_row(
                str(i),
                ISSUES_BY_TYPE[issue.issue_type].title + marker,
                f"[{conf_color}]{issue.confidence:.0%}[/{conf_color}]",
                f"[{sev_color}]{issue.severity:.1f}[/{sev_color}]",
                f"{issue.utility_score:.2f}",
                ", ".join(issue.evidence_used) or "prior only",
            )
        console.print()
        console.print(table)

    if report.causal_chains:
        chains = Table(title="Causal Chains", border_style="bright_black")
        chains.add_column("Cause",    style="bold")
        chains.add_column("Effect",   style="bold")
        chains.add_column("Strength", justify="center")
        for chain in report.causal_chains:
            chains.add_row(
                ISSUES_BY_TYPE[chain.cause_issue_type].title,
                ISSUES_BY_TYPE[chain.effect_issue_type].title,
                f"{chain.strength:.0%}",
            )
        console.print()
        console.print(chains)

    console.print()
    console.print(Panel(Markdown(report.reasoning.reasoning), title="Reasoning", border_style="cyan"))
    for check in report.reasoning.checks_performed:
        console.print(f"  [dim]•[/dim] {check}")

    if report.is_working_despite_issues:
        console.print("\n[bold green]✓  Tracking works — minor notes only[/bold green]")
    console.print(f"[dim]report: {report.report_id}[/dim]\n")


# ── Entry point ───────────────────────────────────────────────────────────────

async def _run(path: pathlib.Path) -> None:
    probes, today, description = load_scenario(path)

    engine = DiagnosticEngine(
        settings=EngineSettings.from_env(),
        today=(lambda: today) if today else date.today,
    )
    register_scenario(engine, probes)

    probe_names = engine.registered_probes()
    display = LiveDisplay(probe_names)
    event_queue: asyncio.Queue = asyncio.Queue()

    console.rule("[bold]Step Tracking Diagnostics[/bold]")
    console.print(f"  scenario    [cyan]{path.name}[/cyan]")
    if description:
        console.print(f"  [dim]{description}[/dim]")
    console.print(f"  checkers    [cyan]{len(probe_names)} registered[/cyan]")
    console.print()

    with Live(display.render(), console=console, refresh_per_second=12) as live:
        run = asyncio.create_task(engine.run_diagnostic(event_queue=event_queue))
        consumer = asyncio.create_task(display.consume(event_queue, live))

        report = await run
        await event_queue.put(None)   # sentinel: tell consumer to stop
        await consumer

    _print_report(report)


def main() -> None:
    load_dotenv()
    path = pathlib.Path(sys.argv[1]) if len(sys.argv) > 1 else _FIXTURE
    asyncio.run(_run(path))


if __name__ == "__main__":
    main()
