"""Scripted checkers for the CLI demo, the HTTP API and the tests.

A scenario is a JSON object mapping probe name to what that probe should do:

    {
        "permissions":   {"value": "denied"},
        "platform":      {"value": "unavailable", "delay_seconds": 0.4},
        "low_power_mode": {"not_applicable": true},
        "background_sync": {"error": "method channel not implemented"},
        "activity_data": {"value": []}
    }

Probes missing from the scenario get no checker, which the engine treats as
not applicable.
"""

import asyncio
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from checkers.base import CheckerError, SignalChecker, SignalNotApplicable
from core.catalog import PROBES


class ScriptedProbe(BaseModel):
    """What one scripted probe does when checked.

    Exactly one of value, not_applicable or error drives the outcome; when
    none is given the checker returns None, which the normalizer records as
    unknown.
    """

    model_config = ConfigDict(extra="forbid")

    value: Any = None
    not_applicable: bool = False
    error: str | None = None
    delay_seconds: float = Field(default=0.0, ge=0.0)


class ScriptedChecker(SignalChecker):
    """A SignalChecker that replays a ScriptedProbe."""

    def __init__(self, name: str, script: ScriptedProbe):
        self._name = name
        self.script = script
        self.calls = 0

    @property
    def name(self) -> str:
        return self._name

    async def check(self) -> Any:
        self.calls += 1
        if self.script.delay_seconds:
            await asyncio.sleep(self.script.delay_seconds)
        if self.script.not_applicable:
            raise SignalNotApplicable()
        if self.script.error is not None:
            raise CheckerError(self.script.error)
        return self.script.value


def checkers_from_scenario(scenario: dict) -> list[ScriptedChecker]:
    """Build one ScriptedChecker per probe in the scenario.

    Raises:
        ValueError: If the scenario is not an object, names an unknown probe,
            or a probe script is malformed.
    """
    if not isinstance(scenario, dict):
        raise ValueError("Scenario must be a JSON object mapping probe name to script.")

    unknown = sorted(set(scenario) - set(PROBES))
    if unknown:
        raise ValueError(f"Unknown probes in scenario: {unknown}. Known probes: {list(PROBES)}")

    # pydantic's ValidationError is a ValueError.
    return [
        ScriptedChecker(name, ScriptedProbe.model_validate(script))
        for name, script in scenario.items()
    ]


def register_scenario(engine, scenario: dict) -> None:
    """Register scripted checkers for every probe in the scenario on the engine."""
    for checker in checkers_from_scenario(scenario):
        engine.register(checker)
