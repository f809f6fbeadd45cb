"""Checker registry.

CheckerRegistry is the engine's roster of signal checkers. It tracks which
probe each checker answers for and hands them out in registration order.
DiagnosticEngine delegates all checker registration and retrieval to this
class.

The registry enforces one invariant: probe names must be unique. Two
checkers answering for the same probe would make the evidence for that
probe ambiguous — so duplicate registration is rejected immediately.
"""

from checkers.base import SignalChecker


class CheckerRegistry:
    """Tracks registered checkers keyed by probe name.

    Internally backed by a dict keyed on probe name, which rejects
    duplicates cheaply and preserves registration order.

    Attributes:
        _checkers: Internal dict mapping probe name to checker instance.
    """

    def __init__(self) -> None:
        """Initialise an empty registry."""
        self._checkers: dict[str, SignalChecker] = {}

    def register(self, checker: SignalChecker) -> None:
        """Register a checker with the engine.

        Args:
            checker: The checker instance to register. Its name property is
                used as the unique key.

        Raises:
            ValueError: If a checker for the same probe is already registered.
                This is always a programming error, not a recoverable condition.
        """
        if checker.name in self._checkers:
            raise ValueError(
                f"Checker '{checker.name}' is already registered. "
                "Each probe must have exactly one checker."
            )
        self._checkers[checker.name] = checker

    def get_all(self) -> list[SignalChecker]:
        """Return all registered checkers in registration order.

        Returns a copy so callers cannot mutate the registry's state.
        """
        return list(self._checkers.values())

    def __len__(self) -> int:
        return len(self._checkers)
