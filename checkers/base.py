"""Base signal checker definition.

Defines the contract every signal checker must satisfy. Checkers are the
probes the engine fans out to — each one queries one aspect of the user's
activity-tracking setup (permissions, battery optimization, platform,
recent activity data, ...) and returns a small typed result.

Checkers are "dumb" probes:
- They do not call other checkers
- They do not store state between runs
- They do not interpret their result — the normalizer does that
- They may fail, hang, or be unavailable on the current platform

All intelligence about scheduling, timeouts, scoring and explanation lives
in the executor, normalizer, scorer and report layers.
"""

from abc import ABC, abstractmethod
from typing import Any


class CheckerError(Exception):
    """Raised by a checker when its probe fails.

    Concrete checkers may subclass this for platform-specific failures
    (e.g. a method channel that is not implemented). The executor records
    any exception as a failed check, so subclassing is for readability,
    not for control flow.
    """


class SignalNotApplicable(Exception):
    """Raised by a checker whose signal does not exist on this platform.

    For example, the battery-optimization checker on iOS or the Low Power
    Mode checker on Android. The executor records the call as not
    applicable, and the signal's evidence is omitted from the run.
    """

    def __init__(self, reason: str = "not applicable on this platform"):
        super().__init__(reason)
        self.reason = reason


class SignalChecker(ABC):
    """Abstract base class for all signal checkers.

    The engine only ever interacts with checkers through this interface —
    concrete platform bindings are never referenced in core/.

    Example:
        class PermissionsChecker(SignalChecker):
            name = "permissions"

            async def check(self) -> PermissionStatus:
                granted = await self.health.has_permissions()
                return PermissionStatus.GRANTED if granted else PermissionStatus.DENIED
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Probe name this checker answers for.

        Must match a probe in the signal catalog (core/catalog.py), e.g.
        "permissions", "activity_data". Implement by declaring a
        class-level attribute on the subclass.
        """
        ...

    @abstractmethod
    async def check(self) -> Any:
        """Query the probe once and return its result.

        Returns:
            The probe's typed result: an enum (PermissionStatus,
            PlatformSupport, BatteryOptimization), a bool, or a list of
            ActivitySample for the activity-data probe.

        Raises:
            SignalNotApplicable: If the probe does not exist on this platform.
            Exception: Any other exception is caught by CheckExecutor and the
                signal is recorded as "could not be checked".
        """
        ...
