"""Checker result schemas.

Defines the small enumerated result types the signal checkers return, and
the activity-data sample shape read from the health platform. These are the
contract between the external probes and the evidence normalizer. The
engine only reads these values — it never mutates them.
"""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PermissionStatus(str, Enum):
    """Result of the health-permission probe.

    PARTIAL means some but not all of the activity read permissions were
    granted, which blocks tracking just as a full denial does.
    """

    GRANTED = "granted"
    PARTIAL = "partial"
    DENIED = "denied"


class PlatformSupport(str, Enum):
    """Result of the health-platform probe (Health Connect / HealthKit).

    Values:
        AVAILABLE: Platform installed and ready.
        BUILT_IN: Platform ships with the OS (Android 14+).
        NOT_INSTALLED: A separate app must be installed (Android 9-13).
        NEEDS_UPDATE: The platform stub exists but requires an update.
        UNAVAILABLE: Platform present but not answering right now.
        NOT_SUPPORTED: The device or OS version cannot track activity at all.
    """

    AVAILABLE = "available"
    BUILT_IN = "built_in"
    NOT_INSTALLED = "not_installed"
    NEEDS_UPDATE = "needs_update"
    UNAVAILABLE = "unavailable"
    NOT_SUPPORTED = "not_supported"


class BatteryOptimization(str, Enum):
    """Result of the battery-optimization probe (Android 6.0+ only)."""

    ENABLED = "enabled"
    DISABLED = "disabled"
    NOT_APPLICABLE = "not_applicable"


class SourceKind(str, Enum):
    """Kind of app or device that produced an activity sample."""

    APP = "app"
    PHONE = "phone"
    WATCH = "watch"
    MANUAL = "manual"
    UNKNOWN = "unknown"


class DataSource(BaseModel):
    """An app or device that contributes activity samples.

    Attributes:
        id: Package name (Android) or bundle ID (iOS),
            e.g. "com.google.android.apps.fitness".
        name: User-facing name, e.g. "Google Fit".
        kind: Kind of source. Manual entries are not counted as tracking
            sources by the activity analyzer.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    kind: SourceKind = SourceKind.APP

    @property
    def is_manual(self) -> bool:
        """True for hand-entered data, by kind or by the "manual" naming convention."""
        if self.kind == SourceKind.MANUAL:
            return True
        return "manual" in self.id.lower() or "manual" in self.name.lower()


class ActivitySample(BaseModel):
    """Step count recorded for one date by one source.

    Attributes:
        date: The calendar date the count belongs to.
        steps: Total steps for that date from this source.
        source: The app or device that recorded the count.
        last_synced_at: When this sample was last synced, if the platform
            reports it.
    """

    model_config = ConfigDict(frozen=True)

    date: date
    steps: int = Field(ge=0)
    source: DataSource
    last_synced_at: datetime | None = None
