"""Engine settings.

Tunable runtime values, read from the environment. Entry points call
load_dotenv() before building settings so a local .env file works the same
as exported variables.

The utility weights (severity 0.4, confidence 0.4, actionability 0.2) are
policy constants in scoring/scorer.py, not settings.
"""

import logging
import math
import os
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)

DEFAULT_CHECK_TIMEOUT_SECONDS = 5.0
DEFAULT_REPORTING_THRESHOLD = 0.3


@dataclass(frozen=True)
class EngineSettings:
    """Runtime settings for one DiagnosticEngine.

    Attributes:
        check_timeout_seconds: Per-checker timeout. A checker that exceeds
            it is cancelled and its signals are recorded as unknown.
        reporting_threshold: Minimum confidence an issue needs to appear in
            the report at all.
    """

    check_timeout_seconds: float = DEFAULT_CHECK_TIMEOUT_SECONDS
    reporting_threshold: float = DEFAULT_REPORTING_THRESHOLD

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """Build settings from DIAG_* environment variables.

        Malformed or out-of-range values are logged and replaced with the
        default.
        """
        timeout = _read_float(
            "DIAG_CHECK_TIMEOUT_SECONDS",
            DEFAULT_CHECK_TIMEOUT_SECONDS,
            valid=lambda v: v > 0.0,
        )
        threshold = _read_float(
            "DIAG_REPORTING_THRESHOLD",
            DEFAULT_REPORTING_THRESHOLD,
            valid=lambda v: 0.0 <= v < 1.0,
        )
        return cls(check_timeout_seconds=timeout, reporting_threshold=threshold)


def _read_float(name: str, default: float, valid: Callable[[float], bool]) -> float:
    """Read one float variable, falling back to default when unset or invalid."""
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default

    try:
        value = float(raw)
    except ValueError:
        logger.warning("%s=%r is not a number; using default %s.", name, raw, default)
        return default

    if math.isnan(value) or not valid(value):
        logger.warning("%s=%r is out of range; using default %s.", name, raw, default)
        return default
    return value

