"""Failure outcomes for snapshot capture and reference resolution."""

from dataclasses import dataclass
from enum import Enum


class FailureKind(str, Enum):
    """Why a capture or a resolution did not produce a result."""

    DRIVER_UNAVAILABLE = "driver_unavailable"
    NO_SNAPSHOT = "no_snapshot"
    STALE_GENERATION = "stale_generation"
    UNKNOWN_FRAME = "unknown_frame"
    DANGLING_ELEMENT = "dangling_element"
    MALFORMED_TOKEN = "malformed_token"


@dataclass(frozen=True)
class SnapshotFailure:
    """Typed failure returned to the command layer instead of raising."""

    kind: FailureKind
    message: str
    ref: str | None = None

    @property
    def needs_new_snapshot(self) -> bool:
        """True when capturing a fresh snapshot is the way out."""
        return self.kind in (
            FailureKind.NO_SNAPSHOT,
            FailureKind.STALE_GENERATION,
            FailureKind.UNKNOWN_FRAME,
            FailureKind.DANGLING_ELEMENT,
        )

    def __str__(self) -> str:
        if self.needs_new_snapshot:
            return f"{self.message} Capture a new snapshot with browser_snapshot and use a reference from it."
        return self.message


class DriverUnavailableError(Exception):
    """A frame detached or navigated away while the browser was being read."""

    def __init__(self, message: str, frame_url: str | None = None):
        self.message = message
        self.frame_url = frame_url
        super().__init__(f"{message} (frame {frame_url})" if frame_url else message)
