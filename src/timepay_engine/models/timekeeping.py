"""Time clock models: punches, normalized punches, and work sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class PunchKind(str, Enum):
    """Clock actions recorded by the time clock."""

    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"
    BREAK_START = "break_start"
    BREAK_END = "break_end"


class NoiseReason(str, Enum):
    """Why a punch was flagged as noise."""

    BURST = "burst"
    DUPLICATE = "duplicate"
    BREAK_CANCELLED = "break-cancelled"


class SessionAnomaly(str, Enum):
    """Non-fatal flags raised while reconstructing a session."""

    MISSING_CLOCK_OUT = "missing_clock_out"
    INCOMPLETE_BREAK = "incomplete_break"
    ABNORMALLY_SHORT = "abnormally_short"


@dataclass(frozen=True)
class PunchEvent:
    """One clock action. Source of truth, never synthesized by the engine."""

    employee_id: str
    timestamp: datetime
    kind: PunchKind
    note: str | None = None
    punch_id: str | None = None


@dataclass(frozen=True)
class NormalizedPunch:
    """A punch tagged valid or noise. Noise is flagged, never dropped."""

    event: PunchEvent
    is_noise: bool = False
    noise_reason: NoiseReason | None = None

    @property
    def employee_id(self) -> str:
        return self.event.employee_id

    @property
    def timestamp(self) -> datetime:
        return self.event.timestamp

    @property
    def kind(self) -> PunchKind:
        return self.event.kind


@dataclass(frozen=True)
class BreakInterval:
    """A break nested inside a work session. ``end`` is None while open."""

    start: datetime
    end: datetime | None = None

    @property
    def is_complete(self) -> bool:
        return self.end is not None

    @property
    def duration_minutes(self) -> int:
        """Whole minutes of the break; 0 for an incomplete break."""
        if self.end is None:
            return 0
        return max(int((self.end - self.start).total_seconds() // 60), 0)


@dataclass(frozen=True)
class WorkSession:
    """A clock-in to clock-out interval, rebuilt from punches on every query."""

    employee_id: str
    clock_in: datetime
    work_date: date
    clock_out: datetime | None = None
    breaks: tuple[BreakInterval, ...] = ()
    total_minutes: int = 0
    break_minutes: int = 0
    worked_minutes: int = 0
    anomalies: frozenset[SessionAnomaly] = field(default_factory=frozenset)

    @property
    def is_complete(self) -> bool:
        return self.clock_out is not None

    @property
    def has_anomalies(self) -> bool:
        return len(self.anomalies) > 0


@dataclass(frozen=True)
class DailyHours:
    """Sessions and totals for one employee on one calendar day."""

    employee_id: str
    work_date: date
    sessions: tuple[WorkSession, ...]
    worked_minutes: int
    break_minutes: int
    total_minutes: int
    punch_count: int


@dataclass(frozen=True)
class ScheduledShift:
    """A planned shift from scheduling (forward-looking labor cost only)."""

    employee_id: str
    start: datetime
    end: datetime
    break_minutes: int = 0

    @property
    def net_minutes(self) -> int:
        """Scheduled minutes net of the planned break, never negative."""
        total = int((self.end - self.start).total_seconds() // 60)
        return max(total - self.break_minutes, 0)
