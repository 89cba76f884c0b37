"""Work session reconstruction from a normalized punch stream.

Scanning rules, per employee in time order:

- ClockIn opens a session.
- BreakStart / BreakEnd pairs nest as breaks inside the open session.
- ClockOut closes the session.
- A ClockIn while a break is open ends that break (some terminals record the
  end of a break as a clock-in).
- A ClockIn while a session is open and no break is open means the previous
  session never clocked out: it is closed as ``missing_clock_out`` and a new
  session begins.
- ClockOut / BreakEnd with nothing open are orphans and are ignored.

Unverifiable time is never paid on a guess: an open break is not deducted
(``incomplete_break``) and a session with no clock-out contributes zero
worked minutes (``missing_clock_out``).
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from datetime import date, datetime, tzinfo

from timepay_engine.calculators.dates import local_date
from timepay_engine.calculators.normalizer import NoiseFilterConfig, normalize_punches
from timepay_engine.config import Settings
from timepay_engine.models.timekeeping import (
    BreakInterval,
    DailyHours,
    NormalizedPunch,
    PunchEvent,
    PunchKind,
    SessionAnomaly,
    WorkSession,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionPolicy:
    """Caller policy for which sessions count toward pay."""

    short_session_minutes: int = 3
    exclude_abnormally_short: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> SessionPolicy:
        return cls(
            short_session_minutes=settings.short_session_minutes,
            exclude_abnormally_short=settings.exclude_abnormally_short,
        )


@dataclass
class _SessionBuilder:
    """Mutable scratch state for one session while scanning."""

    employee_id: str
    clock_in: datetime
    breaks: list[BreakInterval] = field(default_factory=list)
    open_break: datetime | None = None
    anomalies: set[SessionAnomaly] = field(default_factory=set)

    def end_break(self, at: datetime) -> None:
        if self.open_break is not None:
            self.breaks.append(BreakInterval(start=self.open_break, end=at))
            self.open_break = None

    def build(self, clock_out: datetime | None, tz: tzinfo | None) -> WorkSession:
        breaks = list(self.breaks)
        anomalies = set(self.anomalies)

        if self.open_break is not None:
            breaks.append(BreakInterval(start=self.open_break, end=None))
            anomalies.add(SessionAnomaly.INCOMPLETE_BREAK)

        # Only complete breaks are deducted
        break_minutes = sum(b.duration_minutes for b in breaks if b.is_complete)

        if clock_out is None:
            anomalies.add(SessionAnomaly.MISSING_CLOCK_OUT)
            total_minutes = 0
            worked_minutes = 0
        else:
            total_minutes = max(int((clock_out - self.clock_in).total_seconds() // 60), 0)
            worked_minutes = max(total_minutes - break_minutes, 0)

        return WorkSession(
            employee_id=self.employee_id,
            clock_in=self.clock_in,
            clock_out=clock_out,
            work_date=local_date(self.clock_in, tz),
            breaks=tuple(breaks),
            total_minutes=total_minutes,
            break_minutes=break_minutes,
            worked_minutes=worked_minutes,
            anomalies=frozenset(anomalies),
        )


def _scan_employee(
    employee_id: str, events: list[PunchEvent], tz: tzinfo | None
) -> list[WorkSession]:
    sessions: list[WorkSession] = []
    current: _SessionBuilder | None = None

    for event in events:
        kind = event.kind

        if current is None:
            if kind == PunchKind.CLOCK_IN:
                current = _SessionBuilder(employee_id=employee_id, clock_in=event.timestamp)
            else:
                logger.debug(
                    "Ignoring orphan %s punch for %s at %s",
                    kind.value, employee_id, event.timestamp.isoformat(),
                )
            continue

        if kind == PunchKind.CLOCK_OUT:
            sessions.append(current.build(event.timestamp, tz))
            current = None

        elif kind == PunchKind.BREAK_START:
            current.open_break = event.timestamp

        elif kind == PunchKind.BREAK_END:
            if current.open_break is None:
                logger.debug(
                    "Ignoring break_end without break_start for %s at %s",
                    employee_id, event.timestamp.isoformat(),
                )
            current.end_break(event.timestamp)

        elif kind == PunchKind.CLOCK_IN:
            if current.open_break is not None:
                current.end_break(event.timestamp)
            else:
                sessions.append(current.build(None, tz))
                current = _SessionBuilder(employee_id=employee_id, clock_in=event.timestamp)

    if current is not None:
        sessions.append(current.build(None, tz))

    return sessions


def _flag_short_sessions(
    sessions: list[WorkSession], policy: SessionPolicy
) -> list[WorkSession]:
    """Flag very short sessions that are not the only session of their day."""
    per_day: dict[tuple[str, date], int] = defaultdict(int)
    for s in sessions:
        per_day[(s.employee_id, s.work_date)] += 1

    flagged: list[WorkSession] = []
    for s in sessions:
        if (
            s.is_complete
            and s.total_minutes < policy.short_session_minutes
            and per_day[(s.employee_id, s.work_date)] > 1
        ):
            s = replace(s, anomalies=s.anomalies | {SessionAnomaly.ABNORMALLY_SHORT})
        flagged.append(s)
    return flagged


def reconstruct_sessions(
    punches: Iterable[NormalizedPunch | PunchEvent],
    tz: tzinfo | None = None,
    policy: SessionPolicy | None = None,
) -> list[WorkSession]:
    """Group a punch stream into work sessions.

    Accepts normalized punches (noise is skipped) or raw events that are
    already trusted. Output is ordered by employee then clock-in.
    """
    policy = policy or SessionPolicy()

    by_employee: dict[str, list[PunchEvent]] = defaultdict(list)
    for punch in punches:
        if isinstance(punch, NormalizedPunch):
            if punch.is_noise:
                continue
            event = punch.event
        else:
            event = punch
        by_employee[event.employee_id].append(event)

    sessions: list[WorkSession] = []
    for employee_id in sorted(by_employee):
        events = sorted(by_employee[employee_id], key=lambda e: (e.timestamp, e.punch_id or ""))
        sessions.extend(_scan_employee(employee_id, events, tz))

    sessions = _flag_short_sessions(sessions, policy)
    sessions.sort(key=lambda s: (s.employee_id, s.clock_in))
    return sessions


def is_payable(session: WorkSession, policy: SessionPolicy | None = None) -> bool:
    """Whether a session contributes to pay under the caller policy."""
    policy = policy or SessionPolicy()
    if not session.is_complete:
        return False
    if policy.exclude_abnormally_short and SessionAnomaly.ABNORMALLY_SHORT in session.anomalies:
        return False
    return True


def payable_sessions(
    sessions: Iterable[WorkSession], policy: SessionPolicy | None = None
) -> Iterator[WorkSession]:
    """Yield the sessions that contribute to pay."""
    for session in sessions:
        if is_payable(session, policy):
            yield session


def _punch_count(session: WorkSession) -> int:
    count = 2 if session.is_complete else 1
    for b in session.breaks:
        count += 2 if b.is_complete else 1
    return count


def calculate_daily_hours(
    sessions: Iterable[WorkSession], day: date | None = None
) -> list[DailyHours]:
    """Summarize sessions per employee per day, optionally for one day only."""
    grouped: dict[tuple[date, str], list[WorkSession]] = defaultdict(list)
    for s in sessions:
        if day is not None and s.work_date != day:
            continue
        grouped[(s.work_date, s.employee_id)].append(s)

    return [
        DailyHours(
            employee_id=employee_id,
            work_date=work_date,
            sessions=tuple(items),
            worked_minutes=sum(s.worked_minutes for s in items),
            break_minutes=sum(s.break_minutes for s in items),
            total_minutes=sum(s.total_minutes for s in items),
            punch_count=sum(_punch_count(s) for s in items),
        )
        for (work_date, employee_id), items in sorted(grouped.items())
    ]


@dataclass(frozen=True)
class PunchProcessingResult:
    """Normalizer and reconstructor output for a batch of punches."""

    normalized: tuple[NormalizedPunch, ...]
    sessions: tuple[WorkSession, ...]

    @property
    def noise_count(self) -> int:
        return sum(1 for p in self.normalized if p.is_noise)

    @property
    def anomaly_count(self) -> int:
        return sum(1 for s in self.sessions if s.has_anomalies)


def process_punches(
    events: Iterable[PunchEvent],
    config: NoiseFilterConfig | None = None,
    policy: SessionPolicy | None = None,
    tz: tzinfo | None = None,
) -> PunchProcessingResult:
    """Normalize raw punches and rebuild their sessions in one pass."""
    normalized = normalize_punches(events, config)
    sessions = reconstruct_sessions(normalized, tz=tz, policy=policy)
    return PunchProcessingResult(normalized=tuple(normalized), sessions=tuple(sessions))
