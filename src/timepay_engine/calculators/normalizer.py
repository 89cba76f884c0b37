"""Punch stream normalization.

Turns a raw, possibly chaotic list of clock events into an ordered stream in
which every event is tagged valid or noise. Filters run as a fixed pipeline:

1) burst: 3+ events inside the burst window keep only the first
2) duplicate: same kind repeated inside the duplicate window
3) break-cancel: BreakStart followed shortly by a ClockIn

Each filter only looks at events still valid and only annotates; nothing is
ever removed from the stream, so the audit trail stays complete.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime

from timepay_engine.config import Settings
from timepay_engine.models.timekeeping import NoiseReason, NormalizedPunch, PunchEvent, PunchKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoiseFilterConfig:
    """Windows used by the noise filters, in seconds."""

    burst_window_seconds: int = 60
    burst_min_events: int = 3
    duplicate_window_seconds: int = 60
    break_cancel_window_seconds: int = 120

    @classmethod
    def from_settings(cls, settings: Settings) -> NoiseFilterConfig:
        return cls(
            burst_window_seconds=settings.burst_window_seconds,
            duplicate_window_seconds=settings.duplicate_window_seconds,
            break_cancel_window_seconds=settings.break_cancel_window_seconds,
        )


def _seconds_between(earlier: datetime, later: datetime) -> float:
    return (later - earlier).total_seconds()


def _flag(punch: NormalizedPunch, reason: NoiseReason) -> NormalizedPunch:
    return replace(punch, is_noise=True, noise_reason=reason)


class PunchFilter:
    """Base class for a noise filter in the normalization pipeline."""

    reason: NoiseReason

    def __init__(self, config: NoiseFilterConfig):
        self.config = config

    def apply(self, punches: list[NormalizedPunch]) -> list[NormalizedPunch]:
        raise NotImplementedError


class BurstFilter(PunchFilter):
    """Keep the first of 3+ events inside the burst window, flag the rest."""

    reason = NoiseReason.BURST

    def apply(self, punches: list[NormalizedPunch]) -> list[NormalizedPunch]:
        result = list(punches)
        valid = [i for i, p in enumerate(result) if not p.is_noise]
        window = self.config.burst_window_seconds

        k = 0
        while k < len(valid):
            anchor = result[valid[k]]
            j = k + 1
            while j < len(valid) and (
                _seconds_between(anchor.timestamp, result[valid[j]].timestamp) < window
            ):
                j += 1

            if j - k >= self.config.burst_min_events:
                for m in range(k + 1, j):
                    result[valid[m]] = _flag(result[valid[m]], self.reason)
                k = j
            else:
                k += 1

        return result


class DuplicateFilter(PunchFilter):
    """Flag a repeat of the same punch kind inside the duplicate window."""

    reason = NoiseReason.DUPLICATE

    def apply(self, punches: list[NormalizedPunch]) -> list[NormalizedPunch]:
        result = list(punches)
        last_seen: dict[PunchKind, datetime] = {}
        window = self.config.duplicate_window_seconds

        for i, punch in enumerate(result):
            if punch.is_noise:
                continue
            previous = last_seen.get(punch.kind)
            if previous is not None and _seconds_between(previous, punch.timestamp) < window:
                result[i] = _flag(punch, self.reason)
                continue
            last_seen[punch.kind] = punch.timestamp

        return result


class BreakCancelFilter(PunchFilter):
    """Flag a BreakStart immediately followed by a ClockIn as an aborted break."""

    reason = NoiseReason.BREAK_CANCELLED

    def apply(self, punches: list[NormalizedPunch]) -> list[NormalizedPunch]:
        result = list(punches)
        valid = [i for i, p in enumerate(result) if not p.is_noise]
        window = self.config.break_cancel_window_seconds

        for a, b in zip(valid, valid[1:]):
            first, second = result[a], result[b]
            if (
                first.kind == PunchKind.BREAK_START
                and second.kind == PunchKind.CLOCK_IN
                and _seconds_between(first.timestamp, second.timestamp) <= window
            ):
                result[a] = _flag(first, self.reason)

        return result


PIPELINE: tuple[type[PunchFilter], ...] = (BurstFilter, DuplicateFilter, BreakCancelFilter)


def _sort_key(event: PunchEvent) -> tuple[datetime, str]:
    return (event.timestamp, event.punch_id or "")


def normalize_punches(
    events: Iterable[PunchEvent],
    config: NoiseFilterConfig | None = None,
) -> list[NormalizedPunch]:
    """Sort and annotate a punch stream.

    Events are processed per employee so one employee's punches never mark
    another's as noise. The output is ordered by timestamp.
    """
    config = config or NoiseFilterConfig()

    by_employee: dict[str, list[PunchEvent]] = defaultdict(list)
    for event in events:
        by_employee[event.employee_id].append(event)

    output: list[NormalizedPunch] = []
    for employee_id in sorted(by_employee):
        stream = [NormalizedPunch(event=e) for e in sorted(by_employee[employee_id], key=_sort_key)]
        for filter_cls in PIPELINE:
            stream = filter_cls(config).apply(stream)

        noise = sum(1 for p in stream if p.is_noise)
        if noise:
            logger.debug("Flagged %d of %d punches as noise for %s", noise, len(stream), employee_id)
        output.extend(stream)

    output.sort(key=lambda p: (p.timestamp, p.employee_id, p.event.punch_id or ""))
    return output


def summarize_noise(punches: Iterable[NormalizedPunch]) -> dict[str, int]:
    """Count noise punches per reason."""
    counts = Counter(p.noise_reason.value for p in punches if p.is_noise and p.noise_reason)
    return dict(sorted(counts.items()))
