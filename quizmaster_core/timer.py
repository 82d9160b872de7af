"""Pausable snapshot timer.

The timer never ticks. It stores the elapsed time measured at the last
snapshot plus the instant of that snapshot; the current elapsed time is
recomputed from a caller-supplied ``now`` every time it is asked for.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
ZERO = timedelta(0)


@dataclass(frozen=True)
class TimerState:
    # Meaningless while not running, but kept so a resume/serialize cycle is lossless.
    last_snapshot_instant: datetime = EPOCH
    last_snapshot_elapsed_time: timedelta = ZERO
    timer_running: bool = False

    def __post_init__(self) -> None:
        if self.last_snapshot_elapsed_time < ZERO:
            raise ValueError("last_snapshot_elapsed_time must not be negative")

    @classmethod
    def create_started(cls, now: datetime) -> TimerState:
        return cls(last_snapshot_instant=now, last_snapshot_elapsed_time=ZERO, timer_running=True)

    def elapsed_time(self, now: datetime) -> timedelta:
        """Elapsed time at ``now``.

        A ``now`` earlier than the last snapshot (clock skew between replicas)
        counts as a zero delta instead of going negative.
        """
        if not self.timer_running:
            return self.last_snapshot_elapsed_time
        delta = now - self.last_snapshot_instant
        if delta < ZERO:
            delta = ZERO
        return self.last_snapshot_elapsed_time + delta

    def has_finished(self, max_time: timedelta, now: datetime) -> bool:
        # Reaching max_time exactly still leaves the last instant open.
        return self.elapsed_time(now) > max_time

    def pause(self, now: datetime) -> TimerState:
        if not self.timer_running:
            return self
        return replace(
            self,
            last_snapshot_instant=now,
            last_snapshot_elapsed_time=self.elapsed_time(now),
            timer_running=False,
        )

    def resume(self, now: datetime) -> TimerState:
        if self.timer_running:
            return self
        return replace(self, last_snapshot_instant=now, timer_running=True)

    def toggle_paused(self, now: datetime) -> TimerState:
        return self.pause(now) if self.timer_running else self.resume(now)

    def reset(self) -> TimerState:
        return NULL_TIMER


NULL_TIMER = TimerState()
