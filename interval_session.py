#!/usr/bin/env python3
"""
IntervalSession: runs a fixed phase list against a monotonic clock.

Invariant: the phase list never changes for the lifetime of a session.
Running a different card means building a new session.

All duration math is done in integer milliseconds from an injected clock
(monotonic_ms by default), so pausing, late ticks and wall-clock changes
never cause drift. Every command replaces the RunUiState snapshot wholesale
and returns it; the engine itself has no side effects beyond that.

SessionRunner drives tick() from an asyncio task and pushes changed
snapshots to an async on_update callback.
"""

import asyncio
import logging
import time
from enum import Enum

from pydantic import BaseModel, ConfigDict

from workouts import Phase, PhaseType, total_duration

log = logging.getLogger("interval")

TICK_INTERVAL = 0.1  # seconds between ticks
FINISHED_LABEL = "Done!"


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


def _ceil_sec(ms):
    return -(-ms // 1000)


class RunStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    FINISHED = "finished"


class RunUiState(BaseModel):
    """Point-in-time view of a session. Replaced on every change, never mutated."""

    model_config = ConfigDict(frozen=True)

    status: RunStatus = RunStatus.IDLE
    phase_index: int = 0
    phase_count: int = 0
    phase_type: PhaseType = PhaseType.WORK
    label: str = ""
    exercise_name: str | None = None
    remaining_sec: int = 0
    total_remaining_sec: int = 0

    def to_dict(self):
        d = self.model_dump(mode="json")
        d["type"] = "run"
        return d


def initial_ui_state(phases) -> RunUiState:
    if not phases:
        return RunUiState()
    first = phases[0]
    return RunUiState(
        status=RunStatus.IDLE,
        phase_index=0,
        phase_count=len(phases),
        phase_type=first.type,
        label=first.label,
        exercise_name=first.exercise.name if first.exercise else None,
        remaining_sec=first.duration_sec,
        total_remaining_sec=total_duration(phases),
    )


class IntervalSession:
    """State machine over idle/running/paused/finished.

    Out-of-order commands (pause while idle, skip before start, ...) are
    silent no-ops. Not thread-safe: all calls must come from one thread or
    event loop.
    """

    def __init__(self, phases: list[Phase], clock=monotonic_ms):
        self.phases = tuple(phases)
        self._clock = clock
        self.ui = initial_ui_state(self.phases)
        self._phase_start_ms = 0
        self._paused_at_ms = None
        self._paused_accum_ms = 0

    @property
    def current_phase(self):
        if not 0 <= self.ui.phase_index < len(self.phases):
            return None
        return self.phases[self.ui.phase_index]

    def start(self) -> RunUiState:
        if not self.phases:
            return self.ui
        if self.ui.status == RunStatus.RUNNING:
            return self.ui
        if self.ui.status == RunStatus.PAUSED:
            return self.resume()
        log.info(f"Session started ({len(self.phases)} phases, {total_duration(self.phases)}s)")
        self._begin_phase(0, self._clock())
        return self.ui

    def pause(self) -> RunUiState:
        if self.ui.status != RunStatus.RUNNING:
            return self.ui
        self._paused_at_ms = self._clock()
        self.ui = self.ui.model_copy(update={"status": RunStatus.PAUSED})
        log.info(f"Session paused at phase {self.ui.phase_index}")
        return self.ui

    def resume(self) -> RunUiState:
        if self.ui.status != RunStatus.PAUSED or self._paused_at_ms is None:
            return self.ui
        now = self._clock()
        self._paused_accum_ms += now - self._paused_at_ms
        self._paused_at_ms = None
        self.ui = self.ui.model_copy(update={"status": RunStatus.RUNNING})
        log.info(f"Session resumed (paused {self._paused_accum_ms}ms this phase)")
        return self.ui

    def stop(self) -> RunUiState:
        """Back to idle on the first phase. Always allowed."""
        self.ui = initial_ui_state(self.phases)
        self._paused_at_ms = None
        self._paused_accum_ms = 0
        self._phase_start_ms = 0
        log.info("Session stopped")
        return self.ui

    def skip(self) -> RunUiState:
        if self.ui.status == RunStatus.IDLE:
            return self.ui
        log.debug(f"Skipping phase {self.ui.phase_index}")
        self._begin_phase(self.ui.phase_index + 1, self._clock())
        return self.ui

    def tick(self, now=None) -> RunUiState:
        """Recompute remaining time; advance to the next phase once the current one is used up."""
        phase = self.current_phase
        if self.ui.status != RunStatus.RUNNING or phase is None:
            return self.ui
        if now is None:
            now = self._clock()

        elapsed_ms = now - self._phase_start_ms - self._paused_accum_ms
        remaining_ms = phase.duration_sec * 1000 - elapsed_ms
        self.ui = self.ui.model_copy(
            update={
                "remaining_sec": max(0, _ceil_sec(remaining_ms)),
                "total_remaining_sec": self._total_remaining_sec(self.ui.phase_index, now),
            }
        )

        if remaining_ms <= 0:
            self._begin_phase(self.ui.phase_index + 1, now)
        return self.ui

    def _begin_phase(self, index, now):
        if not 0 <= index < len(self.phases):
            self.ui = self.ui.model_copy(
                update={
                    "status": RunStatus.FINISHED,
                    "phase_index": len(self.phases),
                    "remaining_sec": 0,
                    "total_remaining_sec": 0,
                    "label": FINISHED_LABEL,
                    "exercise_name": None,
                }
            )
            self._paused_at_ms = None
            log.info("Session finished")
            return

        self._phase_start_ms = now
        self._paused_accum_ms = 0
        self._paused_at_ms = None

        p = self.phases[index]
        self.ui = self.ui.model_copy(
            update={
                "status": RunStatus.RUNNING,
                "phase_index": index,
                "phase_count": len(self.phases),
                "phase_type": p.type,
                "label": p.label,
                "exercise_name": p.exercise.name if p.exercise else None,
                "remaining_sec": p.duration_sec,
                "total_remaining_sec": self._total_remaining_sec(index, now),
            }
        )
        log.debug(f"Phase {index + 1}/{len(self.phases)}: {p.type.value} {p.duration_sec}s ({p.label})")

    def _total_remaining_sec(self, index, now):
        # Recomputed from scratch each call so rounding never accumulates
        if not 0 <= index < len(self.phases):
            return 0
        phase = self.phases[index]
        elapsed_ms = now - self._phase_start_ms - self._paused_accum_ms
        current_ms = max(0, phase.duration_sec * 1000 - elapsed_ms)
        rest_sec = total_duration(self.phases[index + 1 :])
        return _ceil_sec(current_ms) + rest_sec


class SessionRunner:
    """Drives an IntervalSession from the event loop.

    Commands go through the runner so each resulting snapshot reaches
    on_update exactly once; unchanged snapshots are not re-sent.
    """

    def __init__(self, session: IntervalSession):
        self.session = session
        self._task = None
        self._on_update = None
        self._last_sent = None

    @property
    def ui(self):
        return self.session.ui

    @property
    def active(self):
        return self.session.ui.status in (RunStatus.RUNNING, RunStatus.PAUSED)

    async def start(self, on_update=None):
        self._cancel_task()
        self._on_update = on_update
        self._last_sent = None
        self.session.start()
        await self._broadcast()
        if self.active:
            self._task = asyncio.create_task(self._tick_loop())

    async def pause(self):
        self.session.pause()
        await self._broadcast()

    async def resume(self):
        self.session.resume()
        await self._broadcast()

    async def toggle_pause(self):
        if self.session.ui.status == RunStatus.PAUSED:
            await self.resume()
        else:
            await self.pause()

    async def skip(self):
        self.session.skip()
        await self._broadcast()

    async def stop(self):
        self._cancel_task()
        self.session.stop()
        await self._broadcast()

    async def wait(self):
        """Wait until the session finishes or the runner is stopped."""
        if self._task:
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def _broadcast(self):
        snapshot = self.session.ui
        if snapshot == self._last_sent:
            return
        self._last_sent = snapshot
        if self._on_update:
            await self._on_update(snapshot)

    def _cancel_task(self):
        if self._task:
            self._task.cancel()
            self._task = None

    async def _tick_loop(self):
        try:
            while self.active:
                await asyncio.sleep(TICK_INTERVAL)
                self.session.tick()
                await self._broadcast()
        except asyncio.CancelledError:
            pass
