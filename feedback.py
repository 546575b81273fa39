"""
Feedback cues derived from successive RunUiState snapshots.

The session engine has no side effects; whoever renders it feeds every
snapshot to FeedbackTracker.observe() and plays a beep or vibration for
each cue returned.
"""

from enum import Enum

from interval_session import RunStatus, RunUiState
from workouts import PhaseType

COUNTDOWN_FROM = 3


class Cue(str, Enum):
    PHASE_CHANGE = "phase_change"
    COUNTDOWN = "countdown"
    FINISHED = "finished"


def keep_awake(ui: RunUiState) -> bool:
    """Screen should stay on while a session is in progress, paused included."""
    return ui.status in (RunStatus.RUNNING, RunStatus.PAUSED)


class FeedbackTracker:
    """Remembers what already fired so each cue fires once per occurrence."""

    def __init__(self):
        self._last_phase_index = -1
        self._last_countdown = -1
        self._finished = False

    def observe(self, ui: RunUiState) -> list[Cue]:
        cues = []
        running = ui.status == RunStatus.RUNNING

        if running and ui.phase_index != self._last_phase_index:
            self._last_phase_index = ui.phase_index
            cues.append(Cue.PHASE_CHANGE)

        # 3-2-1 only during work
        if running and ui.phase_type == PhaseType.WORK:
            r = ui.remaining_sec
            if 1 <= r <= COUNTDOWN_FROM and r != self._last_countdown:
                self._last_countdown = r
                cues.append(Cue.COUNTDOWN)
            if r > COUNTDOWN_FROM:
                self._last_countdown = -1
        else:
            self._last_countdown = -1

        if ui.status == RunStatus.FINISHED:
            if not self._finished:
                self._finished = True
                cues.append(Cue.FINISHED)
        else:
            self._finished = False

        return cues
