"""Shared test helpers for interval trainer tests."""

from workouts import Exercise, IntervalCard, Phase, PhaseType, TimingConfig


def make_card(title="Test Workout", exercise="Squats", **timing):
    """Factory for creating test cards. Timing defaults to 2 sets × 2 reps."""
    params = {
        "warmup_sec": 30,
        "work_sec": 20,
        "rest_between_reps_sec": 10,
        "reps_per_set": 2,
        "rest_between_sets_sec": 60,
        "sets": 2,
        "cooldown_sec": 30,
    }
    params.update(timing)
    return IntervalCard(
        title=title,
        timing=TimingConfig(**params),
        exercise=Exercise(name=exercise) if exercise else None,
    )


def make_phases(*durations, type=PhaseType.WORK):
    """Phases of the given durations, labelled P1, P2, ..."""
    return [Phase(type=type, duration_sec=d, label=f"P{i}") for i, d in enumerate(durations, 1)]


class FakeClock:
    """Fake monotonic clock in milliseconds for IntervalSession.

    Pass as ``IntervalSession(phases, clock=clock)``.
    Advance by calling ``clock.advance(ms)`` or jump with ``clock.set(ms)``.
    """

    def __init__(self, start=0):
        self._now = start

    def __call__(self):
        return self._now

    def advance(self, ms):
        self._now += ms

    def set(self, ms):
        self._now = ms
