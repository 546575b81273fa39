#!/usr/bin/env python3
"""
Interval card models and phase expansion.

An interval card is the user-authored template: a title, timing parameters
and an optional exercise. build_phases() turns a card into the ordered list
of timed phases that IntervalSession runs through.

This module has NO dependencies on the session engine, the card store or
any terminal I/O.
"""

import uuid
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from durations import parse_count, parse_duration

WARMUP_LABEL = "Warmup"
REST_LABEL = "Rest"
SET_REST_LABEL = "Set rest"
COOLDOWN_LABEL = "Cooldown"


class PhaseType(str, Enum):
    WARMUP = "warmup"
    WORK = "work"
    REST = "rest"
    COOLDOWN = "cooldown"


class Exercise(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    notes: str = ""

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Exercise name must not be empty")
        return v


class TimingConfig(BaseModel):
    """Timing parameters of a card, all in whole seconds.

    work_sec, reps_per_set and sets must be positive; every rest, warmup and
    cooldown value may be 0, in which case that phase is left out.
    """

    model_config = ConfigDict(frozen=True)

    warmup_sec: int = Field(default=0, ge=0)
    work_sec: int = Field(gt=0)
    rest_between_reps_sec: int = Field(default=0, ge=0)
    reps_per_set: int = Field(default=1, gt=0)
    rest_between_sets_sec: int = Field(default=0, ge=0)
    sets: int = Field(gt=0)
    cooldown_sec: int = Field(default=0, ge=0)


class IntervalCard(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    title: str
    timing: TimingConfig
    exercise: Exercise | None = None

    @field_validator("id", "title")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v


class Phase(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: PhaseType
    duration_sec: int = Field(gt=0)
    label: str
    exercise: Exercise | None = None


def work_label(set_no, sets, rep, reps_per_set):
    return f"Set {set_no}/{sets} · Rep {rep}/{reps_per_set}"


def build_phases(card: IntervalCard) -> list[Phase]:
    """Expand a card into its ordered phase list. Zero-length phases are omitted."""
    t = card.timing
    phases = []

    if t.warmup_sec > 0:
        phases.append(Phase(type=PhaseType.WARMUP, duration_sec=t.warmup_sec, label=WARMUP_LABEL))

    for set_no in range(1, t.sets + 1):
        for rep in range(1, t.reps_per_set + 1):
            phases.append(
                Phase(
                    type=PhaseType.WORK,
                    duration_sec=t.work_sec,
                    label=work_label(set_no, t.sets, rep, t.reps_per_set),
                    exercise=card.exercise,
                )
            )
            # Rest between reps inside a set
            if rep < t.reps_per_set and t.rest_between_reps_sec > 0:
                phases.append(Phase(type=PhaseType.REST, duration_sec=t.rest_between_reps_sec, label=REST_LABEL))
            # Rest between sets, never after the last one
            elif rep == t.reps_per_set and set_no < t.sets and t.rest_between_sets_sec > 0:
                phases.append(Phase(type=PhaseType.REST, duration_sec=t.rest_between_sets_sec, label=SET_REST_LABEL))

    if t.cooldown_sec > 0:
        phases.append(Phase(type=PhaseType.COOLDOWN, duration_sec=t.cooldown_sec, label=COOLDOWN_LABEL))

    return phases


def total_duration(phases) -> int:
    return sum(p.duration_sec for p in phases)


def sample_card():
    """Card seeded into an empty store on first use."""
    return IntervalCard(
        title="HIIT Short",
        timing=TimingConfig(
            warmup_sec=0,
            work_sec=20,
            rest_between_reps_sec=0,
            reps_per_set=1,
            rest_between_sets_sec=60,
            sets=4,
            cooldown_sec=0,
        ),
        exercise=Exercise(name="Push-ups"),
    )


def duplicate_card(card: IntervalCard) -> IntervalCard:
    return card.model_copy(update={"id": uuid.uuid4().hex, "title": f"{card.title} (Copy)"})


# --- Card form ---


class CardFormError(ValueError):
    """Raised when text entered for a card cannot be turned into a valid card."""


def card_from_form(
    title,
    exercise_name="",
    exercise_notes="",
    warmup="0",
    work="00:20",
    rest_reps="0",
    reps="1",
    rest_sets="01:00",
    sets="4",
    cooldown="0",
    existing: IntervalCard | None = None,
) -> IntervalCard:
    """Build a card from raw text fields, as typed by a user.

    Durations accept seconds, mm:ss or h:mm:ss. Raises CardFormError with a
    message meant to be shown to the user. When ``existing`` is given, its id
    is kept so the result replaces it on save.
    """
    warmup_sec = parse_duration(warmup)
    work_sec = parse_duration(work)
    rest_reps_sec = parse_duration(rest_reps)
    rest_sets_sec = parse_duration(rest_sets)
    cooldown_sec = parse_duration(cooldown)
    reps_n = parse_count(reps)
    sets_n = parse_count(sets)

    title = (title or "").strip()
    if not title:
        raise CardFormError("Please enter a title.")
    if work_sec is None or work_sec <= 0:
        raise CardFormError("Invalid work time (e.g. 00:20).")
    if None in (warmup_sec, rest_reps_sec, rest_sets_sec, cooldown_sec):
        raise CardFormError("A time is invalid (mm:ss).")
    if reps_n is None or sets_n is None:
        raise CardFormError("Sets and reps must be greater than 0.")

    timing = TimingConfig(
        warmup_sec=warmup_sec,
        work_sec=work_sec,
        rest_between_reps_sec=rest_reps_sec,
        reps_per_set=reps_n,
        rest_between_sets_sec=rest_sets_sec,
        sets=sets_n,
        cooldown_sec=cooldown_sec,
    )

    name = (exercise_name or "").strip()
    exercise = Exercise(name=name, notes=(exercise_notes or "").strip()) if name else None

    if existing is not None:
        return existing.model_copy(update={"title": title, "timing": timing, "exercise": exercise})
    return IntervalCard(title=title, timing=timing, exercise=exercise)
