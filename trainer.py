#!/usr/bin/env python3
"""
Interval trainer: terminal front end.

Usage:
  python3 trainer.py list                          # Show stored cards
  python3 trainer.py show "HIIT Short"             # Show a card's phases
  python3 trainer.py add --title Tabata --work 20 --rest-reps 10 --reps 8
  python3 trainer.py edit <id> --sets 5            # Change some fields
  python3 trainer.py duplicate <id>
  python3 trainer.py delete <id>
  python3 trainer.py run "HIIT Short"              # Run a session

Cards can be given by id or exact title.
While running: p/space=pause/resume  s=skip  q=stop
"""

import argparse
import asyncio
import logging
import os
import sys
import termios
import tty

from cards_store import CardStore
from durations import format_duration
from feedback import FeedbackTracker
from interval_session import IntervalSession, RunStatus, SessionRunner, monotonic_ms
from workouts import CardFormError, PhaseType, build_phases, card_from_form, duplicate_card, sample_card, total_duration

log = logging.getLogger("trainer")

PHASE_TITLES = {
    PhaseType.WARMUP: "WARMUP",
    PhaseType.WORK: "WORK",
    PhaseType.REST: "REST",
    PhaseType.COOLDOWN: "COOLDOWN",
}


def describe_card(card):
    t = card.timing
    total = total_duration(build_phases(card))
    lines = [
        f"{card.title}  [{card.id}]",
        f"  Exercise: {card.exercise.name if card.exercise else '-'}",
        f"  {t.sets} sets · {t.reps_per_set} reps/set · {format_duration(t.work_sec)} work",
        f"  Rest reps: {format_duration(t.rest_between_reps_sec)} · Set rest: {format_duration(t.rest_between_sets_sec)}",
        f"  Total: {format_duration(total)}",
    ]
    return "\n".join(lines)


def render(ui):
    """One status line for a snapshot, padded to overwrite the previous one."""
    if ui.status == RunStatus.FINISHED:
        return f"\r  {ui.label:<60}"
    title = PHASE_TITLES[ui.phase_type]
    exercise = ui.exercise_name if ui.exercise_name and ui.phase_type == PhaseType.WORK else ""
    paused = "  (paused)" if ui.status == RunStatus.PAUSED else ""
    return (
        f"\r  {title:<8} {format_duration(ui.remaining_sec)}  {ui.label}  {exercise}"
        f"  total {format_duration(ui.total_remaining_sec)}{paused}    "
    )


class KeyCommands:
    """Maps single key presses to runner commands.

    Each command runs as its own task. References are kept until it
    completes; drain() waits for the rest and re-raises the first failure.
    """

    def __init__(self, runner):
        self.runner = runner
        self.pending = set()
        self.errors = []

    def press(self, ch):
        if ch in ("p", "P", " "):
            coro = self.runner.toggle_pause()
        elif ch in ("s", "S"):
            coro = self.runner.skip()
        elif ch in ("q", "Q"):
            coro = self.runner.stop()
        else:
            return None
        task = asyncio.get_running_loop().create_task(coro)
        self.pending.add(task)
        task.add_done_callback(self._done)
        return task

    def _done(self, task):
        self.pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self.errors.append(task.exception())

    async def drain(self):
        while self.pending:
            await asyncio.wait(list(self.pending))
        if self.errors:
            raise self.errors[0]


async def run_card(card, bell=True, keys=True, clock=monotonic_ms):
    """Run a card's session in the terminal until it finishes or is stopped."""
    runner = SessionRunner(IntervalSession(build_phases(card), clock=clock))
    tracker = FeedbackTracker()
    log.info(f"Running card '{card.title}' ({card.id})")

    async def on_update(ui):
        cues = tracker.observe(ui)
        if cues and bell:
            print("\a", end="")
        print(render(ui), end="", flush=True)

    loop = asyncio.get_running_loop()
    fd = sys.stdin.fileno() if keys else None
    commands = KeyCommands(runner)

    def on_key():
        commands.press(os.read(fd, 1).decode(errors="ignore"))

    print(f"{card.title}: {len(runner.session.phases)} phases, {format_duration(total_duration(runner.session.phases))}")
    if keys:
        print("Controls: p/space=pause  s=skip  q=stop")
        old_settings = termios.tcgetattr(fd)
        tty.setcbreak(fd)
        loop.add_reader(fd, on_key)
    try:
        await runner.start(on_update)
        await runner.wait()
        await commands.drain()
    finally:
        if keys:
            loop.remove_reader(fd)
            termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)
        print()
    return runner.ui


def _form_args(args, existing=None):
    """Collect card form fields, falling back to the existing card's values."""

    def pick(value, fallback):
        return value if value is not None else fallback

    t = existing.timing if existing else None
    ex = existing.exercise if existing else None
    return dict(
        title=pick(args.title, existing.title if existing else ""),
        exercise_name=pick(args.exercise, ex.name if ex else ""),
        exercise_notes=pick(args.notes, ex.notes if ex else ""),
        warmup=pick(args.warmup, format_duration(t.warmup_sec) if t else "0"),
        work=pick(args.work, format_duration(t.work_sec) if t else "00:20"),
        rest_reps=pick(args.rest_reps, format_duration(t.rest_between_reps_sec) if t else "0"),
        reps=pick(args.reps, str(t.reps_per_set) if t else "1"),
        rest_sets=pick(args.rest_sets, format_duration(t.rest_between_sets_sec) if t else "01:00"),
        sets=pick(args.sets, str(t.sets) if t else "4"),
        cooldown=pick(args.cooldown, format_duration(t.cooldown_sec) if t else "0"),
    )


def _add_form_arguments(p):
    p.add_argument("--title", help="Card title")
    p.add_argument("--exercise", help="Exercise name (empty for none)")
    p.add_argument("--notes", help="Exercise notes")
    p.add_argument("--warmup", help="Warmup time (s, mm:ss or h:mm:ss)")
    p.add_argument("--work", help="Work time per rep")
    p.add_argument("--rest-reps", dest="rest_reps", help="Rest between reps")
    p.add_argument("--reps", help="Reps per set")
    p.add_argument("--rest-sets", dest="rest_sets", help="Rest between sets")
    p.add_argument("--sets", help="Number of sets")
    p.add_argument("--cooldown", help="Cooldown time")


def build_parser():
    parser = argparse.ArgumentParser(description="Interval training timer")
    parser.add_argument("--store", help="Card store JSON file (default: $INTERVAL_TRAINER_STORE or ~/.interval_trainer/cards.json)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List cards")

    p = sub.add_parser("show", help="Show a card and its phases")
    p.add_argument("card", help="Card id or title")

    p = sub.add_parser("add", help="Add a card")
    _add_form_arguments(p)

    p = sub.add_parser("edit", help="Edit a card")
    p.add_argument("card", help="Card id or title")
    _add_form_arguments(p)

    p = sub.add_parser("duplicate", help="Copy a card")
    p.add_argument("card", help="Card id or title")

    p = sub.add_parser("delete", help="Delete a card")
    p.add_argument("card", help="Card id or title")

    p = sub.add_parser("run", help="Run a card")
    p.add_argument("card", help="Card id or title")
    p.add_argument("--no-bell", dest="bell", action="store_false", help="Don't ring the terminal bell on cues")

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    store = CardStore(args.store)
    store.ensure_seeded(sample_card())

    if args.command == "list":
        for card in store.cards():
            print(describe_card(card))
        return 0

    if args.command == "add":
        try:
            card = card_from_form(**_form_args(args))
        except CardFormError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        store.upsert(card)
        print(describe_card(card))
        return 0

    card = store.find(args.card)
    if card is None:
        print(f"Error: no card '{args.card}'", file=sys.stderr)
        return 1

    if args.command == "show":
        print(describe_card(card))
        for i, phase in enumerate(build_phases(card), 1):
            print(f"  {i:3d}. {PHASE_TITLES[phase.type]:<8} {format_duration(phase.duration_sec)}  {phase.label}")
    elif args.command == "edit":
        try:
            edited = card_from_form(**_form_args(args, existing=card), existing=card)
        except CardFormError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        store.upsert(edited)
        print(describe_card(edited))
    elif args.command == "duplicate":
        copy = duplicate_card(card)
        store.upsert(copy)
        print(describe_card(copy))
    elif args.command == "delete":
        store.delete(card.id)
        print(f"Deleted '{card.title}'")
    elif args.command == "run":
        try:
            ui = asyncio.run(run_card(card, bell=args.bell, keys=sys.stdin.isatty()))
        except KeyboardInterrupt:
            print("\nInterrupted!")
            return 130
        return 0 if ui.status == RunStatus.FINISHED else 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
