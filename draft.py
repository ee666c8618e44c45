from __future__ import annotations
import datetime
import itertools
import random
import string
import time
from typing import Callable, Iterable, List, Optional

from loguru import logger

from algorithms import normalize_set
from models import DraftError, ExerciseEntry, Workout, WorkoutEntry, WorkoutSet

_ALPHABET = string.digits + string.ascii_lowercase
_counter = itertools.count()


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_ALPHABET[rem])
    return "".join(reversed(digits))


def uid() -> str:
    """Return a short identifier from a random part and a time part."""
    rand = _base36(random.getrandbits(52))
    stamp = _base36(time.time_ns() // 1_000_000)
    return f"{rand}{stamp}{_base36(next(_counter))}"


def default_workout_name(now: datetime.datetime) -> str:
    return f"Workout — {now.strftime('%Y-%m-%d %H:%M:%S')}"


class WorkoutDraft:
    """In-memory workout being composed in the editor."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.entries: List[ExerciseEntry] = []
        self._reset_listeners: list[Callable[[], None]] = []

    def on_reset(self, callback: Callable[[], None]) -> None:
        self._reset_listeners.append(callback)

    def _new_key(self) -> str:
        existing = set(self.keys())
        key = uid()
        while key in existing:
            key = uid()
        return key

    def keys(self) -> list[str]:
        return [entry.key for entry in self.entries]

    def find(self, key: str) -> Optional[ExerciseEntry]:
        for entry in self.entries:
            if entry.key == str(key):
                return entry
        return None

    def is_empty(self) -> bool:
        return not self.entries

    def has_content(self) -> bool:
        return bool(self.entries) or bool(self.name.strip())

    def add_entry(self, exercise_id: str, sets: Iterable) -> str:
        key = self._new_key()
        self.entries.append(
            ExerciseEntry(key, str(exercise_id), [normalize_set(s) for s in sets])
        )
        logger.debug("draft add_entry key={} exercise_id={}", key, exercise_id)
        return key

    def update_entry_sets(self, key: str, sets: Iterable) -> None:
        entry = self.find(key)
        if entry is None:
            logger.debug("draft update_entry_sets ignored unknown key={}", key)
            return
        entry.sets = [normalize_set(s) for s in sets]

    def remove_entry(self, key: str) -> None:
        self.entries = [e for e in self.entries if e.key != str(key)]

    def reorder(self, new_key_order: Iterable[str]) -> None:
        by_key = {entry.key: entry for entry in self.entries}
        ordered: list[ExerciseEntry] = []
        seen: set[str] = set()
        for key in new_key_order:
            key = str(key)
            if key in seen or key not in by_key:
                continue
            seen.add(key)
            ordered.append(by_key[key])
        dropped = len(self.entries) - len(ordered)
        if dropped:
            logger.debug("draft reorder dropped {} entries", dropped)
        self.entries = ordered

    def reset(self) -> None:
        self.name = ""
        self.entries = []
        for callback in list(self._reset_listeners):
            callback()

    def load_workout(self, workout: Workout) -> None:
        """Replace the draft with a copy of ``workout`` under fresh keys."""
        self.name = workout.name or ""
        self.entries = []
        for entry in workout.entries:
            self.entries.append(
                ExerciseEntry(
                    self._new_key(),
                    entry.exercise_id,
                    [normalize_set(s) for s in entry.sets],
                )
            )

    def to_workout(self, now: datetime.datetime | None = None) -> Workout:
        if not self.entries:
            raise DraftError("Please add at least one exercise to your workout.")
        now = now or datetime.datetime.now()
        if not self.name.strip():
            self.name = default_workout_name(now)
        entries = tuple(
            WorkoutEntry(
                entry.exercise_id,
                tuple(
                    WorkoutSet(s.weight, s.unit or "lb", s.reps) for s in entry.sets
                ),
            )
            for entry in self.entries
        )
        return Workout(None, self.name.strip(), int(now.timestamp() * 1000), entries)
