from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum


class Unit(str, Enum):
    POUND = "lb"
    KILOGRAM = "kg"


DEFAULT_UNIT = Unit.POUND.value
UNKNOWN_EXERCISE = "Unknown"


class SetValidationError(ValueError):
    """Raised when user supplied set values cannot be accepted."""


class StorageError(RuntimeError):
    """Raised when the backing store fails to complete a request."""


class DraftError(ValueError):
    """Raised when a draft cannot be turned into a workout."""


@dataclass(frozen=True)
class WorkoutSet:
    """A single set. ``weight`` is ``None`` for bodyweight sets."""

    weight: float | None
    unit: str
    reps: int

    def to_dict(self) -> dict:
        return {"weight": self.weight, "unit": self.unit, "reps": self.reps}


@dataclass(frozen=True)
class Exercise:
    id: str
    name: str

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


@dataclass
class ExerciseEntry:
    """Draft entry. ``key`` only lives as long as the draft does."""

    key: str
    exercise_id: str
    sets: list[WorkoutSet] = field(default_factory=list)


@dataclass(frozen=True)
class WorkoutEntry:
    exercise_id: str
    sets: tuple[WorkoutSet, ...] = ()

    def to_dict(self) -> dict:
        return {
            "exercise_id": self.exercise_id,
            "sets": [s.to_dict() for s in self.sets],
        }


@dataclass(frozen=True)
class Workout:
    """A persisted workout. ``date`` is in epoch milliseconds."""

    id: str | None
    name: str
    date: int
    entries: tuple[WorkoutEntry, ...] = ()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "date": self.date,
            "entries": [e.to_dict() for e in self.entries],
        }

    def entry_for(self, exercise_id: str) -> WorkoutEntry | None:
        for entry in self.entries:
            if str(entry.exercise_id) == str(exercise_id):
                return entry
        return None
