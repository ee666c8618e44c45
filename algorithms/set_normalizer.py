from __future__ import annotations
import json
import math
from typing import Any, Mapping

from models import DEFAULT_UNIT, Workout, WorkoutEntry, WorkoutSet


def _to_number(value: Any) -> float:
    """Parse ``value`` leniently, returning NaN when it is not numeric."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def _to_reps(value: Any) -> int:
    num = _to_number(value)
    if not math.isfinite(num) or num < 0:
        return 0
    return int(num)


def normalize_set(raw: Any) -> WorkoutSet:
    """Coerce any stored set representation into a :class:`WorkoutSet`.

    Never raises: a bare number is a legacy reps-only set, anything that is
    not a mapping becomes an empty set and invalid fields fall back to
    defaults.
    """
    if isinstance(raw, WorkoutSet):
        return raw
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return WorkoutSet(None, DEFAULT_UNIT, _to_reps(raw))
    if not isinstance(raw, Mapping):
        return WorkoutSet(None, DEFAULT_UNIT, 0)
    raw_weight = raw.get("weight")
    weight: float | None = None
    if raw_weight is not None and raw_weight != "":
        num = _to_number(raw_weight)
        weight = num if math.isfinite(num) else None
    unit = raw.get("unit") or DEFAULT_UNIT
    return WorkoutSet(weight, str(unit), _to_reps(raw.get("reps")))


def normalize_entry(raw: Any) -> WorkoutEntry:
    """Build a :class:`WorkoutEntry` from stored JSON."""
    if isinstance(raw, WorkoutEntry):
        return raw
    if not isinstance(raw, Mapping):
        return WorkoutEntry("", ())
    exercise_id = raw.get("exercise_id", raw.get("exerciseId"))
    sets = raw.get("sets") or []
    if not isinstance(sets, (list, tuple)):
        sets = []
    return WorkoutEntry(
        "" if exercise_id is None else str(exercise_id),
        tuple(normalize_set(s) for s in sets),
    )


def format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def format_set(raw: Any, index: int) -> str:
    """Return the chip label for the set at ``index``."""
    if raw is None:
        return f"Set {index + 1}"
    s = normalize_set(raw)
    if s.weight is None:
        return f"Set {index + 1}: {s.reps} reps"
    return f"Set {index + 1}: {format_number(s.weight)} {s.unit or DEFAULT_UNIT}×{s.reps}"


def normalize_workout(raw: Any) -> Workout:
    """Build a :class:`Workout` from a stored or transmitted mapping."""
    if isinstance(raw, Workout):
        return raw
    if not isinstance(raw, Mapping):
        raise ValueError("workout must be a mapping")
    entries = raw.get("entries") or []
    if isinstance(entries, str):
        entries = json.loads(entries or "[]")
    date = _to_number(raw.get("date"))
    wid = raw.get("id")
    return Workout(
        None if wid is None else str(wid),
        str(raw.get("name") or ""),
        int(date) if math.isfinite(date) else 0,
        tuple(normalize_entry(e) for e in entries),
    )
