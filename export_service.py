from __future__ import annotations
import csv
import datetime
import io
from typing import Iterable

from algorithms import WeightConverter
from models import UNKNOWN_EXERCISE, Exercise, Workout

CSV_HEADER = [
    "workout_id",
    "workout_name",
    "date_local",
    "exercise",
    "set_number",
    "weight_lb",
    "reps",
    "unit",
]


def format_local(epoch_ms: int) -> str:
    stamp = datetime.datetime.fromtimestamp(epoch_ms / 1000).astimezone()
    return stamp.strftime("%Y-%m-%d %H:%M:%S %Z")


def export_rows(workouts: Iterable[Workout], exercises: Iterable[Exercise]) -> list[list]:
    names = {str(ex.id): ex.name for ex in exercises}
    rows: list[list] = [list(CSV_HEADER)]
    for w in workouts:
        for entry in w.entries:
            name = names.get(str(entry.exercise_id), UNKNOWN_EXERCISE)
            # legacy bare-number sets arrive normalised with unit lb
            for i, s in enumerate(entry.sets, start=1):
                if s.weight is None:
                    weight = ""
                else:
                    weight = f"{WeightConverter.to_lb(s.weight, s.unit):.1f}"
                rows.append(
                    [w.id, w.name, format_local(w.date), name, i, weight, s.reps, s.unit]
                )
    return rows


def export_csv(workouts: Iterable[Workout], exercises: Iterable[Exercise]) -> str:
    """Return all sets of ``workouts`` as CSV text, one row per set."""
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerows(export_rows(workouts, exercises))
    return output.getvalue()
