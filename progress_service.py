from __future__ import annotations
import datetime
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from loguru import logger

from algorithms import WeightConverter, normalize_workout
from models import StorageError, Workout

SERIES_COLORS = [
    "#6c5ce7",
    "#00b894",
    "#e17055",
    "#0984e3",
    "#e84393",
    "#fdcb6e",
    "#2d3436",
    "#636e72",
]

OFFSET_STEP = 0.12
EMPTY_DOMAIN = (0.0, 1.0)


@dataclass(frozen=True)
class ProgressPoint:
    workout_index: int
    offset: float
    weight_lb: float
    reps: int
    date: int
    workout_name: str
    set_number: int

    @property
    def x(self) -> float:
        return self.workout_index + self.offset


@dataclass
class ProgressSeries:
    label: str
    color: str
    points: List[ProgressPoint] = field(default_factory=list)
    visible: bool = True


@dataclass
class ProgressData:
    labels: List[str] = field(default_factory=list)
    series: List[ProgressSeries] = field(default_factory=list)
    domain: Tuple[float, float] = EMPTY_DOMAIN
    error: Optional[str] = None

    def visible_series(self) -> List[ProgressSeries]:
        return [s for s in self.series if s.visible]

    def toggle(self, label: str) -> bool:
        """Flip visibility of the series called ``label``; return new state."""
        for s in self.series:
            if s.label == label:
                s.visible = not s.visible
                return s.visible
        raise KeyError(label)


def format_date(epoch_ms: int, fmt: str = "%b %d, %y") -> str:
    return datetime.datetime.fromtimestamp(epoch_ms / 1000).strftime(fmt)


class ProgressService:
    """Build per-set-position weight series for one exercise."""

    def __init__(self, workout_repo=None, date_format: str = "%b %d, %y") -> None:
        self.workout_repo = workout_repo
        self.date_format = date_format

    def gather(self, exercise_id: str, workouts: Iterable) -> ProgressData:
        timeline: list[tuple[Workout, tuple]] = []
        ordered = sorted(
            (normalize_workout(w) for w in workouts), key=lambda w: w.date
        )
        max_sets = 0
        for workout in ordered:
            entry = workout.entry_for(exercise_id)
            if entry is None:
                continue
            max_sets = max(max_sets, len(entry.sets))
            timeline.append((workout, entry.sets))

        labels = [format_date(w.date, self.date_format) for w, _ in timeline]
        if not timeline:
            return ProgressData(labels, [], EMPTY_DOMAIN)

        step = OFFSET_STEP if max_sets > 1 else 0.0
        center = (max_sets - 1) / 2
        half_spread = step * center
        by_position: dict[int, list[ProgressPoint]] = {}
        for workout_index, (workout, sets) in enumerate(timeline):
            for position, s in enumerate(sets):
                if s.weight is None:
                    continue
                by_position.setdefault(position, []).append(
                    ProgressPoint(
                        workout_index=workout_index,
                        offset=(position - center) * step if step else 0.0,
                        weight_lb=WeightConverter.to_lb(s.weight, s.unit),
                        reps=s.reps,
                        date=workout.date,
                        workout_name=workout.name,
                        set_number=position + 1,
                    )
                )

        series = [
            ProgressSeries(
                label=f"Set {position + 1}",
                color=SERIES_COLORS[i % len(SERIES_COLORS)],
                points=points,
            )
            for i, (position, points) in enumerate(sorted(by_position.items()))
        ]
        domain = (-half_spread, (len(labels) - 1) + half_spread)
        return ProgressData(labels, series, domain)

    async def load(self, exercise_id: str) -> ProgressData:
        try:
            workouts = await self.workout_repo.list()
        except StorageError as exc:
            logger.warning("Cannot load progress for {}: {}", exercise_id, exc)
            return ProgressData(error=f"Cannot load progress. {exc}")
        return self.gather(exercise_id, workouts)
