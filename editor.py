from __future__ import annotations
import datetime
import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from algorithms import format_set
from drag_reorder import DragReorderController
from draft import WorkoutDraft
from models import UNKNOWN_EXERCISE, Exercise, StorageError, Workout
from set_entry import SetEntryWizard


class Intent(str, Enum):
    START_FRESH = "start_fresh"
    START_FROM_RECENT = "start_from_recent"
    BACK_TO_CHOOSER = "back_to_chooser"
    SET_NAME = "set_name"
    ADD_ENTRY = "add_entry"
    EDIT_ENTRY = "edit_entry"
    REMOVE_ENTRY = "remove_entry"
    REORDER = "reorder"
    SUBMIT_SET = "submit_set"
    CANCEL_SET = "cancel_set"
    FINISH = "finish"


class EditorMode(str, Enum):
    CHOOSER = "chooser"
    BUILDER = "builder"


@dataclass(frozen=True)
class PlanRow:
    key: str
    exercise_name: str
    summary: str


class WorkoutEditor:
    """Owns the draft of the "new workout" flow and routes user intents.

    Every user action is dispatched through :meth:`dispatch`, which looks the
    handler up in a table keyed by :class:`Intent`. Draft mutations happen
    synchronously; only loading and saving await the repositories. Results of
    a repository call are applied only while the view that issued it is still
    active.
    """

    def __init__(
        self,
        exercise_repo,
        workout_repo,
        settings=None,
        recent_limit: int = 5,
    ) -> None:
        self.exercise_repo = exercise_repo
        self.workout_repo = workout_repo
        if settings is not None:
            recent_limit = settings.get_int("recent_workout_limit", recent_limit)
        self.recent_limit = recent_limit
        self.draft = WorkoutDraft()
        self.wizard = SetEntryWizard(self.draft, settings, on_error=self.notify)
        self.drag = DragReorderController(self.draft)
        self.mode = EditorMode.CHOOSER
        self.exercises: List[Exercise] = []
        self.recent: List[Workout] = []
        self.recent_error: Optional[str] = None
        self.notices: List[str] = []
        self._generation = 0
        self._active = False
        self._handlers: Dict[Intent, Callable[..., Any]] = {
            Intent.START_FRESH: self._start_fresh,
            Intent.START_FROM_RECENT: self._start_from_recent,
            Intent.BACK_TO_CHOOSER: self._back_to_chooser,
            Intent.SET_NAME: self._set_name,
            Intent.ADD_ENTRY: self._add_entry,
            Intent.EDIT_ENTRY: self._edit_entry,
            Intent.REMOVE_ENTRY: self._remove_entry,
            Intent.REORDER: self._reorder,
            Intent.SUBMIT_SET: self._submit_set,
            Intent.CANCEL_SET: self._cancel_set,
            Intent.FINISH: self._finish,
        }

    # view lifetime

    def is_current(self, token: int) -> bool:
        return self._active and token == self._generation

    async def enter(self) -> int:
        self._generation += 1
        self._active = True
        token = self._generation
        await self.refresh()
        if self.is_current(token):
            if self.mode != EditorMode.BUILDER and not self.draft.has_content():
                self.mode = EditorMode.CHOOSER
            else:
                self.mode = EditorMode.BUILDER
        return token

    def leave(self) -> None:
        self._active = False
        self._generation += 1

    def notify(self, message: str) -> None:
        logger.warning(message)
        self.notices.append(message)

    async def refresh(self, include_workouts: bool = True) -> bool:
        token = self._generation
        try:
            exercises = await self.exercise_repo.list()
        except StorageError as exc:
            if self.is_current(token):
                self.notify(f"Cannot load exercises. {exc}")
            return False
        if not self.is_current(token):
            logger.debug("Discarding stale exercise list")
            return False
        self.exercises = exercises
        if not include_workouts:
            return True
        try:
            recent = await self.workout_repo.list(limit=self.recent_limit)
            error = None
        except StorageError as exc:
            recent, error = [], str(exc)
        if not self.is_current(token):
            logger.debug("Discarding stale recent workouts")
            return False
        self.recent = recent[: self.recent_limit]
        self.recent_error = error
        return error is None

    # dispatch

    async def dispatch(self, intent: Intent | str, **payload: Any) -> Any:
        handler = self._handlers[Intent(intent)]
        result = handler(**payload)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _start_fresh(self) -> None:
        self.draft.reset()
        self.mode = EditorMode.BUILDER

    def _start_from_recent(self, workout_id: str) -> bool:
        for workout in self.recent:
            if str(workout.id) == str(workout_id):
                self.draft.load_workout(workout)
                self.mode = EditorMode.BUILDER
                return True
        return False

    def _back_to_chooser(self) -> None:
        self.draft.reset()
        self.mode = EditorMode.CHOOSER

    def _set_name(self, name: str) -> None:
        self.draft.name = name or ""

    def _add_entry(self, exercise_id: str, total: int = 1) -> bool:
        if not exercise_id:
            return False
        self.wizard.open(exercise_id, total)
        return True

    def _edit_entry(self, key: str) -> bool:
        return self.wizard.begin_edit(key)

    def _remove_entry(self, key: str) -> None:
        self.draft.remove_entry(key)

    def _reorder(self, keys: List[str]) -> None:
        self.draft.reorder(keys)

    def _submit_set(self, weight: Any = None, unit: Any = None, reps: Any = None) -> Optional[str]:
        return self.wizard.submit_current(weight, unit, reps)

    def _cancel_set(self) -> None:
        self.wizard.cancel()

    async def _finish(self, now: datetime.datetime | None = None) -> Optional[List[Workout]]:
        workout = self.draft.to_workout(now)
        token = self._generation
        try:
            workouts = await self.workout_repo.create(workout)
        except StorageError as exc:
            self.notify(f"Cannot save workout. {exc}")
            return None
        logger.info("Saved workout {!r} with {} entries", workout.name, len(workout.entries))
        self.draft.reset()
        self.mode = EditorMode.CHOOSER
        if self.is_current(token):
            self.recent = workouts[: self.recent_limit]
            self.recent_error = None
        return workouts

    # projections

    def exercise_name(self, exercise_id: str) -> str:
        for ex in self.exercises:
            if str(ex.id) == str(exercise_id):
                return ex.name
        return UNKNOWN_EXERCISE

    def plan_rows(self) -> List[PlanRow]:
        rows = []
        for entry in self.draft.entries:
            summary = ", ".join(format_set(s, i) for i, s in enumerate(entry.sets))
            rows.append(
                PlanRow(entry.key, self.exercise_name(entry.exercise_id), summary or "No sets yet.")
            )
        return rows

    def wizard_title(self) -> str:
        if self.wizard.session is None:
            return ""
        return self.wizard.title(self.exercise_name(self.wizard.session.exercise_id))
