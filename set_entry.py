from __future__ import annotations
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional

from loguru import logger

from algorithms import format_set, normalize_set
from draft import WorkoutDraft
from models import DEFAULT_UNIT, SetValidationError, StorageError, Unit, WorkoutSet


class WizardState(str, Enum):
    CLOSED = "closed"
    COLLECTING = "collecting"


@dataclass
class SetEntrySession:
    exercise_id: str
    total: int
    index: int = 0
    collected: List[Optional[WorkoutSet]] = field(default_factory=list)
    editing_key: Optional[str] = None
    initial_sets: List[Optional[WorkoutSet]] = field(default_factory=list)


def parse_reps(value: Any) -> int:
    """Return a positive rep count or raise :class:`SetValidationError`."""
    reps: float | None = None
    if isinstance(value, bool):
        reps = None
    elif isinstance(value, int):
        reps = value
    elif isinstance(value, float):
        reps = value if math.isfinite(value) and value.is_integer() else None
    elif isinstance(value, str):
        text = value.strip()
        try:
            reps = int(text)
        except ValueError:
            try:
                parsed = float(text)
            except ValueError:
                parsed = math.nan
            reps = parsed if math.isfinite(parsed) and parsed.is_integer() else None
    if reps is None or reps <= 0:
        raise SetValidationError("Please enter a valid positive number of reps.")
    return int(reps)


def parse_weight(value: Any) -> float | None:
    """Return the weight as float, ``None`` for blank input."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise SetValidationError("Please enter a valid weight.")
    try:
        weight = float(value)
    except (TypeError, ValueError):
        raise SetValidationError("Please enter a valid weight.")
    if not math.isfinite(weight):
        raise SetValidationError("Please enter a valid weight.")
    return weight


class SetEntryWizard:
    """Collect the sets of one exercise entry, one set at a time.

    Opening the wizard starts at the first slot. Every valid submission stores
    the slot and moves on; submitting the last slot writes the sets into the
    draft (replacing the edited entry or appending a new one) and closes the
    wizard. Invalid input raises :class:`SetValidationError` without touching
    the session.
    """

    UNIT_SETTING = "weight_unit"

    def __init__(
        self,
        draft: WorkoutDraft,
        settings=None,
        on_error: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.draft = draft
        self.settings = settings
        self.on_error = on_error
        self.session: Optional[SetEntrySession] = None
        self._default_unit = DEFAULT_UNIT
        if settings is not None:
            self._default_unit = settings.get_text(self.UNIT_SETTING, DEFAULT_UNIT)
        draft.on_reset(self.cancel)

    @property
    def state(self) -> WizardState:
        return WizardState.CLOSED if self.session is None else WizardState.COLLECTING

    @property
    def is_open(self) -> bool:
        return self.session is not None

    @property
    def default_unit(self) -> str:
        return self._default_unit

    def open(
        self,
        exercise_id: str,
        total: int,
        editing_key: Optional[str] = None,
        initial_sets: Optional[Iterable[Any]] = None,
    ) -> SetEntrySession:
        initial = [None if s is None else normalize_set(s) for s in (initial_sets or [])]
        try:
            count = int(total)
        except (TypeError, ValueError):
            count = 1
        count = max(1, count, len(initial))
        padded = [initial[i] if i < len(initial) else None for i in range(count)]
        self.session = SetEntrySession(
            exercise_id=str(exercise_id),
            total=count,
            collected=[None] * count,
            editing_key=editing_key,
            initial_sets=padded,
        )
        logger.debug(
            "set entry opened exercise_id={} total={} editing={}",
            exercise_id,
            count,
            editing_key,
        )
        return self.session

    def begin_edit(self, key: str) -> bool:
        entry = self.draft.find(key)
        if entry is None:
            return False
        self.open(entry.exercise_id, len(entry.sets) or 1, entry.key, entry.sets)
        return True

    def submit_current(self, weight: Any, unit: Any, reps: Any) -> Optional[str]:
        """Store the current slot.

        Returns the key of the committed entry when this was the last slot,
        otherwise ``None``.
        """
        if self.session is None:
            raise SetValidationError("No set entry in progress.")
        parsed_reps = parse_reps(reps)
        parsed_weight = parse_weight(weight)
        unit_value = str(unit.value if isinstance(unit, Unit) else unit or self._default_unit)
        if unit_value not in {u.value for u in Unit}:
            raise SetValidationError("Please choose a valid unit.")

        session = self.session
        session.collected[session.index] = WorkoutSet(parsed_weight, unit_value, parsed_reps)
        session.index += 1
        key = self._commit() if session.index >= session.total else None
        self._remember_unit(unit_value)
        return key

    def _remember_unit(self, unit: str) -> None:
        self._default_unit = unit
        if self.settings is None:
            return
        try:
            self.settings.set_text(self.UNIT_SETTING, unit)
        except StorageError as exc:
            if self.on_error is not None:
                self.on_error(f"Cannot save default unit. {exc}")
            else:
                logger.warning("Cannot save default unit {}: {}", unit, exc)

    def _commit(self) -> str:
        session = self.session
        sets = [s for s in session.collected[: session.total] if s is not None]
        if session.editing_key:
            self.draft.update_entry_sets(session.editing_key, sets)
            key = session.editing_key
        else:
            key = self.draft.add_entry(session.exercise_id, sets)
        logger.debug("set entry committed key={} sets={}", key, len(sets))
        self.session = None
        return key

    def cancel(self) -> None:
        if self.session is not None:
            logger.debug("set entry cancelled exercise_id={}", self.session.exercise_id)
        self.session = None

    def prefill(self) -> dict:
        """Values to show in the inputs for the current slot."""
        if self.session is None:
            return {"weight": None, "unit": self._default_unit, "reps": None}
        idx = self.session.index
        source = self.session.collected[idx] or self.session.initial_sets[idx]
        if source is None:
            return {"weight": None, "unit": self._default_unit, "reps": None}
        return {
            "weight": source.weight,
            "unit": source.unit or self._default_unit,
            "reps": source.reps or None,
        }

    def chips(self) -> list[str]:
        if self.session is None:
            return []
        return [
            format_set(self.session.collected[i] or self.session.initial_sets[i], i)
            for i in range(self.session.total)
        ]

    def label(self) -> str:
        if self.session is None:
            return ""
        current = min(self.session.index + 1, self.session.total)
        return f"Set {current} of {self.session.total}"

    def action_label(self) -> str:
        if self.session is None:
            return ""
        if self.session.index >= self.session.total - 1:
            return "Save Changes" if self.session.editing_key else "Finish Exercise"
        return "Next"

    def title(self, exercise_name: str) -> str:
        if self.session is not None and self.session.editing_key:
            return f"Edit Sets: {exercise_name}"
        return f"Enter Reps: {exercise_name}"
