import asyncio
import datetime
import os
import sys

import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from editor import EditorMode, Intent, WorkoutEditor
from models import DraftError, Exercise, SetValidationError, StorageError, Workout, WorkoutEntry, WorkoutSet


class FakeExerciseRepo:
    def __init__(self, exercises=None, fail=False, gate=None):
        self.exercises = exercises or [Exercise("1", "Bench"), Exercise("2", "Squat")]
        self.fail = fail
        self.gate = gate

    async def list(self):
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise StorageError("offline")
        return list(self.exercises)


class FakeWorkoutRepo:
    def __init__(self, workouts=None, fail_list=False, fail_create=False):
        self.workouts = list(workouts or [])
        self.fail_list = fail_list
        self.fail_create = fail_create

    async def list(self, limit=None):
        if self.fail_list:
            raise StorageError("offline")
        rows = sorted(self.workouts, key=lambda w: w.date, reverse=True)
        return rows if limit is None else rows[:limit]

    async def create(self, workout):
        if self.fail_create:
            raise StorageError("disk full")
        self.workouts.append(
            Workout(str(len(self.workouts) + 1), workout.name, workout.date, workout.entries)
        )
        return await self.list()


class FailingSettings:
    def get_text(self, key, default):
        return default

    def get_int(self, key, default):
        return default

    def set_text(self, key, value):
        raise StorageError("disk full")


def _recent():
    return Workout(
        "7",
        "Monday",
        1_000,
        (WorkoutEntry("1", (WorkoutSet(100.0, "lb", 5),)), WorkoutEntry("99", ())),
    )


@pytest.mark.asyncio
async def test_build_and_finish():
    workouts = FakeWorkoutRepo()
    editor = WorkoutEditor(FakeExerciseRepo(), workouts)
    await editor.enter()
    assert editor.mode == EditorMode.CHOOSER
    assert [e.name for e in editor.exercises] == ["Bench", "Squat"]

    await editor.dispatch(Intent.START_FRESH)
    assert editor.mode == EditorMode.BUILDER
    await editor.dispatch(Intent.SET_NAME, name="Push Day")
    assert await editor.dispatch(Intent.ADD_ENTRY, exercise_id="1", total=2)
    assert editor.wizard_title() == "Enter Reps: Bench"
    assert await editor.dispatch(Intent.SUBMIT_SET, weight="100", unit="lb", reps="5") is None
    key = await editor.dispatch(Intent.SUBMIT_SET, weight="", unit="lb", reps="8")
    assert editor.draft.keys() == [key]
    rows = editor.plan_rows()
    assert rows[0].exercise_name == "Bench"
    assert rows[0].summary == "Set 1: 100 lb×5, Set 2: 8 reps"

    saved = await editor.dispatch(Intent.FINISH, now=datetime.datetime(2024, 1, 2, 3, 4, 5))
    assert [w.name for w in saved] == ["Push Day"]
    assert editor.draft.is_empty()
    assert editor.mode == EditorMode.CHOOSER
    assert editor.recent == saved
    assert workouts.workouts[0].entries[0].sets[1] == WorkoutSet(None, "lb", 8)


@pytest.mark.asyncio
async def test_finish_without_entries():
    editor = WorkoutEditor(FakeExerciseRepo(), FakeWorkoutRepo())
    await editor.enter()
    await editor.dispatch(Intent.START_FRESH)
    with pytest.raises(DraftError):
        await editor.dispatch(Intent.FINISH)


@pytest.mark.asyncio
async def test_finish_storage_error_keeps_draft():
    editor = WorkoutEditor(FakeExerciseRepo(), FakeWorkoutRepo(fail_create=True))
    await editor.enter()
    await editor.dispatch(Intent.START_FRESH)
    await editor.dispatch(Intent.SET_NAME, name="Legs")
    await editor.dispatch(Intent.ADD_ENTRY, exercise_id="2")
    await editor.dispatch(Intent.SUBMIT_SET, weight="140", unit="kg", reps="3")
    assert await editor.dispatch(Intent.FINISH) is None
    assert editor.notices[-1].startswith("Cannot save workout.")
    assert editor.draft.name == "Legs"
    assert len(editor.draft.entries) == 1
    assert editor.mode == EditorMode.BUILDER


@pytest.mark.asyncio
async def test_unit_save_failure_becomes_notice():
    editor = WorkoutEditor(FakeExerciseRepo(), FakeWorkoutRepo(), FailingSettings())
    await editor.enter()
    await editor.dispatch(Intent.START_FRESH)
    await editor.dispatch(Intent.ADD_ENTRY, exercise_id="1", total=1)
    key = await editor.dispatch(Intent.SUBMIT_SET, weight="60", unit="kg", reps="5")
    assert editor.draft.find(key).sets == [WorkoutSet(60.0, "kg", 5)]
    assert editor.notices == ["Cannot save default unit. disk full"]
    assert not editor.wizard.is_open


@pytest.mark.asyncio
async def test_invalid_set_propagates():
    editor = WorkoutEditor(FakeExerciseRepo(), FakeWorkoutRepo())
    await editor.enter()
    await editor.dispatch(Intent.ADD_ENTRY, exercise_id="1", total=1)
    with pytest.raises(SetValidationError):
        await editor.dispatch(Intent.SUBMIT_SET, weight="100", unit="lb", reps="0")
    assert editor.wizard.is_open
    await editor.dispatch(Intent.CANCEL_SET)
    assert not editor.wizard.is_open
    assert editor.draft.is_empty()


@pytest.mark.asyncio
async def test_start_from_recent_with_unknown_exercise():
    editor = WorkoutEditor(FakeExerciseRepo(), FakeWorkoutRepo([_recent()]))
    await editor.enter()
    assert [w.id for w in editor.recent] == ["7"]
    assert await editor.dispatch(Intent.START_FROM_RECENT, workout_id="8") is False
    assert await editor.dispatch(Intent.START_FROM_RECENT, workout_id="7") is True
    assert editor.mode == EditorMode.BUILDER
    assert editor.draft.name == "Monday"
    rows = editor.plan_rows()
    assert [r.exercise_name for r in rows] == ["Bench", "Unknown"]
    assert rows[1].summary == "No sets yet."


@pytest.mark.asyncio
async def test_edit_remove_and_reorder():
    editor = WorkoutEditor(FakeExerciseRepo(), FakeWorkoutRepo([_recent()]))
    await editor.enter()
    await editor.dispatch(Intent.START_FROM_RECENT, workout_id="7")
    first, second = editor.draft.keys()
    await editor.dispatch(Intent.REORDER, keys=[second, first])
    assert editor.draft.keys() == [second, first]
    assert await editor.dispatch(Intent.EDIT_ENTRY, key=first)
    assert editor.wizard_title() == "Edit Sets: Bench"
    await editor.dispatch(Intent.SUBMIT_SET, weight="105", unit="lb", reps="5")
    assert editor.draft.find(first).sets == [WorkoutSet(105.0, "lb", 5)]
    await editor.dispatch(Intent.REMOVE_ENTRY, key=second)
    assert editor.draft.keys() == [first]


@pytest.mark.asyncio
async def test_back_to_chooser_clears_draft_and_wizard():
    editor = WorkoutEditor(FakeExerciseRepo(), FakeWorkoutRepo())
    await editor.enter()
    await editor.dispatch(Intent.START_FRESH)
    await editor.dispatch("set_name", name="Arms")
    await editor.dispatch(Intent.ADD_ENTRY, exercise_id="1", total=3)
    await editor.dispatch(Intent.BACK_TO_CHOOSER)
    assert editor.mode == EditorMode.CHOOSER
    assert editor.draft.name == ""
    assert not editor.wizard.is_open


@pytest.mark.asyncio
async def test_refresh_errors():
    editor = WorkoutEditor(FakeExerciseRepo(fail=True), FakeWorkoutRepo())
    await editor.enter()
    assert editor.notices == ["Cannot load exercises. offline"]

    editor = WorkoutEditor(FakeExerciseRepo(), FakeWorkoutRepo(fail_list=True))
    await editor.enter()
    assert editor.recent == []
    assert editor.recent_error == "offline"
    assert [e.id for e in editor.exercises] == ["1", "2"]


@pytest.mark.asyncio
async def test_stale_results_discarded():
    gate = asyncio.Event()
    editor = WorkoutEditor(FakeExerciseRepo(gate=gate), FakeWorkoutRepo([_recent()]))
    task = asyncio.ensure_future(editor.enter())
    await asyncio.sleep(0)
    editor.leave()
    gate.set()
    token = await task
    assert not editor.is_current(token)
    assert editor.exercises == []
    assert editor.recent == []


@pytest.mark.asyncio
async def test_reenter_keeps_builder_draft():
    editor = WorkoutEditor(FakeExerciseRepo(), FakeWorkoutRepo())
    await editor.enter()
    await editor.dispatch(Intent.START_FRESH)
    await editor.dispatch(Intent.SET_NAME, name="Half done")
    editor.leave()
    await editor.enter()
    assert editor.mode == EditorMode.BUILDER
    assert editor.draft.name == "Half done"
