import argparse
import asyncio
import datetime
import re
import sys

from loguru import logger

from chart import ChartRenderer, PillowCanvas
from config import AppConfig
from db import AsyncExerciseRepository, AsyncWorkoutRepository, SettingsRepository
from editor import Intent, WorkoutEditor
from export_service import export_csv
from logging_config import configure_logging
from algorithms import WeightConverter, format_set
from models import UNKNOWN_EXERCISE, StorageError
from progress_service import ProgressService


async def list_exercises(db_path: str) -> list[str]:
    rows = await AsyncExerciseRepository(db_path).list()
    return [f"{ex.id}\t{ex.name}" for ex in rows]


async def add_exercise(db_path: str, name: str) -> list[str]:
    await AsyncExerciseRepository(db_path).create(name)
    return await list_exercises(db_path)


async def rename_exercise(db_path: str, exercise_id: str, name: str) -> list[str]:
    await AsyncExerciseRepository(db_path).rename(exercise_id, name)
    return await list_exercises(db_path)


async def delete_exercise(db_path: str, exercise_id: str) -> list[str]:
    await AsyncExerciseRepository(db_path).delete(exercise_id)
    return await list_exercises(db_path)


async def list_workouts(db_path: str, date_format: str = "%b %d, %y") -> list[str]:
    rows = await AsyncWorkoutRepository(db_path).list()
    lines = []
    for w in rows:
        date = datetime.datetime.fromtimestamp(w.date / 1000).strftime(date_format)
        lines.append(f"{w.id}\t{w.name}\t{date} • {len(w.entries)} exercises")
    return lines


async def show_workout(db_path: str, workout_id: str) -> list[str]:
    workout = await AsyncWorkoutRepository(db_path).get(workout_id)
    names = {ex.id: ex.name for ex in await AsyncExerciseRepository(db_path).list()}
    lines = [workout.name]
    for entry in workout.entries:
        sets = ", ".join(format_set(s, i) for i, s in enumerate(entry.sets))
        lines.append(f"  {names.get(entry.exercise_id, UNKNOWN_EXERCISE)}: {sets}")
    return lines


async def delete_workout(db_path: str, workout_id: str) -> None:
    await AsyncWorkoutRepository(db_path).delete(workout_id)


async def progress(
    db_path: str,
    exercise_id: str,
    png_path: str | None = None,
    width: int = 640,
    height: int = 320,
    padding: int = 40,
    date_format: str = "%b %d, %y",
) -> list[str]:
    service = ProgressService(AsyncWorkoutRepository(db_path), date_format)
    data = await service.load(exercise_id)
    if data.error:
        raise StorageError(data.error)
    lines = []
    for s in data.series:
        points = ", ".join(
            f"{data.labels[p.workout_index]}={p.weight_lb:.1f}lb×{p.reps}" for p in s.points
        )
        lines.append(f"{s.label}: {points}")
    if png_path:
        renderer = ChartRenderer(width, height, padding)
        canvas = PillowCanvas(width, height)
        renderer.render(canvas, data)
        canvas.save(png_path)
    return lines


_SET_TOKEN = re.compile(
    r"^\s*(?:(?P<weight>-?\d+(?:\.\d+)?)\s*(?P<unit>kg|lb)\s*[x×*]\s*)?(?P<reps>\S+)\s*$"
)


def parse_set_token(token: str) -> tuple[str | None, str | None, str]:
    """Split ``100lb*5``, ``50kg x 5`` or a bare ``8`` into weight, unit, reps."""
    match = _SET_TOKEN.match(token)
    if not match:
        raise ValueError(f"cannot parse set {token!r}")
    return match.group("weight"), match.group("unit"), match.group("reps")


async def log_workout(
    db_path: str, name: str, entries: list[str], settings=None
) -> list[str]:
    """Record a workout given ``EXERCISE_ID=SET,SET,...`` entry specs."""
    editor = WorkoutEditor(
        AsyncExerciseRepository(db_path), AsyncWorkoutRepository(db_path), settings
    )
    await editor.enter()
    try:
        await editor.dispatch(Intent.START_FRESH)
        await editor.dispatch(Intent.SET_NAME, name=name)
        for spec in entries:
            exercise_id, _, sets_text = spec.partition("=")
            tokens = [t for t in sets_text.split(",") if t.strip()]
            if not exercise_id.strip() or not tokens:
                raise ValueError(f"entry {spec!r} needs an exercise id and at least one set")
            await editor.dispatch(
                Intent.ADD_ENTRY, exercise_id=exercise_id.strip(), total=len(tokens)
            )
            for token in tokens:
                weight, unit, reps = parse_set_token(token)
                await editor.dispatch(Intent.SUBMIT_SET, weight=weight, unit=unit, reps=reps)
        rows = editor.plan_rows()
        saved = await editor.dispatch(Intent.FINISH)
        if saved is None:
            raise StorageError(editor.notices[-1])
        return [f"{row.exercise_name}: {row.summary}" for row in rows]
    finally:
        editor.leave()


async def export_workouts(db_path: str, out_path: str) -> None:
    workouts = await AsyncWorkoutRepository(db_path).list()
    exercises = await AsyncExerciseRepository(db_path).list()
    with open(out_path, "w", encoding="utf-8", newline="") as f:
        f.write(export_csv(workouts, exercises))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Pumping Iron utility commands")
    parser.add_argument("--db", default=None)
    parser.add_argument("--yaml", default=None)
    sub = parser.add_subparsers(dest="cmd", required=True)

    ex = sub.add_parser("exercises")
    ex_sub = ex.add_subparsers(dest="action", required=True)
    ex_sub.add_parser("list")
    ex_add = ex_sub.add_parser("add")
    ex_add.add_argument("name")
    ex_ren = ex_sub.add_parser("rename")
    ex_ren.add_argument("id")
    ex_ren.add_argument("name")
    ex_del = ex_sub.add_parser("delete")
    ex_del.add_argument("id")

    wk = sub.add_parser("workouts")
    wk_sub = wk.add_subparsers(dest="action", required=True)
    wk_sub.add_parser("list")
    wk_show = wk_sub.add_parser("show")
    wk_show.add_argument("id")
    wk_del = wk_sub.add_parser("delete")
    wk_del.add_argument("id")

    prog = sub.add_parser("progress")
    prog.add_argument("--exercise", required=True)
    prog.add_argument("--png", default=None)

    log = sub.add_parser("log")
    log.add_argument("--name", default="")
    log.add_argument(
        "--entry",
        action="append",
        required=True,
        help="EXERCISE_ID=100lb*5,50kg*5,8",
    )

    exp = sub.add_parser("export")
    exp.add_argument("--out", default="pumping_iron_export.csv")

    conv = sub.add_parser("convert")
    conv.add_argument("--weight", type=float, required=True)
    conv.add_argument("--unit", choices=["kg", "lb"], required=True)

    args = parser.parse_args(argv)
    cfg = AppConfig.load(args.yaml)
    configure_logging(cfg.settings.log_level)
    db_path = args.db or cfg.db_path
    settings = None
    if args.cmd != "convert":
        settings = SettingsRepository(db_path, cfg.yaml_path)
    fmt = cfg.settings.date_format

    try:
        if args.cmd == "exercises":
            if args.action == "list":
                lines = asyncio.run(list_exercises(db_path))
            elif args.action == "add":
                lines = asyncio.run(add_exercise(db_path, args.name))
            elif args.action == "rename":
                lines = asyncio.run(rename_exercise(db_path, args.id, args.name))
            else:
                lines = asyncio.run(delete_exercise(db_path, args.id))
        elif args.cmd == "workouts":
            if args.action == "list":
                lines = asyncio.run(list_workouts(db_path, fmt))
            elif args.action == "show":
                lines = asyncio.run(show_workout(db_path, args.id))
            else:
                asyncio.run(delete_workout(db_path, args.id))
                lines = asyncio.run(list_workouts(db_path, fmt))
        elif args.cmd == "progress":
            s = cfg.settings
            lines = asyncio.run(
                progress(
                    db_path,
                    args.exercise,
                    args.png,
                    s.chart_width,
                    s.chart_height,
                    s.chart_padding,
                    fmt,
                )
            )
        elif args.cmd == "log":
            lines = asyncio.run(log_workout(db_path, args.name, args.entry, settings))
        elif args.cmd == "export":
            asyncio.run(export_workouts(db_path, args.out))
            lines = [f"Exported to {args.out}"]
        else:
            if args.unit == "kg":
                lines = [f"{args.weight} kg = {WeightConverter.kg_to_lb(args.weight)} lb"]
            else:
                lines = [f"{args.weight} lb = {WeightConverter.lb_to_kg(args.weight)} kg"]
    except (StorageError, ValueError) as exc:
        logger.error("{} failed: {}", args.cmd, exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
