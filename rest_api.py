from typing import List, Optional

from fastapi import FastAPI, HTTPException, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from config import APP_VERSION
from db import AsyncExerciseRepository, AsyncWorkoutRepository, SettingsRepository
from export_service import export_csv
from models import StorageError
from progress_service import ProgressService


class ExerciseIn(BaseModel):
    name: str = Field(..., min_length=1)


class SetIn(BaseModel):
    weight: Optional[float] = None
    unit: str = "lb"
    reps: int = Field(0, ge=0)


class EntryIn(BaseModel):
    exercise_id: str
    sets: List[SetIn] = []


class WorkoutIn(BaseModel):
    name: str = Field(..., min_length=1)
    date: int
    entries: List[EntryIn] = []


class PumpingIronAPI:
    """Provides REST endpoints for exercise and workout persistence."""

    def __init__(self, db_path: str = "workout.db", yaml_path: str = "settings.yaml") -> None:
        self.db_path = db_path
        self.settings = SettingsRepository(db_path, yaml_path)
        self.exercises = AsyncExerciseRepository(db_path)
        self.workouts = AsyncWorkoutRepository(db_path)
        self.progress = ProgressService(
            self.workouts, self.settings.get_text("date_format", "%b %d, %y")
        )
        self.app = FastAPI(
            title="Pumping Iron API",
            description="Persistence for exercises and workouts",
            version=APP_VERSION,
        )
        self._setup_routes()

    def _setup_routes(self) -> None:
        @self.app.exception_handler(StorageError)
        async def storage_error(_request, exc: StorageError):
            return JSONResponse(
                status_code=503, content={"detail": f"storage unavailable: {exc}"}
            )

        @self.app.get("/health")
        def health():
            return {"status": "ok", "version": APP_VERSION}

        @self.app.get("/exercises")
        async def list_exercises():
            return [e.to_dict() for e in await self.exercises.list()]

        @self.app.post("/exercises")
        async def create_exercise(body: ExerciseIn):
            try:
                rows = await self.exercises.create(body.name)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return [e.to_dict() for e in rows]

        @self.app.put("/exercises/{exercise_id}")
        async def rename_exercise(exercise_id: str, body: ExerciseIn):
            try:
                rows = await self.exercises.rename(exercise_id, body.name)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            return [e.to_dict() for e in rows]

        @self.app.delete("/exercises/{exercise_id}")
        async def delete_exercise(exercise_id: str):
            try:
                rows = await self.exercises.delete(exercise_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            return [e.to_dict() for e in rows]

        @self.app.get("/exercises/{exercise_id}/progress")
        async def exercise_progress(exercise_id: str):
            data = self.progress.gather(exercise_id, await self.workouts.list())
            return {
                "labels": data.labels,
                "domain": list(data.domain),
                "series": [
                    {
                        "label": s.label,
                        "color": s.color,
                        "points": [
                            {
                                "workout_index": p.workout_index,
                                "offset": p.offset,
                                "weight_lb": p.weight_lb,
                                "reps": p.reps,
                                "date": p.date,
                                "set_number": p.set_number,
                            }
                            for p in s.points
                        ],
                    }
                    for s in data.series
                ],
            }

        @self.app.get("/workouts")
        async def list_workouts(limit: int | None = None):
            return [w.to_dict() for w in await self.workouts.list(limit=limit)]

        @self.app.get("/workouts/{workout_id}")
        async def get_workout(workout_id: str):
            try:
                workout = await self.workouts.get(workout_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            return workout.to_dict()

        @self.app.post("/workouts")
        async def create_workout(body: WorkoutIn):
            try:
                rows = await self.workouts.create(body.model_dump())
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return [w.to_dict() for w in rows]

        @self.app.delete("/workouts/{workout_id}")
        async def delete_workout(workout_id: str):
            try:
                rows = await self.workouts.delete(workout_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e))
            return [w.to_dict() for w in rows]

        @self.app.get("/export.csv")
        async def export():
            data = export_csv(await self.workouts.list(), await self.exercises.list())
            return Response(
                content=data,
                media_type="text/csv",
                headers={
                    "Content-Disposition": "attachment; filename=pumping_iron_export.csv"
                },
            )


if __name__ == "__main__":
    import uvicorn

    from config import AppConfig
    from logging_config import configure_logging

    cfg = AppConfig.load()
    configure_logging(cfg.settings.log_level)
    uvicorn.run(PumpingIronAPI(cfg.db_path, cfg.yaml_path).app)
