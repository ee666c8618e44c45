import sqlite3
import aiosqlite
import json
import os
from contextlib import contextmanager, asynccontextmanager
from typing import List, Tuple

from loguru import logger

from algorithms import normalize_workout
from config import YamlConfig
from models import Exercise, StorageError, Workout
from settings_schema import SettingsSchema, validate_settings


def _row_id(value) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise ValueError(f"invalid id: {value!r}")


class Database:
    """Provides SQLite connection management and schema initialization."""

    _TABLE_DEFINITIONS = {
        "exercises": (
            """CREATE TABLE exercises (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                );""",
            ["id", "name", "created_at"],
        ),
        "workouts": (
            """CREATE TABLE workouts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    date INTEGER NOT NULL,
                    entries TEXT NOT NULL DEFAULT '[]',
                    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                );""",
            ["id", "name", "date", "entries", "created_at"],
        ),
        "settings": (
            """CREATE TABLE settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );""",
            ["key", "value"],
        ),
    }

    def __init__(self, db_path: str | None = None) -> None:
        self._db_path = db_path or os.environ.get("DB_PATH") or "workout.db"
        self._ensure_schema()
        self._init_settings()

    @contextmanager
    def _connection(self):
        try:
            connection = sqlite3.connect(self._db_path)
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        try:
            yield connection
            connection.commit()
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        finally:
            connection.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            for table, (sql, columns) in self._TABLE_DEFINITIONS.items():
                self._ensure_table(conn, table, sql, columns)

    def _ensure_table(
        self, conn: sqlite3.Connection, table: str, sql: str, columns: List[str]
    ) -> None:
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?;", (table,)
        )
        if cur.fetchone() is None:
            conn.execute(sql)
            return

        cur = conn.execute(f"PRAGMA table_info({table});")
        existing_cols = [row[1] for row in cur.fetchall()]
        if existing_cols == columns:
            return

        logger.info("Migrating table {} to columns {}", table, columns)
        conn.execute(f"DROP TABLE IF EXISTS {table}_old;")
        conn.execute(f"ALTER TABLE {table} RENAME TO {table}_old;")
        conn.execute(sql)
        common = [c for c in existing_cols if c in columns]
        if common:
            cols = ", ".join(common)
            conn.execute(
                f"INSERT INTO {table} ({cols}) SELECT {cols} FROM {table}_old;"
            )
        conn.execute(f"DROP TABLE {table}_old;")

    def _init_settings(self) -> None:
        defaults = {
            key: str(value) for key, value in SettingsSchema().model_dump().items()
        }
        with self._connection() as conn:
            for key, value in defaults.items():
                conn.execute(
                    "INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?);",
                    (key, value),
                )


class BaseRepository(Database):
    """Base repository providing helper methods."""

    def execute(self, query: str, params: Tuple = ()) -> int:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.lastrowid

    def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.fetchall()


class AsyncDatabase(Database):
    """Provides asynchronous connection management."""

    @asynccontextmanager
    async def _async_connection(self):
        conn = await aiosqlite.connect(self._db_path)
        try:
            yield conn
            await conn.commit()
        finally:
            await conn.close()


class AsyncBaseRepository(AsyncDatabase):
    """Asynchronous variant of BaseRepository using aiosqlite."""

    async def execute(self, query: str, params: Tuple = ()) -> int:
        try:
            async with self._async_connection() as conn:
                cursor = await conn.execute(query, params)
                await conn.commit()
                return cursor.lastrowid
        except sqlite3.Error as exc:
            logger.warning("Storage write failed: {}", exc)
            raise StorageError(str(exc)) from exc

    async def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        try:
            async with self._async_connection() as conn:
                cursor = await conn.execute(query, params)
                rows = await cursor.fetchall()
                return list(rows)
        except sqlite3.Error as exc:
            logger.warning("Storage read failed: {}", exc)
            raise StorageError(str(exc)) from exc


class AsyncExerciseRepository(AsyncBaseRepository):
    """Async repository for the exercise catalogue."""

    async def list(self) -> List[Exercise]:
        rows = await self.fetch_all("SELECT id, name FROM exercises ORDER BY id ASC;")
        return [Exercise(str(eid), name) for eid, name in rows]

    async def _require(self, exercise_id: int) -> None:
        rows = await self.fetch_all(
            "SELECT id FROM exercises WHERE id = ?;", (exercise_id,)
        )
        if not rows:
            raise ValueError("exercise not found")

    async def create(self, name: str) -> List[Exercise]:
        name = (name or "").strip()
        if not name:
            raise ValueError("exercise name must not be empty")
        await self.execute("INSERT INTO exercises (name) VALUES (?);", (name,))
        return await self.list()

    async def rename(self, exercise_id, name: str) -> List[Exercise]:
        name = (name or "").strip()
        if not name:
            raise ValueError("exercise name must not be empty")
        eid = _row_id(exercise_id)
        await self._require(eid)
        await self.execute("UPDATE exercises SET name = ? WHERE id = ?;", (name, eid))
        return await self.list()

    async def delete(self, exercise_id) -> List[Exercise]:
        eid = _row_id(exercise_id)
        await self._require(eid)
        await self.execute("DELETE FROM exercises WHERE id = ?;", (eid,))
        return await self.list()


class AsyncWorkoutRepository(AsyncBaseRepository):
    """Async repository for persisted workouts."""

    @staticmethod
    def _to_workout(row: Tuple) -> Workout:
        wid, name, date, entries = row
        try:
            parsed = json.loads(entries or "[]")
        except ValueError:
            logger.warning("Workout {} has unreadable entries", wid)
            parsed = []
        return normalize_workout(
            {"id": wid, "name": name, "date": date, "entries": parsed}
        )

    async def list(self, limit: int | None = None) -> List[Workout]:
        query = "SELECT id, name, date, entries FROM workouts ORDER BY date DESC, id DESC"
        params: tuple = ()
        if limit is not None:
            query += " LIMIT ?"
            params = (limit,)
        rows = await self.fetch_all(query + ";", params)
        return [self._to_workout(r) for r in rows]

    async def get(self, workout_id) -> Workout:
        rows = await self.fetch_all(
            "SELECT id, name, date, entries FROM workouts WHERE id = ?;",
            (_row_id(workout_id),),
        )
        if not rows:
            raise ValueError("workout not found")
        return self._to_workout(rows[0])

    async def create(self, workout) -> List[Workout]:
        workout = normalize_workout(workout)
        if not workout.name.strip():
            raise ValueError("workout name must not be empty")
        await self.execute(
            "INSERT INTO workouts (name, date, entries) VALUES (?, ?, ?);",
            (
                workout.name.strip(),
                workout.date,
                json.dumps([e.to_dict() for e in workout.entries]),
            ),
        )
        return await self.list()

    async def delete(self, workout_id) -> List[Workout]:
        wid = _row_id(workout_id)
        rows = await self.fetch_all("SELECT id FROM workouts WHERE id = ?;", (wid,))
        if not rows:
            raise ValueError("workout not found")
        await self.execute("DELETE FROM workouts WHERE id = ?;", (wid,))
        return await self.list()


class SettingsRepository(BaseRepository):
    """Repository for application settings synchronized with YAML."""

    def __init__(
        self, db_path: str | None = None, yaml_path: str = "settings.yaml"
    ) -> None:
        super().__init__(db_path)
        self._yaml = YamlConfig(yaml_path)
        self._sync_from_yaml()
        self._sync_to_yaml()

    def _raw_all_settings(self) -> dict:
        rows = self.fetch_all("SELECT key, value FROM settings ORDER BY key;")
        return {k: v for k, v in rows}

    def _sync_from_yaml(self) -> None:
        data = self._yaml.load()
        if not data:
            return
        validate_settings(data)
        with self._connection() as conn:
            for key, value in data.items():
                conn.execute(
                    "INSERT INTO settings (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
                    (key, str(value)),
                )

    def _sync_to_yaml(self) -> None:
        self._yaml.save(self.all_settings())

    def get_text(self, key: str, default: str) -> str:
        rows = self.fetch_all("SELECT value FROM settings WHERE key = ?;", (key,))
        return rows[0][0] if rows else default

    def set_text(self, key: str, value: str) -> None:
        self.execute(
            "INSERT INTO settings (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
            (key, value),
        )
        self._sync_to_yaml()

    def get_int(self, key: str, default: int) -> int:
        try:
            return int(float(self.get_text(key, str(default))))
        except ValueError:
            return default

    def get_float(self, key: str, default: float) -> float:
        try:
            return float(self.get_text(key, str(default)))
        except ValueError:
            return default

    def all_settings(self) -> dict:
        """Return settings typed according to :class:`SettingsSchema`."""
        raw = self._raw_all_settings()
        known = SettingsSchema.model_fields
        typed = SettingsSchema(**{k: v for k, v in raw.items() if k in known})
        result = dict(raw)
        result.update(typed.model_dump())
        return result
