import os
import sqlite3
import sys

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from db import Database


class TestSchemaMigration:
    def test_adds_missing_columns(self, tmp_path):
        db_file = tmp_path / "test.db"
        conn = sqlite3.connect(str(db_file))
        conn.execute(
            "CREATE TABLE workouts (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT, date INTEGER)"
        )
        conn.execute("INSERT INTO workouts (name, date) VALUES ('Legs', 1000)")
        conn.execute("CREATE TABLE workouts_old (id INTEGER)")
        conn.commit()
        conn.close()

        Database(str(db_file))

        conn = sqlite3.connect(str(db_file))
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='workouts_old'"
        )
        assert cur.fetchone() is None
        cur = conn.execute("PRAGMA table_info(workouts)")
        cols = [row[1] for row in cur.fetchall()]
        assert cols == ["id", "name", "date", "entries", "created_at"]
        row = conn.execute("SELECT name, date, entries FROM workouts").fetchone()
        assert row == ("Legs", 1000, "[]")
        conn.close()

    def test_default_settings_inserted(self, tmp_path):
        db_file = tmp_path / "test.db"
        Database(str(db_file))
        conn = sqlite3.connect(str(db_file))
        rows = dict(conn.execute("SELECT key, value FROM settings").fetchall())
        conn.close()
        assert rows["weight_unit"] == "lb"
        assert rows["recent_workout_limit"] == "5"
