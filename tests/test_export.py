import csv
import io
import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from algorithms import normalize_workout
from export_service import CSV_HEADER, export_csv, export_rows, format_local
from models import Exercise, Workout, WorkoutEntry, WorkoutSet


class ExportTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.exercises = [Exercise("1", "Bench"), Exercise("2", "Pull-up")]
        self.workouts = [
            Workout(
                "5",
                "Upper, heavy",
                1_700_000_000_000,
                (
                    WorkoutEntry("1", (WorkoutSet(50.0, "kg", 5), WorkoutSet(135.0, "lb", 8))),
                    WorkoutEntry("2", (WorkoutSet(None, "lb", 12),)),
                    WorkoutEntry("9", (WorkoutSet(20.0, "lb", 10),)),
                ),
            )
        ]

    def test_rows(self) -> None:
        rows = export_rows(self.workouts, self.exercises)
        self.assertEqual(rows[0], CSV_HEADER)
        stamp = format_local(1_700_000_000_000)
        self.assertEqual(rows[1], ["5", "Upper, heavy", stamp, "Bench", 1, "110.2", 5, "kg"])
        self.assertEqual(rows[2][4:], [2, "135.0", 8, "lb"])
        self.assertEqual(rows[3][3:], ["Pull-up", 1, "", 12, "lb"])
        self.assertEqual(rows[4][3], "Unknown")
        self.assertEqual(len(rows), 5)

    def test_csv_text(self) -> None:
        text = export_csv(self.workouts, self.exercises)
        lines = text.splitlines()
        self.assertEqual(lines[0], ",".join(CSV_HEADER))
        self.assertTrue(lines[1].startswith('5,"Upper, heavy",'))
        parsed = list(csv.reader(io.StringIO(text)))
        self.assertEqual(parsed[3][5], "")

    def test_legacy_bare_number_set(self) -> None:
        legacy = normalize_workout(
            {"id": 3, "name": "Old", "date": 0, "entries": [{"exerciseId": "2", "sets": [12]}]}
        )
        rows = export_rows([legacy], self.exercises)
        self.assertEqual(rows[1][3:], ["Pull-up", 1, "", 12, "lb"])

    def test_empty(self) -> None:
        self.assertEqual(export_csv([], []), ",".join(CSV_HEADER) + "\n")


if __name__ == "__main__":
    unittest.main()
