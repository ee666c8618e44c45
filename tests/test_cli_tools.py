import os
import sys

import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from cli import main, parse_set_token


@pytest.fixture
def paths(tmp_path):
    return ["--db", str(tmp_path / "cli.db"), "--yaml", str(tmp_path / "cli.yaml")]


def test_parse_set_token():
    assert parse_set_token("100lb*5") == ("100", "lb", "5")
    assert parse_set_token("50kg x 5") == ("50", "kg", "5")
    assert parse_set_token("22.5 kg×8") == ("22.5", "kg", "8")
    assert parse_set_token("8") == (None, None, "8")


def test_exercise_commands(paths, capsys):
    assert main(paths + ["exercises", "add", "Bench"]) == 0
    assert main(paths + ["exercises", "rename", "1", "Incline Bench"]) == 0
    capsys.readouterr()
    assert main(paths + ["exercises", "list"]) == 0
    assert capsys.readouterr().out == "1\tIncline Bench\n"
    assert main(paths + ["exercises", "rename", "9", "Nope"]) == 1
    assert "Error: exercise not found" in capsys.readouterr().err


def test_log_show_progress_export(paths, tmp_path, capsys):
    main(paths + ["exercises", "add", "Bench"])
    capsys.readouterr()
    assert main(paths + ["log", "--name", "Push", "--entry", "1=100lb*5,8"]) == 0
    assert capsys.readouterr().out == "Bench: Set 1: 100 lb×5, Set 2: 8 reps\n"

    assert main(paths + ["workouts", "show", "1"]) == 0
    out = capsys.readouterr().out
    assert out.splitlines() == ["Push", "  Bench: Set 1: 100 lb×5, Set 2: 8 reps"]

    png = tmp_path / "bench.png"
    assert main(paths + ["progress", "--exercise", "1", "--png", str(png)]) == 0
    assert capsys.readouterr().out.startswith("Set 1: ")
    assert png.exists()

    out_csv = tmp_path / "export.csv"
    assert main(paths + ["export", "--out", str(out_csv)]) == 0
    with open(out_csv, "r", encoding="utf-8") as f:
        lines = f.read().splitlines()
    assert len(lines) == 3
    assert lines[1].endswith(",Bench,1,100.0,5,lb")


def test_log_rejects_invalid_reps(paths, capsys):
    assert main(paths + ["log", "--entry", "1=100lb*0"]) == 1
    assert "Error:" in capsys.readouterr().err
    assert main(paths + ["workouts", "list"]) == 0
    assert capsys.readouterr().out == ""


def test_convert(paths, capsys):
    assert main(paths + ["convert", "--weight", "100", "--unit", "kg"]) == 0
    assert capsys.readouterr().out.strip() == "100.0 kg = 220.46 lb"
