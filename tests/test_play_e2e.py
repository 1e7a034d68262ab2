from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"


def run_cli(args: list[str], input_text: str | None = None) -> subprocess.CompletedProcess:
    env = os.environ.copy()
    env["PYTHONPATH"] = str(SRC_DIR)
    env["PYTHONIOENCODING"] = "utf-8"
    env["COLUMNS"] = "200"
    env.pop("DRILLTRAINER_FEATURES", None)
    env.pop("DRILLTRAINER_CONTENT_DIR", None)
    cmd = [sys.executable, "-m", "drilltrainer", *args]
    return subprocess.run(
        cmd,
        input=(input_text or "").encode(),
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        cwd=PROJECT_ROOT,
        env=env,
        check=False,
    )


def test_play_perfect_fire_run():
    cp = run_cli(["play", "fire", "--no-color"], input_text="1\n" * 7)
    out = cp.stdout.decode("utf-8")
    assert cp.returncode == 0, out
    assert "Fire Safety Drill" in out
    assert "Scenario 1" in out
    assert "Scenario 7" in out
    assert "Running score: 115 XP" in out
    assert "100%" in out
    assert "Fire Safety Champion" in out
    assert "Path to a Perfect Score" not in out


def test_play_failure_shows_optimal_path():
    cp = run_cli(["play", "fire", "--no-color"], input_text="2\n")
    out = cp.stdout.decode("utf-8")
    assert cp.returncode == 0, out
    assert "Fire Safety Drill Failed" in out
    assert "0%" in out
    assert "Not passed" in out
    assert "Path to a Perfect Score" in out
    assert "You missed this optimal step" in out


def test_play_rejects_bad_input_then_quits():
    cp = run_cli(["play", "fire", "--no-color"], input_text="9\nabc\nh\nq\n")
    out = cp.stdout.decode("utf-8")
    assert cp.returncode == 0, out
    assert out.count("Invalid input") == 2
    assert "Controls" in out
    assert "Drill stopped after 0 step(s)." in out


def test_default_prints_ansi_when_color_enabled():
    cp = run_cli(["play", "fire"], input_text="q\n")
    out = cp.stdout.decode("utf-8")
    assert cp.returncode == 0
    assert "\x1b[" in out


def test_list_and_validate_commands():
    listed = run_cli(["list"])
    out = listed.stdout.decode("utf-8")
    assert listed.returncode == 0, out
    for drill_id in ("earthquake", "fire", "flood", "pandemic", "severe_weather"):
        assert drill_id in out

    checked = run_cli(["validate"])
    out = checked.stdout.decode("utf-8")
    assert checked.returncode == 0, out
    assert out.count("✓") == 5
    assert "cycle" in out


def test_validate_reports_broken_file(tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text(
        '{"id": "broken", "title": "Broken", "max_possible_score": 10, "nodes": {"START": {"description": "x",'
        ' "choices": [{"text": "go", "xp": 10, "next": "NOWHERE"}]}}}',
        encoding="utf-8",
    )
    cp = run_cli(["validate", str(broken)])
    out = cp.stdout.decode("utf-8")
    assert cp.returncode == 1, out
    assert "DanglingReference" in out
    assert "NOWHERE" in out


def test_path_command_greedy_and_global():
    greedy = run_cli(["path", "flood"])
    out = greedy.stdout.decode("utf-8")
    assert greedy.returncode == 0, out
    assert "Path total: 350 XP" in out
    assert "best achievable: 355" in out

    best = run_cli(["path", "flood", "--global"])
    out = best.stdout.decode("utf-8")
    assert best.returncode == 0, out
    assert "Path total: 355 XP" in out


def test_unknown_drill_exits_nonzero():
    cp = run_cli(["path", "tsunami"])
    assert cp.returncode == 2
    assert "tsunami" in cp.stdout.decode("utf-8")


def test_malformed_content_dir_reports_cleanly(tmp_path):
    shape = tmp_path / "shape"
    shape.mkdir()
    (shape / "bad.json").write_text('{"id": "bad", "title": "Bad", "nodes": {}}', encoding="utf-8")
    graph = tmp_path / "graph"
    graph.mkdir()
    (graph / "dangling.json").write_text(
        '{"id": "dangling", "title": "Dangling", "max_possible_score": 10, "nodes": {"START": {"description": "x",'
        ' "choices": [{"text": "go", "xp": 10, "next": "NOWHERE"}]}}}',
        encoding="utf-8",
    )

    for directory, command in ((shape, ["list"]), (graph, ["path", "dangling"]), (graph, ["play", "dangling"])):
        cp = run_cli(["--content-dir", str(directory), *command], input_text="q\n")
        out = cp.stdout.decode("utf-8")
        assert cp.returncode == 2, out
        assert "Invalid drill content" in out
        assert "Traceback" not in out
