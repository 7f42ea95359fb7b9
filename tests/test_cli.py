from __future__ import annotations

import json
from pathlib import Path

from conftest import quiet_seed
from typer.testing import CliRunner

from crossy.cli import app
from crossy.replay import load_recording_file
from crossy.replay.packed import MAGIC


def _synth(runner: CliRunner, output: Path, seed: int, moves: str = "forward@0,forward@250,left@500"):
    return runner.invoke(
        app,
        ["replay", "synth", str(output), "--seed", str(seed), "--moves", moves],
    )


def test_rows_prints_layout() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["rows", "--seed", "42", "--count", "5"])
    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert len(lines) == 6
    assert lines[0].startswith("   0  field")
    assert lines[-1].startswith("layout_hash=")

    again = runner.invoke(app, ["rows", "--seed", "42", "--count", "5"])
    assert again.output == result.output


def test_synth_then_verify(tmp_path: Path) -> None:
    runner = CliRunner()
    seed = quiet_seed()
    path = tmp_path / "run.json"

    result = _synth(runner, path, seed)
    assert result.exit_code == 0, result.output
    assert "score=2" in result.output

    recording = load_recording_file(path)
    assert recording.seed == seed
    assert recording.final_score == 2
    assert [event.action for event in recording.inputs] == ["forward", "forward", "left"]

    verified = runner.invoke(app, ["replay", "verify", str(path)])
    assert verified.exit_code == 0, verified.output
    assert "ok: score=2 max_lane=2 terminated=False" in verified.output


def test_verify_rejects_tampered_score(tmp_path: Path) -> None:
    runner = CliRunner()
    path = tmp_path / "run.json"
    assert _synth(runner, path, quiet_seed()).exit_code == 0

    obj = json.loads(path.read_text())
    obj["finalScore"] = 9
    path.write_text(json.dumps(obj))

    result = runner.invoke(app, ["replay", "verify", str(path)])
    assert result.exit_code == 1
    assert "score_exceeds_progress" in result.output


def test_info_reports_digest_and_validity(tmp_path: Path) -> None:
    runner = CliRunner()
    path = tmp_path / "run.json"
    path.write_text(json.dumps({"seed": 1, "inputs": [], "startTime": 0, "finalScore": 0, "duration": 0}))

    result = runner.invoke(app, ["replay", "info", str(path)])
    assert result.exit_code == 0, result.output
    assert "digest=rro6v" in result.output
    assert "inputs=0" in result.output
    assert result.output.rstrip().endswith("valid")


def test_info_lists_validation_problems(tmp_path: Path) -> None:
    runner = CliRunner()
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"seed": 1, "inputs": [{"timestamp": 5, "action": "jump"}]}))

    result = runner.invoke(app, ["replay", "info", str(path)])
    assert result.exit_code == 0, result.output
    assert "invalid: missing finalScore" in result.output
    assert "invalid: input 0 has unknown action 'jump'" in result.output


def test_convert_to_packed_and_back(tmp_path: Path) -> None:
    runner = CliRunner()
    source = tmp_path / "run.json"
    packed = tmp_path / "run.xrec"
    back = tmp_path / "back.json.gz"
    assert _synth(runner, source, quiet_seed()).exit_code == 0

    result = runner.invoke(app, ["replay", "convert", str(source), str(packed)])
    assert result.exit_code == 0, result.output
    assert packed.read_bytes().startswith(MAGIC)

    verified = runner.invoke(app, ["replay", "verify", str(packed)])
    assert verified.exit_code == 0, verified.output

    result = runner.invoke(app, ["replay", "convert", str(packed), str(back)])
    assert result.exit_code == 0, result.output
    assert load_recording_file(back) == load_recording_file(source)


def test_missing_and_malformed_files(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["replay", "verify", str(tmp_path / "absent.json")])
    assert result.exit_code == 1
    assert "recording not found" in result.output

    broken = tmp_path / "broken.json"
    broken.write_text("{nope")
    result = runner.invoke(app, ["replay", "verify", str(broken)])
    assert result.exit_code == 1
    assert "cannot load" in result.output


def test_synth_rejects_bad_moves(tmp_path: Path) -> None:
    runner = CliRunner()
    result = _synth(runner, tmp_path / "x.json", 1, moves="jump@0")
    assert result.exit_code == 1
    assert "unknown action" in result.output

    result = _synth(runner, tmp_path / "x.json", 1, moves="forward")
    assert result.exit_code == 1
    assert "action@ms" in result.output

    result = _synth(runner, tmp_path / "x.json", 1, moves="forward@300,left@100")
    assert result.exit_code == 1
    assert "non-monotonic" in result.output
