from __future__ import annotations

import logging
from pathlib import Path

import typer

from .replay import packed
from .replay.codec import (
    RecordingCodecError,
    digest,
    dump_recording_file,
    load_recording_file,
    make_recording,
    stats,
    validation_errors,
)
from .replay.runner import ReplayTimelineError, replay_inputs
from .replay.types import InputEvent, Recording
from .replay.verify import verify_recording
from .rules import DEFAULT_RULES
from .sim.fingerprint import fingerprint_board
from .sim.input import parse_action
from .sim.session import CrossingSession
from .world import Board, Lane

app = typer.Typer(add_completion=False)
replay_app = typer.Typer(add_completion=False)
app.add_typer(replay_app, name="replay")

PACKED_SUFFIX = ".xrec"


@app.callback()
def cmd_root(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="enable debug logging"),
) -> None:
    """Deterministic lane-crossing simulation and replay verification."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_any(path: Path) -> Recording:
    path = Path(path)
    if not path.is_file():
        typer.echo(f"recording not found: {path}", err=True)
        raise typer.Exit(code=1)
    try:
        if path.suffix == PACKED_SUFFIX:
            return packed.load(path)
        return load_recording_file(path)
    except (RecordingCodecError, packed.PackedRecordingError) as exc:
        typer.echo(f"cannot load {path}: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _write_any(path: Path, recording: Recording) -> None:
    path = Path(path)
    if path.suffix == PACKED_SUFFIX:
        try:
            packed.dump(recording, path)
        except packed.PackedRecordingError as exc:
            typer.echo(f"cannot pack {path}: {exc}", err=True)
            raise typer.Exit(code=1) from exc
        return
    dump_recording_file(path, recording)


def _parse_moves(spec: str) -> list[InputEvent]:
    events: list[InputEvent] = []
    for raw in spec.split(","):
        item = raw.strip()
        if not item:
            continue
        name, sep, offset = item.partition("@")
        if not sep:
            raise ValueError(f"move {item!r} must look like action@ms")
        action = parse_action(name.strip())
        events.append(InputEvent(timestamp=int(offset), action=action.value))
    return events


def _format_lane(lane: Lane) -> str:
    text = f"{lane.index:4d}  {lane.kind.value:6s}"
    if lane.is_traffic:
        direction = "<-" if lane.moving_left else "->"
        slots = ",".join(str(hazard.slot) for hazard in lane.hazards)
        text += f"  dir={direction} speed={lane.speed:g} slots=[{slots}]"
    elif lane.blocked_columns:
        blocked = ",".join(str(column) for column in sorted(lane.blocked_columns))
        text += f"  blocked=[{blocked}]"
    return text


@app.command("rows")
def cmd_rows(
    seed: int = typer.Option(..., help="generator seed"),
    count: int = typer.Option(12, min=1, help="number of rows to print"),
) -> None:
    """Print the generated row layout for a seed."""
    board = Board.from_seed(seed, DEFAULT_RULES)
    for lane in board.rows(count):
        typer.echo(_format_lane(lane))
    typer.echo(f"layout_hash={fingerprint_board(board):016x}")


@replay_app.command("info")
def cmd_replay_info(
    recording_file: Path = typer.Argument(..., help="recording path (.json, .json.gz or .xrec)"),
) -> None:
    """Print digest, input statistics and validation problems."""
    recording = _load_any(recording_file)
    summary = stats(recording)
    typer.echo(f"seed={recording.seed} version={recording.version}")
    typer.echo(
        f"final_score={recording.final_score} duration_ms={recording.duration} digest={digest(recording)}"
    )
    typer.echo(
        f"inputs={summary.total_inputs} forward={summary.forward_moves} backward={summary.backward_moves} "
        f"left={summary.left_moves} right={summary.right_moves} "
        f"mean_interval_ms={summary.average_input_interval:.1f}"
    )
    errors = validation_errors(recording)
    if errors:
        for error in errors:
            typer.echo(f"invalid: {error}")
    else:
        typer.echo("valid")


@replay_app.command("verify")
def cmd_replay_verify(
    recording_file: Path = typer.Argument(..., help="recording path (.json, .json.gz or .xrec)"),
) -> None:
    """Re-run a recording and check its claimed final score."""
    recording = _load_any(recording_file)
    result = verify_recording(recording)
    if not result.is_valid:
        reason = result.mismatch_reason.value if result.mismatch_reason is not None else "unknown"
        typer.echo(f"replay rejected: {reason}: {result.detail}", err=True)
        raise typer.Exit(code=1)
    run = result.run
    assert run is not None
    typer.echo(
        f"ok: score={run.score} max_lane={run.max_lane} terminated={run.terminated} "
        f"ticks={run.ticks} state_hash={run.state_hash}"
    )


@replay_app.command("synth")
def cmd_replay_synth(
    output: Path = typer.Argument(..., help="output path (.json, .json.gz or .xrec)"),
    seed: int = typer.Option(..., help="generator seed"),
    moves: str = typer.Option("", help="comma separated action@ms list, e.g. forward@0,left@250"),
) -> None:
    """Simulate a move list and write a recording claiming the simulated score."""
    try:
        events = _parse_moves(moves)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    session = CrossingSession.build(seed, rules=DEFAULT_RULES)
    try:
        result = replay_inputs(session, events)
    except ReplayTimelineError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    recording = make_recording(
        seed=session.seed,
        inputs=events,
        final_score=result.score,
        duration=result.elapsed_ms,
    )
    _write_any(output, recording)
    typer.echo(f"wrote {output} score={result.score} terminated={result.terminated}")


@replay_app.command("convert")
def cmd_replay_convert(
    source: Path = typer.Argument(..., help="input recording"),
    destination: Path = typer.Argument(..., help="output recording; format follows the suffix"),
) -> None:
    """Convert between JSON and packed recording files."""
    recording = _load_any(source)
    _write_any(destination, recording)
    typer.echo(f"wrote {destination}")


def main(argv: list[str] | None = None) -> None:
    app(prog_name="crossy", args=argv)


if __name__ == "__main__":
    main()
