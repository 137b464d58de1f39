"""Command-line interface for Ludwig.

Provides commands for:
- transcribe: Convert audio to a transcription (MIDI and/or JSON)
- info: Show audio file information with the estimated key and tempo
- active: Show which notes sound at given playback times
"""

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from .core import InvalidInput, LudwigError, Transcription, TranscriptionConfig
from .core.logging import setup_logging

app = typer.Typer(
    name="ludwig",
    help="Audio to Sheet Music Transcription",
    rich_markup_mode="markdown",
)
console = Console()


@dataclass
class StageTimings:
    """Track timing of processing stages."""

    stages: Dict[str, float] = field(default_factory=dict)
    _current_stage: Optional[str] = field(default=None, repr=False)
    _start_time: float = field(default=0.0, repr=False)

    def start(self, stage: str) -> None:
        """Start timing a stage."""
        self._current_stage = stage
        self._start_time = time.perf_counter()

    def stop(self) -> float:
        """Stop timing the current stage, return duration."""
        if self._current_stage is None:
            return 0.0
        duration = time.perf_counter() - self._start_time
        self.stages[self._current_stage] = duration
        self._current_stage = None
        return duration

    @property
    def total_time(self) -> float:
        """Get total time across all stages."""
        return sum(self.stages.values())

    def print_summary(self) -> None:
        """Print timing summary to console."""
        console.print("\n[bold]Timing Summary:[/bold]")
        for stage, duration in self.stages.items():
            console.print(f"  {stage}: {duration:.2f}s")
        console.print(f"  [bold]Total: {self.total_time:.2f}s[/bold]")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "stages": self.stages,
            "total_time": self.total_time,
        }


def _load_config(config_file: Optional[Path], workers: int) -> TranscriptionConfig:
    data: Dict[str, Any] = {}
    if config_file is not None:
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_file}")
        data = json.loads(config_file.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise InvalidInput(f"Config file must hold a JSON object: {config_file}")
    if workers > 0:
        data["workers"] = workers
    return TranscriptionConfig.from_dict(data)


def _run_transcription(
    input_file: Path,
    config: TranscriptionConfig,
    timings: Optional[StageTimings] = None,
) -> Transcription:
    from .input import AudioLoader
    from .transcription import LudwigTranscriber

    timings = timings or StageTimings()

    timings.start("load")
    audio, sr = AudioLoader().load(str(input_file))
    timings.stop()

    timings.start("transcribe")
    result = LudwigTranscriber(config).transcribe(audio, sr)
    timings.stop()
    return result


def _fail(message: str) -> None:
    console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(1)


@app.command()
def transcribe(
    input_file: Path = typer.Argument(..., help="Input audio file (WAV, MP3, FLAC, ...)"),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Output MIDI file path"
    ),
    json_file: Optional[Path] = typer.Option(
        None, "--save-json", help="Also write the transcription as JSON"
    ),
    config_file: Optional[Path] = typer.Option(
        None, "-c", "--config", help="JSON file with pipeline settings"
    ),
    workers: int = typer.Option(
        0, "-w", "--workers", help="Frame-analysis threads (0 = from config)"
    ),
    verbose: bool = typer.Option(
        False, "-v", "--verbose", help="Verbose output"
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Print the transcription as JSON (for scripting)"
    ),
):
    """Transcribe an audio file into notes, key, tempo and meter.

    **Examples:**

        ludwig transcribe song.wav

        ludwig transcribe song.mp3 -o song.mid --save-json song.json

        ludwig transcribe song.flac --json
    """
    from .output import JSONExporter, MIDIExporter

    if verbose:
        setup_logging("DEBUG", console=console)

    if not input_file.exists():
        _fail(f"File not found: {input_file}")

    if output is None:
        output = input_file.with_suffix(".mid")

    timings = StageTimings()
    try:
        config = _load_config(config_file, workers)
        if not json_output:
            console.print(f"[blue]Transcribing:[/blue] {input_file}")
        result = _run_transcription(input_file, config, timings)

        timings.start("export")
        MIDIExporter().export(result, str(output))
        if json_file is not None:
            JSONExporter().export(result, str(json_file))
        timings.stop()
    except (LudwigError, FileNotFoundError, json.JSONDecodeError) as e:
        _fail(str(e))

    if json_output:
        console.print_json(data=result.to_dict())
        return

    _show_summary(result)
    console.print(f"[blue]MIDI written to:[/blue] {output}")
    if json_file is not None:
        console.print(f"[blue]JSON written to:[/blue] {json_file}")

    if verbose:
        if result.notes:
            _show_notes_table(result.notes)
        timings.print_summary()

    console.print("[green]Transcription complete![/green]")


@app.command()
def info(
    input_file: Path = typer.Argument(..., help="Input audio file"),
):
    """Show information about an audio file."""
    from .input import AudioLoader
    from .transcription import LudwigTranscriber

    if not input_file.exists():
        _fail(f"File not found: {input_file}")

    try:
        loader = AudioLoader()
        audio, sr = loader.load(str(input_file))
        result = LudwigTranscriber().transcribe(audio, sr)
    except LudwigError as e:
        _fail(str(e))

    console.print(f"\n[bold]Audio Info:[/bold] {input_file.name}")
    console.print(f"  Duration: {loader.get_duration(audio, sr):.2f} seconds")
    console.print(f"  Sample rate: {sr} Hz")
    console.print(f"  Samples: {len(audio):,}")
    console.print(
        f"  Estimated tempo: {result.tempo:.1f} BPM "
        f"(confidence: {result.tempo_confidence:.2f})"
    )
    console.print(
        f"  Estimated key: {result.key_name} (confidence: {result.key_confidence:.2f})"
    )
    console.print(f"  Time signature: {result.time_signature_name}")
    console.print(f"  Difficulty: {result.difficulty}")


@app.command()
def active(
    source: Path = typer.Argument(..., help="Audio file or a JSON transcription"),
    at: List[float] = typer.Option(
        ..., "--at", "-t", help="Playback time in seconds (repeatable)"
    ),
):
    """Show the notes sounding at the given playback times.

    **Examples:**

        ludwig active song.json --at 1.5 --at 3

        ludwig active song.wav -t 0.25
    """
    from .output import JSONExporter
    from .playback import PlaybackSynchronizer

    if not source.exists():
        _fail(f"File not found: {source}")

    try:
        if source.suffix.lower() == ".json":
            result = JSONExporter().load(str(source))
        else:
            result = _run_transcription(source, TranscriptionConfig())
        synchronizer = PlaybackSynchronizer(result)
    except LudwigError as e:
        _fail(str(e))

    table = Table(title="Active Notes")
    table.add_column("Time (s)", style="green")
    table.add_column("Notes", style="cyan")

    for t in at:
        notes = synchronizer.active_notes_at(t)
        names = ", ".join(n.pitch_name for n in notes) if notes else "-"
        table.add_row(f"{t:.3f}", names)

    console.print(table)


def _show_summary(result: Transcription) -> None:
    """Display the global fields of a transcription."""
    table = Table(title="Transcription")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Key", result.key_name)
    table.add_row("Tempo", f"{result.tempo:.1f} BPM")
    table.add_row("Time signature", result.time_signature_name)
    table.add_row("Difficulty", result.difficulty)
    table.add_row("Notes", str(len(result.notes)))
    table.add_row("Duration", f"{result.duration:.2f}s")

    console.print(table)


def _show_notes_table(notes):
    """Display notes in a table."""
    table = Table(title="Detected Notes")
    table.add_column("Pitch", style="cyan")
    table.add_column("Start (s)", style="green")
    table.add_column("Duration (s)", style="yellow")
    table.add_column("Velocity", style="magenta")

    for note in notes:
        table.add_row(
            note.pitch_name,
            f"{note.start:.3f}",
            f"{note.duration:.3f}",
            str(note.velocity),
        )

    console.print(table)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
