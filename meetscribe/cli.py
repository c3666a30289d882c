"""
meetscribe.cli - Typer CLI entry point.

Provides subcommands to configure, transcribe, inspect transcripts and
resolve the segment playing at a given time.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from meetscribe import __version__
from meetscribe.config import CONFIG_FILENAME, create_default_config, load_config, write_config
from meetscribe.exceptions import MeetscribeError
from meetscribe.formatting import get_formatter
from meetscribe.io import default_result_path, read_result, write_result, write_text
from meetscribe.logging import configure_logging
from meetscribe.utils import format_duration, format_timestamp

app = typer.Typer(
    name="meetscribe",
    help="Meeting transcription with local Whisper or a remote provider.\n\n"
    "Transcribes recordings into timestamped segments and keeps transcript "
    "highlighting in sync with playback.",
    add_completion=False,
)
console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"meetscribe {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Meetscribe - meeting transcription toolkit."""
    configure_logging(verbose)


@app.command("init")
def init_config(
    mode: str = typer.Option("local", "--mode", "-m", help="Default mode: local or remote"),
    path: str = typer.Option(".", "--path", "-d", help="Directory to write the config in"),
) -> None:
    """Write a default meetscribe.yaml."""
    config_path = Path(path) / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[red]Error: '{config_path}' already exists[/red]")
        raise typer.Exit(1)
    if mode not in ("local", "remote"):
        console.print(f"[red]Error: Invalid mode '{mode}'[/red]")
        raise typer.Exit(1)

    write_config(create_default_config(mode), config_path)
    console.print(f"[green]✓[/green] Created {config_path}")
    if mode == "remote":
        console.print("[dim]  Set api_key in the file or export ASSEMBLYAI_API_KEY[/dim]")


@app.command("transcribe")
def transcribe(
    audio: Path = typer.Argument(..., help="Audio file to transcribe"),
    mode: str | None = typer.Option(None, "--mode", "-m", help="local or remote"),
    api_key: str | None = typer.Option(None, "--api-key", help="Remote provider API key"),
    speakers: bool | None = typer.Option(
        None, "--speakers/--no-speakers", help="Label speakers (remote mode)"
    ),
    language: str | None = typer.Option(None, "--language", "-l", help="Language code"),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output file (JSON defaults to <audio>.json)"
    ),
    fmt: str = typer.Option("json", "--format", "-f", help="json, txt, srt or md"),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Transcribe an audio file."""
    from meetscribe.transcribe.dispatcher import TranscriptionDispatcher

    try:
        config = load_config(config_file)
    except (FileNotFoundError, MeetscribeError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if language:
        config = config.model_copy(update={"language": language})

    dispatcher = TranscriptionDispatcher.from_config(config)
    if mode is not None or api_key is not None:
        try:
            dispatcher.switch_mode(mode or config.mode, api_key or config.api_key)
        except MeetscribeError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)
    if speakers is not None:
        dispatcher.set_speaker_diarization(speakers)

    console.print(f"[cyan]Transcribing {audio.name} ({dispatcher.mode.value} mode)...[/cyan]")
    try:
        result = asyncio.run(dispatcher.transcribe_file(audio))
    except MeetscribeError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if fmt == "json":
        output = output or default_result_path(audio)
        write_result(output, result)
    else:
        try:
            rendered = get_formatter(fmt)(result)
        except ValueError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)
        if output:
            write_text(output, rendered)
        else:
            console.print(rendered, markup=False, highlight=False)

    summary = f"{len(result.segments)} segment(s), {len(result.full_text)} characters"
    if result.segments:
        summary += f", {format_duration(result.segments[-1].end)} of audio"
    console.print(f"\n[green]✓[/green] Transcribed {summary}")
    if output:
        console.print(f"[dim]  {output}[/dim]")


@app.command("segments")
def show_segments(
    result_file: Path = typer.Argument(..., help="Saved transcription result (JSON)"),
) -> None:
    """Show a saved transcript's segments with timestamps."""
    try:
        result = read_result(result_file)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error reading {result_file}: {e}[/red]")
        raise typer.Exit(1)

    if not result.segments:
        console.print("[yellow]No segments available.[/yellow]")
        if result.full_text:
            console.print(result.full_text, markup=False)
        raise typer.Exit(0)

    table = Table(title="Transcription Segments")
    table.add_column("#", style="dim")
    table.add_column("Start", style="cyan")
    table.add_column("End", style="cyan")
    table.add_column("Length", style="green")
    table.add_column("Text")

    for i, seg in enumerate(result.segments, start=1):
        table.add_row(
            str(i),
            format_timestamp(seg.start),
            format_timestamp(seg.end),
            f"{seg.duration:.1f}s",
            seg.text,
        )

    console.print(table)
    console.print(
        f"\n{len(result.segments)} segments, "
        f"{format_timestamp(result.segments[-1].end)} total"
    )


@app.command("locate")
def locate(
    result_file: Path = typer.Argument(..., help="Saved transcription result (JSON)"),
    time: float = typer.Argument(..., help="Playback position in seconds"),
    tolerance: float | None = typer.Option(
        None, "--tolerance", "-t", help="Match tolerance in seconds"
    ),
) -> None:
    """Show which segment is highlighted at a playback position."""
    from meetscribe.playback.controller import PlaybackController

    try:
        result = read_result(result_file)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error reading {result_file}: {e}[/red]")
        raise typer.Exit(1)

    if tolerance is None:
        try:
            tolerance = load_config().sync_tolerance
        except MeetscribeError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)

    controller = PlaybackController(tolerance=tolerance)
    controller.load(result_file, result.segments)
    segment = controller.seek(time)

    if segment is None:
        console.print("[yellow]Transcript has no segments.[/yellow]")
        raise typer.Exit(1)

    console.print(
        f"[cyan]{segment.segment_id}[/cyan] "
        f"[dim]{format_timestamp(segment.start)} - {format_timestamp(segment.end)}[/dim]"
    )
    console.print(segment.text, markup=False)
