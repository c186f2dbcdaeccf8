"""Entry point — wires Config → Dispatcher and exposes it as a command line tool."""
import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.logging import RichHandler

from cloud_asr.config import Config
from cloud_asr.dispatcher import Dispatcher
from cloud_asr.models import TranscriptionRequest

app = typer.Typer(add_completion=False, help="Transcribe audio with cloud speech-to-text backends.")


def _setup_logging(level: str) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    list(map(root.removeHandler, root.handlers[:]))
    root.addHandler(RichHandler(rich_tracebacks=True))


@app.command()
def transcribe(
    tool: str = typer.Argument(..., help="Tool id, e.g. openrouter_transcribe. See `cloud-asr tools`."),
    file_path: Optional[Path] = typer.Argument(None, help="Local audio file."),
    content_file: Optional[Path] = typer.Option(
        None, "--content-file", exists=True, readable=True,
        help="File holding base64-encoded audio (remote-style input).",
    ),
    file_name: Optional[str] = typer.Option(
        None, "--file-name", help="Original file name; required with --content-file."
    ),
    prompt: Optional[str] = typer.Option(None, "--prompt", help="Optional prompt to guide transcription."),
    model: Optional[str] = typer.Option(None, "--model", help="Model id or shorthand alias."),
    output_dir: Optional[Path] = typer.Option(
        None, "--output-dir", help="Directory to save the transcript as markdown."
    ),
) -> None:
    """Transcribe one audio file and print the JSON result."""
    config = Config.from_env()
    _setup_logging(config.log_level)

    request = TranscriptionRequest(
        file_path=str(file_path) if file_path else None,
        file_content=content_file.read_text().strip() if content_file else None,
        file_name=file_name,
        prompt=prompt,
        model=model,
        output_dir=str(output_dir) if output_dir else None,
    )
    result = asyncio.run(Dispatcher(config).dispatch(tool, request))

    match result.success:
        case True:
            typer.echo(json.dumps(result.data.to_dict(), indent=2, ensure_ascii=False))
        case False:
            typer.secho(result.error, fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1)


@app.command()
def tools() -> None:
    """List the available tool ids."""
    dispatcher = Dispatcher(Config())
    for tool_id in dispatcher.tool_ids:
        typer.echo(f"{tool_id}\t{dispatcher.client_for(tool_id).backend}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
