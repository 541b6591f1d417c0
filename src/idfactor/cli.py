# src/idfactor/cli.py
"""idfactor Command Line Interface.

Entry point for the idfactor CLI tool.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import IO, Any

import typer
from pydantic import ValidationError

from idfactor import __version__
from idfactor.contracts.enums import RecordVariant
from idfactor.contracts.errors import IdFactorError
from idfactor.core.config import FactorSettings, load_settings
from idfactor.core.schemas import schema_for
from idfactor.engine.runner import run_to_directory
from idfactor.sources.delimited import read_records

__all__ = [
    "app",
]

app = typer.Typer(
    name="idfactor",
    help="Split identity records into shuffled, unlinkable fragment stores.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"idfactor version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables (IDFACTOR_*) from a .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Returns:
        True if .env was found and loaded, False otherwise.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
        exists=False,  # existence is checked in _load_dotenv for a clearer message
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """idfactor: split identity records into shuffled, unlinkable fragment stores."""
    from idfactor.core.logging import configure_logging

    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO")

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


def _resolve_settings(settings_path: Path | None, overrides: dict[str, Any]) -> FactorSettings:
    """Build settings from IDFACTOR_* variables, an optional YAML file and CLI flags."""
    return load_settings(None if settings_path is None else settings_path.expanduser(), **overrides)


def _read_input(input_file: Path | None, config: FactorSettings) -> tuple[tuple[str, ...], ...]:
    """Read the record table from a file, or from stdin when no file is given."""
    record_length = config.schema.record_length
    if input_file is not None:
        with open(input_file, encoding=config.encoding, newline="") as f:
            return read_records(f, delimiter=config.delimiter, record_length=record_length)

    stdin: IO[str] = io.TextIOWrapper(typer.get_binary_stream("stdin"), encoding=config.encoding, newline="")
    try:
        return read_records(stdin, delimiter=config.delimiter, record_length=record_length)
    finally:
        # Leave the process's stdin open
        stdin.detach()


@app.command()
def factor(
    input_file: Path | None = typer.Argument(
        None,
        help="Delimited input file with a header row (default: read stdin).",
        show_default=False,
    ),
    compromised: bool = typer.Option(
        False,
        "--compromised",
        "-c",
        help="Use the compromised record format (breach id after the record id).",
    ),
    delimiter: str | None = typer.Option(
        None,
        "--delimiter",
        "-d",
        help="Field delimiter of the input file (default: '|').",
    ),
    output_delimiter: str | None = typer.Option(
        None,
        "--output-delimiter",
        help="Field delimiter of the fragment stores and identity map (default: '|').",
    ),
    map_file: str | None = typer.Option(
        None,
        "--map-file",
        "-m",
        help="Write an identity map to this file name in the output directory.",
    ),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory for the fragment stores (default: current directory).",
    ),
    fragments: list[str] | None = typer.Option(
        None,
        "--fragment",
        "-f",
        help="Fragment kind to produce; repeat to select several (default: all).",
    ),
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file. Flags override its values.",
    ),
) -> None:
    """Split each identity record into pieces and write them in shuffled order.

    Every fragment kind is written to <kind>_elements.psv with its own random
    row order and fresh surrogate ids. Use --map-file to also write the map
    that reassembles full records; keep that file protected.
    """
    overrides: dict[str, Any] = {
        "variant": RecordVariant.COMPROMISED if compromised else None,
        "delimiter": delimiter,
        "output_delimiter": output_delimiter,
        "map_file": map_file,
        "output_dir": output_dir,
        "fragments": fragments or None,
    }
    try:
        config = _resolve_settings(settings, overrides)
    except FileNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None

    try:
        records = _read_input(input_file, config)
        config.output_dir.mkdir(parents=True, exist_ok=True)
        outcome = run_to_directory(records, config)
    except (IdFactorError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    typer.echo(f"Factored {len(records)} records into {len(outcome.result.stores)} fragment stores:")
    for store in outcome.result.stores:
        typer.echo(f"  {store.kind}: {store.rows_written} rows ({store.rows_suppressed} suppressed)")
    if outcome.map_artifact is not None:
        typer.echo(f"Identity map: {outcome.map_artifact.path_or_uri}")


@app.command()
def kinds(
    compromised: bool = typer.Option(
        False,
        "--compromised",
        "-c",
        help="Show headers for the compromised record format.",
    ),
) -> None:
    """List fragment kinds and the columns each store is written with."""
    schema = schema_for(RecordVariant.COMPROMISED if compromised else RecordVariant.AT_RISK)
    typer.echo(f"Record fields ({schema.record_length}): {', '.join(schema.field_names)}")
    for spec in schema.fragments:
        typer.echo(f"  {spec.kind} -> {spec.filename}: {', '.join(spec.header)}")


if __name__ == "__main__":
    app()
