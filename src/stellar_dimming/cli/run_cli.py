"""`sdim` command group: run a dimming detectability comparison."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError

from stellar_dimming.cli.common_cli import (
    EXIT_CONFIGURATION_ERROR,
    EXIT_INPUT_ERROR,
    EXIT_RUNTIME_ERROR,
    DimmingCliError,
    configure_logging,
    output_path_or_stdout,
    write_json_payload,
)
from stellar_dimming.compute.lines import DEFAULT_LINE_CENTERS
from stellar_dimming.data_sources.arrays import ConstantAttenuator
from stellar_dimming.data_sources.npz import NpzDataSource, load_attenuation_table
from stellar_dimming.errors import ConfigurationError, DimmingError
from stellar_dimming.pipeline.config import DimmingConfig, load_config
from stellar_dimming.pipeline.orchestrator import compare_instruments

RUN_SCHEMA_VERSION = "cli.run.v1"


def _build_config(config_path: Path | None, overrides: dict[str, Any]) -> DimmingConfig:
    try:
        if config_path is not None:
            return load_config(config_path, **overrides)
        return DimmingConfig.model_validate({k: v for k, v in overrides.items() if v is not None})
    except ValidationError as exc:
        raise DimmingCliError(f"Invalid configuration: {exc}", exit_code=EXIT_INPUT_ERROR) from exc
    except ConfigurationError as exc:
        raise DimmingCliError(str(exc), exit_code=EXIT_INPUT_ERROR) from exc


@click.group()
@click.version_option(package_name="stellar-dimming")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-vv for debug).")
@click.option("-q", "--quiet", is_flag=True, default=False, help="Only log errors.")
def cli(verbose: int, quiet: bool) -> None:
    """stellar-dimming CLI for coronal dimming detectability."""
    configure_logging(verbose, quiet)


@cli.command("run")
@click.option(
    "--data-dir",
    required=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory with spectrum.npz and instrument_<name>.npz archives.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON file with DimmingConfig fields.",
)
@click.option(
    "--attenuation-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="attenuation.npz table; without it no interstellar absorption is applied.",
)
@click.option(
    "--instrument",
    "instruments",
    multiple=True,
    help="Instrument name to include (repeatable). Defaults to all in --data-dir.",
)
@click.option("--distance-pc", type=float, default=None, help="Target distance in parsecs.")
@click.option("--column-density", type=float, default=None, help="Column density in cm^-2.")
@click.option("--exposure-time-sec", type=float, default=None, help="Exposure length in seconds.")
@click.option("--num-lines", "num_lines_to_combine", type=int, default=None, help="Lines per group.")
@click.option("--max-workers", type=int, default=None, help="Worker threads.")
@click.option("--out", "output_path_arg", type=str, default=None, help="Output JSON path or '-'.")
def run_command(
    data_dir: Path,
    config_path: Path | None,
    attenuation_file: Path | None,
    instruments: tuple[str, ...],
    distance_pc: float | None,
    column_density: float | None,
    exposure_time_sec: float | None,
    num_lines_to_combine: int | None,
    max_workers: int | None,
    output_path_arg: str | None,
) -> None:
    """Compare dimming detectability across instruments."""
    config = _build_config(
        config_path,
        {
            "distance_pc": distance_pc,
            "column_density": column_density,
            "exposure_time_sec": exposure_time_sec,
            "num_lines_to_combine": num_lines_to_combine,
            "max_workers": max_workers,
        },
    )
    out_path = output_path_or_stdout(output_path_arg)

    try:
        attenuator = (
            load_attenuation_table(attenuation_file)
            if attenuation_file is not None
            else ConstantAttenuator()
        )
        source = NpzDataSource(data_dir, instruments=list(instruments) or None)
        comparison = compare_instruments(source, attenuator, config)
    except ConfigurationError as exc:
        raise DimmingCliError(str(exc), exit_code=EXIT_CONFIGURATION_ERROR) from exc
    except DimmingError as exc:
        raise DimmingCliError(str(exc), exit_code=EXIT_RUNTIME_ERROR) from exc

    payload = {
        "schema_version": RUN_SCHEMA_VERSION,
        "comparison": comparison.model_dump(mode="json"),
        "ranking": [
            {"name": r.name, "significance_sigma": r.significance_sigma}
            for r in comparison.ranked()
        ],
    }
    write_json_payload(payload, out_path)


@cli.command("lines")
def lines_command() -> None:
    """Print the default candidate emission-line centers."""
    for center in DEFAULT_LINE_CENTERS:
        click.echo(f"{center:.1f}")


def main() -> int:
    """Main entry point for the CLI."""
    try:
        cli(standalone_mode=False)
        return 0
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
