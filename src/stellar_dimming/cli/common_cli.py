"""Shared helpers for click-based `sdim` commands."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import click

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INPUT_ERROR = 1
EXIT_RUNTIME_ERROR = 2
EXIT_CONFIGURATION_ERROR = 3


class DimmingCliError(click.ClickException):
    """Click exception with explicit exit-code control."""

    def __init__(self, message: str, *, exit_code: int = EXIT_INPUT_ERROR) -> None:
        super().__init__(message)
        self.exit_code = int(exit_code)


def configure_logging(verbose: int, quiet: bool) -> None:
    """Map -v/-q flags onto the root logging level."""
    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def write_json_payload(payload: dict[str, Any], out_path: Path | None) -> None:
    """Emit ``payload`` as indented JSON on stdout, or write it to ``out_path``."""
    text = json.dumps(payload, sort_keys=True, indent=2)
    if out_path is None:
        click.echo(text)
        return
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(f"{text}\n", encoding="utf-8")
    logger.info("Wrote %s", out_path)


def output_path_or_stdout(output_arg: str | None) -> Path | None:
    """``None``, blank or '-' select stdout; anything else is a file path (``~`` expanded)."""
    if output_arg is None or output_arg.strip() in ("", "-"):
        return None
    return Path(output_arg.strip()).expanduser()
