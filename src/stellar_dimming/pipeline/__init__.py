"""Orchestration of the dimming detectability pipeline."""

from stellar_dimming.pipeline.config import DimmingConfig, load_config
from stellar_dimming.pipeline.orchestrator import (
    DimmingPipeline,
    compare_instruments,
    run_instrument,
)

__all__ = [
    "DimmingConfig",
    "load_config",
    "DimmingPipeline",
    "compare_instruments",
    "run_instrument",
]
