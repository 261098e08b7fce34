"""Collaborators that feed and consume the dimming pipeline."""

from stellar_dimming.data_sources.arrays import (
    ConstantAttenuator,
    InMemoryDataSource,
    TabulatedAttenuator,
)
from stellar_dimming.data_sources.contracts import Attenuator, DataSource, Visualizer
from stellar_dimming.data_sources.npz import (
    NpzDataSource,
    load_attenuation_table,
    write_npz_dataset,
)

__all__ = [
    "DataSource",
    "Attenuator",
    "Visualizer",
    "InMemoryDataSource",
    "ConstantAttenuator",
    "TabulatedAttenuator",
    "NpzDataSource",
    "load_attenuation_table",
    "write_npz_dataset",
]
