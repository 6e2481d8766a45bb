"""TidyGround

A small library for tidying up messy tabular data,
built for learning and teaching purposes.

Real world datasets rarely arrive in a shape that is ready
for analysis: numbers are stored as text with thousands separators,
dates have month names in various languages, missing values are
encoded as ``9999``, the same entity is spread across multiple
files and measures are laid out in columns instead of rows.

The library is constituted by multiple components, each isolated within its own
module and each self documented in literate programming style.

The primary components are:

* The Table, an immutable set of named columns stored as Apache Arrow arrays.
* The Compute operations, that coerce types, clean, join, filter, select and reshape tables.
* The Expression language, to write predicates and derived columns as text.
* The Pipeline, that composes operations into named sequences of stages.

For the user guide and code documentation of each component, refer to the
component itself.
"""

from . import compute, errors, io, pipeline, table
from .pipeline import Pipeline, Stage, compose
from .table import ColumnType, Table

__all__ = (
    "compute",
    "errors",
    "io",
    "pipeline",
    "table",
    "Table",
    "ColumnType",
    "Pipeline",
    "Stage",
    "compose",
)
