"""
Numeric values with propagated uncertainty and physical units.

Combines two value types that can be nested (a ``DimVar`` whose magnitude is a
``UC``) so that unit checking and first-order error propagation happen
together.

Modules:
    - uncertainty: ``UC`` values with correlation tracking and a provenance
      ledger of contributing variables.
    - dimvar: ``DimVar`` values with unit checking and conversion.
    - units: Unit table, unit-string parser and canonical unit formatting.
    - umath: Elementary functions for ``UC``, ``DimVar`` and plain numbers.
    - stats: Line fits, projections and significant-figure formatting.
    - reporting: pandas tables of uncertainty budgets and summaries.
    - plotting: Error-bar plots of uncertain quantities.
"""

__version__ = "1.0.0"

from .dimvar import DimVar
from .errors import (
    InvalidExponentError,
    MalformedUnitError,
    NonDimensionlessExponentError,
    ShapeMismatchError,
    UnitMismatchError,
    UnknownUnitError,
)
from .reporting import contribution_table, summary_frame
from .stats import (
    LinearProjection,
    format_value_with_uncertainty,
    linear_projection,
    linear_regression,
    project_uncertain,
)
from .uncertainty import UC, seed_identities
from .units import DEFAULT_UNITS, UnitTable, UnitTableEntry, format_unit, parse_unit

__all__ = [
    # Value types
    "UC",
    "DimVar",
    "seed_identities",
    # Units
    "DEFAULT_UNITS",
    "UnitTable",
    "UnitTableEntry",
    "format_unit",
    "parse_unit",
    # Fits and formatting
    "LinearProjection",
    "linear_projection",
    "linear_regression",
    "project_uncertain",
    "format_value_with_uncertainty",
    # Reporting
    "contribution_table",
    "summary_frame",
    # Errors
    "InvalidExponentError",
    "MalformedUnitError",
    "NonDimensionlessExponentError",
    "ShapeMismatchError",
    "UnitMismatchError",
    "UnknownUnitError",
]
