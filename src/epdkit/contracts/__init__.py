"""Pipeline contracts: fail-fast enforcement of stage invariants.

Contracts fail immediately and loudly when a stage does not produce its
promised invariants.

Key principle:
- Pydantic validates config correctness
- Contracts validate pipeline correctness
- EPDError subclasses report data that cannot be standardized
"""

from epdkit.contracts.failure import (
    ContractViolation,
    AlreadyNormalizedError,
    EPDError,
    EmptyResultError,
    UnknownTaxonError,
    MissingUncertaintyError,
)
from epdkit.contracts.base import require
from epdkit.contracts.record import assert_record_consistent
from epdkit.contracts.unified import assert_shared_taxon_axis, assert_percentages
from epdkit.contracts.table import assert_flat_table, FLAT_TABLE_COLUMNS

__all__ = [
    "ContractViolation",
    "AlreadyNormalizedError",
    "EPDError",
    "EmptyResultError",
    "UnknownTaxonError",
    "MissingUncertaintyError",
    "require",
    "assert_record_consistent",
    "assert_shared_taxon_axis",
    "assert_percentages",
    "assert_flat_table",
    "FLAT_TABLE_COLUMNS",
]
