"""Core data model for EPD standardization.

- record: EntityRecord value type and its parts
- taxonomy: TaxonomyIndex lookup
- ingest: assembling records from raw data-access tables
"""

from epdkit.core.record import (
    CountsUnit,
    TaxonInfo,
    Chronology,
    ResampledFrom,
    EntityRecord,
)
from epdkit.core.taxonomy import TaxonomyIndex
from epdkit.core.ingest import RawEntityTables, EntitySource, entity_from_tables

__all__ = [
    "CountsUnit",
    "TaxonInfo",
    "Chronology",
    "ResampledFrom",
    "EntityRecord",
    "TaxonomyIndex",
    "RawEntityTables",
    "EntitySource",
    "entity_from_tables",
]
