"""Flatten standardized entities into the long-format table.

The flat table (``entity_id, longitude, latitude, count, age_label, taxon``)
is the only input the plotting layer accepts. Structured records and
loosely-typed tables both reach it through an explicit conversion:

- ``table_by_taxa_age(record, ...)`` for an EntityRecord
- ``FlatTable.from_frame(df, ...)`` for an existing DataFrame

NaN counts are kept as rows: they mean "no data at this age", which the
map renders differently from a zero.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence, Union

import pandas as pd

from epdkit.contracts import FLAT_TABLE_COLUMNS, assert_flat_table
from epdkit.core.record import CountsUnit, EntityRecord

__all__ = ['FlatTable', 'table_by_taxa_age', 'combine_tables']

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class FlatTable:
    """Validated long-format table plus the unit of its counts."""
    frame: pd.DataFrame
    counts_unit: CountsUnit = CountsUnit.RAW_COUNTS

    def __post_init__(self):
        object.__setattr__(self, "counts_unit", CountsUnit(self.counts_unit))
        assert_flat_table(self.frame)

    @classmethod
    def from_frame(cls, df: pd.DataFrame, counts_unit=CountsUnit.RAW_COUNTS) -> "FlatTable":
        """Wrap a DataFrame holding the flat table columns in any order."""
        if set(df.columns) == set(FLAT_TABLE_COLUMNS):
            df = df[list(FLAT_TABLE_COLUMNS)]
        return cls(df.reset_index(drop=True), counts_unit)

    @classmethod
    def empty(cls, counts_unit=CountsUnit.RAW_COUNTS) -> "FlatTable":
        return cls(pd.DataFrame(columns=list(FLAT_TABLE_COLUMNS)), counts_unit)

    def __len__(self) -> int:
        return len(self.frame)


def table_by_taxa_age(record: EntityRecord, taxa: Union[str, Iterable[str]],
                      age_labels: Union[str, Iterable[str]],
                      separator: str = "+") -> FlatTable:
    """Counts of the requested taxa at the requested ages, one row per sample.

    Parameters
    ----------
    record : EntityRecord
        Standardized entity
    taxa : str or iterable of str
        Taxon names. Several names present in the record are summed into a
        single ``taxon`` label, ``separator.join(names)``. Sets are sorted
        first so the label is stable.
    age_labels : str or iterable of str
        Sample labels to keep (e.g. ``"1000"`` or ``"5500-6500"``)
    separator : str, optional
        Joins names of a combined taxon label (default ``"+"``)

    Returns
    -------
    FlatTable
        Rows for the labels present in the record, in sample order. Empty
        when none of the taxa or labels is present.
    """
    requested = _as_list(taxa)
    labels = {str(label) for label in _as_list(age_labels)}

    names = set(record.taxon_names)
    present = [n for n in requested if n in names]
    rows = record.counts.index.isin(labels)

    if not present or not rows.any():
        logger.debug("Entity %s: no rows for taxa=%s, labels=%s",
                     record.entity_id, requested, sorted(labels))
        return FlatTable.empty(record.counts_unit)

    wanted = set(present)
    cols = [i for i, t in enumerate(record.taxa) if t.name in wanted]
    # skipna=False: a NaN member keeps the combined count undefined
    values = record.counts.iloc[rows, cols].sum(axis=1, skipna=False)
    taxon_label = present[0] if len(present) == 1 else separator.join(present)

    frame = pd.DataFrame({
        "entity_id": record.entity_id,
        "longitude": record.longitude,
        "latitude": record.latitude,
        "count": values.to_numpy(dtype=float),
        "age_label": [str(label) for label in values.index],
        "taxon": taxon_label,
    }, columns=list(FLAT_TABLE_COLUMNS))

    return FlatTable(frame, record.counts_unit)


def combine_tables(tables: Sequence[FlatTable]) -> FlatTable:
    """Concatenate flat tables row-wise, preserving input order.

    Raises
    ------
    ValueError
        If the tables mix raw counts and percentages
    """
    tables = list(tables)
    if not tables:
        return FlatTable.empty()

    units = {t.counts_unit for t in tables}
    if len(units) > 1:
        raise ValueError(f"Cannot combine tables with different count units: "
                         f"{sorted(u.value for u in units)}")

    frames = [t.frame for t in tables if len(t.frame) > 0]
    if not frames:
        return FlatTable.empty(units.pop())

    combined = pd.concat(frames, ignore_index=True)
    logger.debug("Combined %d tables into %d rows", len(tables), len(combined))
    return FlatTable(combined, units.pop())


def _as_list(values) -> list:
    if isinstance(values, str):
        return [values]
    if isinstance(values, (set, frozenset)):
        return sorted(values)
    return list(dict.fromkeys(values))
