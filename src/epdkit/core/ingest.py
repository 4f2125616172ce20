"""Assemble entity records from raw EPD tables.

The database layer is an external collaborator: it only has to return, per
entity, the handful of long-format tables bundled in ``RawEntityTables``.
``entity_from_tables`` pivots them into an ``EntityRecord``:

- counts (sample_id, taxon_id, count) -> samples x taxa matrix, samples
  ordered by depth, taxa not counted in a sample are 0
- ages (chron_id, sample_id, age, uncertainty) -> one Chronology per
  chron_id aligned to the sample axis, NaN where a model gives no age
- when only age bounds are present, uncertainty is half their span
"""

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Protocol

import numpy as np
import pandas as pd

from epdkit.contracts import UnknownTaxonError
from epdkit.core.record import Chronology, CountsUnit, EntityRecord
from epdkit.core.taxonomy import TaxonomyIndex

__all__ = ['RawEntityTables', 'EntitySource', 'entity_from_tables']

logger = logging.getLogger(__name__)


def _empty_ages() -> pd.DataFrame:
    return pd.DataFrame(columns=["chron_id", "sample_id", "age", "uncertainty"])


@dataclass(frozen=True, eq=False)
class RawEntityTables:
    """Raw per-entity tables returned by the data-access layer.

    Attributes
    ----------
    samples : pd.DataFrame
        Columns ``sample_id, depth`` (depth in cm).
    counts : pd.DataFrame
        Columns ``sample_id, taxon_id, count``.
    taxa : pd.DataFrame
        Taxonomy rows for the counted taxa (``taxon_id, name, accepted_id,
        higher_id, group_id``).
    ages : pd.DataFrame
        Columns ``chron_id, sample_id, age`` plus either ``uncertainty`` or
        ``age_upper`` and ``age_lower``. May be empty.
    """
    entity_id: int
    longitude: float
    latitude: float
    samples: pd.DataFrame
    counts: pd.DataFrame
    taxa: pd.DataFrame
    ages: pd.DataFrame = field(default_factory=_empty_ages)
    restricted: bool = False
    chronology_names: Mapping[int, str] = field(default_factory=dict)
    default_chronology: Optional[int] = None


class EntitySource(Protocol):
    """Data-access collaborator (database, files, web service)."""

    def fetch_entity(self, entity_id: int) -> RawEntityTables:
        ...

    def fetch_taxonomy(self) -> pd.DataFrame:
        ...


def entity_from_tables(raw: RawEntityTables) -> EntityRecord:
    """Build an EntityRecord from raw tables.

    Parameters
    ----------
    raw : RawEntityTables
        Tables for one entity

    Returns
    -------
    EntityRecord
        Record in raw counts with every chronology aligned to the samples

    Raises
    ------
    UnknownTaxonError
        If a counted taxon has no metadata row in ``raw.taxa``
    """
    samples = raw.samples.sort_values("depth", kind="stable")
    sample_ids = list(samples["sample_id"])
    labels = [str(s) for s in sample_ids]

    taxa_index = TaxonomyIndex.from_frame(raw.taxa)
    counted = list(dict.fromkeys(int(t) for t in raw.counts["taxon_id"]))
    for taxon_id in counted:
        if taxon_id not in taxa_index:
            raise UnknownTaxonError(taxon_id, entity_id=raw.entity_id)

    if counted:
        matrix = raw.counts.pivot_table(
            index="sample_id", columns="taxon_id", values="count",
            aggfunc="sum", fill_value=0.0,
        )
        matrix = matrix.reindex(index=sample_ids, columns=counted, fill_value=0.0).astype(float)
    else:
        matrix = pd.DataFrame(index=sample_ids, columns=[], dtype=float)
    matrix.index = pd.Index(labels, name="sample")
    matrix.columns = pd.Index(counted, name="taxon_id")

    chronologies = _align_chronologies(raw, sample_ids)
    default = raw.default_chronology
    if default not in chronologies:
        default = min(chronologies) if chronologies else None

    logger.debug("Entity %s assembled: %d samples, %d taxa, chronologies=%s",
                 raw.entity_id, len(labels), len(counted), sorted(chronologies))

    return EntityRecord(
        entity_id=int(raw.entity_id),
        coordinates=(raw.longitude, raw.latitude),
        restricted=bool(raw.restricted),
        counts=matrix,
        taxa=tuple(taxa_index.info(t) for t in counted),
        depths=samples["depth"].to_numpy(dtype=float),
        chronologies=chronologies,
        default_chronology=default,
        counts_unit=CountsUnit.RAW_COUNTS,
    )


def _align_chronologies(raw: RawEntityTables, sample_ids) -> dict:
    """One Chronology per chron_id, aligned to sample_ids."""
    ages = raw.ages
    chronologies = {}
    if ages is None or len(ages) == 0:
        return chronologies

    if "uncertainty" in ages.columns:
        unc = pd.to_numeric(ages["uncertainty"], errors="coerce")
    elif {"age_upper", "age_lower"} <= set(ages.columns):
        unc = (pd.to_numeric(ages["age_upper"], errors="coerce")
               - pd.to_numeric(ages["age_lower"], errors="coerce")).abs() / 2.0
    else:
        unc = None

    ages = ages.assign(
        age=pd.to_numeric(ages["age"], errors="coerce"),
        uncertainty=np.nan if unc is None else unc,
    )

    for chron_id, group in ages.groupby("chron_id", sort=True):
        chron_id = int(chron_id)
        by_sample = group.drop_duplicates("sample_id").set_index("sample_id")
        aligned = by_sample.reindex(sample_ids)
        chronologies[chron_id] = Chronology(
            chron_id=chron_id,
            ages=aligned["age"].to_numpy(dtype=float),
            uncertainties=None if unc is None else aligned["uncertainty"].to_numpy(dtype=float),
            name=raw.chronology_names.get(chron_id),
        )
    return chronologies
