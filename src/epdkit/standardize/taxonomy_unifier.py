"""Taxonomy unifier: one taxon vocabulary for a whole collection of entities.

Two steps, applied in order:

1. ``map_to_accepted`` (per entity): each raw taxon column is renamed to its
   accepted taxon. Columns that collapse onto the same accepted taxon are
   summed, since counts are additive under taxonomic lumping.
   ``map_to_higher`` does the same onto the higher-rank taxon.

2. ``unify_across`` (whole collection): builds the shared taxon axis and
   re-expresses every record over it, filling taxa an entity never recorded
   with 0.

The shared axis is the union of taxon ids in first-seen order: walk the
input list in order, and within each record walk its columns in order.
With ``include_index_taxa=True`` the remaining ids of the index, at the
same rank the records were lumped to (accepted or higher), are appended in
index order. Step 2 is the only stage that needs every
record at once; the orchestrator runs step 1 in parallel, step 2 on one
thread, then resumes parallel work.
"""

import logging
from typing import Callable, Dict, List, Literal, Sequence

import numpy as np
import pandas as pd

from epdkit.contracts import UnknownTaxonError, assert_shared_taxon_axis
from epdkit.core.record import EntityRecord, TaxonInfo
from epdkit.core.taxonomy import TaxonomyIndex

__all__ = ['map_to_accepted', 'map_to_higher', 'unify_across']

logger = logging.getLogger(__name__)


def map_to_accepted(record: EntityRecord, index: TaxonomyIndex) -> EntityRecord:
    """Rewrite taxon columns to accepted taxa, summing synonyms.

    Parameters
    ----------
    record : EntityRecord
        Record with raw (entity-specific) taxon ids
    index : TaxonomyIndex
        Session taxonomy

    Returns
    -------
    EntityRecord
        Record whose columns are accepted taxon ids

    Raises
    ------
    UnknownTaxonError
        If a column id has no entry in ``index``
    """
    return _lump_taxa(record, index, index.accepted_id)


def map_to_higher(record: EntityRecord, index: TaxonomyIndex) -> EntityRecord:
    """Rewrite taxon columns to higher-rank taxa, summing members."""
    return _lump_taxa(record, index, index.higher_id)


def _lump_taxa(record: EntityRecord, index: TaxonomyIndex,
               resolve: Callable[[int], int]) -> EntityRecord:
    """Rename columns through ``resolve`` and sum columns sharing a target."""
    members: Dict[int, List[int]] = {}
    for taxon in record.taxa:
        try:
            target = resolve(taxon.taxon_id)
        except UnknownTaxonError as e:
            raise UnknownTaxonError(e.taxon_id, entity_id=record.entity_id) from None
        members.setdefault(target, []).append(taxon.taxon_id)

    columns = {}
    for target, sources in members.items():
        # skipna=False: a NaN member makes the lumped value NaN
        columns[target] = record.counts[sources].sum(axis=1, skipna=False)

    counts = pd.DataFrame(columns, index=record.counts.index, columns=list(members), dtype=float)
    counts.columns.name = record.counts.columns.name

    by_id = {t.taxon_id: t for t in record.taxa}
    taxa = tuple(_target_info(target, by_id[sources[0]], index)
                 for target, sources in members.items())

    num_lumped = len(record.taxa) - len(members)
    if num_lumped > 0:
        logger.debug("Entity %s: %d taxa lumped into %d",
                     record.entity_id, len(record.taxa), len(members))

    return record.with_counts(counts, taxa=taxa)


def _target_info(target: int, source: TaxonInfo, index: TaxonomyIndex) -> TaxonInfo:
    """Metadata for a lumped column, from the index when it knows the target."""
    if target in index:
        info = index.info(target)
        return TaxonInfo(
            taxon_id=target,
            name=info.name,
            accepted_id=info.accepted_id,
            higher_id=info.higher_id,
            group_id=info.group_id,
        )
    return TaxonInfo(
        taxon_id=target,
        name=source.name,
        accepted_id=target,
        higher_id=source.higher_id,
        group_id=source.group_id,
    )


def unify_across(records: Sequence[EntityRecord], index: TaxonomyIndex,
                 include_index_taxa: bool = False,
                 level: Literal["accepted", "higher"] = "accepted") -> List[EntityRecord]:
    """Re-express every record over one shared taxon axis.

    Parameters
    ----------
    records : sequence of EntityRecord
        Records already mapped with ``map_to_accepted`` (or ``map_to_higher``)
    index : TaxonomyIndex
        Session taxonomy, used for metadata of appended taxa
    include_index_taxa : bool, optional
        Append ids known only to the index (default False)
    level : {"accepted", "higher"}, optional
        Rank the records were lumped to; appended index taxa use the same
        rank so the shared axis never mixes ranks

    Returns
    -------
    list of EntityRecord
        One record per input, in input order, sharing the same taxon axis.
        Missing taxa are 0 on rows holding data and NaN on all-NaN rows.
    """
    axis: Dict[int, TaxonInfo] = {}
    for rec in records:
        for taxon in rec.taxa:
            axis.setdefault(taxon.taxon_id, taxon)

    if include_index_taxa:
        if level not in ("accepted", "higher"):
            raise ValueError(f"Unknown taxonomy level: {level!r}")
        for info in index:
            target = info.accepted_id if level == "accepted" else info.higher_id
            if target not in axis:
                # the target may have no row of its own; describe it from its member
                axis[target] = _target_info(target, info, index)

    taxon_ids = list(axis)
    taxa = tuple(axis.values())
    logger.info("Unified %d entities onto %d shared taxa", len(records), len(taxon_ids))

    unified = [_expand(rec, taxon_ids, taxa) for rec in records]
    assert_shared_taxon_axis(unified)
    return unified


def _expand(record: EntityRecord, taxon_ids: List[int], taxa) -> EntityRecord:
    """Reindex columns onto the shared axis without touching sample order."""
    counts = record.counts.reindex(columns=taxon_ids, fill_value=0.0)

    empty_rows = record.counts.isna().all(axis=1).to_numpy()
    if record.counts.shape[1] > 0 and empty_rows.any():
        counts.loc[empty_rows, :] = np.nan

    counts.columns.name = record.counts.columns.name
    return record.with_counts(counts.astype(float), taxa=taxa)
