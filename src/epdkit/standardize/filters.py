"""Filter stage: drop taxa outside the requested groups, drop unusable entities.

``filter_by_taxon_groups`` validates (it raises when nothing survives);
the list-level filters only classify and drop, and never raise.
"""

import logging
from typing import Iterable, List, Sequence

import numpy as np

from epdkit.contracts import EmptyResultError
from epdkit.core.record import EntityRecord

__all__ = [
    'filter_by_taxon_groups',
    'is_restricted',
    'remove_restricted',
    'has_usable_ages',
    'remove_without_ages',
]

logger = logging.getLogger(__name__)


def filter_by_taxon_groups(record: EntityRecord, groups: Iterable[str]) -> EntityRecord:
    """Keep only taxa whose group code is in ``groups``.

    Parameters
    ----------
    record : EntityRecord
        Record to filter
    groups : iterable of str
        Taxon group codes to keep (e.g. ``{"TRSH", "HERB"}``)

    Returns
    -------
    EntityRecord
        New record with the other columns removed

    Raises
    ------
    EmptyResultError
        If no taxon of the record belongs to ``groups``
    """
    groups = set(groups)
    keep = [i for i, t in enumerate(record.taxa) if t.group_id in groups]

    if not keep:
        raise EmptyResultError(
            f"Entity {record.entity_id}: no taxa in groups {sorted(groups)} "
            f"(record has {sorted({t.group_id for t in record.taxa})})"
        )

    num_removed = len(record.taxa) - len(keep)
    if num_removed > 0:
        logger.debug("Entity %s: removed %d taxa outside %s",
                     record.entity_id, num_removed, sorted(groups))

    return record.with_counts(
        record.counts.iloc[:, keep].copy(),
        taxa=tuple(record.taxa[i] for i in keep),
    )


def is_restricted(record: EntityRecord) -> bool:
    return record.restricted


def remove_restricted(records: Sequence[EntityRecord]) -> List[EntityRecord]:
    """Drop restricted-use records, keeping the order of the rest."""
    kept = [r for r in records if not is_restricted(r)]
    if len(kept) < len(records):
        logger.info("Removed %d restricted entities", len(records) - len(kept))
    return kept


def has_usable_ages(record: EntityRecord) -> bool:
    """True if the default chronology exists and gives at least one age."""
    if not record.chronologies or record.default_chronology is None:
        return False
    chron = record.chronologies.get(record.default_chronology)
    return chron is not None and bool(np.isfinite(chron.ages).any())


def remove_without_ages(records: Sequence[EntityRecord]) -> List[EntityRecord]:
    """Drop records without usable ages, keeping the order of the rest."""
    kept = [r for r in records if has_usable_ages(r)]
    if len(kept) < len(records):
        logger.info("Removed %d entities without usable ages", len(records) - len(kept))
    return kept
