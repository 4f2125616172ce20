"""Normalizer: raw counts to per-sample percentages."""

import logging

import numpy as np

from epdkit.contracts import AlreadyNormalizedError, assert_percentages
from epdkit.core.record import CountsUnit, EntityRecord

__all__ = ['counts_to_percentages']

logger = logging.getLogger(__name__)


def counts_to_percentages(record: EntityRecord) -> EntityRecord:
    """Convert each sample to percentages of its total.

    A sample whose total is zero has no defined percentages: its whole row
    becomes NaN. A NaN anywhere in a row makes the whole row NaN.

    Raises
    ------
    AlreadyNormalizedError
        If the record is already in percentages
    """
    if record.counts_unit == CountsUnit.PERCENTAGES:
        raise AlreadyNormalizedError(record.entity_id)

    totals = record.counts.sum(axis=1, skipna=False)
    totals = totals.where(totals != 0, np.nan)
    percentages = record.counts.div(totals, axis=0) * 100.0

    num_undefined = int(totals.isna().sum())
    if num_undefined > 0:
        logger.debug("Entity %s: %d samples with zero or undefined total set to NaN",
                     record.entity_id, num_undefined)

    out = record.with_counts(percentages, counts_unit=CountsUnit.PERCENTAGES)
    assert_percentages(out)
    return out
