"""Temporal resampler: put entities on a common time axis.

Two interchangeable methods replace the sample axis of a record:

- ``interpolate_counts``: linear interpolation of every taxon at target
  ages, between the two real samples bracketing each target on the default
  chronology. Targets outside the dated range are NaN rows (no
  extrapolation, never zero).
- ``intervals_counts``: mean of the real samples whose age falls in each
  closed interval ``[start, end]``. Empty intervals are NaN rows.

Samples without an age on the default chronology are ignored. The
resampled record keeps only the default chronology, re-expressed on the
target ages (interval midpoints for intervals), remembers the real sample
ages in ``resampled_from`` for the quality scorer, and drops any quality
index computed before.
"""

import logging
from dataclasses import replace
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from epdkit.core.record import Chronology, EntityRecord, ResampledFrom

__all__ = ['interpolate_counts', 'intervals_counts', 'format_age']

logger = logging.getLogger(__name__)


def format_age(age: float) -> str:
    """Age label: ``1000.0 -> "1000"``, ``1500.5 -> "1500.5"``."""
    age = float(age)
    if age.is_integer():
        return str(int(age))
    return repr(age)


def interpolate_counts(record: EntityRecord, target_ages: Sequence[float]) -> EntityRecord:
    """Linearly interpolate counts at ``target_ages``.

    Parameters
    ----------
    record : EntityRecord
        Record with a default chronology
    target_ages : sequence of float
        Ages (cal BP) of the new samples, in the order they should appear

    Returns
    -------
    EntityRecord
        Record with one sample per target age, labelled by the age.
        Fewer than 2 dated samples give NaN for every target.
    """
    targets = np.asarray(target_ages, dtype=float)
    n_taxa = record.counts.shape[1]
    values = np.full((len(targets), n_taxa), np.nan)

    samples = _dated_samples(record)
    if samples is None:
        logger.warning("Entity %s: no default chronology, interpolation yields NaN only",
                       record.entity_id)
    elif len(samples[0]) < 2:
        logger.debug("Entity %s: fewer than 2 dated samples, interpolation yields NaN only",
                     record.entity_id)
    else:
        ages, _, counts = _collapse_duplicate_ages(*samples)
        for j in range(n_taxa):
            values[:, j] = np.interp(targets, ages, counts[:, j], left=np.nan, right=np.nan)
        num_out = int(((targets < ages[0]) | (targets > ages[-1])).sum())
        logger.debug("Entity %s: interpolated %d targets (%d outside %g-%g)",
                     record.entity_id, len(targets), num_out, ages[0], ages[-1])

    labels = [format_age(a) for a in targets]
    return _resampled(record, values, labels, targets, "interpolation", samples)


def intervals_counts(record: EntityRecord, interval_starts: Sequence[float],
                     interval_ends: Sequence[float]) -> EntityRecord:
    """Average counts of the samples falling in each age interval.

    Parameters
    ----------
    record : EntityRecord
        Record with a default chronology
    interval_starts, interval_ends : sequence of float
        Closed interval bounds; equal lengths, each start <= its end

    Returns
    -------
    EntityRecord
        Record with one sample per interval, labelled ``"start-end"``

    Raises
    ------
    ValueError
        If the bound sequences differ in length or a start exceeds its end
    """
    starts = np.asarray(interval_starts, dtype=float)
    ends = np.asarray(interval_ends, dtype=float)
    if starts.shape != ends.shape:
        raise ValueError(
            f"interval_starts and interval_ends differ in length ({len(starts)} vs {len(ends)})"
        )
    if np.any(starts > ends):
        raise ValueError("Every interval start must be <= its end")

    n_taxa = record.counts.shape[1]
    values = np.full((len(starts), n_taxa), np.nan)

    samples = _dated_samples(record)
    if samples is None:
        logger.warning("Entity %s: no default chronology, intervals yield NaN only",
                       record.entity_id)
    else:
        ages, _, counts = samples
        filled = 0
        for i, (start, end) in enumerate(zip(starts, ends)):
            inside = (ages >= start) & (ages <= end)
            if inside.any():
                values[i] = counts[inside].mean(axis=0)
                filled += 1
        logger.debug("Entity %s: %d of %d intervals hold samples",
                     record.entity_id, filled, len(starts))

    labels = [f"{format_age(s)}-{format_age(e)}" for s, e in zip(starts, ends)]
    midpoints = (starts + ends) / 2.0
    return _resampled(record, values, labels, midpoints, "intervals", samples)


def _dated_samples(record: EntityRecord) -> Optional[Tuple[np.ndarray, Optional[np.ndarray], np.ndarray]]:
    """(ages, uncertainties, counts) of samples with a finite default age, sorted by age."""
    ages = record.default_ages()
    if ages is None:
        return None

    dated = np.isfinite(ages)
    order = np.argsort(ages[dated], kind="stable")
    counts = record.counts.to_numpy(dtype=float)[dated][order]

    unc = record.default_uncertainties()
    if unc is not None:
        unc = unc[dated][order]
    return ages[dated][order], unc, counts


def _collapse_duplicate_ages(ages, unc, counts):
    """Average samples sharing one age; keep the largest uncertainty."""
    uniq, inverse = np.unique(ages, return_inverse=True)
    if len(uniq) == len(ages):
        return ages, unc, counts

    sums = np.zeros((len(uniq), counts.shape[1]))
    np.add.at(sums, inverse, counts)
    means = sums / np.bincount(inverse)[:, None]

    if unc is not None:
        widest = np.full(len(uniq), -np.inf)
        np.maximum.at(widest, inverse, unc)
        unc = widest
    return uniq, unc, means


def _resampled(record: EntityRecord, values: np.ndarray, labels, target_ages: np.ndarray,
               method: str, samples) -> EntityRecord:
    """Assemble the resampled record around the new sample axis."""
    counts = pd.DataFrame(
        values,
        index=pd.Index(labels, name="sample"),
        columns=record.counts.columns.copy(),
    )

    chron_id = record.default_chronology
    if chron_id is None:
        return replace(
            record,
            counts=counts,
            depths=np.full(len(labels), np.nan),
            chronologies={},
            resampled_from=None,
            quality=None,
        )

    source = record.chronologies[chron_id]
    ages, unc, _ = _collapse_duplicate_ages(*samples) if len(samples[0]) else samples
    return replace(
        record,
        counts=counts,
        depths=np.full(len(labels), np.nan),
        chronologies={chron_id: Chronology(chron_id=chron_id, ages=target_ages, name=source.name)},
        resampled_from=ResampledFrom(method=method, chron_id=chron_id, ages=ages, uncertainties=unc),
        quality=None,
    )
