"""Quality scorer: Blois-style index of how well each sample is dated.

For a sample at age ``t`` the real (dated) samples bracketing it are
``lo`` (last real age <= t) and ``hi`` (first real age >= t). Two
components, each mapped to [0, 1] by a decreasing exponential:

    dating   = exp(-max(sigma_lo, sigma_hi) / uncertainty_scale)
    distance = exp(-min(t - age_lo, age_hi - t) / distance_scale)
    quality  = dating * distance

The product is conjunctive: a sample only scores well when it is both
close to a real sample and the bracketing ages are precise. A target that
coincides with a real sample of zero uncertainty scores 1.0. Samples
with NaN counts, targets outside the dated range, and brackets with NaN
uncertainty score NaN.

Records that were never resampled are scored against their own samples,
so only the dating component applies (distance 0).
"""

import logging
from dataclasses import replace

import numpy as np

from epdkit.contracts import MissingUncertaintyError
from epdkit.core.record import EntityRecord

__all__ = ['blois_quality', 'quality_components']

logger = logging.getLogger(__name__)


def blois_quality(record: EntityRecord, uncertainty_scale: float = 1000.0,
                  distance_scale: float = 1000.0) -> EntityRecord:
    """Attach the per-sample quality index to a record.

    Parameters
    ----------
    record : EntityRecord
        Resampled record, or an original record with a default chronology
    uncertainty_scale : float, optional
        Age uncertainty (years) at which the dating component is 1/e
    distance_scale : float, optional
        Distance (years) to the nearest real sample at which the distance
        component is 1/e

    Returns
    -------
    EntityRecord
        Same record with ``quality`` set

    Raises
    ------
    MissingUncertaintyError
        If the chronology the samples were dated with carries no uncertainty
    ValueError
        If a scale is not positive
    """
    if uncertainty_scale <= 0 or distance_scale <= 0:
        raise ValueError("uncertainty_scale and distance_scale must be > 0")

    targets, real_ages, real_unc = _scoring_axes(record)
    dating, distance = quality_components(targets, real_ages, real_unc,
                                          uncertainty_scale, distance_scale)
    quality = dating * distance

    if record.counts.shape[1] > 0:
        missing = record.counts.isna().any(axis=1).to_numpy()
        quality[missing] = np.nan

    scored = int(np.isfinite(quality).sum())
    logger.debug("Entity %s: quality scored for %d of %d samples",
                 record.entity_id, scored, len(quality))

    return replace(record, quality=quality)


def quality_components(targets, real_ages, real_unc, uncertainty_scale: float,
                       distance_scale: float):
    """Dating and distance components for each target age.

    Parameters
    ----------
    targets : np.ndarray
        Ages to score
    real_ages : np.ndarray
        Sorted, finite ages of the real samples
    real_unc : np.ndarray
        Uncertainty of each real sample

    Returns
    -------
    tuple of np.ndarray
        (dating, distance), NaN where a target has no bracket
    """
    targets = np.asarray(targets, dtype=float)
    dating = np.full(len(targets), np.nan)
    distance = np.full(len(targets), np.nan)
    if len(real_ages) == 0:
        return dating, distance

    hi = np.searchsorted(real_ages, targets, side="left")
    lo = np.searchsorted(real_ages, targets, side="right") - 1
    inside = np.isfinite(targets) & (lo >= 0) & (hi < len(real_ages))

    lo_i, hi_i = lo[inside], hi[inside]
    t = targets[inside]

    sigma = np.maximum(real_unc[lo_i], real_unc[hi_i])
    gap = np.minimum(t - real_ages[lo_i], real_ages[hi_i] - t)

    dating[inside] = np.exp(-np.abs(sigma) / uncertainty_scale)
    distance[inside] = np.exp(-gap / distance_scale)
    return dating, distance


def _scoring_axes(record: EntityRecord):
    """(target ages, real ages, real uncertainties) for a record."""
    if record.resampled_from is not None:
        source = record.resampled_from
        if source.uncertainties is None or not np.isfinite(source.uncertainties).any():
            raise MissingUncertaintyError(record.entity_id, source.chron_id)
        return record.default_ages(), source.ages, source.uncertainties

    chron_id = record.default_chronology
    if chron_id is None:
        raise MissingUncertaintyError(record.entity_id, None)

    chron = record.chronologies[chron_id]
    if not chron.has_uncertainty:
        raise MissingUncertaintyError(record.entity_id, chron_id)

    ages = chron.ages
    dated = np.isfinite(ages)
    order = np.argsort(ages[dated], kind="stable")
    real_ages = ages[dated][order]
    real_unc = chron.uncertainties[dated][order]

    # duplicated ages: keep the widest uncertainty of the group
    uniq, inverse = np.unique(real_ages, return_inverse=True)
    widest = np.full(len(uniq), -np.inf)
    np.maximum.at(widest, inverse, real_unc)
    return ages, uniq, widest
