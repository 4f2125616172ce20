"""Entity record contract.

Enforces the structural invariants every EntityRecord carries, whichever
stage produced it: aligned sample axes, aligned taxon axes, and a default
chronology that actually exists.
"""

from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from epdkit.contracts.base import require

if TYPE_CHECKING:
    from epdkit.core.record import EntityRecord


def assert_record_consistent(record: "EntityRecord") -> None:
    """Enforce the entity record contract.

    Called from ``EntityRecord.__post_init__``, so no stage can hand out a
    record whose axes disagree.

    Parameters
    ----------
    record : EntityRecord
        Record to verify

    Raises
    ------
    ContractViolation
        If any invariant is violated
    """
    eid = record.entity_id
    counts = record.counts

    require(
        isinstance(counts, pd.DataFrame),
        f"Record contract violated (entity {eid}): counts is {type(counts)}, expected DataFrame"
    )

    n_samples, n_taxa = counts.shape

    require(
        len(record.taxa) == n_taxa,
        f"Record contract violated (entity {eid}): {len(record.taxa)} taxa metadata "
        f"entries for {n_taxa} count columns"
    )
    require(
        [t.taxon_id for t in record.taxa] == list(counts.columns),
        f"Record contract violated (entity {eid}): taxon metadata order does not match count columns"
    )
    require(
        counts.columns.is_unique,
        f"Record contract violated (entity {eid}): duplicated taxon columns"
    )
    require(
        len(record.depths) == n_samples,
        f"Record contract violated (entity {eid}): {len(record.depths)} depths for {n_samples} samples"
    )

    for chron_id, chron in record.chronologies.items():
        require(
            chron.chron_id == chron_id,
            f"Record contract violated (entity {eid}): chronology keyed {chron_id} has id {chron.chron_id}"
        )
        require(
            len(chron.ages) == n_samples,
            f"Record contract violated (entity {eid}): chronology {chron_id} has "
            f"{len(chron.ages)} ages for {n_samples} samples"
        )
        if chron.uncertainties is not None:
            require(
                len(chron.uncertainties) == n_samples,
                f"Record contract violated (entity {eid}): chronology {chron_id} has "
                f"{len(chron.uncertainties)} uncertainties for {n_samples} samples"
            )

    if record.default_chronology is not None:
        require(
            record.default_chronology in record.chronologies,
            f"Record contract violated (entity {eid}): default chronology "
            f"{record.default_chronology} not in {sorted(record.chronologies)}"
        )

    if record.quality is not None:
        require(
            len(record.quality) == n_samples,
            f"Record contract violated (entity {eid}): {len(record.quality)} quality "
            f"values for {n_samples} samples"
        )
        finite = record.quality[np.isfinite(record.quality)]
        require(
            bool(np.all((finite >= 0.0) & (finite <= 1.0))),
            f"Record contract violated (entity {eid}): quality outside [0, 1]"
        )
