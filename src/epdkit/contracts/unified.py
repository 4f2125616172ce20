"""Unification and normalization stage contracts.

After ``unify_across`` every record must share one ordered taxon axis.
After ``counts_to_percentages`` every row either sums to 100 or is all NaN.
"""

from typing import Sequence, TYPE_CHECKING

import numpy as np

from epdkit.contracts.base import require

if TYPE_CHECKING:
    from epdkit.core.record import EntityRecord


def assert_shared_taxon_axis(records: Sequence["EntityRecord"]) -> None:
    """Enforce unification stage contract.

    Parameters
    ----------
    records : sequence of EntityRecord
        Output of ``unify_across``

    Raises
    ------
    ContractViolation
        If two records disagree on taxon ids or their order
    """
    if not records:
        return

    axis = records[0].taxon_ids
    for rec in records[1:]:
        require(
            rec.taxon_ids == axis,
            f"Unification contract violated: entity {rec.entity_id} taxon axis differs "
            f"from entity {records[0].entity_id}"
        )


def assert_percentages(record: "EntityRecord", atol: float = 1e-6) -> None:
    """Enforce normalization stage contract.

    Parameters
    ----------
    record : EntityRecord
        Output of ``counts_to_percentages``

    atol : float, optional
        Absolute tolerance on the row sums (default 1e-6)

    Raises
    ------
    ContractViolation
        If a row is partially NaN or does not sum to 100
    """
    values = record.counts.to_numpy(dtype=float)
    if values.size == 0:
        return

    nan_rows = np.isnan(values)
    all_nan = nan_rows.all(axis=1)
    require(
        bool(np.all(all_nan | ~nan_rows.any(axis=1))),
        f"Normalization contract violated (entity {record.entity_id}): partially NaN rows"
    )

    sums = values[~all_nan].sum(axis=1)
    require(
        bool(np.allclose(sums, 100.0, atol=atol)),
        f"Normalization contract violated (entity {record.entity_id}): rows do not sum to 100"
    )
