"""Flat table contract.

The long-format table is the only thing the plotting layer depends on, so
its shape is fixed regardless of whether counts are raw or percentages.
"""

import pandas as pd

from epdkit.contracts.base import require

FLAT_TABLE_COLUMNS = ("entity_id", "longitude", "latitude", "count", "age_label", "taxon")


def assert_flat_table(df: pd.DataFrame) -> None:
    """Enforce flat table contract.

    Parameters
    ----------
    df : pd.DataFrame
        Output of ``table_by_taxa_age`` or ``combine_tables``, or a
        loosely-typed table about to be wrapped in a FlatTable

    Raises
    ------
    ContractViolation
        If the columns differ from FLAT_TABLE_COLUMNS or counts are negative
    """
    require(
        isinstance(df, pd.DataFrame),
        f"Table contract violated: table is {type(df)}, expected DataFrame"
    )
    require(
        tuple(df.columns) == FLAT_TABLE_COLUMNS,
        f"Table contract violated: columns {list(df.columns)}, expected {list(FLAT_TABLE_COLUMNS)}"
    )

    if len(df) > 0:
        counts = pd.to_numeric(df["count"], errors="coerce")
        require(
            bool((counts.dropna() >= 0).all()),
            "Table contract violated: negative counts"
        )
