"""Taxonomy index: raw taxon id -> accepted id -> higher-rank id.

Built once per session from the full EPD taxonomy table (``p_vars`` joined
with its group table) and shared read-only by every entity.
"""

import logging
from types import MappingProxyType
from typing import Iterator, Tuple

import pandas as pd

from epdkit.contracts import UnknownTaxonError
from epdkit.core.record import TaxonInfo

__all__ = ['TaxonomyIndex', 'TAXONOMY_COLUMNS']

logger = logging.getLogger(__name__)

TAXONOMY_COLUMNS = ("taxon_id", "name", "accepted_id", "higher_id", "group_id")


class TaxonomyIndex:
    """Immutable lookup over the EPD taxonomy.

    Each raw taxon id maps to a ``TaxonInfo`` carrying its name, accepted
    taxon id, higher-rank id and taxon group code. The index never changes
    after construction, so it can be read from any worker thread.

    Example usage::

        index = TaxonomyIndex.from_frame(taxonomy_df)
        index.accepted_id(12)
        index.name(index.higher_id(12))
    """

    def __init__(self, entries):
        """Build the index.

        Parameters
        ----------
        entries : iterable of TaxonInfo
            One entry per raw taxon id. Later duplicates are rejected.
        """
        table = {}
        for info in entries:
            if info.taxon_id in table:
                raise ValueError(f"Duplicate taxon id in taxonomy: {info.taxon_id}")
            table[info.taxon_id] = info
        self._entries = MappingProxyType(table)
        logger.debug("TaxonomyIndex built: %d taxa", len(table))

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "TaxonomyIndex":
        """Build the index from a taxonomy table.

        Parameters
        ----------
        df : pd.DataFrame
            Columns ``taxon_id, name, accepted_id, higher_id, group_id``.
            A missing accepted id means the taxon is itself accepted; a
            missing higher id falls back to the accepted id.

        Returns
        -------
        TaxonomyIndex
        """
        missing = [c for c in TAXONOMY_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"Taxonomy table missing columns: {missing}")

        entries = []
        for row in df.itertuples(index=False):
            taxon_id = int(row.taxon_id)
            accepted = taxon_id if pd.isna(row.accepted_id) else int(row.accepted_id)
            higher = accepted if pd.isna(row.higher_id) else int(row.higher_id)
            entries.append(TaxonInfo(
                taxon_id=taxon_id,
                name=str(row.name),
                accepted_id=accepted,
                higher_id=higher,
                group_id=str(row.group_id),
            ))
        return cls(entries)

    def info(self, taxon_id: int) -> TaxonInfo:
        try:
            return self._entries[taxon_id]
        except KeyError:
            raise UnknownTaxonError(taxon_id) from None

    def accepted_id(self, taxon_id: int) -> int:
        return self.info(taxon_id).accepted_id

    def higher_id(self, taxon_id: int) -> int:
        return self.info(taxon_id).higher_id

    def name(self, taxon_id: int) -> str:
        return self.info(taxon_id).name

    def group_id(self, taxon_id: int) -> str:
        return self.info(taxon_id).group_id

    def accepted_ids(self) -> Tuple[int, ...]:
        """Distinct accepted ids, in index order."""
        return tuple(dict.fromkeys(info.accepted_id for info in self._entries.values()))

    def __contains__(self, taxon_id) -> bool:
        return taxon_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TaxonInfo]:
        return iter(self._entries.values())
