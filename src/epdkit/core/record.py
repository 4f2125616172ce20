"""Immutable entity record flowing through the standardization pipeline.

An ``EntityRecord`` bundles one EPD entity (one core, one sequence):
taxon counts indexed by sample, the per-taxon metadata, and zero or more
age-depth chronologies aligned to the samples. Every stage returns a new
record built with ``dataclasses.replace``; no stage mutates its input, so
records can be shared across worker threads without copies on read.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Literal, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from epdkit.contracts import assert_record_consistent

__all__ = [
    "CountsUnit",
    "TaxonInfo",
    "Chronology",
    "ResampledFrom",
    "EntityRecord",
]


class CountsUnit(str, Enum):
    """Unit of the values held in ``EntityRecord.counts``."""
    RAW_COUNTS = "RawCounts"
    PERCENTAGES = "Percentages"


@dataclass(frozen=True)
class TaxonInfo:
    """Metadata of one taxon column."""
    taxon_id: int
    name: str
    accepted_id: int
    higher_id: int
    group_id: str


@dataclass(frozen=True, eq=False)
class Chronology:
    """One age-depth model, aligned to the sample axis of a record.

    ``ages`` holds NaN where the model gives no age for a sample.
    ``uncertainties`` is None when the model carries no per-sample error.
    """
    chron_id: int
    ages: np.ndarray
    uncertainties: Optional[np.ndarray] = None
    name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "ages", _readonly(self.ages))
        if self.uncertainties is not None:
            object.__setattr__(self, "uncertainties", _readonly(self.uncertainties))

    @property
    def has_ages(self) -> bool:
        return bool(np.isfinite(self.ages).any())

    @property
    def has_uncertainty(self) -> bool:
        return self.uncertainties is not None and bool(np.isfinite(self.uncertainties).any())


@dataclass(frozen=True, eq=False)
class ResampledFrom:
    """Real samples a resampled record was derived from.

    Ages are sorted ascending and finite; uncertainties are aligned to them
    (None when the source chronology had none).
    """
    method: Literal["interpolation", "intervals"]
    chron_id: int
    ages: np.ndarray
    uncertainties: Optional[np.ndarray] = None

    def __post_init__(self):
        object.__setattr__(self, "ages", _readonly(self.ages))
        if self.uncertainties is not None:
            object.__setattr__(self, "uncertainties", _readonly(self.uncertainties))


@dataclass(frozen=True, eq=False)
class EntityRecord:
    """Standardized pollen record of one EPD entity.

    Attributes
    ----------
    entity_id : int
        EPD entity number (``e_``).
    coordinates : tuple of float
        (longitude, latitude) in decimal degrees.
    restricted : bool
        True when the data are restricted-use.
    counts : pd.DataFrame
        Samples x taxa. Index holds sample labels (str), columns hold taxon
        ids (int). NaN marks an undefined value and is never a zero. The
        record keeps its own copy; treat it as read-only.
    taxa : tuple of TaxonInfo
        One entry per count column, same order.
    depths : np.ndarray
        Sample depth in cm; NaN once the record has been resampled.
    chronologies : mapping of int to Chronology
        Candidate age-depth models, keyed by chronology id.
    default_chronology : int or None
        Chronology used downstream. None means samples are on a depth axis.
    counts_unit : CountsUnit
        Raw counts or percentages.
    resampled_from : ResampledFrom or None
        Source samples when the record is on a resampled axis.
    quality : np.ndarray or None
        Per-sample quality index, only after ``blois_quality``.
    """
    entity_id: int
    coordinates: Tuple[float, float]
    restricted: bool
    counts: pd.DataFrame
    taxa: Tuple[TaxonInfo, ...]
    depths: np.ndarray
    chronologies: Mapping[int, Chronology] = field(default_factory=dict)
    default_chronology: Optional[int] = None
    counts_unit: CountsUnit = CountsUnit.RAW_COUNTS
    resampled_from: Optional[ResampledFrom] = None
    quality: Optional[np.ndarray] = None

    def __post_init__(self):
        object.__setattr__(self, "coordinates", (float(self.coordinates[0]), float(self.coordinates[1])))
        object.__setattr__(self, "taxa", tuple(self.taxa))
        object.__setattr__(self, "depths", _readonly(np.asarray(self.depths, dtype=float)))
        object.__setattr__(self, "chronologies", MappingProxyType(dict(self.chronologies)))
        object.__setattr__(self, "counts_unit", CountsUnit(self.counts_unit))
        if self.quality is not None:
            object.__setattr__(self, "quality", _readonly(np.asarray(self.quality, dtype=float)))
        assert_record_consistent(self)
        object.__setattr__(self, "counts", self.counts.copy())

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def longitude(self) -> float:
        return self.coordinates[0]

    @property
    def latitude(self) -> float:
        return self.coordinates[1]

    @property
    def n_samples(self) -> int:
        return self.counts.shape[0]

    @property
    def sample_labels(self) -> Tuple[str, ...]:
        return tuple(self.counts.index)

    @property
    def taxon_ids(self) -> Tuple[int, ...]:
        return tuple(t.taxon_id for t in self.taxa)

    @property
    def taxon_names(self) -> Tuple[str, ...]:
        return tuple(t.name for t in self.taxa)

    def default_ages(self) -> Optional[np.ndarray]:
        """Ages of the default chronology, or None on a depth axis."""
        if self.default_chronology is None:
            return None
        return self.chronologies[self.default_chronology].ages

    def default_uncertainties(self) -> Optional[np.ndarray]:
        """Age uncertainties of the default chronology, if any."""
        if self.default_chronology is None:
            return None
        return self.chronologies[self.default_chronology].uncertainties

    def with_counts(self, counts: pd.DataFrame, taxa=None, **changes) -> "EntityRecord":
        """New record with replaced counts (and taxa, when the columns change)."""
        return replace(self, counts=counts, taxa=self.taxa if taxa is None else taxa, **changes)

    def __repr__(self) -> str:
        return (
            f"EntityRecord(entity_id={self.entity_id}, samples={self.n_samples}, "
            f"taxa={len(self.taxa)}, unit={self.counts_unit.value}, "
            f"default_chronology={self.default_chronology})"
        )


def _readonly(values) -> np.ndarray:
    arr = np.array(values, dtype=float)
    arr.setflags(write=False)
    return arr
