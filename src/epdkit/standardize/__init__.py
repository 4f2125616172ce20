"""Standardization stages, in pipeline order.

- filters: taxon groups, restricted entities, entities without ages
- chronology: default chronology selection
- taxonomy_unifier: accepted/higher taxa and the shared taxon axis
- normalizer: counts to percentages
- resampler: interpolation and interval averaging on target ages
- quality: Blois quality index
"""

from epdkit.standardize.filters import (
    filter_by_taxon_groups,
    is_restricted,
    remove_restricted,
    has_usable_ages,
    remove_without_ages,
)
from epdkit.standardize.chronology import (
    GIESECKE_CHRONOLOGY_ID,
    select_default_chronology,
    giesecke_default_chronology,
)
from epdkit.standardize.taxonomy_unifier import map_to_accepted, map_to_higher, unify_across
from epdkit.standardize.normalizer import counts_to_percentages
from epdkit.standardize.resampler import interpolate_counts, intervals_counts
from epdkit.standardize.quality import blois_quality

__all__ = [
    "filter_by_taxon_groups",
    "is_restricted",
    "remove_restricted",
    "has_usable_ages",
    "remove_without_ages",
    "GIESECKE_CHRONOLOGY_ID",
    "select_default_chronology",
    "giesecke_default_chronology",
    "map_to_accepted",
    "map_to_higher",
    "unify_across",
    "counts_to_percentages",
    "interpolate_counts",
    "intervals_counts",
    "blois_quality",
]
