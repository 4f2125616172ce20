"""Tests for taxonomic unification."""

import numpy as np
import pytest

pytestmark = pytest.mark.unit

from epdkit.contracts import UnknownTaxonError
from epdkit.core import TaxonInfo
from epdkit.standardize import map_to_accepted, map_to_higher, unify_across
from tests.helpers.fake_records import make_record, make_taxonomy_index


class TestMapToAccepted:

    def test_synonyms_are_summed(self, taxonomy):
        rec = make_record(counts=((1, 2, 3), (4, 5, 6), (0, 0, 1)), taxon_ids=(1, 4, 2))
        out = map_to_accepted(rec, taxonomy)

        assert out.taxon_ids == (1, 4)
        assert out.counts[1].tolist() == [4.0, 10.0, 1.0]
        assert out.taxon_names == ("Quercus", "Poaceae")

    def test_nan_member_makes_sum_nan(self, taxonomy):
        rec = make_record(counts=((np.nan, 2), (1, 1), (1, 1)), taxon_ids=(1, 2))
        out = map_to_accepted(rec, taxonomy)

        assert np.isnan(out.counts.iloc[0, 0])
        assert out.counts.iloc[1, 0] == 2.0

    def test_unknown_taxon_raises_with_entity(self, taxonomy):
        rec = make_record(entity_id=8)
        rec = rec.with_counts(
            rec.counts.rename(columns={4: 77}),
            taxa=(rec.taxa[0], TaxonInfo(77, "Mystery", 77, 77, "HERB")),
        )
        with pytest.raises(UnknownTaxonError) as exc:
            map_to_accepted(rec, taxonomy)
        assert exc.value.taxon_id == 77
        assert exc.value.entity_id == 8

    def test_sample_axis_unchanged(self, taxonomy, record):
        out = map_to_accepted(record, taxonomy)
        assert out.sample_labels == record.sample_labels


class TestMapToHigher:

    def test_members_lumped_to_higher_taxon(self, taxonomy):
        rec = make_record(counts=((1, 2, 3),) * 3, taxon_ids=(1, 2, 3))
        out = map_to_higher(rec, taxonomy)

        assert out.taxon_ids == (100, 3)
        assert out.counts[100].tolist() == [3.0, 3.0, 3.0]
        assert out.taxon_names[0] == "Quercus-group"


class TestUnifyAcross:

    def test_singleton_is_identity(self, taxonomy, record):
        (out,) = unify_across([record], taxonomy)

        assert out.taxon_ids == record.taxon_ids
        assert out.counts.equals(record.counts)

    def test_first_seen_axis_and_zero_fill(self, taxonomy):
        a = make_record(entity_id=1, counts=((1, 2),) * 3, taxon_ids=(1, 4))
        b = make_record(entity_id=2, counts=((5, 6),) * 3, taxon_ids=(3, 1))

        out_a, out_b = unify_across([a, b], taxonomy)

        assert out_a.taxon_ids == out_b.taxon_ids == (1, 4, 3)
        assert out_a.counts[3].tolist() == [0.0, 0.0, 0.0]
        assert out_b.counts[4].tolist() == [0.0, 0.0, 0.0]
        assert out_b.counts[1].tolist() == [6.0, 6.0, 6.0]

    def test_all_nan_rows_stay_nan(self, taxonomy):
        a = make_record(entity_id=1, counts=((1, 2), (np.nan, np.nan), (3, 4)), taxon_ids=(1, 4))
        b = make_record(entity_id=2, counts=((5,),) * 3, taxon_ids=(3,))

        out_a, _ = unify_across([a, b], taxonomy)

        assert out_a.counts.iloc[1].isna().all()
        assert out_a.counts.iloc[0].tolist() == [1.0, 2.0, 0.0]

    def test_include_index_taxa(self, taxonomy):
        (out,) = unify_across([make_record()], taxonomy, include_index_taxa=True)

        assert out.taxon_ids == (1, 4, 3, 5, 6, 100)
        assert out.counts[6].tolist() == [0.0, 0.0, 0.0]

    def test_include_index_taxa_at_higher_level(self, taxonomy):
        rec = map_to_higher(make_record(), taxonomy)
        (out,) = unify_across([rec], taxonomy, include_index_taxa=True, level="higher")

        assert out.taxon_ids == (100, 4, 3, 5, 6)
        assert out.counts[100].tolist() == [10.0, 20.0, 5.0]
        assert "Quercus" not in out.taxon_names

    def test_index_taxa_without_own_row(self):
        index = make_taxonomy_index([
            (1, "Quercus syn.", 50, 50, "TRSH"),
            (4, "Poaceae", 4, 4, "HERB"),
        ])
        rec = map_to_accepted(make_record(counts=((5,),) * 3, taxon_ids=(4,)), index)

        (out,) = unify_across([rec], index, include_index_taxa=True)

        assert out.taxon_ids == (4, 50)
        assert out.taxa[1].group_id == "TRSH"
        assert out.counts[50].tolist() == [0.0, 0.0, 0.0]

    def test_unknown_level_raises(self, taxonomy, record):
        with pytest.raises(ValueError, match="Unknown taxonomy level"):
            unify_across([record], taxonomy, include_index_taxa=True, level="family")

    def test_sample_order_unchanged(self, taxonomy):
        a = make_record(entity_id=1)
        b = make_record(entity_id=2, taxon_ids=(3, 6))
        out_a, out_b = unify_across([a, b], taxonomy)

        assert out_a.sample_labels == a.sample_labels
        assert out_b.sample_labels == b.sample_labels

    def test_empty_input(self, taxonomy):
        assert unify_across([], taxonomy) == []
