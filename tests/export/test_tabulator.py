"""Tests for flat tables."""

import numpy as np
import pandas as pd
import pytest

pytestmark = pytest.mark.unit

from epdkit.contracts import FLAT_TABLE_COLUMNS, ContractViolation
from epdkit.core import CountsUnit
from epdkit.export import FlatTable, combine_tables, table_by_taxa_age
from epdkit.standardize import counts_to_percentages, interpolate_counts, unify_across
from tests.helpers.fake_records import make_record


def test_single_taxon_rows(record):
    table = table_by_taxa_age(record, "Quercus", ["s1", "s3"])
    df = table.frame

    assert tuple(df.columns) == FLAT_TABLE_COLUMNS
    assert df["count"].tolist() == [10.0, 5.0]
    assert df["age_label"].tolist() == ["s1", "s3"]
    assert set(df["taxon"]) == {"Quercus"}
    assert set(df["entity_id"]) == {1}
    assert table.counts_unit == CountsUnit.RAW_COUNTS


def test_multiple_taxa_are_summed(record):
    table = table_by_taxa_age(record, ["Quercus", "Poaceae"], "s2")

    assert table.frame["count"].tolist() == [40.0]
    assert table.frame["taxon"].tolist() == ["Quercus+Poaceae"]


def test_set_of_taxa_gives_sorted_label(record):
    table = table_by_taxa_age(record, {"Quercus", "Poaceae"}, "s2", separator=" & ")
    assert table.frame["taxon"].tolist() == ["Poaceae & Quercus"]


def test_absent_taxa_are_skipped_in_label(record):
    table = table_by_taxa_age(record, ["Quercus", "Pinus"], "s1")
    assert table.frame["taxon"].tolist() == ["Quercus"]


def test_no_matching_taxa_gives_empty_table(record):
    table = table_by_taxa_age(record, "Pinus", "s1")
    assert len(table) == 0
    assert tuple(table.frame.columns) == FLAT_TABLE_COLUMNS


def test_no_matching_label_gives_empty_table(record):
    assert len(table_by_taxa_age(record, "Quercus", "9999")) == 0


def test_nan_counts_are_kept(record):
    resampled = interpolate_counts(record, [1000, 5000])
    table = table_by_taxa_age(resampled, "Quercus", ["1000", "5000"])

    assert len(table) == 2
    assert table.frame["count"].iloc[0] == 20.0
    assert np.isnan(table.frame["count"].iloc[1])


def test_end_to_end_missing_taxon_is_zero(taxonomy):
    a = make_record(entity_id=1, counts=((10, 30), (20, 20), (5, 15)), taxon_ids=(1, 4),
                    coordinates=(5.0, 45.0))
    b = make_record(entity_id=2, counts=((8, 2), (6, 4), (4, 6)), taxon_ids=(3, 4),
                    coordinates=(15.0, 55.0))

    unified = [interpolate_counts(counts_to_percentages(r), [1000])
               for r in unify_across([a, b], taxonomy)]
    table = combine_tables([table_by_taxa_age(r, "Quercus", "1000") for r in unified])

    df = table.frame
    assert df["entity_id"].tolist() == [1, 2]
    assert df["age_label"].tolist() == ["1000", "1000"]
    assert df["count"].iloc[0] == pytest.approx(50.0)
    assert df["count"].iloc[1] == 0.0
    assert table.counts_unit == CountsUnit.PERCENTAGES


class TestFlatTable:

    def test_from_frame_reorders_columns(self):
        df = pd.DataFrame({
            "taxon": ["Quercus"],
            "count": [1.0],
            "age_label": ["1000"],
            "latitude": [50.0],
            "longitude": [10.0],
            "entity_id": [1],
        })
        table = FlatTable.from_frame(df)
        assert tuple(table.frame.columns) == FLAT_TABLE_COLUMNS

    def test_from_frame_rejects_missing_columns(self):
        df = pd.DataFrame({"taxon": ["Quercus"], "count": [1.0]})
        with pytest.raises(ContractViolation):
            FlatTable.from_frame(df)

    def test_empty(self):
        table = FlatTable.empty(CountsUnit.PERCENTAGES)
        assert len(table) == 0
        assert table.counts_unit == CountsUnit.PERCENTAGES


class TestCombineTables:

    def test_preserves_order(self):
        a = table_by_taxa_age(make_record(entity_id=1), "Quercus", "s1")
        b = table_by_taxa_age(make_record(entity_id=2), "Quercus", "s1")
        combined = combine_tables([b, a])

        assert combined.frame["entity_id"].tolist() == [2, 1]
        assert combined.frame.index.tolist() == [0, 1]

    def test_empty_input(self):
        assert len(combine_tables([])) == 0

    def test_mixed_units_rejected(self, record):
        raw = table_by_taxa_age(record, "Quercus", "s1")
        pct = table_by_taxa_age(counts_to_percentages(record), "Quercus", "s1")
        with pytest.raises(ValueError, match="different count units"):
            combine_tables([raw, pct])
