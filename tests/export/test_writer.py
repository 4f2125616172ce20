"""Tests for NetCDF / CSV / Parquet writers."""

import numpy as np
import pandas as pd
import pytest
import xarray as xr

pytestmark = pytest.mark.unit

from epdkit.export import record_to_dataset, table_by_taxa_age, write_record_netcdf, write_table
from epdkit.standardize import blois_quality, interpolate_counts


def test_record_to_dataset_layout(record):
    ds = record_to_dataset(record)

    assert ds["counts"].dims == ("sample", "taxon")
    assert ds["counts"].shape == (3, 2)
    assert ds["taxon_name"].values.tolist() == ["Quercus", "Poaceae"]
    assert ds["age_1"].values.tolist() == [500.0, 1000.0, 1500.0]
    assert "age_uncertainty_1" in ds
    assert "quality" not in ds
    assert ds.attrs["entity_id"] == 1
    assert ds.attrs["default_chronology"] == 1
    assert ds.attrs["counts_unit"] == "RawCounts"


def test_record_to_dataset_skips_none_attrs():
    from tests.helpers.fake_records import make_record
    ds = record_to_dataset(make_record(ages=None))

    assert "default_chronology" not in ds.attrs
    assert not any(name.startswith("age_") for name in ds.data_vars)


def test_resampled_record_carries_quality(record):
    scored = blois_quality(interpolate_counts(record, [500, 750]))
    ds = record_to_dataset(scored)

    assert ds.attrs["resampling_method"] == "interpolation"
    np.testing.assert_allclose(ds["quality"].values, scored.quality)


def test_write_record_netcdf_roundtrip(record, tmp_path):
    path = write_record_netcdf(record, tmp_path / "records" / "entity_00001.nc")

    assert path.exists()
    with xr.open_dataset(path) as ds:
        np.testing.assert_array_equal(ds["counts"].values, record.counts.to_numpy())
        assert ds.attrs["entity_id"] == 1


def test_write_table_csv(record, tmp_path):
    table = table_by_taxa_age(record, "Quercus", ["s1", "s2"])
    path = write_table(table, tmp_path / "quercus.csv")

    df = pd.read_csv(path)
    assert df.columns.tolist() == list(table.frame.columns)
    assert df["count"].tolist() == [10.0, 20.0]


def test_write_table_parquet(record, tmp_path):
    table = table_by_taxa_age(record, "Quercus", ["s1", "s2"])
    path = write_table(table, tmp_path / "quercus.parquet", compression="none")

    df = pd.read_parquet(path, engine="pyarrow")
    assert df["age_label"].tolist() == ["s1", "s2"]


def test_write_table_unknown_format(record, tmp_path):
    table = table_by_taxa_age(record, "Quercus", "s1")
    with pytest.raises(ValueError, match="Unknown table format"):
        write_table(table, tmp_path / "quercus.xlsx")
