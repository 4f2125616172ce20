"""Persist standardized records and flat tables.

- records -> NetCDF (one file per entity, via xarray)
- flat tables -> CSV or Parquet (pyarrow)
"""

import logging
from pathlib import Path
from typing import Optional

import numpy as np
import xarray as xr

from epdkit.core.record import EntityRecord
from epdkit.export.tabulator import FlatTable

__all__ = ['record_to_dataset', 'write_record_netcdf', 'write_table']

logger = logging.getLogger(__name__)


def record_to_dataset(record: EntityRecord) -> xr.Dataset:
    """Convert a record to an xarray Dataset.

    Dimensions are ``sample`` and ``taxon``. Each chronology contributes
    ``age_<id>`` (and ``age_uncertainty_<id>`` when it has one). Taxon
    metadata are coordinates along ``taxon``.

    Parameters
    ----------
    record : EntityRecord
        Record to convert

    Returns
    -------
    xr.Dataset
    """
    samples = list(record.sample_labels)
    coords = {
        "sample": samples,
        "taxon": list(record.taxon_ids),
        "taxon_name": ("taxon", list(record.taxon_names)),
        "accepted_id": ("taxon", [t.accepted_id for t in record.taxa]),
        "higher_id": ("taxon", [t.higher_id for t in record.taxa]),
        "group_id": ("taxon", [t.group_id for t in record.taxa]),
    }

    data_vars = {
        "counts": (("sample", "taxon"), record.counts.to_numpy(dtype=float),
                   {"long_name": "Pollen counts", "units": record.counts_unit.value}),
        "depth": ("sample", np.asarray(record.depths), {"long_name": "Sample depth", "units": "cm"}),
    }
    for chron_id, chron in record.chronologies.items():
        data_vars[f"age_{chron_id}"] = ("sample", np.asarray(chron.ages),
                                        {"long_name": f"Age, chronology {chron_id}", "units": "cal BP"})
        if chron.uncertainties is not None:
            data_vars[f"age_uncertainty_{chron_id}"] = ("sample", np.asarray(chron.uncertainties),
                                                        {"units": "years"})
    if record.quality is not None:
        data_vars["quality"] = ("sample", np.asarray(record.quality),
                                {"long_name": "Blois quality index", "units": "1"})

    # NetCDF can't serialize None or bool attributes
    attrs = {
        "entity_id": record.entity_id,
        "longitude": record.longitude,
        "latitude": record.latitude,
        "restricted": int(record.restricted),
        "counts_unit": record.counts_unit.value,
    }
    if record.default_chronology is not None:
        attrs["default_chronology"] = record.default_chronology
    if record.resampled_from is not None:
        attrs["resampling_method"] = record.resampled_from.method

    return xr.Dataset(data_vars=data_vars, coords=coords, attrs=attrs)


def write_record_netcdf(record: EntityRecord, filepath) -> Path:
    """Write a record to NetCDF and return the path."""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    ds = record_to_dataset(record)
    ds.to_netcdf(filepath, mode='w', engine='netcdf4', format='NETCDF4')
    ds.close()

    logger.info("Entity %s saved: %s [%s]", record.entity_id, filepath.name,
                ", ".join(ds.data_vars))
    return filepath


def write_table(table: FlatTable, filepath, table_format: Optional[str] = None,
                compression: str = "snappy") -> Path:
    """Write a flat table as CSV or Parquet.

    Parameters
    ----------
    table : FlatTable
        Table to write
    filepath : str or Path
        Output path
    table_format : {"csv", "parquet"}, optional
        Output format. If None, taken from the file suffix.
    compression : str, optional
        Parquet compression codec ("none" for uncompressed). Ignored for CSV.

    Returns
    -------
    Path
    """
    filepath = Path(filepath)
    table_format = (table_format or filepath.suffix.lstrip(".")).lower()
    filepath.parent.mkdir(parents=True, exist_ok=True)

    if table_format == "csv":
        table.frame.to_csv(filepath, index=False)
    elif table_format == "parquet":
        table.frame.to_parquet(filepath, engine='pyarrow',
                               compression=None if compression == "none" else compression,
                               index=False)
    else:
        raise ValueError(f"Unknown table format: {table_format}")

    logger.info("Exported %d rows to: %s", len(table), filepath)
    return filepath
