"""Export modules.

- tabulator: long-format tables for mapping and export
- writer: NetCDF / CSV / Parquet output
"""

from epdkit.export.tabulator import FlatTable, table_by_taxa_age, combine_tables
from epdkit.export.writer import record_to_dataset, write_record_netcdf, write_table

__all__ = [
    "FlatTable",
    "table_by_taxa_age",
    "combine_tables",
    "record_to_dataset",
    "write_record_netcdf",
    "write_table",
]
