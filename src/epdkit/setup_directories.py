"""
Directory setup for the standardization pipeline.

Flat layout under one base directory:
- records/  one NetCDF file per standardized entity
- tables/   flat tables (CSV or Parquet)
- plots/    maps and pollen diagrams
- logs/     pipeline logs
"""

import logging
from datetime import datetime, timezone
from pathlib import Path

__all__ = [
    'setup_output_directories',
    'get_record_path',
    'get_table_path',
    'get_plot_path',
    'get_log_path',
]

logger = logging.getLogger(__name__)


def setup_output_directories(base_output_dir=None):
    """
    Set up organized output directory structure.

    Parameters
    ----------
    base_output_dir : str or Path, optional
        Base output directory. If None, ``./output`` in the current directory.

    Returns
    -------
    dict
        Dictionary with paths: 'base', 'records', 'tables', 'plots', 'logs'
    """
    if base_output_dir is None:
        base_output_dir = Path.cwd() / "output"

    base_output_dir = Path(base_output_dir).expanduser().resolve()

    directories = {
        "base": base_output_dir,
        "records": base_output_dir / "records",
        "tables": base_output_dir / "tables",
        "plots": base_output_dir / "plots",
        "logs": base_output_dir / "logs",
    }

    for path in directories.values():
        path.mkdir(parents=True, exist_ok=True)

    logger.debug("Output directories: %s",
                 ", ".join(f"{k}={p}" for k, p in directories.items()))
    return directories


def get_record_path(output_dirs, entity_id):
    """
    Get the NetCDF path of a standardized entity.

    Example
    -------
    >>> get_record_path(dirs, 42)
    Path('output/records/entity_00042.nc')
    """
    return output_dirs["records"] / f"entity_{int(entity_id):05d}.nc"


def get_table_path(output_dirs, name, table_format="csv"):
    """
    Get a flat table path, e.g. ``tables/<name>.parquet``.

    Parameters
    ----------
    output_dirs : dict
        Output directories from setup_output_directories()
    name : str
        Table name without extension
    table_format : str
        'csv' or 'parquet'
    """
    ext = table_format.lstrip('.')
    return output_dirs["tables"] / f"{name}.{ext}"


def get_plot_path(output_dirs, name, output_format="png"):
    """
    Get a plot path, e.g. ``plots/<name>.png``.
    """
    safe = "".join(c if c.isalnum() or c in "-_+." else "_" for c in str(name))
    return output_dirs["plots"] / f"{safe}.{output_format}"


def get_log_path(output_dirs, tag=None):
    """
    Get organized log file path.

    Parameters
    ----------
    output_dirs : dict
        Output directories from setup_output_directories()
    tag : str, optional
        Run tag. If given, the file name carries it and a UTC timestamp.

    Returns
    -------
    Path
        Full path to log file
    """
    log_dir = output_dirs["logs"]
    log_dir.mkdir(parents=True, exist_ok=True)

    if tag:
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        filename = f"pipeline_{tag}_{timestamp}.log"
    else:
        filename = "pipeline_latest.log"

    return log_dir / filename
