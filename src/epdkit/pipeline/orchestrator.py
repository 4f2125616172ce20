"""Standardization pipeline orchestration.

Runs the per-entity stages over a thread pool and the collection-wide
taxonomy unification on a single thread in between.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Callable, Iterable, List, Optional, Sequence

from epdkit.contracts.invariants import STAGE_REQUIREMENTS
from epdkit.core.ingest import EntitySource, entity_from_tables
from epdkit.core.record import EntityRecord
from epdkit.core.taxonomy import TaxonomyIndex
from epdkit.export.tabulator import FlatTable, combine_tables, table_by_taxa_age
from epdkit.export.writer import write_record_netcdf, write_table
from epdkit.schemas import InternalConfig
from epdkit.setup_directories import (
    get_log_path,
    get_record_path,
    get_table_path,
    setup_output_directories,
)
from epdkit.standardize import (
    blois_quality,
    counts_to_percentages,
    filter_by_taxon_groups,
    interpolate_counts,
    intervals_counts,
    map_to_accepted,
    map_to_higher,
    remove_restricted,
    remove_without_ages,
    select_default_chronology,
    unify_across,
)

__all__ = ['StandardizationPipeline']

logger = logging.getLogger(__name__)


class StandardizationPipeline:
    """Turns raw EPD entities into comparable, resampled records.

    **Stages, in order:**

    1. ``remove_restricted`` (if ``filter.remove_restricted``)
    2. per entity, in parallel: ``filter_by_taxon_groups`` and
       ``select_default_chronology``
    3. ``remove_without_ages`` (if ``filter.remove_without_ages``)
    4. per entity, in parallel: ``map_to_accepted`` or ``map_to_higher``
    5. barrier: ``unify_across`` on one thread
    6. per entity, in parallel: ``counts_to_percentages``, resampling and
       ``blois_quality`` as configured

    Records are never dropped silently. A stage that fails for one entity
    logs the entity id and the error propagates out of ``run``.

    Example usage::

        from epdkit.schemas import resolve_config
        from epdkit.pipeline import StandardizationPipeline

        config = resolve_config(user_cfg={"RESAMPLING_METHOD": "intervals"})
        pipeline = StandardizationPipeline(config, taxonomy)
        records = pipeline.run(raw_records)
        table = pipeline.tabulate(records, "Quercus", "5500-6500")
    """

    def __init__(self, config: InternalConfig, taxonomy: Optional[TaxonomyIndex] = None,
                 output_dirs: Optional[dict] = None):
        """
        Parameters
        ----------
        config : InternalConfig
            Resolved runtime configuration
        taxonomy : TaxonomyIndex, optional
            Session taxonomy. Required by ``run``; ``run_from_source`` builds
            it from the source when not given.
        output_dirs : dict, optional
            Paths from ``setup_output_directories()``. When omitted and
            ``output.base_dir`` is set, they are created under that directory.
            With output directories, logging is configured with a file handler
            in ``output_dirs["logs"]`` and outputs are written there.
        """
        self.config = config
        self.taxonomy = taxonomy
        if output_dirs is None and config.output.base_dir is not None:
            output_dirs = setup_output_directories(config.output.base_dir)
        self.output_dirs = output_dirs

        if output_dirs is not None:
            self._setup_logging()

    def _setup_logging(self):
        """Configure the root logger with file and console handlers."""
        log_level = getattr(logging, self.config.logging.level, logging.INFO)
        log_path = get_log_path(self.output_dirs)

        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        # Clear existing handlers and add new ones
        root = logging.getLogger()
        root.setLevel(log_level)
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()

        fh = logging.FileHandler(log_path)
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        root.addHandler(fh)

        ch = logging.StreamHandler()
        ch.setLevel(log_level)
        ch.setFormatter(formatter)
        root.addHandler(ch)

        logger.info("Logging: level=%s, file=%s", self.config.logging.level, log_path)

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def run(self, records: Sequence[EntityRecord]) -> List[EntityRecord]:
        """Standardize a collection of records.

        Parameters
        ----------
        records : sequence of EntityRecord
            Raw records, e.g. from ``entity_from_tables``

        Returns
        -------
        list of EntityRecord
            Standardized records sharing one taxon axis, in input order

        Raises
        ------
        ValueError
            If no taxonomy index was given
        EPDError
            If a record cannot be standardized (the entity id is logged)
        """
        if self.taxonomy is None:
            raise ValueError("StandardizationPipeline.run needs a TaxonomyIndex")

        cfg = self.config
        records = list(records)
        logger.info("Standardizing %d entities (stages: %s)", len(records),
                    ", ".join(self._enabled_stages()))

        if cfg.filter.remove_restricted:
            records = remove_restricted(records)

        records = self._map(self._prepare, records, "filter")

        if cfg.filter.remove_without_ages:
            records = remove_without_ages(records)

        lump = map_to_higher if cfg.taxonomy.level == "higher" else map_to_accepted
        records = self._map(partial(lump, index=self.taxonomy), records, "taxonomy")

        records = unify_across(records, self.taxonomy,
                               include_index_taxa=cfg.taxonomy.include_index_taxa,
                               level=cfg.taxonomy.level)

        records = self._map(self._finish, records, "standardize")
        logger.info("Standardized %d entities", len(records))

        if self.output_dirs is not None and cfg.output.save_records:
            for rec in records:
                write_record_netcdf(rec, get_record_path(self.output_dirs, rec.entity_id))

        return records

    def run_from_source(self, source: EntitySource, entity_ids: Iterable[int]) -> List[EntityRecord]:
        """Fetch entities from a data source and standardize them.

        The taxonomy index is built from ``source.fetch_taxonomy()`` unless
        one was given to the constructor.
        """
        if self.taxonomy is None:
            self.taxonomy = TaxonomyIndex.from_frame(source.fetch_taxonomy())
            logger.info("Taxonomy index: %d taxa", len(self.taxonomy))

        entity_ids = list(entity_ids)
        raw = self._map(lambda eid: entity_from_tables(source.fetch_entity(eid)),
                        entity_ids, "fetch", ids=entity_ids)
        return self.run(raw)

    def tabulate(self, records: Sequence[EntityRecord], taxa, age_labels,
                 name: Optional[str] = None) -> FlatTable:
        """Flat table of ``taxa`` at ``age_labels`` across all records.

        With ``name`` and output directories, the table is also written in
        ``output.table_format``.
        """
        separator = self.config.tabulator.taxa_separator
        table = combine_tables([table_by_taxa_age(rec, taxa, age_labels, separator=separator)
                                for rec in records])
        logger.info("Tabulated %d rows from %d entities", len(table), len(records))

        if name is not None and self.output_dirs is not None:
            fmt = self.config.output.table_format
            write_table(table, get_table_path(self.output_dirs, name, fmt),
                        table_format=fmt, compression=self.config.output.compression)
        return table

    # ------------------------------------------------------------------
    # Per-entity stages
    # ------------------------------------------------------------------

    def _prepare(self, record: EntityRecord) -> EntityRecord:
        record = filter_by_taxon_groups(record, self.config.filter.taxon_groups)
        return select_default_chronology(record, self.config.chronology.preferred_id)

    def _finish(self, record: EntityRecord) -> EntityRecord:
        cfg = self.config
        if cfg.normalizer.percentages:
            record = counts_to_percentages(record)

        if cfg.resampling.method == "interpolation":
            record = interpolate_counts(record, cfg.resampling.target_ages)
        elif cfg.resampling.method == "intervals":
            record = intervals_counts(record, cfg.resampling.interval_starts,
                                      cfg.resampling.interval_ends)

        if cfg.quality.enabled:
            record = blois_quality(record, cfg.quality.uncertainty_scale,
                                   cfg.quality.distance_scale)
        return record

    def _map(self, func: Callable, items: Sequence, stage: str, ids: Optional[Sequence] = None) -> list:
        """Apply ``func`` to every item on the thread pool, keeping order."""
        items = list(items)
        if not items:
            return []
        ids = ids if ids is not None else [getattr(item, "entity_id", None) for item in items]

        with ThreadPoolExecutor(max_workers=self.config.pipeline.max_workers,
                                thread_name_prefix=f"epd-{stage}") as pool:
            futures = [pool.submit(func, item) for item in items]
            results = []
            for entity_id, future in zip(ids, futures):
                try:
                    results.append(future.result())
                except Exception:
                    logger.error("Stage '%s' failed for entity %s", stage, entity_id)
                    raise
        logger.debug("Stage '%s' done for %d entities", stage, len(results))
        return results

    def _enabled_stages(self) -> List[str]:
        cfg = self.config
        enabled = {
            "normalization": cfg.normalizer.percentages,
            "resampling": cfg.resampling.method != "none",
            "quality": cfg.quality.enabled,
            "table": False,
        }
        return [stage for stage, need in STAGE_REQUIREMENTS.items()
                if need == "REQUIRED" or enabled.get(stage, False)]
