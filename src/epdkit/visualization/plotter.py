"""Pollen maps and diagrams.

Maps are drawn from flat tables only; diagrams from a single standardized
record. Output goes through the Agg backend to PNG/PDF/JPEG.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from epdkit.core.record import EntityRecord
from epdkit.export.tabulator import FlatTable, combine_tables
from epdkit.schemas import InternalConfig, resolve_config

__all__ = ['PollenPlotter']

logger = logging.getLogger(__name__)

# Longitudes west of this wrap to the eastern hemisphere (Beringia sites)
DATELINE_WRAP = -175.0


class PollenPlotter:
    """Renders flat tables as maps and records as pollen diagrams.

    **Maps** (``map_taxa_age``): one point per entity at its longitude and
    latitude, for a single taxon label and age label. Counts are drawn with
    a colour scale, or as presence/absence against a threshold. Entities
    with no data at that age (NaN count) are drawn as small grey points so
    they are not mistaken for zero.

    **Diagrams** (``plot_diagram``): one silhouette per taxon against age
    (or depth), with an exaggerated copy behind it so that low values stay
    visible.

    Example usage::

        plotter = PollenPlotter(config)
        fig = plotter.map_taxa_age(table, "Quercus", "6000")
        plotter.save(fig, "plots/quercus_6000.png")
    """

    def __init__(self, config: Optional[InternalConfig] = None):
        """
        Parameters
        ----------
        config : InternalConfig, optional
            Runtime configuration; defaults are used when omitted.
        """
        self.config = config if config is not None else resolve_config()
        viz = self.config.visualization

        self.dpi = viz.dpi
        self.figsize = tuple(viz.figsize)
        self.output_format = viz.output_format
        self.viz = viz

        logger.debug("PollenPlotter initialized (format=%s, dpi=%d)", self.output_format, self.dpi)

    # ------------------------------------------------------------------
    # Maps
    # ------------------------------------------------------------------

    def map_taxa_age(self, tables: Union[FlatTable, Sequence[FlatTable]], taxa_label: str,
                     age_label: str, presence: bool = False,
                     pollen_threshold: Optional[float] = None,
                     title: Optional[str] = None) -> plt.Figure:
        """Map counts of one taxon at one age across entities.

        Parameters
        ----------
        tables : FlatTable or sequence of FlatTable
            Flat tables, e.g. from ``table_by_taxa_age``
        taxa_label : str
            Value of the ``taxon`` column to map (a name, or a combined
            label such as ``"Quercus+Corylus"``)
        age_label : str
            Value of the ``age_label`` column to map
        presence : bool, optional
            Draw presence/absence instead of a colour scale
        pollen_threshold : float, optional
            Presence means ``count > pollen_threshold``. Defaults to 0.
        title : str, optional
            Plot title

        Returns
        -------
        matplotlib.figure.Figure

        Raises
        ------
        ValueError
            If no row matches ``taxa_label`` and ``age_label``
        """
        if not isinstance(tables, FlatTable):
            tables = combine_tables(tables)
        df = tables.frame

        rows = df[(df["taxon"] == taxa_label) & (df["age_label"] == str(age_label))]
        if rows.empty:
            raise ValueError(f"No rows for taxon '{taxa_label}' at age '{age_label}'")

        lon = rows["longitude"].to_numpy(dtype=float)
        lon = np.where(lon < DATELINE_WRAP, lon + 360.0, lon)
        lat = rows["latitude"].to_numpy(dtype=float)
        counts = rows["count"].to_numpy(dtype=float)
        missing = np.isnan(counts)

        fig, ax = plt.subplots(figsize=self.figsize, dpi=self.dpi)
        viz = self.viz

        ax.scatter(lon[missing], lat[missing], s=viz.na_point_size, c=viz.na_point_color,
                   marker='o', linewidths=0, label='No data', zorder=2)

        if presence:
            if pollen_threshold is None:
                logger.warning("pollen_threshold not given; presence means count > 0")
                pollen_threshold = 0.0
            present = ~missing & (counts > pollen_threshold)
            absent = ~missing & ~present
            ax.scatter(lon[present], lat[present], s=viz.point_size, c=viz.point_color,
                       edgecolors='black', linewidths=0.5, label='Present', zorder=3)
            ax.scatter(lon[absent], lat[absent], s=viz.point_size, c=viz.absent_color,
                       edgecolors='black', linewidths=0.5, label='Absent', zorder=3)
        else:
            sc = ax.scatter(lon[~missing], lat[~missing], s=viz.point_size, c=counts[~missing],
                            cmap=viz.colormap, edgecolors='black', linewidths=0.5, zorder=3)
            if (~missing).any():
                cbar = fig.colorbar(sc, ax=ax, shrink=0.8)
                cbar.set_label(tables.counts_unit.value)

        ax.legend(loc='lower left', fontsize=9, framealpha=0.9)
        self._format_map_axis(ax, title or f"{taxa_label} at {age_label}")

        logger.debug("Mapped %s at %s: %d points (%d without data)",
                     taxa_label, age_label, len(rows), int(missing.sum()))
        return fig

    def _format_map_axis(self, ax: plt.Axes, title: str) -> None:
        ax.set_xlabel('Longitude', fontsize=11)
        ax.set_ylabel('Latitude', fontsize=11)
        ax.set_aspect('equal', adjustable='datalim')
        ax.grid(True, alpha=0.2, linestyle=':', linewidth=0.5)
        ax.set_title(title, fontsize=12, fontweight='bold', pad=10)

    # ------------------------------------------------------------------
    # Diagrams
    # ------------------------------------------------------------------

    def plot_diagram(self, record: EntityRecord, use_ages: bool = True,
                     exaggeration: Optional[float] = None, order_taxa: bool = True,
                     max_taxa: Optional[int] = None) -> plt.Figure:
        """Pollen diagram of one record.

        Parameters
        ----------
        record : EntityRecord
            Record to draw
        use_ages : bool, optional
            Vertical axis is the default chronology (falls back to depth when
            the record has none)
        exaggeration : float, optional
            Factor of the exaggerated silhouette. Defaults to
            ``visualization.exaggeration``.
        order_taxa : bool, optional
            Order taxa by decreasing maximum value
        max_taxa : int, optional
            Keep only the first ``max_taxa`` taxa after ordering

        Returns
        -------
        matplotlib.figure.Figure
        """
        if record.counts.shape[1] == 0:
            raise ValueError(f"Entity {record.entity_id} has no taxa to plot")

        exaggeration = self.viz.exaggeration if exaggeration is None else exaggeration
        y, y_label = self._vertical_axis(record, use_ages)

        counts = record.counts
        names = list(record.taxon_names)
        order = list(range(len(names)))
        if order_taxa:
            peaks = counts.max(axis=0, skipna=True).fillna(-np.inf).to_numpy()
            order = list(np.argsort(-peaks, kind="stable"))
        if max_taxa is not None:
            order = order[:max_taxa]

        fig, axes = plt.subplots(1, len(order), sharey=True, squeeze=False,
                                 figsize=(max(2.0, 1.2 * len(order)), self.figsize[1]), dpi=self.dpi)
        axes = axes[0]

        for ax, col in zip(axes, order):
            values = counts.iloc[:, col].to_numpy(dtype=float)
            valid = np.isfinite(values) & np.isfinite(y)
            peak = np.nanmax(values[valid]) if valid.any() else 0.0

            ax.fill_betweenx(y[valid], 0, values[valid] * exaggeration,
                             color=self.viz.exaggeration_color, linewidth=0)
            ax.fill_betweenx(y[valid], 0, values[valid],
                             color=self.viz.diagram_color, linewidth=0)
            ax.set_xlim(0, max(peak, 1e-9) * 1.05)
            ax.set_title(names[col], rotation=60, ha='left', fontsize=9, style='italic')
            ax.tick_params(labelsize=7)

        axes[0].set_ylabel(y_label, fontsize=11)
        axes[0].invert_yaxis()
        fig.suptitle(f"Entity {record.entity_id}", fontsize=12, fontweight='bold')

        logger.debug("Diagram for entity %s: %d taxa", record.entity_id, len(order))
        return fig

    def _vertical_axis(self, record: EntityRecord, use_ages: bool) -> Tuple[np.ndarray, str]:
        if use_ages:
            ages = record.default_ages()
            if ages is not None:
                return np.asarray(ages, dtype=float), 'Age (cal BP)'
            logger.warning("Entity %s has no default chronology; plotting against depth",
                           record.entity_id)
        return np.asarray(record.depths, dtype=float), 'Depth (cm)'

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def save(self, fig: plt.Figure, output_path) -> Path:
        """Save figure in the configured format and close it."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        output_file = output_path.with_suffix(f'.{self.output_format}')
        fig.savefig(
            output_file,
            dpi=self.dpi,
            bbox_inches='tight',
            format=self.output_format
        )
        plt.close(fig)
        logger.info("Plot saved: %s", output_file)

        return output_file
