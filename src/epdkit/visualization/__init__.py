"""Visualization modules.

- plotter: maps of flat tables and pollen diagrams
"""

from epdkit.visualization.plotter import PollenPlotter

__all__ = [
    "PollenPlotter",
]
