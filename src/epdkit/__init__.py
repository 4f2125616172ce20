"""`epdkit` - standardization of European Pollen Database entities.

Subpackages:
- core: EntityRecord, TaxonomyIndex, record assembly
- standardize: filters, chronology, taxonomy, normalization, resampling, quality
- export: flat tables and file writers
- pipeline: StandardizationPipeline
- visualization: maps and pollen diagrams
"""

__version__ = "0.1.0"
