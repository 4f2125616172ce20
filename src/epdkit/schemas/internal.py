"""InternalConfig: authoritative runtime configuration.

The only config schema that runtime code sees. It is fully validated,
frozen, and every field is explicit: no .get() calls and no fallback
defaults in processing code.
"""

from typing import Literal, Optional
from pydantic import ConfigDict, Field, model_validator
from epdkit.schemas.base import EpdBaseModel


# =============================================================================
# Nested Configuration Models (Runtime)
# =============================================================================

class InternalFilterConfig(EpdBaseModel):
    """Runtime filter configuration."""
    taxon_groups: list[str]
    remove_restricted: bool
    remove_without_ages: bool


class InternalChronologyConfig(EpdBaseModel):
    """Runtime chronology selection."""
    preferred_id: Optional[int]


class InternalTaxonomyConfig(EpdBaseModel):
    """Runtime taxonomy configuration."""
    level: Literal["accepted", "higher"]
    include_index_taxa: bool


class InternalNormalizerConfig(EpdBaseModel):
    percentages: bool


class InternalResamplingConfig(EpdBaseModel):
    """Runtime resampling configuration."""
    method: Literal["interpolation", "intervals", "none"]
    target_ages: list[float]
    interval_starts: list[float]
    interval_ends: list[float]

    @model_validator(mode="after")
    def check_intervals(self):
        if len(self.interval_starts) != len(self.interval_ends):
            raise ValueError("interval_starts and interval_ends must have the same length")
        if any(s > e for s, e in zip(self.interval_starts, self.interval_ends)):
            raise ValueError("every interval start must be <= its end")
        return self


class InternalQualityConfig(EpdBaseModel):
    """Runtime quality index configuration."""
    enabled: bool
    uncertainty_scale: float = Field(gt=0)
    distance_scale: float = Field(gt=0)


class InternalPipelineConfig(EpdBaseModel):
    max_workers: int = Field(ge=1)


class InternalTabulatorConfig(EpdBaseModel):
    taxa_separator: str = Field(min_length=1)


class InternalVisualizationConfig(EpdBaseModel):
    """Runtime visualization settings."""
    dpi: int = Field(ge=50)
    figsize: tuple[float, float]
    output_format: Literal["png", "pdf", "jpeg"]
    point_size: float = Field(gt=0)
    point_color: str
    absent_color: str
    na_point_size: float = Field(gt=0)
    na_point_color: str
    colormap: str
    exaggeration: float = Field(ge=1.0)
    diagram_color: str
    exaggeration_color: str


class InternalOutputConfig(EpdBaseModel):
    """Runtime output configuration."""
    base_dir: Optional[str]
    table_format: Literal["csv", "parquet"]
    compression: Literal["snappy", "gzip", "lz4", "none"]
    save_records: bool


class InternalLoggingConfig(EpdBaseModel):
    """Runtime logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


# =============================================================================
# Main InternalConfig
# =============================================================================

class InternalConfig(EpdBaseModel):
    """Authoritative runtime configuration.

    Runtime modules receive InternalConfig and access fields directly:

        def __init__(self, config: InternalConfig):
            self.groups = config.filter.taxon_groups  # NOT .get()

    Validation happens during config resolution, not in runtime code.
    """

    filter: InternalFilterConfig
    chronology: InternalChronologyConfig
    taxonomy: InternalTaxonomyConfig
    normalizer: InternalNormalizerConfig
    resampling: InternalResamplingConfig
    quality: InternalQualityConfig
    pipeline: InternalPipelineConfig
    tabulator: InternalTabulatorConfig
    visualization: InternalVisualizationConfig
    output: InternalOutputConfig
    logging: InternalLoggingConfig

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        frozen=True,  # Immutable after construction
    )
