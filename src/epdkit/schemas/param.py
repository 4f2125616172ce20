"""ParamConfig: expert defaults for the standardization pipeline.

Every tunable parameter has its default here. Runtime code never reads
ParamConfig directly; it only receives InternalConfig.
"""

from typing import Literal, Optional
from pydantic import Field, field_validator, model_validator
from epdkit.schemas.base import EpdBaseModel


# =============================================================================
# Nested Configuration Models
# =============================================================================

class FilterConfig(EpdBaseModel):
    """Entity and taxon filters applied before standardization."""
    taxon_groups: list[str] = Field(
        default_factory=lambda: ["HERB", "TRSH", "DWAR", "LIAN", "HEMI", "UPHE"],
        description="EPD taxon groups kept in the counts matrix",
    )
    remove_restricted: bool = True
    remove_without_ages: bool = True

    @field_validator("taxon_groups", mode="before")
    @classmethod
    def coerce_single_group(cls, v):
        """Accept a single group code."""
        if isinstance(v, str):
            return [v]
        return v


class ChronologyConfig(EpdBaseModel):
    """Default chronology selection."""
    preferred_id: Optional[int] = Field(9999, description="Giesecke et al. (2013) chronology")


class TaxonomyConfig(EpdBaseModel):
    """Taxonomic unification."""
    level: Literal["accepted", "higher"] = "accepted"
    include_index_taxa: bool = False

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        if isinstance(v, str):
            return v.lower().strip()
        return v


class NormalizerConfig(EpdBaseModel):
    """Counts normalization."""
    percentages: bool = True


class ResamplingConfig(EpdBaseModel):
    """Temporal resampling onto common ages."""
    method: Literal["interpolation", "intervals", "none"] = "interpolation"
    target_ages: list[float] = Field(default_factory=lambda: [float(a) for a in range(0, 22001, 1000)])
    interval_starts: list[float] = Field(default_factory=lambda: [float(a) for a in range(0, 21001, 1000)])
    interval_ends: list[float] = Field(default_factory=lambda: [float(a) for a in range(999, 22000, 1000)])

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, v):
        """Normalize method names to lowercase."""
        if isinstance(v, str):
            return v.lower().strip()
        return v

    @model_validator(mode="after")
    def check_intervals(self):
        if len(self.interval_starts) != len(self.interval_ends):
            raise ValueError("interval_starts and interval_ends must have the same length")
        for start, end in zip(self.interval_starts, self.interval_ends):
            if start > end:
                raise ValueError(f"interval start {start} is after its end {end}")
        return self


class QualityConfig(EpdBaseModel):
    """Blois quality index."""
    enabled: bool = False
    uncertainty_scale: float = Field(1000.0, gt=0, description="Years at which the dating component is 1/e")
    distance_scale: float = Field(1000.0, gt=0, description="Years at which the distance component is 1/e")


class PipelineConfig(EpdBaseModel):
    """Pipeline execution settings."""
    max_workers: int = Field(4, ge=1)


class TabulatorConfig(EpdBaseModel):
    """Flat table settings."""
    taxa_separator: str = Field("+", min_length=1)


class VisualizationConfig(EpdBaseModel):
    """Visualization settings."""
    dpi: int = Field(200, ge=50)
    figsize: tuple[float, float] = (10.0, 8.0)
    output_format: Literal["png", "pdf", "jpeg"] = "png"
    point_size: float = Field(30.0, gt=0)
    point_color: str = "darkgreen"
    absent_color: str = "white"
    na_point_size: float = Field(8.0, gt=0)
    na_point_color: str = "grey"
    colormap: str = "YlOrRd"
    exaggeration: float = Field(10.0, ge=1.0)
    diagram_color: str = "forestgreen"
    exaggeration_color: str = "lightgrey"


class OutputConfig(EpdBaseModel):
    """Output file configuration."""
    base_dir: Optional[str] = None
    table_format: Literal["csv", "parquet"] = "csv"
    compression: Literal["snappy", "gzip", "lz4", "none"] = "snappy"
    save_records: bool = False


class LoggingConfig(EpdBaseModel):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


# =============================================================================
# Main ParamConfig
# =============================================================================

class ParamConfig(EpdBaseModel):
    """Complete expert configuration with all defaults.

    Base layer of config resolution:

        internal_cfg = resolve_config(param_cfg, user_cfg)

    Runtime code only sees InternalConfig.
    """

    filter: FilterConfig = Field(default_factory=FilterConfig)
    chronology: ChronologyConfig = Field(default_factory=ChronologyConfig)
    taxonomy: TaxonomyConfig = Field(default_factory=TaxonomyConfig)
    normalizer: NormalizerConfig = Field(default_factory=NormalizerConfig)
    resampling: ResamplingConfig = Field(default_factory=ResamplingConfig)
    quality: QualityConfig = Field(default_factory=QualityConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    tabulator: TabulatorConfig = Field(default_factory=TabulatorConfig)
    visualization: VisualizationConfig = Field(default_factory=VisualizationConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
