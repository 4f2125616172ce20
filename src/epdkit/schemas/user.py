"""UserConfig: forgiving, minimal user-facing configuration.

Accepts flat upper-case aliases (e.g. RESAMPLING_METHOD -> resampling.method)
as well as nested section overrides. Users only specify what they want to
override from the expert defaults.
"""

from typing import Literal, Optional, Any
from pydantic import Field, field_validator
from epdkit.schemas.base import EpdBaseModel


class UserResamplingConfig(EpdBaseModel):
    """User-facing resampling config."""
    method: Optional[str] = None
    target_ages: Optional[list[float]] = None
    interval_starts: Optional[list[float]] = None
    interval_ends: Optional[list[float]] = None

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, v):
        """Normalize method names to lowercase."""
        if isinstance(v, str):
            return v.lower().strip()
        return v


class UserQualityConfig(EpdBaseModel):
    """User-facing quality config."""
    enabled: Optional[bool] = None
    uncertainty_scale: Optional[float] = None
    distance_scale: Optional[float] = None


class UserConfig(EpdBaseModel):
    """User-facing configuration schema.

    Usage
    -----
        user_cfg = UserConfig(
            TAXON_GROUPS=["TRSH", "HERB"],
            RESAMPLING_METHOD="intervals",
            QUALITY=True,
        )

        internal = resolve_config(param_cfg, user_cfg)
    """

    # Flat aliases
    taxon_groups: Optional[list[str]] = Field(None, alias="TAXON_GROUPS")
    preferred_chronology: Optional[int] = Field(None, alias="PREFERRED_CHRONOLOGY")
    taxonomy_level: Optional[Literal["accepted", "higher"]] = Field(None, alias="TAXONOMY_LEVEL")
    resampling_method: Optional[str] = Field(None, alias="RESAMPLING_METHOD")
    target_ages: Optional[list[float]] = Field(None, alias="TARGET_AGES")
    percentages: Optional[bool] = Field(None, alias="PERCENTAGES")
    quality: Optional[bool] = Field(None, alias="QUALITY")
    base_dir: Optional[str] = Field(None, alias="BASE_DIR")
    log_level: Optional[str] = Field(None, alias="LOG_LEVEL")
    max_workers: Optional[int] = Field(None, alias="MAX_WORKERS")

    # Nested overrides (advanced users)
    filter: Optional[dict[str, Any]] = None
    resampling: Optional[UserResamplingConfig] = None
    quality_index: Optional[UserQualityConfig] = None
    visualization: Optional[dict[str, Any]] = None
    output: Optional[dict[str, Any]] = None

    model_config = EpdBaseModel.model_config.copy()
    # Allow forgiving input dictionaries (ignore unknown legacy keys)
    model_config.update({"populate_by_name": True, "extra": "ignore"})

    @field_validator("taxon_groups", mode="before")
    @classmethod
    def coerce_groups(cls, v):
        """Accept a single group code or a comma separated string."""
        if isinstance(v, str):
            return [g.strip().upper() for g in v.split(",") if g.strip()]
        return v

    @field_validator("resampling_method", mode="before")
    @classmethod
    def normalize_method_name(cls, v):
        if isinstance(v, str):
            return v.lower().strip()
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.upper().strip()
        return v

    def to_internal_overrides(self) -> dict:
        """Convert flat UserConfig to nested InternalConfig structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        # Filter section
        filter_cfg = {}
        if self.taxon_groups is not None:
            filter_cfg["taxon_groups"] = self.taxon_groups
        if self.filter is not None:
            filter_cfg.update(self.filter)
        if filter_cfg:
            overrides["filter"] = filter_cfg

        if self.preferred_chronology is not None:
            overrides["chronology"] = {"preferred_id": self.preferred_chronology}

        if self.taxonomy_level is not None:
            overrides["taxonomy"] = {"level": self.taxonomy_level}

        if self.percentages is not None:
            overrides["normalizer"] = {"percentages": self.percentages}

        # Resampling section
        resampling = {}
        if self.resampling_method is not None:
            resampling["method"] = self.resampling_method
        if self.target_ages is not None:
            resampling["target_ages"] = self.target_ages
        if self.resampling is not None:
            resampling.update(self.resampling.model_dump(exclude_none=True))
        if resampling:
            overrides["resampling"] = resampling

        # Quality section
        quality = {}
        if self.quality is not None:
            quality["enabled"] = self.quality
        if self.quality_index is not None:
            quality.update(self.quality_index.model_dump(exclude_none=True))
        if quality:
            overrides["quality"] = quality

        if self.max_workers is not None:
            overrides["pipeline"] = {"max_workers": self.max_workers}

        if self.visualization is not None:
            overrides["visualization"] = dict(self.visualization)

        # Output section
        output = {}
        if self.base_dir is not None:
            output["base_dir"] = str(self.base_dir)
        if self.output is not None:
            output.update(self.output)
        if output:
            overrides["output"] = output

        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}

        return overrides
