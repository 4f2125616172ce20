"""Test config resolution and validation with Pydantic."""

import pytest
from pydantic import ValidationError

from epdkit.schemas import ParamConfig, UserConfig, InternalConfig
from epdkit.schemas.resolve import resolve_config, deep_merge


class TestConfigResolution:
    """Test resolve_config() precedence and merging."""

    def test_resolve_config_all_defaults(self):
        """Resolving with no user overrides uses all ParamConfig defaults."""
        config = resolve_config(ParamConfig(), None)

        assert isinstance(config, InternalConfig)
        assert config.filter.taxon_groups == ["HERB", "TRSH", "DWAR", "LIAN", "HEMI", "UPHE"]
        assert config.chronology.preferred_id == 9999
        assert config.taxonomy.level == "accepted"
        assert config.resampling.method == "interpolation"
        assert config.quality.enabled is False
        assert config.pipeline.max_workers == 4

    def test_default_target_ages(self):
        config = resolve_config()
        ages = config.resampling.target_ages
        assert ages[0] == 0.0
        assert ages[-1] == 22000.0
        assert len(ages) == 23

    def test_default_intervals_pair_up(self):
        config = resolve_config()
        starts = config.resampling.interval_starts
        ends = config.resampling.interval_ends
        assert len(starts) == len(ends) == 22
        assert (starts[0], ends[0]) == (0.0, 999.0)
        assert (starts[-1], ends[-1]) == (21000.0, 21999.0)

    def test_user_config_overrides_param_config(self):
        user = UserConfig(RESAMPLING_METHOD="intervals", QUALITY=True, MAX_WORKERS=2)
        config = resolve_config(ParamConfig(), user)

        assert config.resampling.method == "intervals"
        assert config.quality.enabled is True
        assert config.pipeline.max_workers == 2

    def test_user_config_from_dict(self):
        config = resolve_config(ParamConfig(), {"TAXON_GROUPS": ["TRSH"], "PERCENTAGES": False})

        assert config.filter.taxon_groups == ["TRSH"]
        assert config.normalizer.percentages is False

    def test_nested_user_section_wins_over_flat_alias(self):
        user = UserConfig(RESAMPLING_METHOD="intervals",
                          resampling={"method": "none"})
        config = resolve_config(ParamConfig(), user)

        assert config.resampling.method == "none"

    def test_empty_user_config_uses_all_param_defaults(self):
        config = resolve_config(ParamConfig(), UserConfig())
        assert config == resolve_config(ParamConfig(), None)

    def test_base_dir_and_log_level(self):
        config = resolve_config(ParamConfig(), UserConfig(BASE_DIR="/data/epd", LOG_LEVEL="debug"))

        assert config.output.base_dir == "/data/epd"
        assert config.logging.level == "DEBUG"

    def test_preferred_chronology_override(self):
        config = resolve_config(ParamConfig(), UserConfig(PREFERRED_CHRONOLOGY=3))
        assert config.chronology.preferred_id == 3


class TestConfigValidation:

    def test_internal_config_is_frozen(self, internal_config):
        with pytest.raises(ValidationError):
            internal_config.pipeline = None

    def test_unknown_resampling_method_rejected(self):
        with pytest.raises(ValidationError):
            resolve_config(ParamConfig(), UserConfig(RESAMPLING_METHOD="spline"))

    def test_mismatched_intervals_rejected(self):
        with pytest.raises(ValidationError, match="same length"):
            ParamConfig(resampling={"interval_starts": [0, 1000], "interval_ends": [999]})

    def test_reversed_interval_rejected(self):
        with pytest.raises(ValidationError, match="after its end"):
            ParamConfig(resampling={"interval_starts": [1000], "interval_ends": [0]})

    def test_param_config_forbids_extra_fields(self):
        with pytest.raises(ValidationError):
            ParamConfig(not_a_section={})

    def test_user_config_ignores_unknown_keys(self):
        user = UserConfig(SITE_NAME="Lago di Origlio")
        assert user.to_internal_overrides() == {}

    def test_quality_scale_must_be_positive(self):
        with pytest.raises(ValidationError):
            ParamConfig(quality={"uncertainty_scale": 0})

    def test_max_workers_at_least_one(self):
        with pytest.raises(ValidationError):
            ParamConfig(pipeline={"max_workers": 0})

    def test_user_max_workers_validated(self):
        with pytest.raises(ValidationError):
            resolve_config(None, UserConfig(MAX_WORKERS=0))

    @pytest.mark.parametrize("user", [
        {"quality_index": {"uncertainty_scale": 0}},
        {"quality_index": {"distance_scale": -5}},
        {"visualization": {"dpi": 10}},
        {"visualization": {"exaggeration": 0.5}},
    ])
    def test_user_overrides_keep_ranges(self, user):
        with pytest.raises(ValidationError):
            resolve_config(None, user)

    def test_internal_config_rejects_empty_separator(self):
        data = resolve_config().model_dump()
        data["tabulator"]["taxa_separator"] = ""
        with pytest.raises(ValidationError):
            InternalConfig.model_validate(data)


class TestUserConfigNormalization:

    def test_method_is_lowercased(self):
        assert UserConfig(RESAMPLING_METHOD=" Intervals ").resampling_method == "intervals"

    def test_taxon_groups_from_comma_string(self):
        assert UserConfig(TAXON_GROUPS="trsh, herb").taxon_groups == ["TRSH", "HERB"]

    def test_field_names_accepted(self):
        user = UserConfig(resampling_method="none", max_workers=1)
        assert user.to_internal_overrides() == {
            "resampling": {"method": "none"},
            "pipeline": {"max_workers": 1},
        }


def test_deep_merge_nested():
    base = {"a": 1, "b": {"c": 2, "d": 3}}
    override = {"b": {"d": 4, "e": 5}, "f": 6}
    assert deep_merge(base, override) == {"a": 1, "b": {"c": 2, "d": 4, "e": 5}, "f": 6}
    assert base == {"a": 1, "b": {"c": 2, "d": 3}}
