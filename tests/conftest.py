"""Root-level pytest fixtures for the epdkit test suite.

Configuration fixtures go through resolve_config like runtime code does;
record fixtures are small synthetic entities from tests/helpers.
"""

import pytest

from epdkit.schemas import ParamConfig, UserConfig, resolve_config
from tests.helpers.fake_records import make_record, make_taxonomy_index


# =============================================================================
# Configuration Fixtures (Pydantic-based)
# =============================================================================

@pytest.fixture
def param_config():
    """Expert configuration with all defaults."""
    return ParamConfig()


@pytest.fixture
def internal_config(param_config):
    """Fully validated runtime configuration (no overrides)."""
    return resolve_config(param_config, None)


@pytest.fixture
def make_config(param_config):
    """Factory fixture for creating custom test configs.

    Examples
    --------
    >>> def test_intervals(make_config):
    ...     config = make_config(RESAMPLING_METHOD="intervals")
    ...     assert config.resampling.method == "intervals"
    """
    def _make(**user_overrides):
        if user_overrides:
            return resolve_config(param_config, UserConfig(**user_overrides))
        return resolve_config(param_config, None)

    return _make


# =============================================================================
# Data Fixtures
# =============================================================================

@pytest.fixture
def taxonomy():
    """Session TaxonomyIndex over the synthetic taxa."""
    return make_taxonomy_index()


@pytest.fixture
def record():
    """Three dated samples (500, 1000, 1500 BP) of Quercus and Poaceae."""
    return make_record()
