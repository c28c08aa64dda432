"""Root-level pytest fixtures for the impactgen test suite.

Provides shared configuration fixtures following the Pydantic-based
architecture, and the 4x4 two-region scenario used across the reduction
tests.
"""

import pytest
import numpy as np

from impactgen.forcing import AgentForcing, ForcingIndex, ReferenceTime
from impactgen.impacts import ProxyGrid, RegionRaster
from impactgen.schemas import ParamConfig, UserConfig, resolve_config
from tests.helpers.rasters import make_isoraster_ds, make_proxy_ds, source


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
    return resolve_config(param_config, None, None)


@pytest.fixture
def make_config(param_config):
    """Factory fixture for creating custom test configs.

    Examples
    --------
    >>> def test_chunking(make_config):
    ...     config = make_config(CHUNK_SIZE=4)
    """
    def _make(**user_overrides):
        if user_overrides:
            user = UserConfig(**user_overrides)
            return resolve_config(param_config, user, None)
        return resolve_config(param_config, None, None)

    return _make


# =============================================================================
# Scenario Fixtures
# =============================================================================

@pytest.fixture
def reference_time():
    return ReferenceTime.parse("days since 2000-01-01")


@pytest.fixture
def forcing_index():
    return ForcingIndex(["AGRI", "MANU"], ["USA", "CHN"])


@pytest.fixture
def base_forcing(forcing_index):
    """All-ones template: no impact anywhere."""
    return AgentForcing.from_index(forcing_index, fill=1.0)


@pytest.fixture
def region_raster():
    """4x4 iso-raster, USA in the 2x2 corner, CHN elsewhere."""
    return RegionRaster.read(source(make_isoraster_ds(), "iso.nc"), "iso", ["USA", "CHN"])


@pytest.fixture
def proxy(region_raster):
    """All-ones proxy over the scenario grid."""
    return ProxyGrid.read(source(make_proxy_ds(), "proxy.nc"), "gdp", region_raster)


@pytest.fixture
def half_hazard():
    return np.full((4, 4), 0.5)
