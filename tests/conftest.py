"""
pytest configuration and fixtures for structure mapping tests.

Provides reusable fixtures for:
- Layout catalogs loaded from YAML
- Mappers over small byte buffers
- Hypothesis property-based testing configuration
"""

import os
import sys
from pathlib import Path

import pytest
from hypothesis import settings, HealthCheck, Verbosity, Phase

# Add project paths
sys.path.insert(0, str(Path(__file__).parent.parent / "tools"))

from layout_catalog import LayoutCatalog
from struct_mapping import clear_schema_cache

# Configure Hypothesis profiles

# The autouse schema-cache fixture is function scoped but safe to share
# across examples of one test
SHARED_FIXTURE_OK = [HealthCheck.function_scoped_fixture]

# Default profile: balanced speed and coverage
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
    suppress_health_check=SHARED_FIXTURE_OK,
)

# CI profile: more thorough testing
settings.register_profile(
    "ci",
    max_examples=500,
    deadline=None,
    suppress_health_check=SHARED_FIXTURE_OK,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)

# Dev profile: fast iteration
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
    suppress_health_check=SHARED_FIXTURE_OK,
)

# Debug profile: verbose output
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
    suppress_health_check=SHARED_FIXTURE_OK,
)

settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "default"))


LAYOUTS_YAML = """
endian: little
layouts:
  - name: Pair
    category: /test
    fields:
      - name: field1
        type: u32
      - name: field2
        type: u32
  - name: Header
    category: /test
    fields:
      - name: magic
        type: u32
      - name: version
        type: u16
      - name: flags
        type: s16
      - name: label
        type: ascii
        length: 8
  - name: Extended
    category: /test
    fields:
      - name: magic
        type: u32
      - name: version
        type: u16
      - name: flags
        type: s16
      - name: label
        type: ascii
        length: 8
      - name: extra
        type: u32
  - name: Node
    category: /test
    fields:
      - name: value
        type: u16
      - name: pad
        type: u16
      - name: next
        type: u32
  - name: Outer
    category: /test
    fields:
      - name: tag
        type: u8
      - name: inner
        type: Pair
        offset: 4
"""


@pytest.fixture(autouse=True)
def fresh_schema_cache():
    """Test classes are redefined per test; keep cached schemas from leaking."""
    clear_schema_cache()
    yield
    clear_schema_cache()


@pytest.fixture
def catalog():
    """Catalog holding the test layouts."""
    cat = LayoutCatalog()
    cat.load_yaml(LAYOUTS_YAML)
    return cat


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
