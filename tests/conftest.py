"""
Pytest configuration and fixtures for the test suite.

Defines markers for selective test execution:
    pytest -m unit          # Fast unit tests
    pytest -m integration   # Pipeline and CLI tests

Fixtures are centralized in tests/fixtures/ for reuse across all test modules.
"""

import os
import sys

import pytest

# Add src to path for imports
src_dir = os.path.join(os.path.dirname(__file__), '..', 'src')
if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

# Add tests directory to path for fixtures import
tests_dir = os.path.dirname(__file__)
if tests_dir not in sys.path:
    sys.path.insert(1, tests_dir)

from fixtures import (
    CLIENT_COMMANDE_MCD,
    MANY_TO_MANY_MCD,
    INHERITANCE_MCD,
    SIMPLE_MLD,
    SIMPLE_MPD,
)

from merise.config import ConversionConfig
from merise.constants import InheritanceStrategy, SqlDialect


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "integration: Pipeline and CLI tests")


# =============================================================================
# Document Fixtures
# =============================================================================

@pytest.fixture
def client_commande_mcd():
    """CLIENT (0,n) -- passe -- (1,1) COMMANDE."""
    return CLIENT_COMMANDE_MCD


@pytest.fixture
def many_to_many_mcd():
    return MANY_TO_MANY_MCD


@pytest.fixture
def inheritance_mcd():
    """PERSONNE specialized into CLIENT and SALARIE, no STRATEGY."""
    return INHERITANCE_MCD


@pytest.fixture
def simple_mld():
    return SIMPLE_MLD


@pytest.fixture
def simple_mpd():
    return SIMPLE_MPD


@pytest.fixture
def temp_model_file(tmp_path, client_commande_mcd):
    """A conceptual model written to disk."""
    path = tmp_path / "shop.mcd"
    path.write_text(client_commande_mcd, encoding="utf-8")
    return path


# =============================================================================
# Config Fixtures
# =============================================================================

@pytest.fixture
def default_config():
    return ConversionConfig()


@pytest.fixture
def postgres_config():
    return ConversionConfig(sql_dialect=SqlDialect.POSTGRESQL)


@pytest.fixture
def single_table_config():
    return ConversionConfig(inheritance_strategy=InheritanceStrategy.SINGLE_TABLE)


@pytest.fixture
def subclass_config():
    return ConversionConfig(inheritance_strategy=InheritanceStrategy.TABLE_PER_SUBCLASS)
