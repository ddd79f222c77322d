"""Root-level pytest fixtures for ripen test suite.

Provides shared configuration fixtures following Pydantic-based architecture.
All tests must use these fixtures instead of creating raw dict configs.
"""

import logging

import pytest
from pathlib import Path
import tempfile
import shutil

import numpy as np
from PIL import Image

from ripen.image import IntensityGrid
from ripen.schemas import ParamConfig, UserConfig, resolve_config
from ripen.store import BucketStore


# =============================================================================
# Directory Fixtures
# =============================================================================

@pytest.fixture
def temp_dir():
    """Temporary directory that is cleaned up after test."""
    d = tempfile.mkdtemp()
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)


# =============================================================================
# Image Fixtures
# =============================================================================

@pytest.fixture
def make_grid():
    """Factory for in-memory grids.

    Rows are pixel rows (top first), columns are time steps.

    Examples
    --------
    >>> def test_width(make_grid):
    ...     grid = make_grid([[0, 128, 255]])
    ...     assert grid.width() == 3
    """
    def _make(rows):
        return IntensityGrid.from_array(np.asarray(rows, dtype=np.uint8))
    return _make


@pytest.fixture
def write_png(temp_dir):
    """Factory writing a grayscale PNG into temp_dir, returns its path."""
    def _write(rows, name="image.png"):
        path = temp_dir / name
        Image.fromarray(np.asarray(rows, dtype=np.uint8)).save(path)
        return path
    return _write


# =============================================================================
# Configuration Fixtures (Pydantic-based)
# =============================================================================

@pytest.fixture
def param_config():
    """Expert configuration with all defaults."""
    return ParamConfig()


@pytest.fixture
def make_config(param_config, temp_dir):
    """Factory fixture for creating custom test configs.

    The image path and base directory default to temp_dir so every config
    resolves. Accepts UserConfig-compatible kwargs.

    Examples
    --------
    >>> def test_custom_ripeness(make_config):
    ...     config = make_config(ripeness=10)
    ...     assert config.bake.ripeness == 10
    """
    def _make(**user_overrides):
        user_overrides.setdefault("image_path", str(temp_dir / "image.png"))
        user_overrides.setdefault("base_dir", str(temp_dir))
        return resolve_config(param_config, UserConfig(**user_overrides), None)

    return _make


@pytest.fixture
def internal_config(make_config):
    """Fully validated runtime configuration rooted in temp_dir."""
    return make_config()


# =============================================================================
# Store Fixtures
# =============================================================================

@pytest.fixture
def store(temp_dir):
    """Unprovisioned BucketStore in temp_dir, closed after the test."""
    s = BucketStore(temp_dir / "store", "test_schema")
    yield s
    s.close()


# =============================================================================
# Logging Fixtures
# =============================================================================

@pytest.fixture
def restore_root_logging():
    """The orchestrator owns the root handlers; put them back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
