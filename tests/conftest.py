"""Pytest configuration for shading tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture
def rng():
    """Random streams large enough for the statistical tests."""
    from pathshade.core.rng import RandomStreams

    return RandomStreams(count=20000, length=8, seed=1234)


@pytest.fixture
def small_rng():
    """A handful of streams for scripted, single-sample tests."""
    from pathshade.core.rng import RandomStreams

    return RandomStreams(count=4, length=8, seed=99)
