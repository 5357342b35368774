"""Pytest fixtures for tilefill tests."""

import tempfile

import pytest


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture(autouse=True)
def quiet_tracer():
    """Keep the shared tracer disabled between tests."""
    from tilefill.tracer import configure_tracer
    configure_tracer(enabled=False)
    yield
    configure_tracer(enabled=False)


@pytest.fixture
def default_config():
    """Create default engine configuration."""
    from tilefill.config import EngineConfig
    return EngineConfig()


@pytest.fixture
def triangle_tile():
    from tilefill.geometry.tile import TileFrame
    return TileFrame("triangle", 200)


@pytest.fixture
def square_tile():
    from tilefill.geometry.tile import TileFrame
    return TileFrame("square", 200)


@pytest.fixture
def document():
    from tilefill.models import TileDocument
    return TileDocument(tiling_id="square", tile_shape="square")


@pytest.fixture
def circle_design(document):
    """Square tile design with one circle of radius 50 at the centre."""
    document.add_circle("square", (0.0, 0.0), 0.25)
    return document.design_for("square")


@pytest.fixture
def cross_design(document):
    """Square tile design with two diagonals spanning corner to corner."""
    document.add_line("square", (-0.5, -0.5), (0.5, 0.5))
    document.add_line("square", (0.5, -0.5), (-0.5, 0.5))
    return document.design_for("square")


@pytest.fixture
def boxed_circle_design(document):
    """
    Circle enclosed by an inner square of four lines, plus one stray line
    outside the box that bounds nothing around the circle.
    """
    d = 0.35
    document.add_line("square", (-d, -d), (d, -d))
    document.add_line("square", (d, -d), (d, d))
    document.add_line("square", (d, d), (-d, d))
    document.add_line("square", (-d, d), (-d, -d))
    document.add_circle("square", (0.0, 0.0), 0.2)
    document.add_line("square", (-0.45, 0.42), (0.45, 0.42))
    return document.design_for("square")


@pytest.fixture
def engine(default_config):
    from tilefill.fill.engine import FillEngine
    return FillEngine(config=default_config)
