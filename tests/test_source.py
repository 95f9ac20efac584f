import numpy as np
import pytest

from muon_tomo.config import SourceConfig
from muon_tomo.core.units import GeV, m
from muon_tomo.errors import ConfigurationError
from muon_tomo.source import FixedPointSource, UniformAreaSource, make_source


def test_fixed_point_source_repeats_vertex():
    source = FixedPointSource()
    vertices = list(source.vertices(5))
    assert len(vertices) == 5
    assert all(v == vertices[0] for v in vertices)
    assert vertices[0].position == (0.0, 0.0, 2.0 * m)
    assert vertices[0].direction == (0.0, 0.0, -1.0)
    assert vertices[0].particle == 'mu-'
    assert vertices[0].energy == pytest.approx(4.0 * GeV)


def test_direction_is_normalised():
    source = FixedPointSource(direction=(0.0, 3.0, -4.0))
    assert source.direction == pytest.approx((0.0, 0.6, -0.8))


@pytest.mark.parametrize("kwargs", [
    {'energy': 0.0},
    {'energy': -1.0},
    {'particle': 'graviton'},
    {'direction': (0.0, 0.0, 0.0)},
    {'position': (0.0, 0.0)},
])
def test_invalid_fixed_point_source(kwargs):
    with pytest.raises(ConfigurationError):
        FixedPointSource(**kwargs)


def test_uniform_area_statistics():
    source = UniformAreaSource(x_range=(-1 * m, 1 * m), y_range=(-1 * m, 1 * m),
                               height=2.5 * m, seed=12345)
    positions = source.sample_positions(10 ** 6)

    assert positions.shape == (10 ** 6, 3)
    assert np.all(np.abs(positions[:, 0]) <= 1 * m)
    assert np.all(np.abs(positions[:, 1]) <= 1 * m)
    assert np.all(positions[:, 2] == 2.5 * m)
    # Both means within 0.01 m of the centre
    assert abs(positions[:, 0].mean()) < 0.01 * m
    assert abs(positions[:, 1].mean()) < 0.01 * m


def test_uniform_area_generate():
    source = UniformAreaSource(x_range=(0.0, 0.5 * m), y_range=(-0.2 * m, 0.0),
                               height=3 * m, seed=1)
    for event_index in range(200):
        vertex = source.generate(event_index)
        x, y, z = vertex.position
        assert 0.0 <= x <= 0.5 * m
        assert -0.2 * m <= y <= 0.0
        assert z == 3 * m
        assert vertex.direction == (0.0, 0.0, -1.0)


def test_degenerate_rectangle_is_a_point():
    source = UniformAreaSource(x_range=(0.5 * m, 0.5 * m), y_range=(-1 * m, 1 * m), seed=7)
    positions = source.sample_positions(1000)
    assert np.all(positions[:, 0] == 0.5 * m)
    assert source.generate(0).position[0] == 0.5 * m


def test_empty_rectangle_rejected():
    with pytest.raises(ConfigurationError):
        UniformAreaSource(x_range=(1 * m, -1 * m))


def test_seed_reproducibility():
    a = UniformAreaSource(seed=99).sample_positions(10)
    b = UniformAreaSource(seed=99).sample_positions(10)
    np.testing.assert_array_equal(a, b)


def test_make_source_converts_units():
    fixed = make_source(SourceConfig(position=(0.0, 0.0, 2.0), energy=4.0))
    assert isinstance(fixed, FixedPointSource)
    assert not isinstance(fixed, UniformAreaSource)
    assert fixed.position == (0.0, 0.0, 2000.0)
    assert fixed.energy == pytest.approx(4000.0)

    uniform = make_source(SourceConfig(kind='uniform-area', position=(0.0, 0.0, 2.5),
                                       x_range=(-0.5, 0.5), seed=3))
    assert isinstance(uniform, UniformAreaSource)
    assert uniform.height == 2500.0
    assert uniform.x_range == (-500.0, 500.0)
