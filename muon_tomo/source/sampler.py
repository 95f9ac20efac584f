"""
Primary vertex sources.

Two sampling policies:
    - FixedPointSource: identical vertex for every event
    - UniformAreaSource: x, y uniform over a rectangle at a fixed height

Random streams are seeded from OS entropy unless a seed is given, so runs
are not reproducible by default.
"""

from typing import Iterator, Optional, Tuple

import numpy as np

from muon_tomo.config import SourceConfig
from muon_tomo.core.particle import PrimaryVertex, find_particle, normalize
from muon_tomo.core.units import GeV, m
from muon_tomo.errors import ConfigurationError


class FixedPointSource:
    """
    Constant vertex.

    Usage:
        source = FixedPointSource(position=(0, 0, 2 * m), energy=4 * GeV)
        vertex = source.generate(0)
    """

    def __init__(self, position: Tuple[float, float, float] = (0.0, 0.0, 2.0 * m),
                 direction: Tuple[float, float, float] = (0.0, 0.0, -1.0),
                 particle: str = 'mu-', energy: float = 4.0 * GeV):
        """
        Parameters:
            position: Vertex position [mm]
            direction: Momentum direction (normalised internally)
            particle: Particle name
            energy: Kinetic energy [MeV]
        """
        find_particle(particle)
        if not energy > 0:
            raise ConfigurationError(f"Primary kinetic energy must be positive, got {energy}")

        position = np.asarray(position, dtype=np.float64)
        if position.shape != (3,):
            raise ConfigurationError(f"Expected a 3-vector position, got shape {position.shape}")

        self.position = tuple(float(c) for c in position)
        self.direction = tuple(float(c) for c in normalize(direction))
        self.particle = particle
        self.energy = float(energy)
        self._vertex = PrimaryVertex(self.position, self.direction, self.particle, self.energy)

    def generate(self, event_index: int) -> PrimaryVertex:
        return self._vertex

    def vertices(self, n_events: int) -> Iterator[PrimaryVertex]:
        """Lazily yield one vertex per event."""
        for event_index in range(n_events):
            yield self.generate(event_index)


class UniformAreaSource(FixedPointSource):
    """
    Vertex uniformly distributed over a horizontal rectangle.

    x ~ U(x_min, x_max), y ~ U(y_min, y_max), z = height. A zero-width axis
    yields a constant coordinate.
    """

    def __init__(self, x_range: Tuple[float, float] = (-1.0 * m, 1.0 * m),
                 y_range: Tuple[float, float] = (-1.0 * m, 1.0 * m),
                 height: float = 2.5 * m,
                 direction: Tuple[float, float, float] = (0.0, 0.0, -1.0),
                 particle: str = 'mu-', energy: float = 4.0 * GeV,
                 seed: Optional[int] = None):
        """
        Parameters:
            x_range: (x_min, x_max) [mm]
            y_range: (y_min, y_max) [mm]
            height: z of the sampling plane [mm]
            direction: Momentum direction (normalised internally)
            particle: Particle name
            energy: Kinetic energy [MeV]
            seed: Optional seed; OS entropy when None
        """
        x_min, x_max = (float(v) for v in x_range)
        y_min, y_max = (float(v) for v in y_range)
        if x_min > x_max or y_min > y_max:
            raise ConfigurationError(f"Empty sampling rectangle x={x_range}, y={y_range}")

        centre = (0.5 * (x_min + x_max), 0.5 * (y_min + y_max), float(height))
        super().__init__(centre, direction, particle, energy)

        self.x_range = (x_min, x_max)
        self.y_range = (y_min, y_max)
        self.height = float(height)
        self.rng = np.random.default_rng(seed)

    def _draw(self, low: float, high: float, size=None):
        if high == low:
            return low if size is None else np.full(size, low)
        return self.rng.uniform(low, high, size)

    def sample_positions(self, n: int) -> np.ndarray:
        """
        Draw n vertex positions at once.

        Returns:
            Array of shape (n, 3) [mm]
        """
        positions = np.empty((n, 3), dtype=np.float64)
        positions[:, 0] = self._draw(*self.x_range, size=n)
        positions[:, 1] = self._draw(*self.y_range, size=n)
        positions[:, 2] = self.height
        return positions

    def generate(self, event_index: int) -> PrimaryVertex:
        position = (float(self._draw(*self.x_range)),
                    float(self._draw(*self.y_range)),
                    self.height)
        return PrimaryVertex(position, self.direction, self.particle, self.energy)


def make_source(config: SourceConfig):
    """
    Build a source from its configuration (metres, GeV).

    Returns:
        FixedPointSource or UniformAreaSource
    """
    position = tuple(c * m for c in config.position)
    if config.kind == 'uniform-area':
        return UniformAreaSource(
            x_range=tuple(v * m for v in config.x_range),
            y_range=tuple(v * m for v in config.y_range),
            height=position[2],
            direction=config.direction,
            particle=config.particle,
            energy=config.energy * GeV,
            seed=config.seed,
        )
    return FixedPointSource(
        position=position,
        direction=config.direction,
        particle=config.particle,
        energy=config.energy * GeV,
    )
