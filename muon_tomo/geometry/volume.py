"""
Volume tree: solids, placements and nested volumes.

Volumes are immutable. A tree is built once from configuration and handed
to the transport engine, which only queries it. Every solid is centred on
its own origin; a Placement translates it into the parent frame. Tubes
are aligned with the local z axis.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

import numpy as np

from muon_tomo.core.units import SURFACE_TOLERANCE, deg, m, twopi
from muon_tomo.errors import ConfigurationError
from muon_tomo.physics.materials import Material

# Distance a probe point is pushed past a surface to classify the far side [mm]
PUSH = 1.0e-6


class Solid:
    """Base class for shape descriptors."""

    def contains(self, point, tolerance: float = SURFACE_TOLERANCE) -> bool:
        raise NotImplementedError

    def surface_crossings(self, point: np.ndarray, direction: np.ndarray) -> List[float]:
        """Ray parameters at which the ray meets any bounding surface."""
        raise NotImplementedError

    def half_extents(self) -> Tuple[float, float, float]:
        """Half-extents of the axis-aligned bounding box."""
        raise NotImplementedError

    def distance_to_out(self, point: np.ndarray, direction: np.ndarray) -> float:
        """
        Distance along the ray from an inside point to the surface.

        Returns:
            Distance [mm]; 0 if the point is already leaving the solid
        """
        for t in sorted(self.surface_crossings(point, direction)):
            if t < -SURFACE_TOLERANCE:
                continue
            if not self.contains(point + (t + PUSH) * direction, tolerance=0.0):
                return max(t, 0.0)
        return 0.0

    def distance_to_in(self, point: np.ndarray, direction: np.ndarray) -> float:
        """
        Distance along the ray from an outside point to the solid.

        Returns:
            Distance [mm]; inf if the ray misses
        """
        for t in sorted(self.surface_crossings(point, direction)):
            if t < -SURFACE_TOLERANCE:
                continue
            if self.contains(point + (t + PUSH) * direction, tolerance=0.0):
                return max(t, 0.0)
        return np.inf

    def encloses(self, other: 'Solid', offset) -> bool:
        """
        Whether ``other``, translated by ``offset``, lies inside this solid.

        The corners of the other solid's bounding box are tested, which is
        exact for convex parents.
        """
        offset = np.asarray(offset, dtype=np.float64)
        hx, hy, hz = other.half_extents()
        for sx in (-1.0, 1.0):
            for sy in (-1.0, 1.0):
                for sz in (-1.0, 1.0):
                    corner = offset + (sx * hx, sy * hy, sz * hz)
                    if not self.contains(corner):
                        return False
        return True


@dataclass(frozen=True)
class Box(Solid):
    """Rectangular box given by its half-lengths [mm]."""

    hx: float
    hy: float
    hz: float

    def __post_init__(self):
        if min(self.hx, self.hy, self.hz) <= 0:
            raise ConfigurationError(f"Box half-lengths must be positive, got "
                                     f"({self.hx}, {self.hy}, {self.hz})")

    def contains(self, point, tolerance: float = SURFACE_TOLERANCE) -> bool:
        x, y, z = point
        return (abs(x) <= self.hx + tolerance
                and abs(y) <= self.hy + tolerance
                and abs(z) <= self.hz + tolerance)

    def surface_crossings(self, point, direction):
        crossings = []
        for axis, half in enumerate((self.hx, self.hy, self.hz)):
            if direction[axis] != 0.0:
                crossings.append((half - point[axis]) / direction[axis])
                crossings.append((-half - point[axis]) / direction[axis])
        return crossings

    def half_extents(self):
        return (self.hx, self.hy, self.hz)

    def describe(self) -> str:
        return f"box({self.hx / m:g} m, {self.hy / m:g} m, {self.hz / m:g} m)"


@dataclass(frozen=True)
class Tube(Solid):
    """
    Cylindrical section along z.

    Attributes:
        rmin: inner radius [mm]
        rmax: outer radius [mm]
        hz: half-height [mm]
        sweep: angular extent [rad]
        start: start angle [rad]
    """

    rmin: float
    rmax: float
    hz: float
    sweep: float = twopi
    start: float = 0.0

    def __post_init__(self):
        if self.rmin < 0 or self.rmax <= self.rmin:
            raise ConfigurationError(f"Tube radii must satisfy 0 <= rmin < rmax, got "
                                     f"({self.rmin}, {self.rmax})")
        if self.hz <= 0:
            raise ConfigurationError(f"Tube half-height must be positive, got {self.hz}")
        if not 0 < self.sweep <= twopi:
            raise ConfigurationError(f"Tube sweep must be in (0, 360] deg, got "
                                     f"{self.sweep / deg:g} deg")

    @property
    def full_sweep(self) -> bool:
        return self.sweep >= twopi

    def contains(self, point, tolerance: float = SURFACE_TOLERANCE) -> bool:
        x, y, z = point
        if abs(z) > self.hz + tolerance:
            return False
        r = np.hypot(x, y)
        if r > self.rmax + tolerance or r < self.rmin - tolerance:
            return False
        if self.full_sweep or r <= tolerance:
            return True
        phi = (np.arctan2(y, x) - self.start) % twopi
        slack = tolerance / r
        return phi <= self.sweep + slack or phi >= twopi - slack

    def surface_crossings(self, point, direction):
        px, py, pz = point
        dx, dy, dz = direction
        crossings = []
        if dz != 0.0:
            crossings.append((self.hz - pz) / dz)
            crossings.append((-self.hz - pz) / dz)

        a = dx * dx + dy * dy
        if a > 0.0:
            b = px * dx + py * dy
            for radius in (self.rmin, self.rmax):
                if radius <= 0.0:
                    continue
                c = px * px + py * py - radius * radius
                disc = b * b - a * c
                if disc >= 0.0:
                    root = np.sqrt(disc)
                    crossings.append((-b - root) / a)
                    crossings.append((-b + root) / a)

        if not self.full_sweep:
            for angle in (self.start, self.start + self.sweep):
                nx, ny = -np.sin(angle), np.cos(angle)
                denom = nx * dx + ny * dy
                if denom != 0.0:
                    crossings.append(-(nx * px + ny * py) / denom)
        return crossings

    def half_extents(self):
        return (self.rmax, self.rmax, self.hz)

    def describe(self) -> str:
        return (f"tube(rmin={self.rmin / m:g} m, rmax={self.rmax / m:g} m, "
                f"hz={self.hz / m:g} m, sweep={self.sweep / deg:g} deg)")


@dataclass(frozen=True)
class Placement:
    """Translation of a volume's origin in its parent frame [mm]."""

    translation: Tuple[float, float, float] = (0.0, 0.0, 0.0)

    def as_array(self) -> np.ndarray:
        return np.asarray(self.translation, dtype=np.float64)


@dataclass(frozen=True)
class Volume:
    """
    A named region with a solid, a material and a placement in its parent.

    The root of a tree is the volume without a parent (placement ignored).
    """

    name: str
    solid: Solid
    material: Material
    placement: Placement = field(default_factory=Placement)
    children: Tuple['Volume', ...] = ()

    def walk(self, parent: Optional['Volume'] = None,
             origin: Tuple[float, float, float] = (0.0, 0.0, 0.0)
             ) -> Iterator[Tuple['Volume', Optional['Volume'], np.ndarray]]:
        """
        Depth-first traversal.

        Yields:
            (volume, parent, world translation of the volume origin [mm])
        """
        here = np.asarray(origin, dtype=np.float64)
        yield self, parent, here
        for child in self.children:
            yield from child.walk(self, here + child.placement.as_array())

    def find(self, name: str) -> 'Volume':
        for volume, _, _ in self.walk():
            if volume.name == name:
                return volume
        raise KeyError(f"Unknown volume: {name}")

    def parent_of(self, name: str) -> Optional['Volume']:
        for volume, parent, _ in self.walk():
            if volume.name == name:
                return parent
        raise KeyError(f"Unknown volume: {name}")

    def check_containment(self):
        """
        Verify that every child lies inside its parent.

        Raises:
            ConfigurationError: naming the first offending volume
        """
        for volume, parent, _ in self.walk():
            if parent is None:
                continue
            if not parent.solid.encloses(volume.solid, volume.placement.translation):
                raise ConfigurationError(
                    f"Volume '{volume.name}' ({volume.solid.describe()} at "
                    f"{tuple(c / m for c in volume.placement.translation)} m) "
                    f"extends outside its parent '{parent.name}'")

    def describe(self, depth: int = 0) -> str:
        """Indented tree summary, one line per volume."""
        offset = tuple(round(c / m, 6) for c in self.placement.translation)
        lines = [f"{'  ' * depth}- {self.name}: {self.solid.describe()}, "
                 f"material={self.material.name}, offset={offset} m"]
        for child in self.children:
            lines.append(child.describe(depth + 1))
        return "\n".join(lines)
