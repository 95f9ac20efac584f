"""
Navigation through a Volume tree.

Locates the deepest volume containing a point and computes the distance
to the next geometric boundary along a direction.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from muon_tomo.geometry.volume import Volume


@dataclass
class PlacedVolume:
    """A volume together with its world-frame origin."""

    volume: Volume
    origin: np.ndarray
    parent: Optional['PlacedVolume']
    children: List['PlacedVolume']

    @property
    def name(self) -> str:
        return self.volume.name

    def to_local(self, point: np.ndarray) -> np.ndarray:
        return point - self.origin


class Navigator:
    """
    Geometry queries for the transport engine.

    Usage:
        navigator = Navigator(world)
        current = navigator.locate(position)
        distance = navigator.distance_to_boundary(current, position, direction)
    """

    def __init__(self, world: Volume):
        self.world = self._place(world, np.zeros(3), None)

    def _place(self, volume: Volume, origin: np.ndarray,
               parent: Optional[PlacedVolume]) -> PlacedVolume:
        placed = PlacedVolume(volume, origin, parent, [])
        for child in volume.children:
            placed.children.append(
                self._place(child, origin + child.placement.as_array(), placed))
        return placed

    def locate(self, point) -> Optional[PlacedVolume]:
        """
        Deepest volume containing ``point`` (world frame).

        Returns:
            PlacedVolume, or None outside the world
        """
        point = np.asarray(point, dtype=np.float64)
        if not self.world.volume.solid.contains(self.world.to_local(point)):
            return None

        current = self.world
        descended = True
        while descended:
            descended = False
            for child in current.children:
                if child.volume.solid.contains(child.to_local(point), tolerance=0.0):
                    current = child
                    descended = True
                    break
        return current

    def distance_to_boundary(self, placed: PlacedVolume, point,
                             direction) -> Tuple[float, Optional[PlacedVolume]]:
        """
        Distance to the next boundary: leaving ``placed`` or entering a daughter.

        Returns:
            (distance [mm], daughter entered or None when leaving the volume)
        """
        point = np.asarray(point, dtype=np.float64)
        direction = np.asarray(direction, dtype=np.float64)

        distance = placed.volume.solid.distance_to_out(placed.to_local(point), direction)
        entered = None
        for child in placed.children:
            d_in = child.volume.solid.distance_to_in(child.to_local(point), direction)
            if d_in < distance:
                distance = d_in
                entered = child
        return distance, entered
