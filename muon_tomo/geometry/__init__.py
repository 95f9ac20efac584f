"""Geometry module: volume tree, detector construction and navigation."""

from muon_tomo.geometry.builder import DetectorConstruction
from muon_tomo.geometry.navigation import Navigator
from muon_tomo.geometry.volume import Box, Placement, Tube, Volume

__all__ = [
    "Box",
    "DetectorConstruction",
    "Navigator",
    "Placement",
    "Tube",
    "Volume",
]
