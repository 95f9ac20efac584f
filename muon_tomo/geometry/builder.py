"""
Detector construction for the muon-tomography setup.

World cube of air, a rectangular detector block at its centre and an
optional cylindrical cavity (the defect) inside the block. The defect is
a daughter volume of vacuum-equivalent material, not a boolean subtraction.
"""

import logging

from muon_tomo.config import GeometryConfig
from muon_tomo.core.units import m
from muon_tomo.geometry.volume import Box, Placement, Tube, Volume
from muon_tomo.physics.materials import MaterialDatabase

logger = logging.getLogger(__name__)

WORLD_NAME = 'World'
DETECTOR_NAME = 'Detector'
DEFECT_NAME = 'Defect'


class DetectorConstruction:
    """
    Builds the Volume tree from a GeometryConfig.

    Usage:
        detector = DetectorConstruction(GeometryConfig(), engine.materials)
        world = detector.build()
    """

    def __init__(self, config: GeometryConfig, materials: MaterialDatabase):
        """
        Parameters:
            config: Geometry configuration (lengths in metres)
            materials: Material database used to resolve symbolic names
        """
        self.config = config
        self.materials = materials

    def build(self) -> Volume:
        """
        Construct the geometry.

        Returns:
            Root volume 'World'

        Raises:
            ConfigurationError: unknown material or a daughter volume that
                does not fit inside its mother
        """
        config = self.config

        block_children = ()
        if config.defect.enabled:
            block_children = (self._build_defect(),)

        hx, hy, hz = (h * m for h in config.block_half_extents)
        block = Volume(
            name=DETECTOR_NAME,
            solid=Box(hx, hy, hz),
            material=self.materials.find_or_build(config.block_material),
            children=block_children,
        )

        half = config.world_half_size * m
        world = Volume(
            name=WORLD_NAME,
            solid=Box(half, half, half),
            material=self.materials.find_or_build(config.world_material),
            children=(block,),
        )

        world.check_containment()
        logger.debug("Geometry constructed:\n%s", world.describe())
        return world

    def _build_defect(self) -> Volume:
        defect = self.config.defect
        if defect.kind == 'off-axis-cylinder':
            offset = tuple(c * m for c in defect.offset)
        else:
            offset = (0.0, 0.0, 0.0)

        return Volume(
            name=DEFECT_NAME,
            solid=Tube(0.0, defect.radius * m, 0.5 * defect.height * m),
            material=self.materials.find_or_build(defect.material),
            placement=Placement(offset),
        )
