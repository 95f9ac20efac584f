"""
Material database.

Symbolic material names follow the Geant4 NIST naming (``G4_AIR``,
``G4_CONCRETE``, ...). Properties are the ones the muon stepper needs:
density, mean Z/A, mean excitation energy and radiation length.

References:
    - NIST ESTAR / PSTAR composition tables
    - PDG Review of Particle Physics, Atomic and nuclear properties of materials
"""

from dataclasses import dataclass
from typing import Dict, Iterable

from muon_tomo.errors import ConfigurationError

# Below this density a material is treated as vacuum (no energy loss, no scattering)
VACUUM_DENSITY = 1.0e-10  # g/cm³


@dataclass(frozen=True)
class Material:
    """Bulk properties of a material."""

    name: str
    density: float            # [g/cm³]
    Z_over_A: float           # <Z/A> [mol/g]
    I: float                  # mean excitation energy [eV]
    X0: float                 # radiation length [cm]

    @property
    def is_vacuum(self) -> bool:
        return self.density < VACUUM_DENSITY


# NIST reference materials
NIST_MATERIALS = {
    'G4_Galactic': {
        'rho': 1.0e-25,
        'Z_over_A': 0.99212,
        'I': 21.8,
        'X0': 6.3e24,
    },
    'G4_AIR': {
        'rho': 0.00120479,
        'Z_over_A': 0.49919,
        'I': 85.7,
        'X0': 30390.0,
    },
    'G4_WATER': {
        'rho': 1.0,
        'Z_over_A': 0.55509,
        'I': 78.0,
        'X0': 36.08,
    },
    'G4_CONCRETE': {
        'rho': 2.3,
        'Z_over_A': 0.50274,
        'I': 135.2,
        'X0': 11.55,
    },
    'G4_Al': {
        'rho': 2.699,
        'Z_over_A': 0.48181,
        'I': 166.0,
        'X0': 8.897,
    },
    'G4_Si': {
        'rho': 2.33,
        'Z_over_A': 0.49848,
        'I': 173.0,
        'X0': 9.370,
    },
    'G4_Fe': {
        'rho': 7.874,
        'Z_over_A': 0.46557,
        'I': 286.0,
        'X0': 1.757,
    },
    'G4_Cu': {
        'rho': 8.96,
        'Z_over_A': 0.45636,
        'I': 322.0,
        'X0': 1.436,
    },
    'G4_Pb': {
        'rho': 11.35,
        'Z_over_A': 0.39575,
        'I': 823.0,
        'X0': 0.5612,
    },
    'G4_U': {
        'rho': 18.95,
        'Z_over_A': 0.38683,
        'I': 890.0,
        'X0': 0.3166,
    },
    'G4_PLASTIC_SC_VINYLTOLUENE': {
        'rho': 1.032,
        'Z_over_A': 0.54141,
        'I': 64.7,
        'X0': 42.54,
    },
}


class MaterialDatabase:
    """
    Lookup of materials by symbolic name.

    Usage:
        materials = MaterialDatabase()
        concrete = materials.find_or_build('G4_CONCRETE')
    """

    def __init__(self, extra: Iterable[Material] = ()):
        """
        Initialize the database with the NIST reference materials.

        Parameters:
            extra: Additional user-defined materials
        """
        self._materials: Dict[str, Material] = {}
        for name, props in NIST_MATERIALS.items():
            self._materials[name] = Material(name, props['rho'], props['Z_over_A'],
                                             props['I'], props['X0'])
        for material in extra:
            self.register(material)

    def register(self, material: Material):
        """Add or replace a user-defined material."""
        if material.density <= 0 or material.I <= 0 or material.X0 <= 0:
            raise ConfigurationError(f"Material '{material.name}' has non-positive properties")
        self._materials[material.name] = material

    def find_or_build(self, name: str) -> Material:
        """
        Resolve a material name.

        Raises:
            ConfigurationError: if the name is unknown
        """
        try:
            return self._materials[name]
        except KeyError:
            raise ConfigurationError(f"Unknown material '{name}'. "
                                     f"Available: {sorted(self._materials)}") from None

    def __contains__(self, name: str) -> bool:
        return name in self._materials

    def names(self):
        return sorted(self._materials)
