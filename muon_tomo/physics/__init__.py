"""Physics module: materials, energy loss, scattering, physics lists."""

from muon_tomo.physics.energy_loss import EnergyLoss
from muon_tomo.physics.lists import PhysicsList, get_physics_list
from muon_tomo.physics.materials import Material, MaterialDatabase
from muon_tomo.physics.scattering import MultipleScattering

__all__ = [
    "EnergyLoss",
    "Material",
    "MaterialDatabase",
    "MultipleScattering",
    "PhysicsList",
    "get_physics_list",
]
