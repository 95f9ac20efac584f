"""
Registry of named reference physics lists.

A physics list is selected by an opaque string key. For the reference
engine a list fixes which continuous processes are active for the primary
and the maximum step length; hadronic model names are kept only as keys.
"""

from dataclasses import dataclass

from muon_tomo.core.units import mm, m
from muon_tomo.errors import ConfigurationError


@dataclass(frozen=True)
class PhysicsList:
    """
    Process configuration applied by the transport engine.

    Step length is limited so that a step loses at most
    ``max_energy_loss_fraction`` of the kinetic energy, within
    [min_step, max_step].
    """

    name: str
    multiple_scattering: bool = True
    energy_loss_fluctuations: bool = True
    max_energy_loss_fraction: float = 0.01
    min_step: float = 0.01 * mm        # [mm]
    max_step: float = 1.0 * m          # [mm]
    min_kinetic_energy: float = 1.0    # tracking cut [MeV]


REFERENCE_PHYSICS_LISTS = {
    'FTFP_BERT': PhysicsList('FTFP_BERT'),
    'FTFP_BERT_EMZ': PhysicsList('FTFP_BERT_EMZ', max_energy_loss_fraction=0.002,
                                 max_step=0.1 * m),
    'QGSP_BERT': PhysicsList('QGSP_BERT'),
    'QGSP_BIC': PhysicsList('QGSP_BIC'),
    'QBBC': PhysicsList('QBBC'),
    'Shielding': PhysicsList('Shielding'),
    # Mean energy loss only: straight tracks, deterministic deposits
    'CSDA': PhysicsList('CSDA', multiple_scattering=False, energy_loss_fluctuations=False,
                        max_energy_loss_fraction=0.05),
}


def get_physics_list(name: str) -> PhysicsList:
    """
    Resolve a reference physics list by name.

    Raises:
        ConfigurationError: if the name is not registered
    """
    try:
        return REFERENCE_PHYSICS_LISTS[name]
    except KeyError:
        raise ConfigurationError(f"Unknown physics list '{name}'. "
                                 f"Available: {sorted(REFERENCE_PHYSICS_LISTS)}") from None


def is_reference_physics_list(name: str) -> bool:
    return name in REFERENCE_PHYSICS_LISTS
