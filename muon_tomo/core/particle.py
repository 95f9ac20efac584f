"""
Particle definitions and per-event kinematic state.

Holds the particle table, the primary vertex handed from a source to the
transport engine, the step record handed from the engine to a stepping
action, and the NumPy structured dtype the engine uses for track state.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np
from scipy.constants import physical_constants

from muon_tomo.errors import ConfigurationError


# Track state (one record per live track)
TRACK_DTYPE = np.dtype([
    ('position', np.float64, 3),      # x, y, z [mm], world frame
    ('direction', np.float64, 3),     # unit vector
    ('energy', np.float64),           # kinetic energy [MeV]
    ('track_id', np.int32),
    ('alive', np.bool_)
])


@dataclass(frozen=True)
class ParticleDefinition:
    """Static properties of a particle species."""

    name: str
    pdg: int
    mass: float      # [MeV]
    charge: float    # [e]


def _mass(key: str) -> float:
    return physical_constants[key][0]


_MUON_MASS = _mass('muon mass energy equivalent in MeV')
_ELECTRON_MASS = _mass('electron mass energy equivalent in MeV')
_PROTON_MASS = _mass('proton mass energy equivalent in MeV')

PARTICLE_TABLE = {
    'mu-': ParticleDefinition('mu-', 13, _MUON_MASS, -1.0),
    'mu+': ParticleDefinition('mu+', -13, _MUON_MASS, 1.0),
    'e-': ParticleDefinition('e-', 11, _ELECTRON_MASS, -1.0),
    'e+': ParticleDefinition('e+', -11, _ELECTRON_MASS, 1.0),
    'proton': ParticleDefinition('proton', 2212, _PROTON_MASS, 1.0),
    'geantino': ParticleDefinition('geantino', 0, 0.0, 0.0),
}

ELECTRON_MASS = _ELECTRON_MASS


def find_particle(name: str) -> ParticleDefinition:
    """
    Look up a particle species by its symbolic name.

    Parameters:
        name: Particle name, e.g. 'mu-'

    Returns:
        ParticleDefinition

    Raises:
        ConfigurationError: if the species is unknown
    """
    try:
        return PARTICLE_TABLE[name]
    except KeyError:
        raise ConfigurationError(f"Unknown particle '{name}'. "
                                 f"Available: {list(PARTICLE_TABLE.keys())}") from None


def normalize(vector) -> np.ndarray:
    """Return ``vector`` as a unit float64 array; a zero vector is rejected."""
    array = np.asarray(vector, dtype=np.float64)
    if array.shape != (3,):
        raise ConfigurationError(f"Expected a 3-vector, got shape {array.shape}")
    norm = np.linalg.norm(array)
    if not norm > 0.0:
        raise ConfigurationError("Direction vector must be non-zero")
    return array / norm


@dataclass(frozen=True)
class PrimaryVertex:
    """
    Initial kinematic state of the primary particle of one event.

    Attributes:
        position: (x, y, z) [mm], world frame
        direction: unit vector
        particle: particle name, e.g. 'mu-'
        energy: kinetic energy [MeV], > 0
    """

    position: Tuple[float, float, float]
    direction: Tuple[float, float, float]
    particle: str
    energy: float


@dataclass(frozen=True)
class StepEvent:
    """
    One physical step of a track, as delivered by the transport engine.

    Attributes:
        track_id: track identifier (primaries are 1)
        pre_position: position at the start of the step [mm], world frame
        energy_deposit: energy left in the material during the step [MeV]
        post_position: position at the end of the step [mm], world frame
        step_length: length of the step [mm]
        volume: name of the volume the step was taken in
        event_id: index of the event within the run
    """

    track_id: int
    pre_position: Tuple[float, float, float]
    energy_deposit: float
    post_position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    step_length: float = 0.0
    volume: str = ''
    event_id: int = 0


def new_track(vertex: PrimaryVertex, track_id: int = 1) -> np.ndarray:
    """
    Allocate the track state for a primary vertex.

    Parameters:
        vertex: Primary vertex
        track_id: Track identifier

    Returns:
        1-element structured array with TRACK_DTYPE
    """
    track = np.zeros(1, dtype=TRACK_DTYPE)
    track['position'][0] = vertex.position
    track['direction'][0] = normalize(vertex.direction)
    track['energy'][0] = vertex.energy
    track['track_id'][0] = track_id
    track['alive'][0] = True
    return track
