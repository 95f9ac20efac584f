"""Core module: units, particle table and kinematic state."""

from muon_tomo.core.particle import (
    PARTICLE_TABLE,
    ParticleDefinition,
    PrimaryVertex,
    StepEvent,
    find_particle,
)

__all__ = [
    "PARTICLE_TABLE",
    "ParticleDefinition",
    "PrimaryVertex",
    "StepEvent",
    "find_particle",
]
