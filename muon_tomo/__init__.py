"""
muon_tomo: Muon Tomography Detector Simulation

Geant4-style harness for simulating cosmic muons crossing a concrete block
with an optional cylindrical defect, logging every energy deposit.

Modules:
    core: Units, particle table, capability interfaces
    geometry: Solids, volume tree, detector construction, navigation
    physics: Materials, energy loss, multiple scattering, physics lists
    source: Primary vertex samplers
    recording: Tab-separated step recorder
    transport: Transport engine, command interpreter, scene viewer
    run: Run controller and command line interface
"""

__version__ = "0.1.0"

from muon_tomo.config import RunConfig, load_config
from muon_tomo.errors import ConfigurationError, MuonTomoError, ResourceError, RunStateError
from muon_tomo.geometry.builder import DetectorConstruction
from muon_tomo.recording.recorder import StepRecorder
from muon_tomo.run.controller import RunController
from muon_tomo.source.sampler import FixedPointSource, UniformAreaSource
from muon_tomo.transport.engine import TransportEngine

__all__ = [
    "RunConfig",
    "load_config",
    "MuonTomoError",
    "ConfigurationError",
    "ResourceError",
    "RunStateError",
    "DetectorConstruction",
    "FixedPointSource",
    "UniformAreaSource",
    "StepRecorder",
    "TransportEngine",
    "RunController",
]
