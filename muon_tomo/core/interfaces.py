"""
Collaborator interfaces invoked by the transport engine.

Any object with the right method can be registered; no engine base class
needs to be inherited.
"""

from typing import Protocol, runtime_checkable

from muon_tomo.core.particle import PrimaryVertex, StepEvent
from muon_tomo.geometry.volume import Volume


@runtime_checkable
class DetectorBuilder(Protocol):
    """Called once at engine initialisation."""

    def build(self) -> Volume:
        ...


@runtime_checkable
class PrimaryGenerator(Protocol):
    """Called once per event."""

    def generate(self, event_index: int) -> PrimaryVertex:
        ...


@runtime_checkable
class SteppingAction(Protocol):
    """Called once per physical step."""

    def on_step(self, step: StepEvent) -> None:
        ...
