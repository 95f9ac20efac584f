"""
Run controller.

Wires a detector construction, a primary source and the step recorder into
the transport engine, selects the physics list and drives a batch or an
interactive run.

State machine:
    UNCONFIGURED -> INITIALIZED -> RUNNING -> COMPLETED
    any error on the way           -> ABORTED
"""

import enum
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from muon_tomo.config import RunConfig
from muon_tomo.core.units import GeV
from muon_tomo.errors import ConfigurationError, MuonTomoError, RunStateError
from muon_tomo.geometry.builder import DetectorConstruction
from muon_tomo.physics.lists import get_physics_list
from muon_tomo.recording.recorder import StepRecorder
from muon_tomo.source.sampler import make_source
from muon_tomo.transport.engine import TransportEngine

logger = logging.getLogger(__name__)

# Issued before the events of an interactive run
INTERACTIVE_COMMANDS = (
    '/vis/open',
    '/vis/drawVolume',
    '/vis/viewer/set/autoRefresh true',
    '/vis/scene/add/trajectories smooth',
    '/vis/scene/endOfEventAction accumulate',
)


class RunState(enum.Enum):
    UNCONFIGURED = 'unconfigured'
    INITIALIZED = 'initialized'
    RUNNING = 'running'
    COMPLETED = 'completed'
    ABORTED = 'aborted'


@dataclass
class RunSummary:
    """Figures reported at the end of a run."""

    n_events: int
    n_steps: int
    rows_written: int
    total_deposit: float      # [GeV]
    elapsed_time: float       # [s]
    output: Path

    def __str__(self) -> str:
        return (f"{self.n_events} events, {self.n_steps} steps, "
                f"{self.rows_written} rows written to {self.output}, "
                f"total deposit {self.total_deposit:.4g} GeV, {self.elapsed_time:.1f} s")


class RunController:
    """
    Drives one run of the transport engine.

    Usage:
        controller = RunController(engine, detector, source, recorder, 'FTFP_BERT')
        controller.initialize()
        summary = controller.run_batch(1000)
    """

    def __init__(self, engine: TransportEngine, detector, source, recorder: StepRecorder,
                 physics_list: str = 'FTFP_BERT'):
        """
        Parameters:
            engine: Transport engine
            detector: Object with build() -> Volume
            source: Object with generate(event_index) -> PrimaryVertex
            recorder: Step recorder; closed by the controller when the run ends
            physics_list: Name of the reference physics list
        """
        self.engine = engine
        self.detector = detector
        self.source = source
        self.recorder = recorder
        self.physics_list = physics_list
        self.state = RunState.UNCONFIGURED

    @classmethod
    def from_config(cls, config: RunConfig,
                    engine: Optional[TransportEngine] = None) -> 'RunController':
        """
        Build engine collaborators from a run configuration.

        The physics list name is checked before the output log is opened.

        Raises:
            ConfigurationError: invalid configuration
            ResourceError: the output log cannot be opened
        """
        get_physics_list(config.physics_list)
        engine = engine or TransportEngine(verbose=1)
        detector = DetectorConstruction(config.geometry, engine.materials)
        source = make_source(config.source)
        recorder = StepRecorder.from_config(config.output)
        return cls(engine, detector, source, recorder, config.physics_list)

    def _require(self, state: RunState):
        if self.state is not state:
            raise RunStateError(f"Run is {self.state.value}, expected {state.value}")

    def abort(self):
        """Close the log and mark the run as aborted."""
        self.recorder.close()
        self.state = RunState.ABORTED

    def initialize(self):
        """
        Register collaborators, select the physics list and build the geometry.

        Raises:
            ConfigurationError: unknown physics list or material, or a
                geometry containment violation; the run is aborted
        """
        self._require(RunState.UNCONFIGURED)
        try:
            self.engine.set_detector_construction(self.detector)
            self.engine.set_primary_generator(self.source)
            self.engine.set_stepping_action(self.recorder)
            self.engine.use_physics(self.physics_list)
            self.engine.initialize()
        except (MuonTomoError, TypeError):
            self.abort()
            raise
        self.state = RunState.INITIALIZED

    def run_batch(self, n_events: int) -> RunSummary:
        """Simulate n_events without user interaction."""
        return self._run(n_events)

    def run_interactive(self, n_events: int,
                        commands: Optional[Iterable[str]] = None) -> RunSummary:
        """
        Open the viewer, simulate n_events, then execute further commands.

        Parameters:
            n_events: Number of events of the initial run
            commands: Command lines read after the events (stdin if None)
        """
        return self._run(n_events, interactive=True,
                         commands=sys.stdin if commands is None else commands)

    def _run(self, n_events: int, interactive: bool = False,
             commands: Iterable[str] = ()) -> RunSummary:
        self._require(RunState.INITIALIZED)
        if n_events < 0:
            self.abort()
            raise ConfigurationError(f"Number of events must not be negative, got {n_events}")

        self.state = RunState.RUNNING
        logger.info("Starting %s run of %d events",
                    'interactive' if interactive else 'batch', n_events)
        try:
            if interactive:
                for command in INTERACTIVE_COMMANDS:
                    self.engine.apply_command(command)
            stats = self.engine.beam_on(n_events)
            if interactive:
                self.engine.session(commands)
        except BaseException:
            self.abort()
            raise
        finally:
            if interactive:
                self._close_viewer()
        self.recorder.close()
        self.state = RunState.COMPLETED

        summary = RunSummary(
            n_events=stats['n_events'],
            n_steps=stats['n_steps'],
            rows_written=self.recorder.rows_written,
            total_deposit=self.recorder.total_deposit / GeV,
            elapsed_time=stats['elapsed_time'],
            output=self.recorder.path,
        )
        logger.info("Run completed: %s", summary)
        return summary

    def _close_viewer(self):
        viewer = getattr(self.engine, 'viewer', None)
        if viewer is not None:
            viewer.close()
