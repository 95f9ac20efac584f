"""
Reference Monte Carlo transport engine.

Propagates one primary per event through the Volume tree:
    - Navigation to the next volume boundary
    - Step-size control by maximum fractional energy loss
    - Continuous energy loss with Gaussian straggling
    - Multiple Coulomb scattering at the end of each step

User code plugs in through three collaborators (detector construction,
primary generator, stepping action) and drives the engine with
initialize() and beam_on(). No secondaries are produced.

Example:
    engine = TransportEngine()
    engine.set_detector_construction(DetectorConstruction(GeometryConfig(), engine.materials))
    engine.set_primary_generator(FixedPointSource())
    engine.set_stepping_action(StepRecorder('deposits.txt'))
    engine.use_physics('FTFP_BERT')
    engine.initialize()
    stats = engine.beam_on(100)
"""

import logging
import time
from typing import Callable, Dict, List, Optional, Tuple

import numba
import numpy as np
from tqdm import tqdm

from muon_tomo.core.interfaces import DetectorBuilder, PrimaryGenerator, SteppingAction
from muon_tomo.core.particle import ParticleDefinition, StepEvent, find_particle, new_track
from muon_tomo.core.units import GeV, m
from muon_tomo.errors import ConfigurationError, RunStateError
from muon_tomo.geometry.navigation import Navigator
from muon_tomo.geometry.volume import PUSH, Volume
from muon_tomo.physics.energy_loss import EnergyLoss
from muon_tomo.physics.lists import PhysicsList, get_physics_list
from muon_tomo.physics.materials import Material, MaterialDatabase
from muon_tomo.physics.scattering import MultipleScattering
from muon_tomo.transport.commands import CommandInterpreter

logger = logging.getLogger(__name__)

# Track fates
STOPPED = 'stopped'
OUT_OF_WORLD = 'out_of_world'
STEP_LIMIT = 'step_limit'


@numba.njit(fastmath=True, cache=True)
def calculate_step_size(kinetic_MeV: float, dEdx_MeV_mm: float,
                        max_energy_loss_fraction: float,
                        min_step: float, max_step: float) -> float:
    """
    Step size limiting the fractional energy loss per step.

    Ensures ΔE / E < max_energy_loss_fraction, within [min_step, max_step].

    Parameters:
        kinetic_MeV: Kinetic energy [MeV]
        dEdx_MeV_mm: Linear stopping power [MeV/mm]
        max_energy_loss_fraction: Maximum fractional energy loss per step
        min_step: Lower bound [mm]
        max_step: Upper bound [mm]

    Returns:
        Step size [mm]
    """
    if dEdx_MeV_mm < 1e-12:
        return max_step  # No energy loss

    step = kinetic_MeV * max_energy_loss_fraction / dEdx_MeV_mm
    return max(min_step, min(step, max_step))


class TransportEngine:
    """
    Event loop and stepping for the muon-tomography harness.

    Attributes:
        materials: Material database handed to detector constructions
        world: Root volume after initialize()
        physics: Selected physics list
    """

    def __init__(self, materials: Optional[MaterialDatabase] = None,
                 verbose: int = 0, seed: Optional[int] = None):
        """
        Initialize the engine.

        Parameters:
            materials: Material database (NIST reference materials if None)
            verbose: 0 quiet, 1 progress bar and run summary, 2 per-event log
            seed: Seed for the physics random stream (OS entropy if None)
        """
        self.materials = materials or MaterialDatabase()
        self.verbose = verbose
        self.tracking_verbose = 0
        self.rng = np.random.default_rng(seed)

        self.physics: Optional[PhysicsList] = None
        self.detector: Optional[DetectorBuilder] = None
        self.primary_generator: Optional[PrimaryGenerator] = None
        self.stepping_action: Optional[SteppingAction] = None

        self.world: Optional[Volume] = None
        self.navigator: Optional[Navigator] = None
        self.initialized = False

        self.max_steps_per_track = 100000
        self.store_trajectories = False
        self.end_of_event_actions: List[Callable[[int, np.ndarray], None]] = []
        self.viewer = None
        self.commands = CommandInterpreter(self)

        self._processes: Dict[Tuple[str, str], Tuple[EnergyLoss, MultipleScattering]] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def set_detector_construction(self, detector: DetectorBuilder):
        if not isinstance(detector, DetectorBuilder):
            raise TypeError(f"{detector!r} does not provide build()")
        self.detector = detector

    def set_primary_generator(self, generator: PrimaryGenerator):
        if not isinstance(generator, PrimaryGenerator):
            raise TypeError(f"{generator!r} does not provide generate(event_index)")
        self.primary_generator = generator

    def set_stepping_action(self, action: SteppingAction):
        if not isinstance(action, SteppingAction):
            raise TypeError(f"{action!r} does not provide on_step(step)")
        self.stepping_action = action

    def use_physics(self, name: str) -> PhysicsList:
        """
        Select a reference physics list by name.

        Raises:
            ConfigurationError: if the name is unknown
        """
        self.physics = get_physics_list(name)
        self._processes.clear()
        logger.info("Physics list: %s", name)
        return self.physics

    # ------------------------------------------------------------------
    # Run control
    # ------------------------------------------------------------------

    def initialize(self) -> Volume:
        """
        Build the geometry and prepare navigation.

        Returns:
            Root volume

        Raises:
            ConfigurationError: missing detector/physics, or geometry errors
        """
        if self.detector is None:
            raise ConfigurationError("No detector construction registered")
        if self.physics is None:
            raise ConfigurationError("No physics list selected")

        self.world = self.detector.build()
        self.navigator = Navigator(self.world)
        self.initialized = True
        logger.info("Geometry initialised: %d volumes",
                    sum(1 for _ in self.world.walk()))
        return self.world

    def beam_on(self, n_events: int) -> dict:
        """
        Simulate n_events primaries.

        Parameters:
            n_events: Number of events

        Returns:
            Dictionary with run statistics
        """
        if not self.initialized:
            raise RunStateError("beam_on() called before initialize()")
        if self.primary_generator is None:
            raise ConfigurationError("No primary generator registered")
        if self.stepping_action is None:
            raise ConfigurationError("No stepping action registered")

        n_steps = 0
        fates = {STOPPED: 0, OUT_OF_WORLD: 0, STEP_LIMIT: 0}
        start_time = time.time()

        events = tqdm(range(n_events), desc="Events", unit="evt",
                      disable=self.verbose < 1)
        for event_id in events:
            steps, fate, trajectory = self._transport_event(event_id)
            n_steps += steps
            fates[fate] += 1
            for action in self.end_of_event_actions:
                action(event_id, trajectory)
            if self.verbose >= 2:
                logger.info("Event %d: %d steps, %s", event_id, steps, fate)

        elapsed = time.time() - start_time
        if self.verbose >= 1:
            logger.info("Run complete: %d events, %d steps, %d stopped, %d left the world "
                        "(%.1f s)", n_events, n_steps, fates[STOPPED], fates[OUT_OF_WORLD],
                        elapsed)

        return {
            'n_events': n_events,
            'n_steps': n_steps,
            'n_stopped': fates[STOPPED],
            'n_out_of_world': fates[OUT_OF_WORLD],
            'n_step_limit': fates[STEP_LIMIT],
            'elapsed_time': elapsed,
        }

    def apply_command(self, command: str) -> bool:
        """Execute one interpreter command (e.g. '/vis/open')."""
        return self.commands.apply(command)

    def session(self, stream) -> int:
        """Read commands from ``stream`` until 'exit' or end of input."""
        return self.commands.session(stream)

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def _processes_for(self, particle: ParticleDefinition,
                       material: Material) -> Tuple[EnergyLoss, MultipleScattering]:
        key = (particle.name, material.name)
        processes = self._processes.get(key)
        if processes is None:
            processes = (EnergyLoss(particle, material, self.physics.energy_loss_fluctuations),
                         MultipleScattering(particle, material))
            self._processes[key] = processes
        return processes

    def _transport_event(self, event_id: int) -> Tuple[int, str, np.ndarray]:
        """
        Transport the primary of one event from its vertex until it stops
        or leaves the world.

        Returns:
            (number of steps, fate, trajectory points [mm])
        """
        vertex = self.primary_generator.generate(event_id)
        particle = find_particle(vertex.particle)
        track = new_track(vertex)
        physics = self.physics

        track_id = int(track['track_id'][0])
        position = track['position'][0].copy()
        direction = track['direction'][0].copy()
        energy = float(track['energy'][0])

        trajectory = [position.copy()] if self.store_trajectories else []
        n_steps = 0
        fate = STOPPED

        while True:
            placed = self.navigator.locate(position)
            if placed is None:
                fate = OUT_OF_WORLD
                break
            if n_steps >= self.max_steps_per_track:
                logger.warning("Event %d: track %d killed after %d steps",
                               event_id, track_id, n_steps)
                fate = STEP_LIMIT
                break

            energy_loss, scattering = self._processes_for(particle, placed.volume.material)

            # Geometry and physics step limits
            geom_step, _ = self.navigator.distance_to_boundary(placed, position, direction)
            phys_step = calculate_step_size(energy, energy_loss.dEdx(energy),
                                            physics.max_energy_loss_fraction,
                                            physics.min_step, physics.max_step)
            on_boundary = geom_step <= phys_step
            step = geom_step if on_boundary else phys_step

            deposit = energy_loss.sample(energy, step, self.rng)
            energy -= deposit

            pre_position = position
            position = position + step * direction
            if on_boundary:
                position = position + PUSH * direction

            alive = energy > physics.min_kinetic_energy
            if not alive:
                # Below the tracking cut: deposit the remainder locally
                deposit += energy
                energy = 0.0

            n_steps += 1
            self.stepping_action.on_step(StepEvent(
                track_id=track_id,
                pre_position=(pre_position[0], pre_position[1], pre_position[2]),
                energy_deposit=deposit,
                post_position=(position[0], position[1], position[2]),
                step_length=step,
                volume=placed.name,
                event_id=event_id,
            ))
            if self.tracking_verbose:
                logger.info("Step %d in %s: x=%s m, dE=%.4g MeV, E=%.4g GeV",
                            n_steps, placed.name, np.round(pre_position / m, 4),
                            deposit, energy / GeV)
            if self.store_trajectories:
                trajectory.append(position.copy())

            if not alive:
                fate = STOPPED
                break

            if physics.multiple_scattering:
                direction = scattering.scatter(direction, energy, step, self.rng)

        return n_steps, fate, np.asarray(trajectory, dtype=np.float64).reshape(-1, 3)
