import matplotlib

matplotlib.use("Agg")

import pytest

from muon_tomo.config import DefectConfig, GeometryConfig
from muon_tomo.physics.materials import MaterialDatabase


@pytest.fixture
def materials():
    return MaterialDatabase()


@pytest.fixture
def defect_geometry():
    """Default block with the centred 0.1 m x 1 m vacuum cavity."""
    return GeometryConfig(defect=DefectConfig(kind='centered-cylinder', radius=0.1, height=1.0))


class StepCollector:
    """Stepping action keeping every step it receives."""

    def __init__(self):
        self.steps = []

    def on_step(self, step):
        self.steps.append(step)


class CountingAction:
    """Counts qualifying steps and forwards them to a recorder."""

    def __init__(self, recorder):
        self.recorder = recorder
        self.qualifying = 0

    def on_step(self, step):
        if step.energy_deposit > 0:
            self.qualifying += 1
        self.recorder.on_step(step)


@pytest.fixture
def collector():
    return StepCollector()


@pytest.fixture
def counting_action():
    return CountingAction
