import pytest

from muon_tomo.config import OutputConfig, RunConfig
from muon_tomo.errors import ConfigurationError, RunStateError
from muon_tomo.geometry import DetectorConstruction
from muon_tomo.recording import StepRecorder
from muon_tomo.run import RunController, RunState
from muon_tomo.source import FixedPointSource
from muon_tomo.transport import TransportEngine


def _config(tmp_path, **kwargs):
    return RunConfig(output=OutputConfig(path=str(tmp_path / 'deposits.txt')), **kwargs)


def _controller(tmp_path, geometry, physics='FTFP_BERT'):
    engine = TransportEngine(seed=5)
    recorder = StepRecorder(tmp_path / 'deposits.txt')
    detector = DetectorConstruction(geometry, engine.materials)
    return RunController(engine, detector, FixedPointSource(), recorder, physics)


def test_batch_run_state_transitions(tmp_path):
    controller = RunController.from_config(_config(tmp_path))
    assert controller.state is RunState.UNCONFIGURED
    controller.initialize()
    assert controller.state is RunState.INITIALIZED

    summary = controller.run_batch(3)
    assert controller.state is RunState.COMPLETED
    assert controller.recorder.closed
    assert summary.n_events == 3
    assert summary.rows_written == controller.recorder.rows_written > 0
    assert summary.total_deposit > 0.0
    assert len((tmp_path / 'deposits.txt').read_text().splitlines()) == summary.rows_written + 1

    with pytest.raises(RunStateError):
        controller.run_batch(1)


def test_run_before_initialize(tmp_path):
    controller = RunController.from_config(_config(tmp_path))
    with pytest.raises(RunStateError):
        controller.run_batch(1)


def test_zero_events_leave_header_only(tmp_path):
    controller = RunController.from_config(_config(tmp_path))
    controller.initialize()
    summary = controller.run_batch(0)
    assert summary.rows_written == 0
    assert (tmp_path / 'deposits.txt').read_text().splitlines() == \
        ['TrackID\tPosX(m)\tPosY(m)\tPosZ(m)\tEnergy(GeV)']


def test_negative_events_abort(tmp_path):
    controller = RunController.from_config(_config(tmp_path))
    controller.initialize()
    with pytest.raises(ConfigurationError):
        controller.run_batch(-1)
    assert controller.state is RunState.ABORTED
    assert controller.recorder.closed


def test_unknown_physics_list_aborts_before_events(tmp_path, defect_geometry):
    controller = _controller(tmp_path, defect_geometry, physics='NOT_A_LIST')
    with pytest.raises(ConfigurationError):
        controller.initialize()
    assert controller.state is RunState.ABORTED
    assert controller.recorder.closed
    assert len((tmp_path / 'deposits.txt').read_text().splitlines()) == 1


def test_from_config_checks_physics_before_opening_log(tmp_path):
    with pytest.raises(ConfigurationError):
        RunController.from_config(_config(tmp_path, physics_list='NOT_A_LIST'))
    assert not (tmp_path / 'deposits.txt').exists()


def test_geometry_error_aborts(tmp_path):
    config = _config(tmp_path)
    config.geometry.defect.kind = 'centered-cylinder'
    config.geometry.defect.height = 3.0
    controller = RunController.from_config(config)
    with pytest.raises(ConfigurationError):
        controller.initialize()
    assert controller.state is RunState.ABORTED


def test_interactive_run_accumulates_trajectories(tmp_path, defect_geometry):
    controller = _controller(tmp_path, defect_geometry)
    controller.initialize()
    summary = controller.run_interactive(2, commands=['/vis/viewer/flush', 'exit',
                                                      '/run/beamOn 5'])

    viewer = controller.engine.viewer
    assert viewer is not None
    assert viewer.n_trajectories == 2
    assert summary.n_events == 2
    assert controller.state is RunState.COMPLETED
    assert controller.engine.commands.history[-1] == '/vis/viewer/flush'
    assert not viewer.is_open


def test_summary_str(tmp_path):
    controller = RunController.from_config(_config(tmp_path))
    controller.initialize()
    text = str(controller.run_batch(1))
    assert '1 events' in text
    assert 'deposits.txt' in text
