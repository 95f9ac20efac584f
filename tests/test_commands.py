import io

import matplotlib.figure
import pytest

from muon_tomo.geometry import DetectorConstruction
from muon_tomo.source import FixedPointSource
from muon_tomo.transport import CommandInterpreter, TransportEngine
from muon_tomo.transport import visualization
from muon_tomo.transport.visualization import SceneViewer


@pytest.fixture
def engine(defect_geometry, collector):
    engine = TransportEngine(seed=0)
    engine.set_detector_construction(DetectorConstruction(defect_geometry, engine.materials))
    engine.set_primary_generator(FixedPointSource())
    engine.set_stepping_action(collector)
    engine.use_physics('CSDA')
    yield engine
    if engine.viewer is not None:
        engine.viewer.close()


def test_verbosity_commands(engine):
    assert engine.apply_command('/control/verbose 2')
    assert engine.verbose == 2
    assert engine.apply_command('/tracking/verbose 1')
    assert engine.tracking_verbose == 1
    assert not engine.apply_command('/run/verbose loud')


def test_unknown_command_is_rejected(engine, caplog):
    assert not engine.apply_command('/gun/particle e-')
    assert 'not found' in caplog.text
    assert engine.commands.history == []


def test_beam_on_needs_initialized_run(engine, collector):
    assert not engine.apply_command('/run/beamOn 1')
    engine.initialize()
    assert engine.apply_command('/run/beamOn 1')
    assert collector.steps
    assert not engine.apply_command('/run/beamOn -3')
    assert not engine.apply_command('/run/beamOn')


def test_viewer_commands(engine, tmp_path):
    engine.initialize()
    assert not engine.apply_command('/vis/drawVolume')

    assert engine.apply_command('/vis/open')
    viewer = engine.viewer
    assert engine.apply_command('/vis/open')
    assert engine.viewer is viewer

    assert engine.apply_command('/vis/drawVolume')
    assert engine.apply_command('/vis/viewer/set/autoRefresh true')
    assert viewer.auto_refresh
    assert not engine.apply_command('/vis/viewer/set/autoRefresh maybe')
    assert engine.apply_command('/vis/scene/add/trajectories smooth')
    assert engine.store_trajectories
    assert engine.apply_command('/vis/scene/endOfEventAction refresh')
    assert not viewer.accumulate
    assert not engine.apply_command('/vis/scene/endOfEventAction forget')

    engine.beam_on(3)
    assert viewer.n_trajectories == 1

    image = tmp_path / 'scene.png'
    assert engine.apply_command(f'/vis/viewer/export {image}')
    assert image.exists()


def test_viewer_without_window_backend():
    viewer = SceneViewer()
    viewer.open()
    assert not viewer.interactive
    viewer.refresh()
    viewer.close()
    assert not viewer.is_open


def test_viewer_shows_window_on_gui_backend(monkeypatch):
    calls = []
    monkeypatch.setattr(visualization.plt, 'get_backend', lambda: 'TkAgg')
    monkeypatch.setattr(visualization.plt, 'ion', lambda: calls.append('ion'))
    monkeypatch.setattr(visualization.plt, 'pause', lambda interval: calls.append('pause'))
    monkeypatch.setattr(matplotlib.figure.Figure, 'show',
                        lambda self, *args, **kwargs: calls.append('show'))

    viewer = SceneViewer()
    viewer.open()
    assert viewer.interactive
    assert calls == ['ion', 'show']

    viewer.refresh()
    assert calls[-1] == 'pause'
    viewer.close()


def test_session_stops_at_exit(engine):
    stream = io.StringIO("# comment\n"
                         "\n"
                         "/control/verbose 3\n"
                         "/no/such/command\n"
                         "exit\n"
                         "/control/verbose 0\n")
    assert engine.session(stream) == 1
    assert engine.verbose == 3


def test_session_runs_to_end_of_input(engine):
    assert engine.session(["/control/verbose 1", "/tracking/verbose 2"]) == 2
    assert engine.commands.history == ["/control/verbose 1", "/tracking/verbose 2"]


def test_help_lists_commands(engine, capsys):
    interpreter = CommandInterpreter(engine)
    assert interpreter.apply('help')
    out = capsys.readouterr().out
    assert '/run/beamOn' in out
    assert '/vis/open' in out
