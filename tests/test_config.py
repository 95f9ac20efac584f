import pytest

from muon_tomo.config import (DefectConfig, GeometryConfig, OutputConfig, RunConfig,
                              SourceConfig, load_config, save_config)
from muon_tomo.errors import ConfigurationError


def test_defaults():
    config = RunConfig()
    assert config.physics_list == 'FTFP_BERT'
    assert config.geometry.block_half_extents == (1.0, 1.0, 1.0)
    assert not config.geometry.defect.enabled
    assert config.source.kind == 'fixed-point'
    assert config.output.energy_unit == 'GeV'


def test_yaml_round_trip(tmp_path):
    config = RunConfig(
        physics_list='QGSP_BERT',
        events=25,
        geometry=GeometryConfig(defect=DefectConfig(kind='off-axis-cylinder',
                                                    offset=(0.3, 0.0, 0.0))),
        source=SourceConfig(kind='uniform-area', position=(0.0, 0.0, 2.5), seed=4),
        output=OutputConfig(path='scan.txt', fields=('PosZ', 'Energy'), energy_unit='keV'),
    )
    path = save_config(config, tmp_path / 'run.yaml')
    assert load_config(path) == config


def test_load_partial_file(tmp_path):
    path = tmp_path / 'run.yaml'
    path.write_text("events: 10\n"
                    "geometry:\n"
                    "  defect: {kind: centered-cylinder, radius: 0.3, height: 2.0}\n"
                    "output:\n"
                    "  energy_unit: keV\n")
    config = load_config(path)
    assert config.events == 10
    assert config.geometry.defect.radius == 0.3
    assert config.geometry.world_half_size == 5.0
    assert config.output.energy_unit == 'keV'


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / 'run.yaml'
    path.write_text("")
    assert load_config(path) == RunConfig()


@pytest.mark.parametrize("text", [
    "colour: red\n",
    "geometry:\n  wolrd_half_size: 5.0\n",
    "geometry:\n  defect: {kind: sphere}\n",
    "source:\n  kind: isotropic\n",
    "source:\n  energy: -1\n",
    "source:\n  position: [0, 0]\n",
    "events: -5\n",
    "events: many\n",
    "geometry: 3\n",
    "- a\n- b\n",
    "events: [unclosed\n",
])
def test_invalid_files(tmp_path, text):
    path = tmp_path / 'run.yaml'
    path.write_text(text)
    with pytest.raises(ConfigurationError):
        load_config(path)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config(tmp_path / 'absent.yaml')


@pytest.mark.parametrize("preset, header", [
    ('positions', ['PosX(m)', 'PosY(m)', 'PosZ(m)', 'Energy(GeV)']),
    ('full', ['TrackID', 'PosX(m)', 'PosY(m)', 'PosZ(m)', 'Energy(GeV)']),
])
def test_field_preset_from_yaml(tmp_path, preset, header):
    from muon_tomo.recording.recorder import StepRecorder

    path = tmp_path / 'run.yaml'
    log_path = tmp_path / 'deposits.txt'
    path.write_text(f"output:\n  path: {log_path}\n  fields: {preset}\n")
    config = load_config(path)
    assert config.output.fields == preset

    with StepRecorder.from_config(config.output) as recorder:
        assert recorder.header == header
    assert log_path.read_text().splitlines()[0] == "\t".join(header)
