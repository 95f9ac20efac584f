import logging

import pytest

from muon_tomo.run.cli import EXIT_FAILURE, EXIT_OK, build_config, main, parse_args


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logging.getLogger("muon_tomo").handlers.clear()


def _rows(path):
    return path.read_text().splitlines()


def test_default_batch_run(tmp_path):
    output = tmp_path / 'deposits.txt'
    assert main(['--events', '2', '--output', str(output), '--seed', '3']) == EXIT_OK
    header, *rows = _rows(output)
    assert header == 'TrackID\tPosX(m)\tPosY(m)\tPosZ(m)\tEnergy(GeV)'
    assert rows


def test_overrides(tmp_path):
    output = tmp_path / 'scan.txt'
    assert main(['--events', '1', '--output', str(output), '--energy-unit', 'keV',
                 '--fields', 'PosZ', 'Energy', '--defect', 'centered-cylinder',
                 '--source', 'uniform-area', '--physics', 'QGSP_BERT']) == EXIT_OK
    assert _rows(output)[0] == 'PosZ(m)\tEnergy(keV)'


def test_config_file(tmp_path):
    output = tmp_path / 'deposits.txt'
    config = tmp_path / 'run.yaml'
    config.write_text(f"events: 1\noutput:\n  path: {output}\n  energy_unit: keV\n")
    assert main(['--config', str(config)]) == EXIT_OK
    assert _rows(output)[0].endswith('Energy(keV)')


def test_unknown_physics_list_exits_before_log(tmp_path, capsys):
    output = tmp_path / 'deposits.txt'
    assert main(['--physics', 'NOT_A_LIST', '--output', str(output)]) == EXIT_FAILURE
    assert not output.exists()
    assert 'NOT_A_LIST' in capsys.readouterr().err


def test_unwritable_output(tmp_path, capsys):
    assert main(['--events', '1', '--output', str(tmp_path)]) == EXIT_FAILURE
    assert 'Fatal' in capsys.readouterr().err


def test_missing_config_file(tmp_path):
    assert main(['--config', str(tmp_path / 'absent.yaml')]) == EXIT_FAILURE


def test_negative_events_rejected(tmp_path):
    assert main(['--events', '-1', '--output', str(tmp_path / 'x.txt')]) == EXIT_FAILURE


def test_build_config_keeps_file_values_without_overrides():
    config = build_config(parse_args([]))
    assert config.events == 1000
    assert config.output.path == 'deposits.txt'


def test_invalid_choice_exits():
    with pytest.raises(SystemExit):
        parse_args(['--energy-unit', 'MeV'])


def test_setup_logging_writes_file(tmp_path):
    from muon_tomo.logging_config import setup_logging

    log_file = tmp_path / 'run.log'
    logger = setup_logging(logging.DEBUG, str(log_file))
    setup_logging(logging.DEBUG, str(log_file))
    assert len(logger.handlers) == 2

    logging.getLogger('muon_tomo.run').debug("geometry ready")
    for handler in logger.handlers:
        handler.flush()
    assert 'muon_tomo.run - DEBUG - geometry ready' in log_file.read_text()
    for handler in logger.handlers:
        handler.close()
