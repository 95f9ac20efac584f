import numpy as np
import pytest

from muon_tomo.core.particle import find_particle
from muon_tomo.core.units import GeV, m
from muon_tomo.errors import ConfigurationError
from muon_tomo.physics import EnergyLoss, Material, MultipleScattering, get_physics_list
from muon_tomo.physics.lists import REFERENCE_PHYSICS_LISTS, is_reference_physics_list
from muon_tomo.physics.scattering import rotate_direction
from muon_tomo.transport.engine import calculate_step_size


@pytest.fixture
def muon():
    return find_particle('mu-')


def test_muon_stopping_power_in_concrete(muon, materials):
    loss = EnergyLoss(muon, materials.find_or_build('G4_CONCRETE'))
    # Near minimum ionisation, ~2 MeV cm2/g
    assert 1.5 < loss.stopping_power_MeV_cm2_g(4 * GeV) < 3.0
    assert loss.dEdx(4 * GeV) == pytest.approx(
        loss.stopping_power_MeV_cm2_g(4 * GeV) * 2.3 / 10.0)


def test_stopping_power_rises_at_low_energy(muon, materials):
    loss = EnergyLoss(muon, materials.find_or_build('G4_WATER'))
    assert loss.dEdx(10.0) > loss.dEdx(100.0) > loss.dEdx(1 * GeV)


def test_vacuum_and_neutral_deposit_nothing(muon, materials):
    rng = np.random.default_rng(0)
    vacuum = EnergyLoss(muon, materials.find_or_build('G4_Galactic'))
    assert vacuum.dEdx(4 * GeV) == 0.0
    assert vacuum.sample(4 * GeV, 1 * m, rng) == 0.0

    geantino = EnergyLoss(find_particle('geantino'), materials.find_or_build('G4_Pb'))
    assert geantino.sample(4 * GeV, 1 * m, rng) == 0.0


def test_sampled_loss_is_bounded(muon, materials):
    rng = np.random.default_rng(1)
    loss = EnergyLoss(muon, materials.find_or_build('G4_Pb'))
    samples = [loss.sample(20.0, 50.0, rng) for _ in range(200)]
    assert all(0.0 <= s <= 20.0 for s in samples)


def test_mean_loss_without_fluctuations(muon, materials):
    loss = EnergyLoss(muon, materials.find_or_build('G4_Fe'), fluctuations=False)
    rng = np.random.default_rng(2)
    assert loss.sample(4 * GeV, 10.0, rng) == pytest.approx(loss.dEdx(4 * GeV) * 10.0)


def test_highland_angle_scales_with_energy(muon, materials):
    ms = MultipleScattering(muon, materials.find_or_build('G4_CONCRETE'))
    assert ms.rms_angle(1 * GeV, 100.0) > ms.rms_angle(10 * GeV, 100.0) > 0.0
    vacuum = MultipleScattering(muon, materials.find_or_build('G4_Galactic'))
    assert vacuum.rms_angle(1 * GeV, 100.0) == 0.0


def test_scatter_keeps_unit_direction(muon, materials):
    rng = np.random.default_rng(3)
    ms = MultipleScattering(muon, materials.find_or_build('G4_Pb'))
    direction = np.array([0.0, 0.0, -1.0])
    for _ in range(50):
        direction = ms.scatter(direction, 500.0, 10.0, rng)
        assert np.linalg.norm(direction) == pytest.approx(1.0)


def test_rotate_direction():
    direction = np.array([1.0, 0.0, 0.0])
    rotated = rotate_direction(direction, np.pi / 2, 0.0)
    assert np.dot(rotated, direction) == pytest.approx(0.0, abs=1e-12)
    np.testing.assert_array_equal(rotate_direction(direction, 0.0, 1.0), direction)


def test_step_size_limits():
    assert calculate_step_size(4000.0, 0.4, 0.01, 0.01, 1000.0) == pytest.approx(100.0)
    assert calculate_step_size(4000.0, 0.0, 0.01, 0.01, 1000.0) == 1000.0
    assert calculate_step_size(1.0, 100.0, 0.01, 0.01, 1000.0) == 0.01


def test_physics_list_registry():
    assert get_physics_list('FTFP_BERT').name == 'FTFP_BERT'
    assert not get_physics_list('CSDA').multiple_scattering
    assert is_reference_physics_list('QGSP_BIC')
    assert not is_reference_physics_list('NOT_A_LIST')
    with pytest.raises(ConfigurationError, match="NOT_A_LIST"):
        get_physics_list('NOT_A_LIST')
    assert 'FTFP_BERT' in REFERENCE_PHYSICS_LISTS


def test_material_database(materials):
    assert 'G4_CONCRETE' in materials
    with pytest.raises(ConfigurationError):
        materials.find_or_build('G4_NOTHING')

    materials.register(Material('Rock', 2.65, 0.5, 136.4, 10.02))
    assert materials.find_or_build('Rock').density == 2.65
    with pytest.raises(ConfigurationError):
        materials.register(Material('Bad', 0.0, 0.5, 100.0, 10.0))


def test_unknown_particle():
    with pytest.raises(ConfigurationError):
        find_particle('graviton')
