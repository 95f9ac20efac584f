"""
Continuous energy loss of charged particles in matter.

Mean energy loss from the Bethe-Bloch formula with the asymptotic density
effect correction, plus Gaussian (Bohr) straggling for thick absorbers.

References:
    - PDG Review of Particle Physics, "Passage of particles through matter", eq. 34.5
    - Sternheimer, Berger & Seltzer, Atomic Data and Nuclear Data Tables 30 (1984)
"""

import numpy as np
import numba

from muon_tomo.core.particle import ELECTRON_MASS, ParticleDefinition
from muon_tomo.physics.materials import Material

# 4π N_A r_e² m_e c² [MeV cm²/mol]
K_BETHE = 0.307075


@numba.njit(fastmath=True, cache=True)
def bethe_bloch(kinetic_MeV: float, mass_MeV: float, charge: float,
                Z_over_A: float, I_eV: float, rho_g_cm3: float) -> float:
    """
    Mean mass stopping power.

    Parameters:
        kinetic_MeV: Kinetic energy [MeV]
        mass_MeV: Particle rest mass [MeV]
        charge: Particle charge [e]
        Z_over_A: Material <Z/A> [mol/g]
        I_eV: Mean excitation energy [eV]
        rho_g_cm3: Material density [g/cm³]

    Returns:
        Stopping power [MeV cm²/g], never negative
    """
    if kinetic_MeV <= 0.0 or charge == 0.0 or mass_MeV <= 0.0:
        return 0.0

    gamma = 1.0 + kinetic_MeV / mass_MeV
    beta2 = 1.0 - 1.0 / (gamma * gamma)
    if beta2 <= 0.0:
        return 0.0
    bg2 = beta2 * gamma * gamma

    # Maximum energy transfer to a free electron in one collision
    ratio = ELECTRON_MASS / mass_MeV
    t_max = 2.0 * ELECTRON_MASS * bg2 / (1.0 + 2.0 * gamma * ratio + ratio * ratio)

    I_MeV = I_eV * 1.0e-6

    # Asymptotic density effect, delta/2 = ln(hw_p/I) + ln(beta gamma) - 1/2
    plasma_eV = 28.816 * np.sqrt(rho_g_cm3 * Z_over_A)
    delta = 2.0 * np.log(plasma_eV / I_eV) + np.log(bg2) - 1.0
    if delta < 0.0:
        delta = 0.0

    log_term = 0.5 * np.log(2.0 * ELECTRON_MASS * bg2 * t_max / (I_MeV * I_MeV))
    bracket = log_term - beta2 - 0.5 * delta
    if bracket <= 0.0:
        return 0.0

    return K_BETHE * charge * charge * Z_over_A / beta2 * bracket


@numba.njit(fastmath=True, cache=True)
def bohr_sigma(kinetic_MeV: float, mass_MeV: float, charge: float,
               Z_over_A: float, rho_g_cm3: float, step_cm: float) -> float:
    """
    Width of the Gaussian energy-loss straggling over a step.

    sigma² = (K/2) z² <Z/A> rho x T_max (1 - beta²/2)

    Returns:
        sigma [MeV]
    """
    if kinetic_MeV <= 0.0 or charge == 0.0 or mass_MeV <= 0.0:
        return 0.0

    gamma = 1.0 + kinetic_MeV / mass_MeV
    beta2 = 1.0 - 1.0 / (gamma * gamma)
    bg2 = beta2 * gamma * gamma
    ratio = ELECTRON_MASS / mass_MeV
    t_max = 2.0 * ELECTRON_MASS * bg2 / (1.0 + 2.0 * gamma * ratio + ratio * ratio)

    variance = 0.5 * K_BETHE * charge * charge * Z_over_A * rho_g_cm3 * step_cm \
        * t_max * (1.0 - 0.5 * beta2)
    if variance <= 0.0:
        return 0.0
    return np.sqrt(variance)


class EnergyLoss:
    """
    Energy loss of one particle species in one material.

    Usage:
        loss = EnergyLoss(find_particle('mu-'), materials.find_or_build('G4_WATER'))
        dEdx = loss.dEdx(4000.0)          # MeV/mm
        deposit = loss.sample(4000.0, 10.0, rng)
    """

    def __init__(self, particle: ParticleDefinition, material: Material,
                 fluctuations: bool = True):
        """
        Parameters:
            particle: Particle species
            material: Traversed material
            fluctuations: Sample Gaussian straggling around the mean loss
        """
        self.particle = particle
        self.material = material
        self.fluctuations = fluctuations

    def stopping_power_MeV_cm2_g(self, kinetic_MeV: float) -> float:
        """Mass stopping power [MeV cm²/g]."""
        if self.material.is_vacuum:
            return 0.0
        return bethe_bloch(kinetic_MeV, self.particle.mass, self.particle.charge,
                           self.material.Z_over_A, self.material.I, self.material.density)

    def dEdx(self, kinetic_MeV: float) -> float:
        """Linear stopping power [MeV/mm]."""
        # MeV cm²/g * g/cm³ = MeV/cm
        return self.stopping_power_MeV_cm2_g(kinetic_MeV) * self.material.density / 10.0

    def sample(self, kinetic_MeV: float, step_mm: float, rng: np.random.Generator) -> float:
        """
        Energy deposited over a step.

        Parameters:
            kinetic_MeV: Kinetic energy at the start of the step [MeV]
            step_mm: Step length [mm]
            rng: Random generator used for straggling

        Returns:
            Deposited energy [MeV], clipped to [0, kinetic_MeV]
        """
        mean = self.dEdx(kinetic_MeV) * step_mm
        if mean <= 0.0:
            return 0.0

        deposit = mean
        if self.fluctuations:
            sigma = bohr_sigma(kinetic_MeV, self.particle.mass, self.particle.charge,
                               self.material.Z_over_A, self.material.density, step_mm / 10.0)
            if sigma > 0.0:
                deposit = rng.normal(mean, sigma)

        return float(min(max(deposit, 0.0), kinetic_MeV))
