"""
Multiple Coulomb scattering.

Gaussian small-angle approximation with the Highland width, applied as a
direction deflection at the end of each step.

References:
    - Highland, NIM 129, 497 (1975)
    - PDG Review of Particle Physics (Passage of particles through matter)
"""

import numpy as np
import numba

from muon_tomo.core.particle import ParticleDefinition
from muon_tomo.physics.materials import Material


@numba.njit(fastmath=True, cache=True)
def highland_angle(kinetic_MeV: float, mass_MeV: float, charge: float,
                   step_length_cm: float, X0_cm: float) -> float:
    """
    RMS plane scattering angle from the Highland formula.

        θ0 = (13.6 MeV / βcp) |z| sqrt(x/X0) [1 + 0.038 ln(x/X0)]

    Parameters:
        kinetic_MeV: Kinetic energy [MeV]
        mass_MeV: Rest mass [MeV]
        charge: Charge [e]
        step_length_cm: Path length [cm]
        X0_cm: Radiation length of the material [cm]

    Returns:
        RMS angle [radians]
    """
    if charge == 0.0 or kinetic_MeV <= 0.0 or X0_cm <= 0.0:
        return 0.0

    E_total = kinetic_MeV + mass_MeV
    momentum = np.sqrt(E_total * E_total - mass_MeV * mass_MeV)  # MeV/c
    beta = momentum / E_total
    beta_p = beta * momentum

    x_over_X0 = step_length_cm / X0_cm
    if x_over_X0 <= 1e-10:  # Avoid log(0)
        return 0.0

    theta = (13.6 / beta_p) * abs(charge) * np.sqrt(x_over_X0) * \
        (1.0 + 0.038 * np.log(x_over_X0))
    if theta < 0.0:
        return 0.0
    return theta


@numba.njit(fastmath=True, cache=True)
def rotate_direction(direction: np.ndarray, theta: float, phi: float) -> np.ndarray:
    """
    Deflect a unit vector by polar angle theta and azimuth phi.

    The deflection is expressed in a local frame (u, v, w) where w is the
    current direction and u, v are orthogonal to it.

    Returns:
        New unit vector [x, y, z]
    """
    wx, wy, wz = direction[0], direction[1], direction[2]

    if theta < 1e-12:
        return direction.copy()

    # u: orthogonal to w, built from the smaller components
    if abs(wz) < 0.99:
        norm = np.sqrt(wx * wx + wy * wy)
        ux, uy, uz = -wy / norm, wx / norm, 0.0
    else:
        norm = np.sqrt(wy * wy + wz * wz)
        ux, uy, uz = 0.0, wz / norm, -wy / norm

    # v = w × u
    vx = wy * uz - wz * uy
    vy = wz * ux - wx * uz
    vz = wx * uy - wy * ux

    sin_t = np.sin(theta)
    cos_t = np.cos(theta)
    cos_p = np.cos(phi)
    sin_p = np.sin(phi)

    result = np.empty(3, dtype=np.float64)
    result[0] = sin_t * (cos_p * ux + sin_p * vx) + cos_t * wx
    result[1] = sin_t * (cos_p * uy + sin_p * vy) + cos_t * wy
    result[2] = sin_t * (cos_p * uz + sin_p * vz) + cos_t * wz

    n = np.sqrt(result[0] ** 2 + result[1] ** 2 + result[2] ** 2)
    result /= n
    return result


class MultipleScattering:
    """
    Direction deflection of one particle species in one material.

    Usage:
        ms = MultipleScattering(find_particle('mu-'), materials.find_or_build('G4_Fe'))
        new_direction = ms.scatter(direction, 4000.0, 10.0, rng)
    """

    def __init__(self, particle: ParticleDefinition, material: Material):
        self.particle = particle
        self.material = material

    def rms_angle(self, kinetic_MeV: float, step_mm: float) -> float:
        """RMS space angle projected on a plane [radians]."""
        if self.material.is_vacuum:
            return 0.0
        return highland_angle(kinetic_MeV, self.particle.mass, self.particle.charge,
                              step_mm / 10.0, self.material.X0)

    def scatter(self, direction: np.ndarray, kinetic_MeV: float, step_mm: float,
                rng: np.random.Generator) -> np.ndarray:
        """
        Sample a deflected direction.

        The polar angle combines two independent plane angles drawn from
        N(0, θ0); the azimuth is uniform.
        """
        theta0 = self.rms_angle(kinetic_MeV, step_mm)
        if theta0 <= 0.0:
            return direction
        theta = np.hypot(rng.normal(0.0, theta0), rng.normal(0.0, theta0))
        phi = rng.uniform(0.0, 2.0 * np.pi)
        return rotate_direction(np.asarray(direction, dtype=np.float64), theta, phi)
