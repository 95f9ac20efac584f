"""
System of units.

Internal quantities follow the CLHEP convention used by Geant4:
lengths in millimetres and energies in MeV. Multiply a number by a unit
to bring it into internal units, divide by the unit to read it back:

    height = 2.5 * m          # 2500.0 (mm)
    height / m                # 2.5
"""

import numpy as np

# Length
mm = 1.0
millimeter = mm
cm = 10.0 * mm
centimeter = cm
m = 1000.0 * mm
meter = m
km = 1000.0 * m

# Energy
MeV = 1.0
megaelectronvolt = MeV
eV = 1.0e-6 * MeV
keV = 1.0e-3 * MeV
GeV = 1.0e3 * MeV
TeV = 1.0e6 * MeV

# Angle
rad = 1.0
deg = np.pi / 180.0 * rad
twopi = 2.0 * np.pi

# Geometrical tolerance used by the navigator [mm]
SURFACE_TOLERANCE = 1.0e-9 * mm

# Unit symbols accepted in configuration files and log headers
LENGTH_UNITS = {
    'mm': mm,
    'cm': cm,
    'm': m,
    'km': km,
}

ENERGY_UNITS = {
    'eV': eV,
    'keV': keV,
    'MeV': MeV,
    'GeV': GeV,
    'TeV': TeV,
}


def energy_unit(symbol: str) -> float:
    """
    Look up an energy unit by symbol.

    Parameters:
        symbol: Unit symbol, e.g. 'GeV' or 'keV'

    Returns:
        Value of the unit in internal units (MeV)
    """
    try:
        return ENERGY_UNITS[symbol]
    except KeyError:
        raise ValueError(f"Unknown energy unit '{symbol}'. "
                         f"Available: {list(ENERGY_UNITS.keys())}") from None
