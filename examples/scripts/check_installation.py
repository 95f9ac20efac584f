#!/usr/bin/env python3
"""
Quick script to verify installation.

Run this after `pip install -e .` to check the stack and the kernels.
"""

import sys
import time

print("="*70)
print("muon_tomo Installation Check")
print("="*70)

# 1. Third-party stack
print("\n1. Checking dependencies...")
try:
    import numpy as np
    import numba
    import matplotlib
    import scipy
    import yaml
    import tqdm
    for module in (np, numba, matplotlib, scipy, yaml, tqdm):
        print(f"   ✓ {module.__name__}: {module.__version__}")
except ImportError as e:
    print(f"   ✗ Import failed: {e}")
    sys.exit(1)

# 2. Package
print("\n2. Checking muon_tomo imports...")
try:
    from muon_tomo.core.particle import find_particle
    from muon_tomo.physics import EnergyLoss, MaterialDatabase
    from muon_tomo.physics.scattering import highland_angle
    print("   ✓ muon_tomo imported")
except ImportError as e:
    print(f"   ✗ Failed: {e}")
    sys.exit(1)

# 3. Physics sanity: minimum-ionising muon in concrete
print("\n3. Checking stopping power...")
muon = find_particle('mu-')
concrete = MaterialDatabase().find_or_build('G4_CONCRETE')
dEdx = EnergyLoss(muon, concrete).stopping_power_MeV_cm2_g(4000.0)
print(f"   ✓ mu- @ 4 GeV in concrete: {dEdx:.3f} MeV cm²/g")
print("     (Expected: ~2 MeV cm²/g)")
if not 1.5 < dEdx < 3.0:
    print("   ⚠ Stopping power outside the expected range")

# 4. Numba JIT compilation
print("\n4. Checking Numba JIT compilation...")
start = time.time()
theta = highland_angle(4000.0, muon.mass, muon.charge, 10.0, concrete.X0)
compile_time = time.time() - start

start = time.time()
for _ in range(10000):
    highland_angle(4000.0, muon.mass, muon.charge, 10.0, concrete.X0)
elapsed = (time.time() - start) / 10000

print(f"   ✓ Highland angle over 10 cm: {theta * 1e3:.3f} mrad")
print(f"   ✓ First call (compile/cache load): {compile_time:.2f} s, then {elapsed * 1e6:.2f} µs/call")

print("\n" + "="*70)
print("Installation check complete!")
print("="*70)
print("\nNext steps:")
print("  muon-tomo --config examples/configs/scenario_a.yaml")
print("  python examples/scripts/defect_scan.py 2000")
