"""
Constants used across the hydronet-mcp engine.

This module defines unit conversion factors, physical constants and the
numerical defaults used by the segment calculator and propagation engine.
"""

# Conversion factors for unit flexibility
GPM_to_M3S = 0.0000630902   # US GPM to m³/s
INCH_to_M = 0.0254           # inch to meter
PSI_to_PA = 6894.757293168   # psi to Pascal
CENTIPOISE_to_PAS = 0.001    # centipoise to Pa·s
FT_to_M = 0.3048             # foot to meter
LBFT3_to_KGM3 = 16.01846337  # lb/ft³ to kg/m³
LB_to_KG = 0.45359237        # pound mass to kilogram
DEG_C_to_K = 273.15          # Celsius to Kelvin (offset)

# Standard conditions
P_ATM = 101325.0             # Standard atmosphere, Pa (gauge reference)
R_UNIV = 8314.462            # Universal gas constant, J/(kmol·K)
MW_AIR = 28.964              # Molecular weight of air, kg/kmol (gas specific gravity reference)
SCF_PER_LBMOL = 379.482      # Standard cubic feet per lb-mol at 60°F, 14.696 psia

# Physical constants
G_GRAVITY = 9.80665          # Standard gravity acceleration, m/s² (NIST value)

# Friction factor solver
LAMINAR_REYNOLDS_LIMIT = 2300.0      # Re at or below this is laminar
COLEBROOK_TOLERANCE = 1e-10          # Relative change in 1/sqrt(f) between iterations
COLEBROOK_MAX_ITERATIONS = 50

# Swage detection: transitions smaller than max(abs, rel * scale) are ignored
SWAGE_ABSOLUTE_TOLERANCE = 1e-6      # m
SWAGE_RELATIVE_TOLERANCE = 1e-3

# Orifice plate correlation
ORIFICE_LAMINAR_REYNOLDS_LIMIT = 2500.0

# Control valve sizing
DEFAULT_VALVE_XT = 0.72              # Pressure drop ratio factor for gas valves
CG_C1_FACTOR = 39.76                 # C1 = 39.76 * sqrt(xT)
CG_ANGLE_FACTOR = 3417.0             # Universal gas sizing equation angle constant (degrees)
CG_BASE_TEMPERATURE_R = 520.0        # Standard temperature in the Cg equation, °R
MIN_OUTLET_PRESSURE_MARGIN = 1.0     # Pa left at the valve outlet when bounding a gas drop

# Erosional velocity (API RP 14E)
DEFAULT_EROSIONAL_CONSTANT = 100.0

# Probe length used to estimate a pressure gradient for missing-length segments
LENGTH_PROBE_M = 1.0

# Node pressures reached by two paths that differ by more than this are a conflict
PRESSURE_CONFLICT_TOLERANCE_PA = 100.0
MASS_BALANCE_TOLERANCE_KGS = 0.01

# Default units applied when a quantity is written to an object that had none
DEFAULT_PRESSURE_UNIT = "Pa"
DEFAULT_TEMPERATURE_UNIT = "C"
DEFAULT_LENGTH_UNIT = "m"
DEFAULT_VALVE_PRESSURE_DROP_UNIT = "kPa"

# Inlet pressure reported in liquid summaries when no boundary pressure is set
DEFAULT_ATMOSPHERIC_PRESSURE = 101325.0  # Pa
