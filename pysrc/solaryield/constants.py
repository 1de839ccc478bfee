"""
Physical constants and default parameters for solaryield.

This module consolidates the astronomical, radiometric and thermodynamic
constants used by the engine, together with the default simulation
parameters, so that calculators and the scheduler share one source.
"""

# =============================================================================
# Numerical Tolerances
# =============================================================================

# Values with magnitude below this are treated as zero (sun height, daylight)
ZERO_TOLERANCE = 1e-4

# Perturbed bisector substituted when a receiver-bisecting normal is vertical
VERTICAL_PERTURBATION = (-0.001, 0.0, 1.0)


# =============================================================================
# Astronomical Constants
# =============================================================================

# Solar constant (kW/m²)
# Reference: Kopp & Lean (2011), total solar irradiance at 1 AU
SOLAR_CONSTANT = 1.361

# Earth's axial tilt used in the declination approximation (degrees)
# declination = 23.45° × sin(2π(284 + day_of_year) / 365.25)
OBLIQUITY_DEG = 23.45

MINUTES_PER_DAY = 1440
HALF_DAY_MINUTES = 720


# =============================================================================
# Clear-Sky Coefficients
# =============================================================================
# Monthly atmospheric coefficients (January first), after ASHRAE (1972).
# CLEARNESS_COEFFICIENTS is the optical depth used for beam attenuation:
#   I = I0 × exp(-B × air_mass)
# DIFFUSE_COEFFICIENTS is the sky diffuse factor relative to beam normal.
# =============================================================================

CLEARNESS_COEFFICIENTS = (0.142, 0.144, 0.156, 0.180, 0.196, 0.205, 0.207, 0.201, 0.177, 0.160, 0.149, 0.142)
DIFFUSE_COEFFICIENTS = (0.058, 0.060, 0.071, 0.097, 0.121, 0.134, 0.136, 0.122, 0.092, 0.073, 0.063, 0.057)

# Kasten & Young (1989) air mass fit
KASTEN_YOUNG_A = 0.50572
KASTEN_YOUNG_B = 96.07995
KASTEN_YOUNG_C = -1.6364

# Spherical earth air mass: earth radius over atmospheric scale height,
# and the elevation (m) that reduces the effective thickness by one unit
SPHERE_RADIUS_RATIO = 708.0
SPHERE_ELEVATION_SCALE = 9000.0

# Barometric scale height (m) used for pressure correction of air mass
SCALE_HEIGHT = 8434.5


# =============================================================================
# Physical Constants
# =============================================================================

# Stefan-Boltzmann constant (W/m²/K⁴)
SBC = 5.67e-8

# Kelvin to Celsius conversion offset
KELVIN_OFFSET = 273.15

# Standard gravity (m/s²)
GRAVITATIONAL_ACCELERATION = 9.80665

# Dry air at 20 °C, sea level
AIR_DENSITY = 1.204  # kg/m³
AIR_ISOBARIC_SPECIFIC_HEAT = 1005.0  # J/kg/K


# =============================================================================
# Collector Defaults
# =============================================================================

# Reference temperature for PV power temperature coefficients (°C)
PV_REFERENCE_TEMPERATURE = 25.0

# Cell packing factor for monocrystalline modules (round cells leave gaps)
MONOCRYSTALLINE_PACKING_FACTOR = 0.95

DEFAULT_INVERTER_EFFICIENCY = 0.95
DEFAULT_DUST_LOSS = 0.05

# Power tower / absorber pipe receiver efficiencies
DEFAULT_RECEIVER_OPTICAL_EFFICIENCY = 0.7
DEFAULT_RECEIVER_THERMAL_EFFICIENCY = 0.3
DEFAULT_RECEIVER_ABSORPTANCE = 0.95

# Solar updraft tower chain
DEFAULT_COLLECTOR_TRANSMISSIVITY = 0.9
DEFAULT_TURBINE_EFFICIENCY = 0.3
DEFAULT_DISCHARGE_COEFFICIENT = 0.65
DEFAULT_CONVECTIVE_COEFFICIENT = 5.0  # W/m²/K
DEFAULT_COLLECTOR_EMISSIVITY = 0.95


# =============================================================================
# Simulation Defaults
# =============================================================================

DEFAULT_TIMES_PER_HOUR = 4
DEFAULT_DAYS_PER_YEAR = 6
DEFAULT_GROUND_ALBEDO = 0.3

# Target sample cell edge (m) per collector category
DEFAULT_PV_CELL_SIZE = 0.25
DEFAULT_CSP_CELL_SIZE = 0.5
DEFAULT_SUT_CELL_SIZE = 1.0

# Sampled day of month used by yearly runs
YEARLY_SAMPLE_DAY = 22

# Minute of day at which the diurnal temperature peaks
DEFAULT_HIGHEST_TEMPERATURE_MINUTE = 900

MONTH_ABBREVIATIONS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

TOTAL_LABEL = "Total"


# =============================================================================
# Public API
# =============================================================================

__all__ = [
    # Tolerances
    "ZERO_TOLERANCE",
    "VERTICAL_PERTURBATION",
    # Astronomy
    "SOLAR_CONSTANT",
    "OBLIQUITY_DEG",
    "MINUTES_PER_DAY",
    "HALF_DAY_MINUTES",
    # Clear sky
    "CLEARNESS_COEFFICIENTS",
    "DIFFUSE_COEFFICIENTS",
    "KASTEN_YOUNG_A",
    "KASTEN_YOUNG_B",
    "KASTEN_YOUNG_C",
    "SPHERE_RADIUS_RATIO",
    "SPHERE_ELEVATION_SCALE",
    "SCALE_HEIGHT",
    # Physics
    "SBC",
    "KELVIN_OFFSET",
    "GRAVITATIONAL_ACCELERATION",
    "AIR_DENSITY",
    "AIR_ISOBARIC_SPECIFIC_HEAT",
    # Collectors
    "PV_REFERENCE_TEMPERATURE",
    "MONOCRYSTALLINE_PACKING_FACTOR",
    "DEFAULT_INVERTER_EFFICIENCY",
    "DEFAULT_DUST_LOSS",
    "DEFAULT_RECEIVER_OPTICAL_EFFICIENCY",
    "DEFAULT_RECEIVER_THERMAL_EFFICIENCY",
    "DEFAULT_RECEIVER_ABSORPTANCE",
    "DEFAULT_COLLECTOR_TRANSMISSIVITY",
    "DEFAULT_TURBINE_EFFICIENCY",
    "DEFAULT_DISCHARGE_COEFFICIENT",
    "DEFAULT_CONVECTIVE_COEFFICIENT",
    "DEFAULT_COLLECTOR_EMISSIVITY",
    # Simulation
    "DEFAULT_TIMES_PER_HOUR",
    "DEFAULT_DAYS_PER_YEAR",
    "DEFAULT_GROUND_ALBEDO",
    "DEFAULT_PV_CELL_SIZE",
    "DEFAULT_CSP_CELL_SIZE",
    "DEFAULT_SUT_CELL_SIZE",
    "YEARLY_SAMPLE_DAY",
    "DEFAULT_HIGHEST_TEMPERATURE_MINUTE",
    "MONTH_ABBREVIATIONS",
    "TOTAL_LABEL",
]
