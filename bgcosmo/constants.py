"""Physical constants and unit conversions for bgcosmo.

SI values follow CLASS v3.3.4 (include/background.h) so that density
parameters derived here agree with CLASS to the quoted precision.

References:
    CLASS source: include/background.h
"""

import math

# --- Conversion factors ---
Mpc_over_m = 3.085677581282e22
"""Conversion factor from meters to megaparsecs."""

# --- Fundamental constants (SI) ---
c_SI = 2.99792458e8
"""Speed of light in m/s."""

G_SI = 6.67428e-11
"""Newton's gravitational constant in m^3/kg/s^2."""

eV_SI = 1.602176487e-19
"""1 eV expressed in Joules."""

k_B_SI = 1.3806504e-23
"""Boltzmann constant in J/K."""

h_P_SI = 6.62606896e-34
"""Planck constant in J*s."""

hbar_SI = h_P_SI / (2.0 * math.pi)
"""Reduced Planck constant in J*s."""

# --- Derived constants ---
sigma_B = 2.0 * math.pi**5 * k_B_SI**4 / (15.0 * h_P_SI**3 * c_SI**2)
"""Stefan-Boltzmann constant in W/m^2/K^4.
   sigma_B = 2 pi^5 k_B^4 / (15 h^3 c^2) = 5.670400e-8
"""

K_over_eV = k_B_SI / eV_SI
"""Temperature-to-energy conversion: k_B * (1 K) in eV."""

# --- Hubble constant ---
H0_over_h_SI = 1e5 / Mpc_over_m
"""H0 / h = 100 km/s/Mpc expressed in 1/s."""

H0_hmpc = 1e5 / c_SI
"""H0 / c in units of h/Mpc (= 1/2997.92458)."""

# --- Defaults ---
T_cmb_default = 2.7255
"""Default CMB temperature today in Kelvin (Fixsen 2009)."""

N_eff_default = 3.046
"""Default effective number of relativistic neutrino species."""

N_nu = 3
"""Number of neutrino species (fixed, not a fitted parameter)."""

N_photon = 2
"""Photon polarisation states."""

# T_nu / T_gamma = (4/11)^(1/3) for instantaneous decoupling
T_nu_over_T_cmb_default = (4.0 / 11.0) ** (1.0 / 3.0)
"""Neutrino temperature relative to photon temperature for N_eff = 3."""

# --- Useful numerical constants ---
zeta3 = 1.2020569031595942853997381615114499907649862923404988817922
"""Riemann zeta(3), used in neutrino number density."""

zeta4 = math.pi**4 / 90.0
"""Riemann zeta(4) = pi^4 / 90."""

zeta5 = 1.0369277551433699263313654864570341680570809195019128119741
"""Riemann zeta(5)."""

# --- Fermi-Dirac momentum integrals ---
# int_0^inf x^3 / (e^x + 1) dx = (7/8) * 6 zeta(4) = 7 pi^4 / 120
fd_energy_integral = 7.0 / 120.0 * math.pi**4
"""Relativistic Fermi-Dirac energy integral, the y -> 0 limit of F(y)."""

# int_0^inf x^2 / (e^x + 1) dx = (3/4) * 2 zeta(3)
fd_number_integral = 1.5 * zeta3
"""Fermi-Dirac number integral, the slope of F(y) as y -> infinity."""

nu_sound_speed_factor = math.sqrt(25.0 * zeta5 / (3.0 * zeta3))
"""Prefactor of the non-relativistic neutrino sound speed c_s = k T_nu / m_nu (1408.2995)."""
