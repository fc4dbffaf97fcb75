"""Parameter containers for bgcosmo.

CosmologyParams: the derived cosmological parameter set owned by a cosmology.
PrecisionParams: numerical precision settings, static.

Both are frozen dataclasses. A cosmology replaces its CosmologyParams
wholesale (via ``replace``) rather than mutating it.
"""

from __future__ import annotations

from dataclasses import dataclass, fields

from bgcosmo import constants as const


# ---------------------------------------------------------------------------
# CosmologyParams
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CosmologyParams:
    """Cosmological parameters, all fractions of the critical density today.

    Units:
        - Omega_*: dimensionless density parameters at a = 1
        - h: dimensionless Hubble parameter H0/(100 km/s/Mpc)
        - T_CMB_kelvin, T_nu_kelvin: temperatures today in Kelvin
        - M_nu_eV: sum of the neutrino masses in eV
        - k_pivot_mpc: pivot scale in Mpc^-1

    Omega_M and Omega_Rtot count the neutrinos twice over cosmic history:
    Omega_MNu is their matter-era density and Omega_Nu their radiation-era
    density. The exact treatment interpolates between the two.
    """

    # Hubble
    h: float = 0.7

    # Matter
    Omega_b: float = 0.05          # Baryons
    Omega_CDM: float = 0.25        # Cold dark matter
    Omega_MNu: float = 0.0         # Massive neutrinos (in the matter era)
    Omega_M: float = 0.3           # Total matter (in the matter era)

    # Radiation
    Omega_R: float = 0.0           # Photons
    Omega_Nu: float = 0.0          # Neutrinos (density set by N_eff)
    Omega_Rtot: float = 0.0        # Total relativistic (in the radiation era)

    # Curvature and dark energy
    Omega_K: float = 0.0
    Omega_Lambda: float = 0.7

    # Thermal history and neutrinos
    N_eff: float = const.N_eff_default
    T_CMB_kelvin: float = const.T_cmb_default
    T_nu_kelvin: float = const.T_nu_over_T_cmb_default * const.T_cmb_default
    M_nu_eV: float = 0.0
    N_nu: int = const.N_nu

    # Primordial
    A_s: float = 2.1e-9
    n_s: float = 0.965
    k_pivot_mpc: float = 0.05

    def replace(self, **kwargs) -> CosmologyParams:
        """Return a new CosmologyParams with specified fields replaced."""
        current = {f.name: getattr(self, f.name) for f in fields(self)}
        current.update(kwargs)
        return CosmologyParams(**current)


# ---------------------------------------------------------------------------
# PrecisionParams
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PrecisionParams:
    """Numerical precision parameters.

    They control grid sizes and tolerances of the one-time neutrino setup.
    The Boltzmann grid size fixes array shapes, so it is a compile-time
    constant for JIT.
    """

    # Neutrino Boltzmann integrals
    nu_n_points: int = 200          # y = 0 plus (nu_n_points - 1) log-spaced points
    nu_y_min: float = 0.01          # first log-spaced y = m_nu / T_nu / N_nu
    nu_y_max: float = 1000.0        # last log-spaced y
    nu_x_max: float = 20.0          # momentum cutoff; FD tail beyond is negligible
    nu_ode_rtol: float = 1e-10
    nu_ode_atol: float = 1e-13

    # ODE solver settings
    ode_max_steps: int = 16384

    @staticmethod
    def fast():
        """Coarse preset for quick checks (tests, exploratory runs)."""
        return PrecisionParams(
            nu_n_points=100,
            nu_ode_rtol=1e-8,
            nu_ode_atol=1e-11,
        )
