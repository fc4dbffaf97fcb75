"""Exact massive-neutrino background.

Neutrino energy density, pressure and their derivatives as functions of the
scale factor, for neutrinos that go from relativistic to non-relativistic.
All densities are in units of the critical density today.

With T_nu(a) = T_nu,0 / a the mass parameter is

    y(a) = M_nu / (N_nu T_nu(a)) = M_nu a / (N_nu T_nu,0)

so y grows with a. Then

    rho_nu(a) / rho_crit,0 = Omega_nu / a^4 * F(y) / F(0)
    p_nu(a) / rho_crit,0   = Omega_nu / a^4 * G(y) / F(0)

which reduces to Omega_nu / a^4 while relativistic and to
Omega_MNu / a^3 once non-relativistic.

Sound speed and free-streaming scale follow 1408.2995.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import jax.numpy as jnp
from jaxtyping import Array, Float

from bgcosmo import constants as const
from bgcosmo.boltzmann import BoltzmannIntegrals, solve_boltzmann_integrals
from bgcosmo.params import CosmologyParams, PrecisionParams


@dataclass(frozen=True)
class NeutrinoBackground:
    """Pure functions of the scale factor for the exact neutrino treatment.

    ``rho_norm`` = F(0) is evaluated from the built spline when the object is
    created, and reused by every density.
    """

    integrals: BoltzmannIntegrals
    Omega_Nu: float        # radiation-era neutrino density today
    Omega_M: float         # total matter density (for the free-streaming scale)
    M_nu_eV: float         # sum of neutrino masses
    T_nu_eV: float         # neutrino temperature today
    N_nu: int
    rho_norm: float        # F(0)

    @classmethod
    def from_params(
        cls,
        params: CosmologyParams,
        prec: PrecisionParams = PrecisionParams(),
        integrals: BoltzmannIntegrals | None = None,
    ) -> NeutrinoBackground:
        """Build the neutrino background, solving the Boltzmann integrals if needed."""
        if integrals is None:
            integrals = solve_boltzmann_integrals(prec)
        return cls(
            integrals=integrals,
            Omega_Nu=params.Omega_Nu,
            Omega_M=params.Omega_M,
            M_nu_eV=params.M_nu_eV,
            T_nu_eV=params.T_nu_kelvin * const.K_over_eV,
            N_nu=params.N_nu,
            rho_norm=float(integrals.energy_density(0.0)),
        )

    def temperature_eV(self, a: Float[Array, "..."]) -> Float[Array, "..."]:
        """Neutrino temperature k_B T_nu(a) in eV."""
        return self.T_nu_eV / jnp.asarray(a)

    def y_of_a(self, a: Float[Array, "..."]) -> Float[Array, "..."]:
        """Mass-to-temperature ratio per species."""
        return self.M_nu_eV / self.temperature_eV(a) / self.N_nu

    def rho_exact(self, a: Float[Array, "..."]) -> Float[Array, "..."]:
        """rho_nu(a) / rho_crit,0."""
        a = jnp.asarray(a)
        F = self.integrals.energy_density(self.y_of_a(a))
        return self.Omega_Nu / a**4 * F / self.rho_norm

    def p_exact(self, a: Float[Array, "..."]) -> Float[Array, "..."]:
        """p_nu(a) / rho_crit,0. Equal to rho_exact / 3 while relativistic."""
        a = jnp.asarray(a)
        G = self.integrals.pressure(self.y_of_a(a))
        return self.Omega_Nu / a**4 * G / self.rho_norm

    def drho_dloga_exact(self, a: Float[Array, "..."]) -> Float[Array, "..."]:
        """d(rho_nu / rho_crit,0) / dlog(a).

        From rho ~ a^-4 F(y) with dy/dloga = y:
            drho/dloga = Omega_nu / a^4 * (-4 F(y) + dF/dlogy) / F(0)
        """
        a = jnp.asarray(a)
        y = self.y_of_a(a)
        F = self.integrals.energy_density(y)
        dF_dlogy = self.integrals.denergy_density_dlogy(y)
        return self.Omega_Nu / a**4 * (-4.0 * F + dF_dlogy) / self.rho_norm

    def w_exact(self, a: Float[Array, "..."]) -> Float[Array, "..."]:
        """Equation of state p / rho: 1/3 relativistic, -> 0 non-relativistic."""
        return self.p_exact(a) / self.rho_exact(a)

    def sound_speed_cs_over_c(self, a: Float[Array, "..."]) -> Float[Array, "..."]:
        """Non-relativistic sound speed, capped at the radiation value 1/sqrt(3)."""
        cs = const.nu_sound_speed_factor * self.temperature_eV(a) / self.M_nu_eV
        return jnp.minimum(cs, 1.0 / math.sqrt(3.0))

    def free_streaming_scale_hmpc(self, a: Float[Array, "..."]) -> Float[Array, "..."]:
        """Free-streaming wavenumber k_fs(a) in h/Mpc."""
        a = jnp.asarray(a)
        return jnp.sqrt(1.5 * self.Omega_M / a) / self.sound_speed_cs_over_c(a) * const.H0_hmpc
