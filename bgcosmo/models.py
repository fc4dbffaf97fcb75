"""Concrete background cosmologies and the model registry.

    LCDM:     E^2 = Omega_Lambda + Omega_K/a^2 + Omega_M/a^3 + Omega_Rtot/a^4
    w0waCDM:  Omega_Lambda is replaced by Omega_Lambda * f_DE(a) with the CPL
              equation of state w(a) = w0 + wa (1 - a) and
              f_DE(a) = a^(-3(1 + w0 + wa)) exp(-3 wa (1 - a))

References:
    Chevallier & Polarski (2001), Linder (2003)
"""

from __future__ import annotations

from typing import Dict, Mapping, Type

import jax.numpy as jnp
from jaxtyping import Array, Float

from bgcosmo.config import ParameterMap
from bgcosmo.cosmology import BackgroundCosmology
from bgcosmo.errors import ConfigValidationError


class BackgroundCosmologyLCDM(BackgroundCosmology):
    """Flat or curved LCDM with photons, massless and massive neutrinos."""

    name = "LCDM"

    def HoverH0_of_a(self, a: Float[Array, "..."]) -> Float[Array, "..."]:
        p = self.params
        a = jnp.asarray(a)
        return jnp.sqrt(
            p.Omega_Lambda + p.Omega_K / a**2 + p.Omega_M / a**3 + p.Omega_Rtot / a**4
        )

    def dlogHdloga_of_a(self, a: Float[Array, "..."]) -> Float[Array, "..."]:
        p = self.params
        a = jnp.asarray(a)
        E = self.HoverH0_of_a(a)
        return (
            -2.0 * p.Omega_K / a**2 - 3.0 * p.Omega_M / a**3 - 4.0 * p.Omega_Rtot / a**4
        ) / (2.0 * E * E)

    def info_lines(self) -> list[str]:
        return super().info_lines() + ["#====================================================="]


class BackgroundCosmologyW0WaCDM(BackgroundCosmology):
    """Dynamical dark energy with w(a) = w0 + wa (1 - a)."""

    name = "w0waCDM"

    def read_parameters(self, param: ParameterMap | Mapping) -> None:
        if not isinstance(param, ParameterMap):
            param = ParameterMap(param)
        super().read_parameters(param)
        self.w0 = param.get("cosmology_w0")
        self.wa = param.get("cosmology_wa")
        if self.w0 + self.wa >= 0.0:
            raise ConfigValidationError(
                f"Parameter 'cosmology_wa' must satisfy w0 + wa < 0, "
                f"got w0 = {self.w0!r}, wa = {self.wa!r}"
            )

    def w_of_a(self, a: Float[Array, "..."]) -> Float[Array, "..."]:
        """Dark energy equation of state."""
        return self.w0 + self.wa * (1.0 - jnp.asarray(a))

    def dark_energy_ratio(self, a: Float[Array, "..."]) -> Float[Array, "..."]:
        """rho_DE(a) / rho_DE(1)."""
        a = jnp.asarray(a)
        return a ** (-3.0 * (1.0 + self.w0 + self.wa)) * jnp.exp(-3.0 * self.wa * (1.0 - a))

    def HoverH0_of_a(self, a: Float[Array, "..."]) -> Float[Array, "..."]:
        p = self.params
        a = jnp.asarray(a)
        return jnp.sqrt(
            p.Omega_Lambda * self.dark_energy_ratio(a)
            + p.Omega_K / a**2
            + p.Omega_M / a**3
            + p.Omega_Rtot / a**4
        )

    def dlogHdloga_of_a(self, a: Float[Array, "..."]) -> Float[Array, "..."]:
        p = self.params
        a = jnp.asarray(a)
        E = self.HoverH0_of_a(a)
        de = -3.0 * (1.0 + self.w_of_a(a)) * p.Omega_Lambda * self.dark_energy_ratio(a)
        return (
            de - 2.0 * p.Omega_K / a**2 - 3.0 * p.Omega_M / a**3 - 4.0 * p.Omega_Rtot / a**4
        ) / (2.0 * E * E)

    def get_OmegaLambda(self, a=1.0):
        Omega_Lambda = self.params.Omega_Lambda
        if isinstance(a, (int, float)) and a == 1.0:
            return Omega_Lambda
        a = jnp.asarray(a, dtype=float)
        E = self.HoverH0_of_a(a)
        return jnp.where(a == 1.0, Omega_Lambda, Omega_Lambda * self.dark_energy_ratio(a) / (E * E))

    def info_lines(self) -> list[str]:
        return super().info_lines() + [
            f"# w0                      : {self.w0}",
            f"# wa                      : {self.wa}",
            "#=====================================================",
        ]

    def output_columns(self):
        return super().output_columns() + [("w(a)", self.w_of_a)]


# Registry of available cosmologies
COSMOLOGY_REGISTRY: Dict[str, Type[BackgroundCosmology]] = {
    "LCDM": BackgroundCosmologyLCDM,
    "w0waCDM": BackgroundCosmologyW0WaCDM,
}


def get_cosmology(name: str, **kwargs) -> BackgroundCosmology:
    """Instantiate a registered cosmology by name.

    Keyword arguments are passed to the constructor (output range, precision).
    """
    if name not in COSMOLOGY_REGISTRY:
        raise ConfigValidationError(
            f"Unknown cosmology model '{name}'. Available: {list(COSMOLOGY_REGISTRY.keys())}"
        )
    return COSMOLOGY_REGISTRY[name](**kwargs)


def cosmology_from_parameters(param: ParameterMap | Mapping, **kwargs) -> BackgroundCosmology:
    """Pick the model from ``cosmology_model`` (default LCDM) and read the parameters.

    The returned cosmology still needs ``init()``.
    """
    if not isinstance(param, ParameterMap):
        param = ParameterMap(param)
    name = param.get("cosmology_model", "LCDM", dtype=str)
    cosmo = get_cosmology(name, **kwargs)
    cosmo.read_parameters(param)
    return cosmo
