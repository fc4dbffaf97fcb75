"""Primordial power spectrum for bgcosmo.

Implements the standard power-law parameterization:
    P_R(k) = A_s * (k / k_pivot)^{n_s - 1}

and the curvature power spectrum in h/Mpc units used as the initial
condition for growth calculations:
    P(k) = 2 pi^2 / k^3 * P_R(h k)

References:
    CLASS source: primordial.c
"""

import jax.numpy as jnp
from jaxtyping import Array, Float

from bgcosmo.params import CosmologyParams


def primordial_scalar_pk(k_mpc: Float[Array, "..."], params: CosmologyParams) -> Float[Array, "..."]:
    """Compute dimensionless primordial scalar power spectrum P_R(k).

    Args:
        k_mpc: wavenumber(s) in Mpc^-1
        params: cosmological parameters

    Returns:
        P_R(k) (dimensionless)
    """
    return params.A_s * (jnp.asarray(k_mpc) / params.k_pivot_mpc) ** (params.n_s - 1.0)


def primordial_pofk(k_hmpc: Float[Array, "..."], params: CosmologyParams) -> Float[Array, "..."]:
    """Primordial power spectrum 2 pi^2 / k^3 * P_R(k), k in h/Mpc.

    Args:
        k_hmpc: wavenumber(s) in h/Mpc
        params: cosmological parameters

    Returns:
        P(k) in (Mpc/h)^3
    """
    k = jnp.asarray(k_hmpc)
    return 2.0 * jnp.pi**2 / k**3 * primordial_scalar_pk(params.h * k, params)
