"""Neutrino Boltzmann integrals.

For a dimensionless mass y = m_nu / T_nu (per species) we need the
Fermi-Dirac momentum integrals

    F(y) = int_0^inf x^2 sqrt(x^2 + y^2) / (1 + e^x) dx          (energy density)
    G(y) = int_0^inf x^4 / (3 sqrt(x^2 + y^2)) / (1 + e^x) dx    (pressure)

truncated at x = x_max (20 by default). They are integrated as a two
component ODE with Diffrax on a grid of y values (y = 0 plus a log-spaced
range) and splined.

The splines store F(y) / (F_0 + C y) and G(y) / (F_0 / 3), with
F_0 = 7 pi^4 / 120 and C = 3 zeta(3) / 2. The normalised energy integral
tends to 1 for both y -> 0 and y -> inf, so evaluating the spline outside
the sampled range (which clamps to the boundary value) gives the correct
ultra- and non-relativistic limits. The normalised pressure integral is 1
at y = 0 and decays as 1/y.

Key functions:
    solve_boltzmann_integrals(prec) -> BoltzmannIntegrals
"""

from __future__ import annotations

import functools
import logging
import math
from dataclasses import dataclass

import diffrax
import jax
import jax.numpy as jnp
import numpy as np
from jaxtyping import Array, Float

from bgcosmo import constants as const
from bgcosmo.errors import NumericalSetupError
from bgcosmo.interpolation import CubicSpline
from bgcosmo.ode import solve_nonstiff, succeeded
from bgcosmo.params import PrecisionParams

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# BoltzmannIntegrals
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BoltzmannIntegrals:
    """Splined neutrino Boltzmann integrals F(y) and G(y).

    Built once and never mutated. The accessors undo the normalisation
    applied before splining.
    """

    y_table: Float[Array, "N"]            # sampled y values (y_table[0] = 0)
    energy_density_spline: CubicSpline    # F(y) / (F_0 + C y)
    pressure_spline: CubicSpline          # G(y) / (F_0 / 3)

    def energy_density(self, y: Float[Array, "..."]) -> Float[Array, "..."]:
        """F(y)."""
        y = jnp.asarray(y)
        return self.energy_density_spline.evaluate(y) * (const.fd_energy_integral + const.fd_number_integral * y)

    def pressure(self, y: Float[Array, "..."]) -> Float[Array, "..."]:
        """G(y)."""
        return self.pressure_spline.evaluate(jnp.asarray(y)) * const.fd_energy_integral / 3.0

    def denergy_density_dlogy(self, y: Float[Array, "..."]) -> Float[Array, "..."]:
        """dF/dlog(y) = y * [S'(y) (F_0 + C y) + C S(y)], exactly 0 at y = 0."""
        y = jnp.asarray(y)
        spline = self.energy_density_spline
        dF = y * (
            spline.derivative(y) * (const.fd_energy_integral + const.fd_number_integral * y)
            + const.fd_number_integral * spline.evaluate(y)
        )
        return jnp.where(y == 0.0, 0.0, dF)


# ---------------------------------------------------------------------------
# Integrands and grid
# ---------------------------------------------------------------------------

def _boltzmann_rhs(x, state, y):
    """d/dx of [F, G] at momentum x for mass parameter y."""
    epsilon = jnp.sqrt(x**2 + y**2)
    f_FD = 1.0 / (1.0 + jnp.exp(x))
    dF = x**2 * epsilon * f_FD
    # x^4 / (3 epsilon) -> 0 at x = y = 0
    safe_epsilon = jnp.where(epsilon > 0.0, epsilon, 1.0)
    dG = jnp.where(epsilon > 0.0, x**4 / (3.0 * safe_epsilon), 0.0) * f_FD
    return jnp.stack([dF, dG])


def y_sampling_grid(prec: PrecisionParams) -> np.ndarray:
    """y = 0 followed by (n - 1) points log-spaced on [y_min, y_max]."""
    n = prec.nu_n_points
    if n < 3:
        raise NumericalSetupError(f"nu_n_points must be at least 3, got {n}")
    if not 0.0 < prec.nu_y_min < prec.nu_y_max:
        raise NumericalSetupError(
            f"Need 0 < nu_y_min < nu_y_max, got [{prec.nu_y_min}, {prec.nu_y_max}]"
        )
    y = np.zeros(n)
    y[1:] = np.exp(np.linspace(math.log(prec.nu_y_min), math.log(prec.nu_y_max), n - 1))
    return y


@functools.partial(jax.jit, static_argnames=("x_max", "rtol", "atol", "max_steps"))
def _integrate_on_grid(y_grid, x_max, rtol, atol, max_steps):
    """Integrate F and G for every y in y_grid. Returns (F, G, ok)."""

    def integrate_one(y):
        sol = solve_nonstiff(
            rhs_fn=_boltzmann_rhs,
            t0=0.0,
            t1=x_max,
            y0=jnp.zeros(2),
            saveat=diffrax.SaveAt(t1=True),
            args=y,
            rtol=rtol,
            atol=atol,
            max_steps=max_steps,
            throw=False,
        )
        return sol.ys[-1, 0], sol.ys[-1, 1], succeeded(sol)

    return jax.vmap(integrate_one)(y_grid)


# ---------------------------------------------------------------------------
# Main solver
# ---------------------------------------------------------------------------

def solve_boltzmann_integrals(prec: PrecisionParams = PrecisionParams()) -> BoltzmannIntegrals:
    """Integrate and spline the neutrino Boltzmann integrals.

    Args:
        prec: precision parameters (grid size, y range, x cutoff, tolerances)

    Returns:
        BoltzmannIntegrals holding the two normalised splines

    Raises:
        NumericalSetupError: if the grid is degenerate or any integration
            fails to converge
    """
    if prec.nu_x_max <= 0.0:
        raise NumericalSetupError(f"nu_x_max must be positive, got {prec.nu_x_max}")
    y_grid = y_sampling_grid(prec)

    F_raw, G_raw, ok = _integrate_on_grid(
        jnp.asarray(y_grid),
        x_max=float(prec.nu_x_max),
        rtol=float(prec.nu_ode_rtol),
        atol=float(prec.nu_ode_atol),
        max_steps=int(prec.ode_max_steps),
    )
    F_raw = np.asarray(F_raw)
    G_raw = np.asarray(G_raw)
    ok = np.asarray(ok) & np.isfinite(F_raw) & np.isfinite(G_raw)
    if not ok.all():
        failed = y_grid[~ok]
        raise NumericalSetupError(
            f"Neutrino Boltzmann integral did not converge for {failed.size} of "
            f"{y_grid.size} grid points (first failure at y = {failed[0]:.4e})"
        )

    E_norm = F_raw / (const.fd_energy_integral + const.fd_number_integral * y_grid)
    p_norm = G_raw / (const.fd_energy_integral / 3.0)

    integrals = BoltzmannIntegrals(
        y_table=jnp.asarray(y_grid),
        energy_density_spline=CubicSpline(
            y_grid, E_norm, name="Neutrino boltzmann integral - energydensity"
        ),
        pressure_spline=CubicSpline(
            y_grid, p_norm, name="Neutrino boltzmann integral - pressure"
        ),
    )
    logger.debug(
        "Neutrino Boltzmann integrals on %d points, y in [%g, %g]: "
        "E(0)=%.10f E(y_max)=%.10f p(0)=%.10f",
        y_grid.size, prec.nu_y_min, prec.nu_y_max, E_norm[0], E_norm[-1], p_norm[0],
    )
    return integrals
