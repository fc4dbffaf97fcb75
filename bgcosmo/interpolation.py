"""Differentiable cubic spline interpolation for bgcosmo.

Provides a natural cubic spline class registered as a JAX pytree, so it can
live inside other containers and flow through jit/grad/vmap.

Thomas algorithm for the tridiagonal system via jax.lax.fori_loop,
jnp.searchsorted for interval lookup.

Key properties:
- Evaluation outside [x[0], x[-1]] returns the boundary value (flat
  extrapolation); the first derivative is zero there.
- Differentiable w.r.t. knot values y and evaluation points.

References:
    DISCO-EB: src/discoeb/spline_interpolation.py
    CLASS: tools/arrays.c (array_spline_table_*)
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
import numpy as np
from jaxtyping import Array, Float

from bgcosmo.errors import NumericalSetupError


@jax.tree_util.register_pytree_node_class
class CubicSpline:
    """Natural cubic spline interpolation, registered as a JAX pytree.

    Constructed from knot positions x and values y. Supports evaluation and
    first/second derivatives.

    The spline satisfies: S''(x[0]) = S''(x[-1]) = 0 (natural boundary conditions).

    Attributes:
        x: knot positions, shape (N,), strictly increasing
        y: knot values, shape (N,)
        d2y: second derivatives at knots, shape (N,), from tridiagonal solve
        name: label used in error messages and logs
    """

    def __init__(self, x: Float[Array, "N"], y: Float[Array, "N"], name: str = "spline"):
        """Build cubic spline from knot positions and values.

        Args:
            x: knot positions, shape (N,), must be strictly increasing
            y: knot values, shape (N,)
            name: diagnostic label

        Raises:
            NumericalSetupError: if the knots are degenerate (checked only for
                concrete, non-traced inputs)
        """
        self.name = name
        _check_knots(x, y, name)
        self.x = jnp.asarray(x)
        self.y = jnp.asarray(y)
        self.d2y = _compute_natural_spline_coeffs(self.x, self.y)

    def __repr__(self) -> str:
        return f"CubicSpline(name={self.name!r}, n={self.x.shape[0]})"

    def __call__(self, x_eval: Float[Array, "..."]) -> Float[Array, "..."]:
        return self.evaluate(x_eval)

    def _locate(self, x_eval):
        x_eval = jnp.asarray(x_eval)
        # Clamp to valid range
        x_clamped = jnp.clip(x_eval, self.x[0], self.x[-1])
        # Find interval indices
        idx = jnp.searchsorted(self.x, x_clamped, side="right") - 1
        idx = jnp.clip(idx, 0, len(self.x) - 2)

        # Interval quantities
        h = self.x[idx + 1] - self.x[idx]
        A = (self.x[idx + 1] - x_clamped) / h
        B = (x_clamped - self.x[idx]) / h
        return x_eval, idx, h, A, B

    def evaluate(self, x_eval: Float[Array, "..."]) -> Float[Array, "..."]:
        """Evaluate the spline at given points.

        Uses the standard cubic spline formula:
            S(x) = A*y_i + B*y_{i+1} + (A^3 - A)*d2y_i*h^2/6 + (B^3 - B)*d2y_{i+1}*h^2/6
        where A = (x_{i+1} - x) / h, B = (x - x_i) / h, h = x_{i+1} - x_i.

        Args:
            x_eval: evaluation points, any shape

        Returns:
            Spline values at x_eval, same shape as input
        """
        _, idx, h, A, B = self._locate(x_eval)

        # cf. CLASS arrays.h:12, array_spline_eval macro
        return (
            A * self.y[idx]
            + B * self.y[idx + 1]
            + ((A**3 - A) * self.d2y[idx] + (B**3 - B) * self.d2y[idx + 1])
            * h**2
            / 6.0
        )

    def derivative(self, x_eval: Float[Array, "..."]) -> Float[Array, "..."]:
        """Evaluate the first derivative of the spline.

        S'(x) = (y_{i+1} - y_i)/h - (3A^2 - 1)*d2y_i*h/6 + (3B^2 - 1)*d2y_{i+1}*h/6

        Zero outside [x[0], x[-1]], matching the flat extrapolation of evaluate().
        """
        x_eval, idx, h, A, B = self._locate(x_eval)

        result = (
            (self.y[idx + 1] - self.y[idx]) / h
            - (3.0 * A**2 - 1.0) * self.d2y[idx] * h / 6.0
            + (3.0 * B**2 - 1.0) * self.d2y[idx + 1] * h / 6.0
        )
        outside = (x_eval < self.x[0]) | (x_eval > self.x[-1])
        return jnp.where(outside, 0.0, result)

    def derivative2(self, x_eval: Float[Array, "..."]) -> Float[Array, "..."]:
        """Evaluate the second derivative of the spline.

        S''(x) = A * d2y_i + B * d2y_{i+1}
        """
        x_eval, idx, h, A, B = self._locate(x_eval)
        outside = (x_eval < self.x[0]) | (x_eval > self.x[-1])
        return jnp.where(outside, 0.0, A * self.d2y[idx] + B * self.d2y[idx + 1])

    # --- JAX pytree registration ---

    def tree_flatten(self):
        children = (self.x, self.y, self.d2y)
        aux_data = self.name
        return children, aux_data

    @classmethod
    def tree_unflatten(cls, aux_data, children):
        obj = object.__new__(cls)
        obj.x, obj.y, obj.d2y = children
        obj.name = aux_data
        return obj


def _check_knots(x, y, name: str) -> None:
    """Reject degenerate knot arrays. Traced inputs are not inspected."""
    try:
        x_np = np.asarray(x, dtype=float)
        y_np = np.asarray(y, dtype=float)
    except jax.errors.TracerArrayConversionError:
        return

    if x_np.ndim != 1 or y_np.ndim != 1:
        raise NumericalSetupError(f"{name}: knot arrays must be one-dimensional")
    if x_np.shape != y_np.shape:
        raise NumericalSetupError(
            f"{name}: x and y have different lengths ({x_np.shape[0]} vs {y_np.shape[0]})"
        )
    if x_np.shape[0] < 3:
        raise NumericalSetupError(f"{name}: need at least 3 knots, got {x_np.shape[0]}")
    if not np.all(np.diff(x_np) > 0.0):
        raise NumericalSetupError(f"{name}: knot positions must be strictly increasing")
    if not (np.all(np.isfinite(x_np)) and np.all(np.isfinite(y_np))):
        raise NumericalSetupError(f"{name}: knot arrays contain non-finite values")


def _compute_natural_spline_coeffs(
    x: Float[Array, "N"], y: Float[Array, "N"]
) -> Float[Array, "N"]:
    """Compute second derivatives for natural cubic spline via Thomas algorithm.

    Natural boundary conditions: d2y[0] = d2y[-1] = 0.

    The tridiagonal system is:
        h_{i-1} * d2y_{i-1} + 2(h_{i-1} + h_i) * d2y_i + h_i * d2y_{i+1} = rhs_i
    where h_i = x_{i+1} - x_i and rhs_i = 6 * [(y_{i+1}-y_i)/h_i - (y_i-y_{i-1})/h_{i-1}]

    Args:
        x: knot positions, shape (N,)
        y: knot values, shape (N,)

    Returns:
        d2y: second derivatives at knots, shape (N,)
    """
    n = x.shape[0]
    h = x[1:] - x[:-1]  # (N-1,)

    # RHS of the tridiagonal system (for interior points 1..N-2)
    rhs = 6.0 * ((y[2:] - y[1:-1]) / h[1:] - (y[1:-1] - y[:-2]) / h[:-1])  # (N-2,)

    diag = 2.0 * (h[:-1] + h[1:])  # (N-2,) main diagonal
    lower = h[:-1]                   # (N-2,) sub-diagonal
    upper = h[1:]                    # (N-2,) super-diagonal

    # Thomas algorithm: forward sweep
    def forward_step(i, carry):
        d, r = carry
        w = lower[i] / d[i - 1]
        d = d.at[i].set(d[i] - w * upper[i - 1])
        r = r.at[i].set(r[i] - w * r[i - 1])
        return (d, r)

    diag_mod, rhs_mod = jax.lax.fori_loop(1, n - 2, forward_step, (diag, rhs))

    # Thomas algorithm: back substitution
    d2y_interior = jnp.zeros(n - 2)
    d2y_interior = d2y_interior.at[-1].set(rhs_mod[-1] / diag_mod[-1])

    def backward_step(i, d2y):
        j = n - 4 - i  # counts down from n-4 to 0
        d2y = d2y.at[j].set((rhs_mod[j] - upper[j] * d2y[j + 1]) / diag_mod[j])
        return d2y

    d2y_interior = jax.lax.fori_loop(0, n - 3, backward_step, d2y_interior)

    # Natural boundary conditions
    return jnp.concatenate([jnp.array([0.0]), d2y_interior, jnp.array([0.0])])
