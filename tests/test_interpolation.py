"""Test differentiable cubic spline interpolation."""

import jax
import jax.numpy as jnp
import numpy as np
import pytest

from bgcosmo.errors import NumericalSetupError
from bgcosmo.interpolation import CubicSpline


def test_spline_sin():
    """Spline of sin(x) should match to high accuracy."""
    x = jnp.linspace(0, 2 * jnp.pi, 100)
    y = jnp.sin(x)
    spl = CubicSpline(x, y)

    x_eval = jnp.linspace(0.1, 2 * jnp.pi - 0.1, 500)
    y_eval = spl.evaluate(x_eval)
    y_exact = jnp.sin(x_eval)

    max_err = float(jnp.max(jnp.abs(y_eval - y_exact)))
    assert max_err < 1e-5, f"Spline sin error: {max_err:.2e}"


def test_spline_derivative_cos():
    """Derivative of spline(sin) should be cos."""
    x = jnp.linspace(0, 2 * jnp.pi, 200)
    y = jnp.sin(x)
    spl = CubicSpline(x, y)

    x_eval = jnp.linspace(0.1, 2 * jnp.pi - 0.1, 100)
    dy = spl.derivative(x_eval)
    dy_exact = jnp.cos(x_eval)

    max_err = float(jnp.max(jnp.abs(dy - dy_exact)))
    assert max_err < 1e-3, f"Spline derivative error: {max_err:.2e}"


def test_spline_exp():
    """Spline of exp(x) on sparse grid."""
    x = jnp.linspace(0, 5, 50)
    y = jnp.exp(x)
    spl = CubicSpline(x, y)

    x_eval = jnp.linspace(0.1, 4.9, 200)
    y_eval = spl.evaluate(x_eval)
    y_exact = jnp.exp(x_eval)

    rel_err = jnp.abs(y_eval - y_exact) / y_exact
    max_rel_err = float(jnp.max(rel_err))
    assert max_rel_err < 5e-4, f"Spline exp rel error: {max_rel_err:.2e} (50 points on exp(0..5))"


def test_spline_pytree():
    """CubicSpline should work as a JAX pytree (flatten/unflatten)."""
    x = jnp.linspace(0, 1, 10)
    y = x ** 2
    spl = CubicSpline(x, y)

    # Flatten and unflatten
    leaves, treedef = jax.tree_util.tree_flatten(spl)
    spl2 = jax.tree_util.tree_unflatten(treedef, leaves)

    x_eval = jnp.array([0.5])
    assert jnp.allclose(spl.evaluate(x_eval), spl2.evaluate(x_eval))


def test_spline_grad():
    """Gradients should flow through spline evaluation."""
    x = jnp.linspace(0, 1, 20)

    def f(y_knots):
        spl = CubicSpline(x, y_knots)
        return spl.evaluate(jnp.array(0.5))

    y = jnp.sin(x)
    grad = jax.grad(f)(y)
    # Gradient should be non-zero (spline value depends on knot values)
    assert float(jnp.sum(jnp.abs(grad))) > 0, "Gradient through spline is zero"
    # No NaN
    assert jnp.all(jnp.isfinite(grad)), "NaN in spline gradient"


def test_spline_call_matches_evaluate():
    x = jnp.linspace(0, 1, 10)
    spl = CubicSpline(x, x ** 3, name="cube")
    x_eval = jnp.array([0.15, 0.55])
    assert jnp.allclose(spl(x_eval), spl.evaluate(x_eval))
    assert "cube" in repr(spl)


def test_spline_name_survives_pytree():
    x = jnp.linspace(0, 1, 10)
    spl = CubicSpline(x, x ** 2, name="energydensity")
    leaves, treedef = jax.tree_util.tree_flatten(spl)
    spl2 = jax.tree_util.tree_unflatten(treedef, leaves)
    assert spl2.name == "energydensity"


def test_spline_clamps_outside_range():
    """Outside the knots the spline is flat at the boundary value."""
    x = jnp.linspace(1.0, 2.0, 20)
    spl = CubicSpline(x, jnp.exp(x))
    assert float(spl.evaluate(0.5)) == pytest.approx(float(jnp.exp(1.0)), rel=1e-12)
    assert float(spl.evaluate(3.0)) == pytest.approx(float(jnp.exp(2.0)), rel=1e-12)


def test_spline_derivative_zero_outside_range():
    x = jnp.linspace(1.0, 2.0, 20)
    spl = CubicSpline(x, jnp.exp(x))
    dy = spl.derivative(jnp.array([0.5, 1.5, 3.0]))
    assert float(dy[0]) == 0.0
    assert float(dy[2]) == 0.0
    assert abs(float(dy[1]) - float(jnp.exp(1.5))) < 1e-3


def test_spline_natural_boundary():
    """Second derivative vanishes at both ends."""
    x = jnp.linspace(0, 3, 30)
    spl = CubicSpline(x, jnp.sin(x))
    assert abs(float(spl.derivative2(x[0]))) < 1e-12
    assert abs(float(spl.derivative2(x[-1]))) < 1e-12


def test_spline_under_jit():
    x = jnp.linspace(0, 1, 20)

    @jax.jit
    def f(y_knots):
        return CubicSpline(x, y_knots).evaluate(0.5)

    assert abs(float(f(x ** 2)) - 0.25) < 1e-4


class TestSplineValidation:
    """Degenerate knot arrays are rejected at construction."""

    def test_too_few_knots(self):
        with pytest.raises(NumericalSetupError, match="at least 3 knots"):
            CubicSpline(np.array([0.0, 1.0]), np.array([0.0, 1.0]))

    def test_length_mismatch(self):
        with pytest.raises(NumericalSetupError, match="different lengths"):
            CubicSpline(np.linspace(0, 1, 5), np.zeros(4))

    def test_not_increasing(self):
        with pytest.raises(NumericalSetupError, match="strictly increasing"):
            CubicSpline(np.array([0.0, 1.0, 1.0, 2.0]), np.zeros(4))

    def test_non_finite(self):
        with pytest.raises(NumericalSetupError, match="non-finite"):
            CubicSpline(np.linspace(0, 1, 4), np.array([0.0, np.nan, 1.0, 2.0]))

    def test_error_names_spline(self):
        with pytest.raises(NumericalSetupError, match="pressure"):
            CubicSpline(np.array([0.0, 1.0]), np.array([0.0, 1.0]), name="pressure")
