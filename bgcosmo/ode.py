"""ODE solver wrappers around Diffrax for bgcosmo.

Used as a generic adaptive quadrature primitive: an integral
int_a^b f(x) dx is the final value of dy/dx = f(x), y(a) = 0.

References:
    Diffrax docs: https://docs.kidger.site/diffrax/
"""

import diffrax
from jaxtyping import Array, Float

from bgcosmo.errors import NumericalSetupError


def solve_nonstiff(
    rhs_fn,
    t0: float,
    t1: float,
    y0: Float[Array, "D"],
    saveat: diffrax.SaveAt,
    args=None,
    rtol: float = 1e-10,
    atol: float = 1e-13,
    max_steps: int = 16384,
    throw: bool = True,
):
    """Solve a non-stiff ODE system using Tsit5 (explicit RK4/5).

    Args:
        rhs_fn: callable (t, y, args) -> dy, the ODE right-hand side
        t0: initial time
        t1: final time
        y0: initial state vector
        saveat: Diffrax SaveAt specification (e.g., SaveAt(t1=True))
        args: additional arguments passed to rhs_fn
        rtol: relative tolerance
        atol: absolute tolerance
        max_steps: maximum number of solver steps
        throw: raise inside diffrax on failure. Pass False when solving under
            vmap and inspect ``sol.result`` instead.

    Returns:
        Diffrax solution object with .ys (saved states), .ts and .result

    Raises:
        NumericalSetupError: if the integration interval has zero length
    """
    if t0 == t1:
        raise NumericalSetupError(f"Zero-length integration interval [{t0}, {t1}]")

    solver = diffrax.Tsit5()
    controller = diffrax.PIDController(rtol=rtol, atol=atol)

    sol = diffrax.diffeqsolve(
        diffrax.ODETerm(rhs_fn),
        solver=solver,
        t0=t0,
        t1=t1,
        dt0=None,
        y0=y0,
        saveat=saveat,
        stepsize_controller=controller,
        adjoint=diffrax.RecursiveCheckpointAdjoint(),
        max_steps=max_steps,
        args=args,
        throw=throw,
    )
    return sol


def succeeded(sol):
    """Boolean (array) telling whether a Diffrax solve finished successfully."""
    return sol.result == diffrax.RESULTS.successful
