"""Test fixtures for the bgcosmo test suite.

Provides:
- Parameter sets for a massless-neutrino LCDM and a massive-neutrino LCDM
- Initialised cosmologies (session scoped: the Boltzmann setup runs once each)
- --fast flag for a coarser neutrino grid
"""

# Enable 64-bit JAX (closure and a = 1 exactness checks need it)
import jax
jax.config.update("jax_enable_x64", True)

import numpy as np
import pytest

from bgcosmo.models import BackgroundCosmologyLCDM
from bgcosmo.params import PrecisionParams

# Massless neutrinos, flat
LCDM_PARAMS = {
    "cosmology_Omegab": 0.05,
    "cosmology_OmegaCDM": 0.25,
    "cosmology_OmegaMNu": 0.0,
    "cosmology_h": 0.7,
    "cosmology_Neffective": 3.046,
    "cosmology_TCMB_kelvin": 2.7255,
    "cosmology_As": 2.1e-9,
    "cosmology_ns": 0.965,
    "cosmology_kpivot_mpc": 0.05,
}

# Sum of masses ~0.064 eV
MASSIVE_NU_PARAMS = dict(LCDM_PARAMS, cosmology_OmegaMNu=0.0014)


def pytest_addoption(parser):
    parser.addoption(
        "--fast", action="store_true", default=False,
        help="Use the coarse neutrino precision preset"
    )


@pytest.fixture(scope="session")
def fast_mode(request):
    return request.config.getoption("--fast")


@pytest.fixture(scope="session")
def prec(fast_mode):
    return PrecisionParams.fast() if fast_mode else PrecisionParams()


@pytest.fixture
def lcdm_params():
    return dict(LCDM_PARAMS)


@pytest.fixture
def massive_nu_params():
    return dict(MASSIVE_NU_PARAMS)


@pytest.fixture(scope="session")
def lcdm(prec):
    """Initialised massless-neutrino LCDM."""
    cosmo = BackgroundCosmologyLCDM(prec=prec)
    cosmo.read_parameters(LCDM_PARAMS)
    cosmo.init()
    return cosmo


@pytest.fixture(scope="session")
def massive_nu(prec):
    """Initialised LCDM with massive neutrinos."""
    cosmo = BackgroundCosmologyLCDM(prec=prec)
    cosmo.read_parameters(MASSIVE_NU_PARAMS)
    cosmo.init()
    return cosmo


def relative_error(computed, reference, eps=1e-30):
    """Compute relative error, avoiding division by zero."""
    return np.abs(computed - reference) / (np.abs(reference) + eps)


def max_relative_error(computed, reference, eps=1e-30):
    """Return (max_rel_err, index_of_max)."""
    rel = relative_error(computed, reference, eps)
    idx = np.argmax(rel)
    return float(rel[idx]), int(idx)


def assert_close(computed, reference, rtol, name="quantity", coordinate=None):
    """Assert computed matches reference within rtol, with clear error message."""
    computed = np.atleast_1d(np.asarray(computed, dtype=float))
    reference = np.atleast_1d(np.asarray(reference, dtype=float))
    max_err, idx = max_relative_error(computed, reference)
    if max_err > rtol:
        coord_str = f" at index {idx}"
        if coordinate is not None:
            coord_str = f" at {np.atleast_1d(coordinate)[idx]:.6g}"
        msg = (
            f"{name}: max rel error {max_err:.4%}{coord_str}"
            f" (expected {reference[idx]:.6e}, got {computed[idx]:.6e})"
            f" -- tolerance {rtol:.4%}"
        )
        raise AssertionError(msg)


def numerical_dlog_dloga(fn, a, step=1e-5):
    """Central difference of log(fn) in log(a)."""
    a = np.asarray(a, dtype=float)
    up = np.log(np.asarray(fn(a * np.exp(step))))
    down = np.log(np.asarray(fn(a * np.exp(-step))))
    return (up - down) / (2.0 * step)
