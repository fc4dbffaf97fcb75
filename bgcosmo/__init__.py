"""bgcosmo: background cosmology with an exact massive-neutrino treatment, in JAX.

Usage:
    import bgcosmo

    cosmo = bgcosmo.BackgroundCosmologyLCDM()
    cosmo.read_parameters({
        "cosmology_Omegab": 0.05, "cosmology_OmegaCDM": 0.25,
        "cosmology_OmegaMNu": 0.0014, "cosmology_h": 0.7,
        "cosmology_As": 2.1e-9, "cosmology_ns": 0.965,
        "cosmology_kpivot_mpc": 0.05, "cosmology_Neffective": 3.046,
        "cosmology_TCMB_kelvin": 2.7255,
    })
    cosmo.init()
    print(cosmo.HoverH0_of_a(0.5), cosmo.get_OmegaNu_exact(0.5))

    # Or from a YAML file with a `cosmology_model` key
    cosmo = bgcosmo.cosmology_from_parameters(bgcosmo.load_parameter_file("params.yaml"))
"""

import jax
jax.config.update("jax_enable_x64", True)

from bgcosmo.constants import *  # noqa: F401,F403
from bgcosmo.errors import CosmologyError, ConfigValidationError, NumericalSetupError  # noqa: F401
from bgcosmo.config import ParameterMap, load_parameter_file  # noqa: F401
from bgcosmo.params import CosmologyParams, PrecisionParams  # noqa: F401
from bgcosmo.interpolation import CubicSpline  # noqa: F401
from bgcosmo.boltzmann import BoltzmannIntegrals, solve_boltzmann_integrals  # noqa: F401
from bgcosmo.neutrinos import NeutrinoBackground  # noqa: F401
from bgcosmo.primordial import primordial_scalar_pk, primordial_pofk  # noqa: F401
from bgcosmo.cosmology import BackgroundCosmology  # noqa: F401
from bgcosmo.models import (  # noqa: F401
    BackgroundCosmologyLCDM,
    BackgroundCosmologyW0WaCDM,
    COSMOLOGY_REGISTRY,
    get_cosmology,
    cosmology_from_parameters,
)

__version__ = "0.1.0"
