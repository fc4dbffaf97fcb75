"""Abstract background cosmology.

A cosmology owns the density parameters and the exact neutrino background.
Concrete models only supply the normalised Hubble rate E(a) = H(a)/H0 and
its logarithmic derivative; every Omega_X(a) is derived from those.

Lifecycle:
    cosmo = BackgroundCosmologyLCDM()
    cosmo.read_parameters(param)   # derive Omega_R, Omega_Nu, M_nu, provisional Omega_Lambda
    cosmo.init()                   # solve neutrino integrals, close Omega_Lambda
    cosmo.HoverH0_of_a(0.5), cosmo.get_OmegaM(0.5), ...

Subclasses that override ``read_parameters`` or ``info_lines`` must call the
base implementation.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Mapping

import jax.numpy as jnp
import numpy as np
from jaxtyping import Array, Float

from bgcosmo import constants as const
from bgcosmo.config import ParameterMap
from bgcosmo.errors import ConfigValidationError
from bgcosmo.neutrinos import NeutrinoBackground
from bgcosmo.params import CosmologyParams, PrecisionParams
from bgcosmo.primordial import primordial_pofk

logger = logging.getLogger(__name__)

OutputColumn = tuple[str, Callable]


# ---------------------------------------------------------------------------
# Density parameters from temperatures
# ---------------------------------------------------------------------------

def _compute_omega_r_h2(T_cmb: float) -> float:
    """Photon density parameter Omega_R h^2 for a CMB temperature in Kelvin.

    rho_g = N_photon * 6 zeta(4) / (2 pi^2) * (k_B T)^4 / (hbar c)^3 = (4 sigma_B / c) T^4

    divided by the critical energy density 3 (H0/h)^2 c^2 / (8 pi G).
    """
    kT = const.k_B_SI * T_cmb
    rho_g_phys = (
        const.N_photon * 6.0 * const.zeta4 / (2.0 * math.pi**2)
        * kT**4 / (const.hbar_SI * const.c_SI) ** 3
    )  # J/m^3
    rho_crit_over_h2 = 3.0 * const.H0_over_h_SI**2 * const.c_SI**2 / (8.0 * math.pi * const.G_SI)
    return rho_g_phys / rho_crit_over_h2


def _compute_T_nu(T_cmb: float, N_eff: float) -> float:
    """Neutrino temperature today, absorbing N_eff into T_nu for N_nu = 3 species."""
    return T_cmb * (N_eff / 3.0) ** 0.25 * const.T_nu_over_T_cmb_default


def _compute_M_nu(Omega_MNu: float, Omega_Nu: float, T_nu_kelvin: float, N_nu: int) -> float:
    """Sum of neutrino masses in eV such that rho_nu -> Omega_MNu / a^3 late on.

    Roughly M_nu = 93.14 eV * Omega_MNu h^2.
    """
    T_nu_eV = T_nu_kelvin * const.K_over_eV
    return (Omega_MNu / Omega_Nu) / const.fd_number_integral * const.fd_energy_integral * N_nu * T_nu_eV


def _check(condition: bool, key: str, value: float, requirement: str) -> None:
    if not condition:
        raise ConfigValidationError(f"Parameter '{key}' {requirement}, got {value!r}")


# ---------------------------------------------------------------------------
# BackgroundCosmology
# ---------------------------------------------------------------------------

class BackgroundCosmology(ABC):
    """Base class for a general cosmology.

    Args:
        a_low, a_high: scale-factor range of the ``output`` table
        n_points_loga: number of log-spaced rows in the ``output`` table
        prec: precision of the neutrino Boltzmann integrals
    """

    name = "Uninitialized cosmology"

    def __init__(
        self,
        a_low: float = 1e-4,
        a_high: float = 1e1,
        n_points_loga: int = 1000,
        prec: PrecisionParams | None = None,
    ):
        if not 0.0 < a_low < a_high:
            raise ValueError(f"Need 0 < a_low < a_high, got [{a_low}, {a_high}]")
        if n_points_loga < 2:
            raise ValueError(f"n_points_loga must be at least 2, got {n_points_loga}")
        self.a_low = a_low
        self.a_high = a_high
        self.n_points_loga = n_points_loga
        self.prec = prec if prec is not None else PrecisionParams()
        self.params: CosmologyParams | None = None
        self.neutrinos: NeutrinoBackground | None = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, initialized={self.neutrinos is not None})"

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def read_parameters(self, param: ParameterMap | Mapping) -> None:
        """Read the parameters all models have and derive the density parameters.

        Raises:
            ConfigValidationError: if a required key is missing or a value is invalid
        """
        if not isinstance(param, ParameterMap):
            param = ParameterMap(param)

        Omega_MNu = param.get("cosmology_OmegaMNu")
        Omega_b = param.get("cosmology_Omegab")
        Omega_CDM = param.get("cosmology_OmegaCDM")
        Omega_K = param.get("cosmology_OmegaK", 0.0)
        h = param.get("cosmology_h")
        A_s = param.get("cosmology_As")
        n_s = param.get("cosmology_ns")
        k_pivot_mpc = param.get("cosmology_kpivot_mpc")
        N_eff = param.get("cosmology_Neffective")
        T_CMB_kelvin = param.get("cosmology_TCMB_kelvin")

        _check(h > 0.0, "cosmology_h", h, "must be positive")
        _check(T_CMB_kelvin > 0.0, "cosmology_TCMB_kelvin", T_CMB_kelvin, "must be positive")
        _check(N_eff > 0.0, "cosmology_Neffective", N_eff, "must be positive")
        _check(Omega_MNu >= 0.0, "cosmology_OmegaMNu", Omega_MNu, "must be non-negative")
        _check(k_pivot_mpc > 0.0, "cosmology_kpivot_mpc", k_pivot_mpc, "must be positive")

        N_nu = const.N_nu
        T_nu_kelvin = _compute_T_nu(T_CMB_kelvin, N_eff)

        # Photons
        Omega_R_h2 = _compute_omega_r_h2(T_CMB_kelvin)
        Omega_R = Omega_R_h2 / h**2

        # Neutrinos (density set by N_eff through T_nu)
        Omega_Nu_h2 = (7.0 / 8.0) * N_nu * (T_nu_kelvin / T_CMB_kelvin) ** 4 * Omega_R_h2
        Omega_Nu = Omega_Nu_h2 / h**2

        M_nu_eV = _compute_M_nu(Omega_MNu, Omega_Nu, T_nu_kelvin, N_nu)

        Omega_M = Omega_b + Omega_CDM + Omega_MNu
        Omega_Rtot = Omega_R + Omega_Nu

        # Provisional: counts today's neutrinos as both matter and radiation.
        # init() replaces it with the exact value.
        Omega_Lambda = 1.0 - Omega_M - Omega_Rtot - Omega_K

        self.params = CosmologyParams(
            h=h,
            Omega_b=Omega_b,
            Omega_CDM=Omega_CDM,
            Omega_MNu=Omega_MNu,
            Omega_M=Omega_M,
            Omega_R=Omega_R,
            Omega_Nu=Omega_Nu,
            Omega_Rtot=Omega_Rtot,
            Omega_K=Omega_K,
            Omega_Lambda=Omega_Lambda,
            N_eff=N_eff,
            T_CMB_kelvin=T_CMB_kelvin,
            T_nu_kelvin=T_nu_kelvin,
            M_nu_eV=M_nu_eV,
            N_nu=N_nu,
            A_s=A_s,
            n_s=n_s,
            k_pivot_mpc=k_pivot_mpc,
        )
        self.neutrinos = None
        logger.debug("Read parameters for %s: %s", self.name, self.params)

    def init(self) -> None:
        """Solve the neutrino Boltzmann integrals and close Omega_Lambda.

        Must be called after ``read_parameters`` and before any query.

        Raises:
            NumericalSetupError: if the neutrino integrals cannot be built
        """
        if self.params is None:
            raise RuntimeError(f"{self.name}: read_parameters() must be called before init()")

        self.neutrinos = NeutrinoBackground.from_params(self.params, self.prec)

        p = self.params
        Omega_Nu_today = float(self.neutrinos.rho_exact(1.0))
        Omega_Lambda = 1.0 - (p.Omega_K + p.Omega_R + p.Omega_CDM + p.Omega_b + Omega_Nu_today)
        logger.debug(
            "%s: Omega_Lambda corrected from %.12f to %.12f (exact neutrinos today %.6e)",
            self.name, p.Omega_Lambda, Omega_Lambda, Omega_Nu_today,
        )
        self.params = p.replace(Omega_Lambda=Omega_Lambda)

    def _require_neutrinos(self) -> NeutrinoBackground:
        if self.neutrinos is None:
            raise RuntimeError(f"{self.name}: init() must be called before neutrino queries")
        return self.neutrinos

    # ------------------------------------------------------------------
    # Expansion history (model specific)
    # ------------------------------------------------------------------

    @abstractmethod
    def HoverH0_of_a(self, a: Float[Array, "..."]) -> Float[Array, "..."]:
        """Normalised Hubble rate E(a) = H(a) / H0."""

    @abstractmethod
    def dlogHdloga_of_a(self, a: Float[Array, "..."]) -> Float[Array, "..."]:
        """dlog(E)/dlog(a), the exact logarithmic derivative of HoverH0_of_a."""

    # ------------------------------------------------------------------
    # Density parameters
    # ------------------------------------------------------------------

    def _omega_of_a(self, Omega_today: float, a, power: int):
        """Omega_today / (a^power E(a)^2), exactly Omega_today at a = 1."""
        if isinstance(a, (int, float)) and a == 1.0:
            return Omega_today
        a = jnp.asarray(a, dtype=float)
        E = self.HoverH0_of_a(a)
        return jnp.where(a == 1.0, Omega_today, Omega_today / (a**power * E * E))

    def get_fMNu(self) -> float:
        """Massive neutrino fraction of the matter density."""
        return self.params.Omega_MNu / self.params.Omega_M

    def get_OmegaMNu(self, a=1.0):
        return self._omega_of_a(self.params.Omega_MNu, a, 3)

    def get_Omegab(self, a=1.0):
        return self._omega_of_a(self.params.Omega_b, a, 3)

    def get_OmegaM(self, a=1.0):
        return self._omega_of_a(self.params.Omega_M, a, 3)

    def get_OmegaCDM(self, a=1.0):
        return self._omega_of_a(self.params.Omega_CDM, a, 3)

    def get_OmegaR(self, a=1.0):
        return self._omega_of_a(self.params.Omega_R, a, 4)

    def get_OmegaNu(self, a=1.0):
        return self._omega_of_a(self.params.Omega_Nu, a, 4)

    def get_OmegaRtot(self, a=1.0):
        return self._omega_of_a(self.params.Omega_Rtot, a, 4)

    def get_OmegaK(self, a=1.0):
        return self._omega_of_a(self.params.Omega_K, a, 2)

    def get_OmegaLambda(self, a=1.0):
        return self._omega_of_a(self.params.Omega_Lambda, a, 0)

    def get_OmegaNu_exact(self, a=1.0):
        """Exact neutrino density parameter, relativistic through non-relativistic."""
        neutrinos = self._require_neutrinos()
        today = float(neutrinos.rho_exact(1.0))
        if isinstance(a, (int, float)) and a == 1.0:
            return today
        a = jnp.asarray(a, dtype=float)
        E = self.HoverH0_of_a(a)
        return jnp.where(a == 1.0, today, neutrinos.rho_exact(a) / (E * E))

    # ------------------------------------------------------------------
    # Neutrinos
    # ------------------------------------------------------------------

    def get_rhoNu_exact(self, a):
        """rho_nu(a) / rho_crit,0."""
        return self._require_neutrinos().rho_exact(a)

    def get_pNu_exact(self, a):
        """p_nu(a) / rho_crit,0."""
        return self._require_neutrinos().p_exact(a)

    def get_drhoNudloga_exact(self, a):
        return self._require_neutrinos().drho_dloga_exact(a)

    def get_neutrino_sound_speed_cs_over_c(self, a):
        return self._require_neutrinos().sound_speed_cs_over_c(a)

    def get_neutrino_free_streaming_scale_hmpc(self, a):
        return self._require_neutrinos().free_streaming_scale_hmpc(a)

    def get_neutrino_temperature_eV(self, a):
        return self.params.T_nu_kelvin * const.K_over_eV / jnp.asarray(a)

    # ------------------------------------------------------------------
    # Primordial power spectrum
    # ------------------------------------------------------------------

    def get_primordial_pofk(self, k_hmpc):
        """2 pi^2 / k^3 * A_s (h k / k_pivot)^(n_s - 1), k in h/Mpc."""
        return primordial_pofk(k_hmpc, self.params)

    # ------------------------------------------------------------------
    # Scalars
    # ------------------------------------------------------------------

    def get_h(self) -> float:
        return self.params.h

    def get_As(self) -> float:
        return self.params.A_s

    def get_ns(self) -> float:
        return self.params.n_s

    def get_TCMB_kelvin(self) -> float:
        return self.params.T_CMB_kelvin

    def get_Neff(self) -> float:
        return self.params.N_eff

    def get_kpivot_mpc(self) -> float:
        return self.params.k_pivot_mpc

    def get_name(self) -> str:
        return self.name

    # Power-spectrum calibration is the only change allowed after init()
    def set_As(self, A_s: float) -> None:
        self.params = self.params.replace(A_s=A_s)

    def set_ns(self, n_s: float) -> None:
        self.params = self.params.replace(n_s=n_s)

    # ------------------------------------------------------------------
    # Diagnostics and output
    # ------------------------------------------------------------------

    def info_lines(self) -> list[str]:
        """Parameter summary, one line per entry. Extend in subclasses."""
        p = self.params
        return [
            "#=====================================================",
            f"# Cosmology [{self.name}]",
            f"# Omegab                  : {p.Omega_b}",
            f"# OmegaM                  : {p.Omega_M}",
            f"# OmegaMNu                : {p.Omega_MNu}",
            f"# OmegaCDM                : {p.Omega_CDM}",
            f"# OmegaLambda             : {p.Omega_Lambda}",
            f"# OmegaR                  : {p.Omega_R}",
            f"# OmegaNu                 : {p.Omega_Nu}",
            f"# OmegaRtot               : {p.Omega_Rtot}",
            f"# OmegaK                  : {p.Omega_K}",
            f"# h                       : {p.h}",
            f"# N_nu                    : {p.N_nu}",
            f"# Neff                    : {p.N_eff}",
            f"# Mnu                     : {p.M_nu_eV} eV",
            f"# TCMB                    : {p.T_CMB_kelvin} K",
            f"# Tnu                     : {p.T_nu_kelvin} K",
            f"# As                      : {p.A_s}",
            f"# ns                      : {p.n_s}",
            f"# kpivot                  : {p.k_pivot_mpc} 1/Mpc",
        ]

    def info(self, rank: int = 0) -> None:
        """Log the parameter summary. Only the process with rank 0 logs."""
        if rank != 0:
            return
        logger.info("\n%s", "\n".join(self.info_lines()))

    def output_columns(self) -> list[OutputColumn]:
        """Ordered (label, f(a)) pairs written by ``output``.

        Subclasses may append columns; the leading ones must stay in place.
        """
        return [
            ("a", lambda a: a),
            ("H/H0", self.HoverH0_of_a),
            ("dlogH/dloga", self.dlogHdloga_of_a),
            ("OmegaM", self.get_OmegaM),
            ("OmegaR", self.get_OmegaR),
            ("OmegaNu", self.get_OmegaNu),
            ("OmegaMNu", self.get_OmegaMNu),
            ("OmegaNu_exact", self.get_OmegaNu_exact),
            ("OmegaLambda", self.get_OmegaLambda),
        ]

    def output(self, filename: str | Path, rank: int = 0) -> Path | None:
        """Write the background table, log-spaced in a on [a_low, a_high].

        Only the process with rank 0 writes. Returns the path written, or
        None on other ranks.

        Raises:
            OSError: if the file cannot be written
        """
        if rank != 0:
            return None
        path = Path(filename)
        columns = self.output_columns()
        a = jnp.exp(jnp.linspace(math.log(self.a_low), math.log(self.a_high), self.n_points_loga))
        table = np.column_stack(
            [np.broadcast_to(np.asarray(fn(a), dtype=float), a.shape) for _, fn in columns]
        )
        header = " ".join(f"{label:>15s}" for label, _ in columns)
        # leading ' ' on each row lines columns up under the '#'
        fmt = [" %15.8e"] + ["%15.8e"] * (len(columns) - 1)
        np.savetxt(path, table, fmt=fmt, delimiter=" ", header=header, comments="#")
        logger.info("Wrote %s background table (%d rows) to %s", self.name, self.n_points_loga, path)
        return path
