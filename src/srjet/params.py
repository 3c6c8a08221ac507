from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping

import numpy as np

from srjet.profiles import smoothstep

__all__ = ["JetParameters", "RegimeState", "JetContext", "derive_context"]


_REQUIRED_PROBLEM = ("d", "p", "djet", "pjet", "vxjet", "vyjet", "vzjet", "rjet", "drjet")
_OPTIONAL_PROBLEM = {
    "vx": 0.0,
    "vy": 0.0,
    "vz": 0.0,
    "bx": 0.0,
    "by": 0.0,
    "bz": 0.0,
    "bxjet": 0.0,
    "byjet": 0.0,
    "bzjet": 0.0,
    "b0": 0.0,
    "z0": 1.0,
    "mang": 0.0,
    "dang": 0.0,
}


@dataclass(frozen=True)
class JetParameters:
    """Raw physical inputs of the jet/ambient problem.

    Names follow the ``[problem]`` and ``[hydro]`` input blocks. Velocities are
    the spatial components of the four-velocity (r, phi, z).
    """

    # ambient medium
    d: float
    p: float
    vx: float = 0.0
    vy: float = 0.0
    vz: float = 0.0
    bx: float = 0.0
    by: float = 0.0
    bz: float = 0.0
    # jet
    djet: float = 1.0
    pjet: float = 1.0
    vxjet: float = 0.0
    vyjet: float = 0.0
    vzjet: float = 0.0
    bxjet: float = 0.0
    byjet: float = 0.0
    bzjet: float = 0.0
    b0: float = 0.0
    z0: float = 1.0
    # geometry and perturbation
    rjet: float = 1.0
    drjet: float = 0.1
    mang: float = 0.0
    dang: float = 0.0
    # equation of state
    gamma: float = 4.0 / 3.0

    @classmethod
    def from_mapping(cls, cfg: Mapping[str, Any]) -> "JetParameters":
        """Build parameters from ``{"problem": {...}, "hydro": {"gamma": ...}}``."""
        problem = cfg.get("problem", {})
        hydro = cfg.get("hydro", {})
        values: dict[str, float] = {}
        for key in _REQUIRED_PROBLEM:
            if key not in problem:
                raise ValueError(f"Missing required parameter problem/{key}")
            values[key] = float(problem[key])
        for key, default in _OPTIONAL_PROBLEM.items():
            values[key] = float(problem.get(key, default))
        if "gamma" not in hydro:
            raise ValueError("Missing required parameter hydro/gamma")
        values["gamma"] = float(hydro["gamma"])
        return cls(**values)

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class RegimeState:
    """Derived scalars of one flow regime (jet or ambient)."""

    d: float
    p: float
    u: tuple[float, float, float]
    lorentz: float
    atwood: float
    enthalpy: float  # generalized enthalpy h*gamma
    rang: float  # u_r / u_z
    phang: float  # u_phi / u_z


@dataclass(frozen=True)
class JetContext:
    """Immutable derived constants shared by every boundary and refinement call."""

    gamma_ad: float
    gam_add: float
    x1min: float
    x1rat: float
    r_jet: float
    dr_jet: float
    a: float
    d_coef: float
    z0: float
    b0: float
    mang: float
    dang: float
    by_amb: float
    amb: RegimeState
    jet: RegimeState
    # centerline references for the inflow construction
    p_cen: float
    b_phi_cen: float
    bern_jet: float
    bern_amb: float
    atwd_jet: float
    atwd_amb: float

    @property
    def r_out(self) -> float:
        """Outer edge of the jet transition band."""
        return self.r_jet + self.dr_jet

    @property
    def r_in(self) -> float:
        """Inner edge of the jet transition band."""
        return self.r_jet - self.dr_jet


def _pitch_ratio(u_t: float, u_z: float, label: str) -> float:
    if u_z == 0.0:
        if u_t != 0.0:
            raise ValueError(f"{label}: pitch ratio undefined for zero vertical velocity")
        return 0.0
    return u_t / u_z


def _regime(d: float, p: float, u: tuple[float, float, float], gam_add: float, label: str) -> RegimeState:
    if d <= 0.0 or p <= 0.0:
        raise ValueError(f"{label}: density and pressure must be positive; got d={d}, p={p}")
    lorentz = float(np.sqrt(1.0 + u[0] * u[0] + u[1] * u[1] + u[2] * u[2]))
    return RegimeState(
        d=d,
        p=p,
        u=u,
        lorentz=lorentz,
        atwood=lorentz * lorentz * (d + gam_add * p),
        enthalpy=(1.0 + gam_add * p / d) * lorentz,
        rang=_pitch_ratio(u[0], u[2], label),
        phang=_pitch_ratio(u[1], u[2], label),
    )


def derive_context(params: JetParameters, *, x1min: float, x1rat: float = 1.0) -> JetContext:
    """Derive the immutable jet context from raw parameters and the radial domain edge."""
    if params.gamma <= 1.0:
        raise ValueError(f"Adiabatic index must exceed 1; got gamma={params.gamma}")
    if params.rjet <= 0.0 or params.drjet <= 0.0:
        raise ValueError(f"rjet and drjet must be positive; got rjet={params.rjet}, drjet={params.drjet}")
    if params.z0 <= 0.0:
        raise ValueError(f"z0 must be positive; got z0={params.z0}")

    gad = float(params.gamma)
    gam_add = gad / (gad - 1.0)
    amb = _regime(params.d, params.p, (params.vx, params.vy, params.vz), gam_add, "ambient")
    jet = _regime(params.djet, params.pjet, (params.vxjet, params.vyjet, params.vzjet), gam_add, "jet")

    a = params.rjet / 2.0
    b0 = float(params.b0)
    p_cen = amb.p  # pressure is held at the ambient value across the inflow face
    smfnc_c = smoothstep((x1min - params.rjet) / params.drjet)
    b_phi_cen = (b0 * a * x1min / (a * a + x1min * x1min)) * smfnc_c
    bern_jet = (1.0 + gam_add * p_cen / jet.d) * jet.lorentz + b_phi_cen * b_phi_cen / (jet.lorentz * jet.d)
    bern_amb = (1.0 + gam_add * amb.p / amb.d) * amb.lorentz

    return JetContext(
        gamma_ad=gad,
        gam_add=gam_add,
        x1min=float(x1min),
        x1rat=float(x1rat),
        r_jet=float(params.rjet),
        dr_jet=float(params.drjet),
        a=a,
        d_coef=1.0 / (4.0 * params.drjet**3),
        z0=float(params.z0),
        b0=b0,
        mang=float(params.mang),
        dang=float(params.dang),
        by_amb=float(params.by),
        amb=amb,
        jet=jet,
        p_cen=p_cen,
        b_phi_cen=b_phi_cen,
        bern_jet=bern_jet,
        bern_amb=bern_amb,
        atwd_jet=jet.lorentz**2 * (jet.d + gam_add * p_cen),
        atwd_amb=amb.lorentz**2 * (amb.d + gam_add * amb.p),
    )
