from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

import numpy as np

from srjet.fieldline import footpoint_radius
from srjet.grid import CylindricalGrid
from srjet.params import JetContext
from srjet.potential import vector_potential
from srjet.profiles import azimuthal_pitch, blend, radial_pitch, smoothstep
from srjet.state import IB1, IB3, IDN, IPR, IVX, IVY, IVZ, FaceField, cell_centered_field

Array = Any

__all__ = [
    "Invariants",
    "InflowState",
    "reflect_across_inner_boundary",
    "mirror_face_interval",
    "lorentz_factor",
    "inflow_state",
    "radial_face_field",
    "vertical_face_field",
    "jet_inner_x3",
]


@dataclass(frozen=True)
class Invariants:
    """Blended field-line invariants behind an inflow state."""

    smfnc: np.ndarray  # unperturbed jet weight
    step: np.ndarray  # azimuthally perturbed jet weight
    atwood: np.ndarray
    enthalpy: np.ndarray
    bernoulli: np.ndarray
    bernoulli_unperturbed: np.ndarray
    bphi_const: np.ndarray
    psi: np.ndarray
    psi_unperturbed: np.ndarray
    gamma: np.ndarray
    gamma_unperturbed: np.ndarray


@dataclass(frozen=True)
class InflowState:
    """Primitive state of inflow cells (four-velocity components u1=r, u2=phi, u3=z)."""

    rho: np.ndarray
    press: np.ndarray
    u1: np.ndarray
    u2: np.ndarray
    u3: np.ndarray
    invariants: Invariants


def reflect_across_inner_boundary(r: Array, x1min: float) -> Array:
    """Mirror image of radius ``r`` about the inner radial edge."""
    return 2.0 * x1min - r


def mirror_face_interval(rf: Array, rf_p1: Array, x1min: float) -> tuple[Array, Array]:
    """Mirror the radial interval ``[rf, rf_p1]`` about ``x1min``, returned in increasing order.

    Inner ghost faces are mirror images of the interior faces, so the mirrored
    interval is the partner interior cell for uniform and ratio-spaced grids alike.
    """
    return reflect_across_inner_boundary(rf_p1, x1min), reflect_across_inner_boundary(rf, x1min)


def lorentz_factor(psi: Array, atwood: Array, press: Array, gam_add: float) -> Array:
    """Lorentz factor from ``gam_add p g^2 + Psi g - A = 0``.

    Equal to ``Psi/(2 gam_add p) (sqrt(1 + 4 gam_add p A / Psi^2) - 1)``, written
    in rationalized form.
    """
    psi = np.asarray(psi, dtype=float)
    x = 4.0 * gam_add * np.asarray(press, dtype=float) * np.asarray(atwood, dtype=float) / (psi * psi)
    return 2.0 * np.asarray(atwood, dtype=float) / (psi * (1.0 + np.sqrt(1.0 + x)))


def inflow_state(ctx: JetContext, r0: Array, z: Array, phi: Array) -> InflowState:
    """Primitive state carried into the domain along the field line rooted at ``r0``.

    ``r0``, ``z`` and ``phi`` broadcast against each other. Density carries the
    azimuthal boundary perturbation; the velocity magnitude uses the
    unperturbed blend.
    """
    r0 = np.asarray(r0, dtype=float)
    z = np.asarray(z, dtype=float)
    phi = np.asarray(phi, dtype=float)

    rad = r0 * (1.0 + ctx.dang * np.cos(ctx.mang * phi))
    smfnc = np.asarray(smoothstep((r0 - ctx.r_jet) / ctx.dr_jet), dtype=float)
    step = np.asarray(smoothstep((rad - ctx.r_jet) / ctx.dr_jet), dtype=float)
    smfnc, step = np.broadcast_arrays(smfnc, step)

    hg = blend(ctx.jet.enthalpy, ctx.amb.enthalpy, smfnc)
    phang = azimuthal_pitch(ctx, r0, smfnc)
    rang = np.asarray(radial_pitch(ctx, r0), dtype=float)
    press = np.full(smfnc.shape, ctx.amb.p)

    bphi_const = (ctx.b0 * ctx.a * ctx.r_jet / (ctx.a * ctx.a + ctx.r_jet * ctx.r_jet)) * smfnc
    bern_sm = blend(ctx.bern_jet, ctx.bern_amb, step)
    bern_np = blend(ctx.bern_jet, ctx.bern_amb, smfnc)
    atwd_sm = blend(ctx.atwd_jet, ctx.atwd_amb, smfnc)

    psi = (atwd_sm + bphi_const * bphi_const) / bern_sm
    psi_np = (atwd_sm + bphi_const * bphi_const) / bern_np
    gamma = lorentz_factor(psi, atwd_sm, press, ctx.gam_add)
    gamma_np = lorentz_factor(psi_np, atwd_sm, press, ctx.gam_add)

    decay = np.exp(-z / ctx.z0)
    u3 = np.sqrt(np.maximum(gamma_np * gamma_np - 1.0, 0.0) / (1.0 + rang * rang * decay * decay + phang * phang))
    u1 = u3 * rang * decay
    u2 = u3 * phang
    rho = psi / gamma

    shape = np.broadcast_shapes(rho.shape, u1.shape, u2.shape)
    invariants = Invariants(
        smfnc=smfnc,
        step=step,
        atwood=atwd_sm,
        enthalpy=hg,
        bernoulli=bern_sm,
        bernoulli_unperturbed=bern_np,
        bphi_const=bphi_const,
        psi=psi,
        psi_unperturbed=psi_np,
        gamma=gamma,
        gamma_unperturbed=gamma_np,
    )
    return InflowState(
        rho=np.broadcast_to(rho, shape),
        press=np.broadcast_to(press, shape),
        u1=np.broadcast_to(u1, shape),
        u2=np.broadcast_to(u2, shape),
        u3=np.broadcast_to(u3, shape),
        invariants=invariants,
    )


def radial_face_field(
    ctx: JetContext, rf: Array, zf: float, zf_p1: float, **root_options: Any
) -> np.ndarray:
    """``B_r = -dA2/dz`` on radial faces between heights ``zf`` and ``zf_p1``.

    Faces inside ``x1min`` take the mirrored value with flipped sign.
    ``root_options`` go to :func:`srjet.fieldline.footpoint_radius`.
    """
    rf = np.asarray(rf, dtype=float)
    below = rf < ctx.x1min
    r_eval = np.where(below, reflect_across_inner_boundary(rf, ctx.x1min), rf)
    delz = zf_p1 - zf
    br = (
        np.asarray(vector_potential(ctx, r_eval, zf, **root_options))
        - np.asarray(vector_potential(ctx, r_eval, zf_p1, **root_options))
    ) / delz
    return np.where(below, -br, br)


def vertical_face_field(
    ctx: JetContext, rf: Array, rf_p1: Array, zf: float, **root_options: Any
) -> np.ndarray:
    """``B_z = (1/r) d(r A2)/dr`` on vertical faces spanning ``[rf, rf_p1]`` at height ``zf``.

    Faces inside ``x1min`` are evaluated on the mirrored interval.
    """
    rf = np.asarray(rf, dtype=float)
    rf_p1 = np.asarray(rf_p1, dtype=float)
    below = rf < ctx.x1min
    mir_lo, mir_hi = mirror_face_interval(rf, rf_p1, ctx.x1min)
    lo = np.where(below, mir_lo, rf)
    hi = np.where(below, mir_hi, rf_p1)
    a_lo = np.asarray(vector_potential(ctx, lo, zf, **root_options))
    a_hi = np.asarray(vector_potential(ctx, hi, zf, **root_options))
    return 2.0 * (hi * a_hi - lo * a_lo) / (hi * hi - lo * lo)


def _footpoints_row(
    ctx: JetContext, r: np.ndarray, z: float, root_options: Mapping[str, Any]
) -> tuple[np.ndarray, int]:
    r0 = np.empty_like(r)
    n_failed = 0
    for i, ri in enumerate(r):
        res = footpoint_radius(ctx, ri, z, **root_options)
        r0[i] = res.r0
        n_failed += int(not res.converged)
    return r0, n_failed


def jet_inner_x3(
    ctx: JetContext,
    grid: CylindricalGrid,
    prim: np.ndarray,
    b: FaceField,
    time: float,
    dt: float,
    il: int,
    iu: int,
    jl: int,
    ju: int,
    kl: int,
    ku: int,
    ngh: int,
    *,
    bz_floor: float = 1e-12,
    root_options: Mapping[str, Any] | None = None,
    verbose: bool = False,
) -> None:
    """Fill the ``ngh`` ghost layers below ``kl`` with the jet inflow state.

    Writes primitives into ``prim`` and face fields into ``b`` in place. The
    state is a function of position only; ``time`` and ``dt`` are accepted for
    the boundary-callback signature.
    ``root_options`` apply to every footpoint solve of the fill, for the cell
    primitives and the face fields alike.
    """
    opts = dict(root_options or {})
    x1v = grid.x1v
    x2v = grid.x2v
    x3v = grid.x3v
    x1f = grid.x1f
    x3f = grid.x3f
    isl = slice(il, iu + 1)
    jsl = slice(jl, ju + 1)
    n_failed = 0

    for k in range(1, ngh + 1):
        kk = kl - k
        z = float(x3v[kk])
        r0, nf = _footpoints_row(ctx, x1v[isl], z, opts)
        n_failed += nf
        st = inflow_state(ctx, r0[None, :], z, x2v[jsl][:, None])
        prim[IDN, kk, jsl, isl] = st.rho
        prim[IVX, kk, jsl, isl] = st.u1
        prim[IVY, kk, jsl, isl] = st.u2
        prim[IVZ, kk, jsl, isl] = st.u3
        prim[IPR, kk, jsl, isl] = st.press

    for k in range(1, ngh + 1):
        kk = kl - k
        b1 = radial_face_field(ctx, x1f[il : iu + 2], float(x3f[kk]), float(x3f[kk + 1]), **opts)
        b.x1f[kk, jsl, il : iu + 2] = b1[None, :]
        b.x2f[kk, jl : ju + 2, isl] = 0.0
        b3 = vertical_face_field(ctx, x1f[il : iu + 1], x1f[il + 1 : iu + 2], float(x3f[kk]), **opts)
        b.x3f[kk, jsl, isl] = b3[None, :]

    bc = cell_centered_field(b, grid, il, iu, jl, ju, kl - ngh, kl - 1)
    # align the flow with the field inside the jet
    core = x1v[isl] <= ctx.r_out
    rows = slice(kl - ngh, kl)
    bz = bc[IB3, rows, jsl, isl]
    br = bc[IB1, rows, jsl, isl]
    ok = core[None, None, :] & (np.abs(bz) > bz_floor)
    safe_bz = np.where(ok, bz, 1.0)
    uz = prim[IVZ, rows, jsl, isl]
    prim[IVX, rows, jsl, isl] = np.where(ok, uz * br / safe_bz, prim[IVX, rows, jsl, isl])

    if verbose:
        print(
            f"[BC] inner_x3 t={time:.4g}: filled {ngh} ghost layers, "
            f"{int(np.count_nonzero(ok))} cells field-aligned, {n_failed} unconverged cell footpoints"
        )
