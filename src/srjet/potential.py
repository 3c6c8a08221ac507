from __future__ import annotations

from typing import Any

import numpy as np

from srjet.fieldline import footpoint_radii
from srjet.params import JetContext
from srjet.profiles import smoothstep

Array = Any

__all__ = [
    "core_flux_integral",
    "transition_flux_integral",
    "flux_function",
    "vector_potential",
    "poloidal_profile",
    "poloidal_field",
]


def _scalar_or_array(out: np.ndarray) -> Array:
    if np.ndim(out) == 0:
        return float(out)
    return out


def core_flux_integral(ctx: JetContext, x1: Array) -> Array:
    """Antiderivative of ``r * b0 a^2 / (a^2 + r^2)`` (vertical field of the jet core)."""
    a2 = ctx.a * ctx.a
    x1 = np.asarray(x1, dtype=float)
    return ctx.b0 * (a2 / 2.0) * np.log(a2 + x1 * x1)


def transition_flux_integral(ctx: JetContext, x1: Array) -> Array:
    """Antiderivative of the core integrand tapered by the smoothstep across the transition band.

    The polynomial, arctan and log coefficients make the flux and its radial
    derivative match the core integral at ``r_jet - dr_jet`` and the
    derivative vanish at ``r_jet + dr_jet``.
    """
    a, rj, dr, d = ctx.a, ctx.r_jet, ctx.dr_jet, ctx.d_coef
    x1 = np.asarray(x1, dtype=float)
    poly = x1 * (-6.0 * a * a - 18.0 * dr * dr + 18.0 * rj * rj - 9.0 * rj * x1 + 2.0 * x1 * x1)
    arc = 6.0 * a * (a * a + 3.0 * dr * dr - 3.0 * rj * rj) * np.arctan(x1 / a)
    log = (9.0 * rj * a * a + 6.0 * dr**3 + 9.0 * rj * dr * dr - 3.0 * rj**3) * np.log(a * a + x1 * x1)
    return ctx.b0 * (d * a * a / 6.0) * (poly + arc + log)


def flux_function(ctx: JetContext, x1: Array) -> Array:
    """Poloidal flux ``Phi(x1) = r A_phi`` accumulated from ``x1min`` to ``x1``.

    Piecewise over the core (``x1 < r_jet - dr_jet``), the transition band and
    the outer region, where the flux stays at its transition-band total.
    """
    x1 = np.asarray(x1, dtype=float)
    r_in, r_out = ctx.r_in, ctx.r_out
    base = core_flux_integral(ctx, ctx.x1min)
    core = core_flux_integral(ctx, x1) - base
    offset = core_flux_integral(ctx, r_in) - base - transition_flux_integral(ctx, r_in)
    band = transition_flux_integral(ctx, x1) + offset
    outer = transition_flux_integral(ctx, r_out) + offset
    out = np.where(x1 < r_in, core, np.where(x1 < r_out, band, outer))
    return _scalar_or_array(out)


def vector_potential(ctx: JetContext, r: Array, z: Array, **kwargs: Any) -> Array:
    """Azimuthal vector potential ``A2(r, z) = Phi(r0(r, z)) / r``; zero at ``r <= 0``.

    Extra keyword arguments go to :func:`srjet.fieldline.footpoint_radius`.
    """
    r = np.asarray(r, dtype=float)
    r0 = footpoint_radii(ctx, r, z, **kwargs)
    phi = np.asarray(flux_function(ctx, r0), dtype=float)
    rb = np.broadcast_to(r, phi.shape)
    out = np.divide(phi, rb, out=np.zeros_like(phi), where=rb > 0.0)
    return _scalar_or_array(out)


def poloidal_profile(ctx: JetContext, r: Array) -> Array:
    """Vertical field at the reference boundary, ``dPhi/dr / r``."""
    r = np.asarray(r, dtype=float)
    a2 = ctx.a * ctx.a
    out = ctx.b0 * a2 / (a2 + r * r) * smoothstep((r - ctx.r_jet) / ctx.dr_jet)
    return _scalar_or_array(np.asarray(out))


def poloidal_field(ctx: JetContext, r: Array, z: Array, *, h: float = 1e-4) -> tuple[Array, Array]:
    """Return ``(B_r, B_z)`` from centred differences of the vector potential.

    B_r = -dA2/dz and B_z = (1/r) d(r A2)/dr. Footpoints are solved to a tight
    residual so the differences resolve the field rather than the root tolerance.
    """
    opts = {"tol": 1e-12, "width_tol": 0.0, "max_iter": 500}
    r = np.asarray(r, dtype=float)
    z = np.asarray(z, dtype=float)
    a_zp = np.asarray(vector_potential(ctx, r, z + h, **opts))
    a_zm = np.asarray(vector_potential(ctx, r, z - h, **opts))
    br = -(a_zp - a_zm) / (2.0 * h)
    ra_p = (r + h) * np.asarray(vector_potential(ctx, r + h, z, **opts))
    ra_m = (r - h) * np.asarray(vector_potential(ctx, r - h, z, **opts))
    bz = (ra_p - ra_m) / (2.0 * h * r)
    return _scalar_or_array(br), _scalar_or_array(bz)
