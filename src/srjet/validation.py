from __future__ import annotations

from typing import Any

import numpy as np
from scipy.integrate import quad

from srjet.fieldline import fieldline_residual, footpoint_radii
from srjet.grid import CylindricalGrid
from srjet.params import JetContext
from srjet.potential import flux_function, poloidal_profile
from srjet.state import FaceField

Array = Any


def divergence_cylindrical(
    b: FaceField,
    grid: CylindricalGrid,
    il: int,
    iu: int,
    jl: int,
    ju: int,
    kl: int,
    ku: int,
) -> np.ndarray:
    """Finite-volume div(B) per cell over the inclusive index range."""
    k = slice(kl, ku + 1)
    j = slice(jl, ju + 1)
    i = slice(il, iu + 1)
    x1f = grid.x1f
    dx2 = grid.dx2f[j][None, :, None]
    dx3 = grid.dx3f[k][:, None, None]

    a1m = x1f[il : iu + 1][None, None, :] * dx2 * dx3
    a1p = x1f[il + 1 : iu + 2][None, None, :] * dx2 * dx3
    flux1 = a1p * b.x1f[k, j, il + 1 : iu + 2] - a1m * b.x1f[k, j, i]

    a2 = grid.dx1f[i][None, None, :] * dx3
    flux2 = a2 * (b.x2f[k, jl + 1 : ju + 2, i] - b.x2f[k, j, i])

    a3 = 0.5 * (x1f[il + 1 : iu + 2] ** 2 - x1f[il : iu + 1] ** 2)[None, None, :] * dx2
    flux3 = a3 * (b.x3f[kl + 1 : ku + 2, j, i] - b.x3f[k, j, i])

    vol = grid.cell_volume()[k, j, i]
    return (flux1 + flux2 + flux3) / vol


def flux_quadrature_residual(ctx: JetContext, radii: Array, *, epsabs: float = 1e-12) -> np.ndarray:
    """Compare the analytic flux with ``quad`` of ``r * B_z0(r)`` from ``x1min``."""
    radii = np.atleast_1d(np.asarray(radii, dtype=float))

    def integrand(s: float) -> float:
        return s * float(poloidal_profile(ctx, s))

    breaks = [p for p in (ctx.r_in, ctx.r_out) if ctx.x1min < p]
    out = np.empty_like(radii)
    for n, r in enumerate(radii):
        points = [p for p in breaks if p < r] or None
        numeric, _ = quad(integrand, ctx.x1min, r, points=points, epsabs=epsabs, limit=200)
        out[n] = abs(float(flux_function(ctx, r)) - numeric)
    return out


def footpoint_residuals(ctx: JetContext, r: Array, z: Array) -> np.ndarray:
    """|f(r0, r, z)| for the mapped footpoints; zero where the map clamps (outside the band)."""
    r, z = np.broadcast_arrays(np.asarray(r, dtype=float), np.asarray(z, dtype=float))
    r0 = footpoint_radii(ctx, r, z)
    res = np.abs(np.asarray(fieldline_residual(ctx, r0, r, z)))
    mapped = (r > ctx.x1min) & (r < ctx.r_out)
    return np.where(mapped, res, 0.0)


def summary_stats(values: np.ndarray) -> dict[str, float]:
    """Compute summary statistics for a scalar field."""
    vals = np.asarray(values).ravel()
    return {
        "min": float(np.min(vals)),
        "median": float(np.median(vals)),
        "mean": float(np.mean(vals)),
        "p95": float(np.percentile(vals, 95.0)),
        "max": float(np.max(vals)),
        "rms": float(np.sqrt(np.mean(vals**2))),
    }
