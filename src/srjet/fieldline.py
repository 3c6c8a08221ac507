from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

import numpy as np

from srjet.params import JetContext
from srjet.profiles import radial_pitch

Array = Any

__all__ = [
    "FootpointConvergenceError",
    "RootResult",
    "fieldline_radius",
    "fieldline_residual",
    "footpoint_radius",
    "footpoint_radii",
]


class FootpointConvergenceError(RuntimeError):
    """Raised when the footpoint search does not converge and the raise policy is active."""

    def __init__(self, message: str, result: "RootResult") -> None:
        super().__init__(message)
        self.result = result


@dataclass(frozen=True)
class RootResult:
    """Outcome of a footpoint search."""

    r0: float
    converged: bool
    iterations: int
    residual: float


def fieldline_radius(ctx: JetContext, r0: Array, z: Array) -> Array:
    """Radius reached at height ``z`` by the field line rooted at ``r0``.

    r(z) = r0 + pitch(r0) * z0 * (1 - exp(-z/z0))
    """
    return r0 + radial_pitch(ctx, r0) * ctx.z0 * (1.0 - np.exp(-np.asarray(z, dtype=float) / ctx.z0))


def fieldline_residual(ctx: JetContext, r0: Array, r: Array, z: Array) -> Array:
    """Residual ``f(r0, r, z)`` whose root is the footpoint of (r, z)."""
    return fieldline_radius(ctx, r0, z) - r


def footpoint_radius(
    ctx: JetContext,
    r: float,
    z: float,
    *,
    tol: float = 1e-5,
    width_tol: float = 1e-4,
    max_iter: int = 200,
    on_failure: Literal["return", "raise"] = "return",
) -> RootResult:
    """Find the reference-boundary radius ``r0`` of the field line through (r, z).

    Inside ``(x1min, r_jet + dr_jet)`` the root of :func:`fieldline_residual` is
    found by secant steps kept inside a sign-changing bracket
    (false position). Points at or inside ``x1min`` map to ``x1min``; points
    outside the transition band are their own footpoint.

    Parameters
    ----------
    tol:
        Convergence threshold on ``|f|``.
    width_tol:
        Convergence threshold on the bracket width.
    max_iter:
        Iteration budget for the bracketed search.
    on_failure:
        ``"return"`` gives the best estimate with ``converged=False``;
        ``"raise"`` raises :class:`FootpointConvergenceError`.
    """
    r = float(r)
    z = float(z)
    if r <= ctx.x1min:
        return RootResult(r0=ctx.x1min, converged=True, iterations=0, residual=0.0)
    if r >= ctx.r_out:
        return RootResult(r0=r, converged=True, iterations=0, residual=0.0)

    def f(r0: float) -> float:
        return float(fieldline_residual(ctx, r0, r, z))

    r1, r2 = ctx.x1min, ctx.r_out
    f1, f2 = f(r1), f(r2)
    if abs(f1) < tol:
        return RootResult(r0=r1, converged=True, iterations=0, residual=f1)
    if abs(f2) < tol:
        return RootResult(r0=r2, converged=True, iterations=0, residual=f2)

    def fail(reason: str, best: float, f_best: float, iterations: int) -> RootResult:
        result = RootResult(r0=best, converged=False, iterations=iterations, residual=f_best)
        if on_failure == "raise":
            raise FootpointConvergenceError(f"Footpoint search at (r={r:.6g}, z={z:.6g}) {reason}", result)
        return result

    if f1 * f2 > 0.0:
        best, f_best = (r1, f1) if abs(f1) < abs(f2) else (r2, f2)
        return fail("has no sign change on the bracket", best, f_best, 0)

    r3, f3 = r1, f1
    for it in range(1, max_iter + 1):
        denom = f2 - f1
        if denom == 0.0:
            r3 = 0.5 * (r1 + r2)
        else:
            r3 = r1 - f1 * (r2 - r1) / denom
        f3 = f(r3)
        if abs(f3) < tol:
            return RootResult(r0=r3, converged=True, iterations=it, residual=f3)
        if f1 * f3 < 0.0:
            r2, f2 = r3, f3
        else:
            r1, f1 = r3, f3
        if abs(r2 - r1) < width_tol:
            return RootResult(r0=r3, converged=True, iterations=it, residual=f3)
    return fail(f"did not converge in {max_iter} iterations", r3, f3, max_iter)


def footpoint_radii(ctx: JetContext, r: Array, z: Array, **kwargs: Any) -> np.ndarray:
    """Element-wise :func:`footpoint_radius` over broadcast arrays ``r`` and ``z``."""
    rb, zb = np.broadcast_arrays(np.asarray(r, dtype=float), np.asarray(z, dtype=float))
    out = np.empty(rb.shape, dtype=float)
    for idx in np.ndindex(rb.shape):
        out[idx] = footpoint_radius(ctx, rb[idx], zb[idx], **kwargs).r0
    return out
