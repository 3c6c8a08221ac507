from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from srjet.params import JetContext

Array = Any

__all__ = ["smoothstep", "blend", "jet_weight", "radial_pitch", "azimuthal_pitch"]


def smoothstep(x: Array) -> Array:
    """Cubic step from 1 (x <= -1) to 0 (x >= 1), with S(0) = 1/2 and S'(±1) = 0."""
    modx = np.clip(x, -1.0, 1.0)
    out = 0.5 - modx * (3.0 - modx * modx) / 4.0
    if np.ndim(out) == 0:
        return float(out)
    return out


def blend(jet_value: Array, amb_value: Array, weight: Array) -> Array:
    """Linear jet/ambient blend; ``weight=1`` is pure jet, ``weight=0`` pure ambient."""
    return (jet_value - amb_value) * weight + amb_value


def jet_weight(ctx: "JetContext", r: Array) -> Array:
    """Smoothstep weight of the jet at radius ``r``."""
    return smoothstep((np.asarray(r, dtype=float) - ctx.r_jet) / ctx.dr_jet)


def radial_pitch(ctx: "JetContext", r0: Array) -> Array:
    """Radial pitch ``u_r/u_z`` of the field line rooted at ``r0``.

    The jet/ambient ratio is blended across the transition band and scaled
    linearly with the distance from the inner radial edge, so the line rooted
    at ``x1min`` stays vertical.
    """
    r0 = np.asarray(r0, dtype=float)
    out = blend(ctx.jet.rang, ctx.amb.rang, jet_weight(ctx, r0)) * (r0 - ctx.x1min) / ctx.r_jet
    if np.ndim(out) == 0:
        return float(out)
    return out


def azimuthal_pitch(ctx: "JetContext", r0: Array, weight: Array) -> Array:
    """Azimuthal pitch ``u_phi/u_z`` for the blend ``weight``, scaled like :func:`radial_pitch`."""
    r0 = np.asarray(r0, dtype=float)
    return blend(ctx.jet.phang, ctx.amb.phang, weight) * (r0 - ctx.x1min) / ctx.r_jet
