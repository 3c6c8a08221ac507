from __future__ import annotations

from typing import Sequence

import numpy as np

from srjet.state import IB1, IB3, IDN

__all__ = ["REFINE", "NO_CHANGE", "DEREFINE", "magnetization", "max_magnetization", "refinement_condition"]

REFINE = 1
NO_CHANGE = 0
DEREFINE = -1


def magnetization(prim: np.ndarray, bcc: np.ndarray) -> np.ndarray:
    """Cell magnetization ``sigma = |B|^2 / rho``."""
    b_sq = np.sum(bcc[IB1 : IB3 + 1] ** 2, axis=0)
    return b_sq / prim[IDN]


def max_magnetization(prim: np.ndarray, bcc: np.ndarray, bounds: Sequence[int] | None = None) -> float:
    """Peak magnetization over the inclusive ``(il, iu, jl, ju, kl, ku)`` range (whole block if None)."""
    if bounds is not None:
        il, iu, jl, ju, kl, ku = bounds
        sl = (slice(None), slice(kl, ku + 1), slice(jl, ju + 1), slice(il, iu + 1))
        prim = prim[sl]
        bcc = bcc[sl]
    return float(np.max(magnetization(prim, bcc)))


def refinement_condition(
    prim: np.ndarray,
    bcc: np.ndarray,
    bounds: Sequence[int] | None = None,
    *,
    threshold: float = 0.01,
    derefine_threshold: float | None = None,
) -> int:
    """Refinement flag for one block from its peak magnetization.

    Returns ``REFINE`` above ``threshold``; ``DEREFINE`` below
    ``derefine_threshold`` only when one is given; otherwise ``NO_CHANGE``.
    """
    maxsig = max_magnetization(prim, bcc, bounds)
    if maxsig > threshold:
        return REFINE
    if derefine_threshold is not None and maxsig < derefine_threshold:
        return DEREFINE
    return NO_CHANGE
