from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

import numpy as np

from srjet.params import JetContext
from srjet.potential import poloidal_field

Array = Any

__all__ = ["FieldlineTrace", "poloidal_field_function", "trace_poloidal_fieldlines_rk4"]


@dataclass(frozen=True)
class FieldlineTrace:
    """Poloidal field lines sampled at fixed arc-length steps.

    ``trajectories`` has shape ``(n_seed, n_step + 1, 2)`` with columns ``(r, z)``.
    """

    trajectories: np.ndarray
    step: float
    normalize: bool


def poloidal_field_function(ctx: JetContext, *, h: float = 1e-4) -> Callable[[np.ndarray], np.ndarray]:
    """Wrap :func:`srjet.potential.poloidal_field` as ``B(points) -> (n, 2)``."""

    def B(points: np.ndarray) -> np.ndarray:
        pts = np.asarray(points, dtype=float)
        br, bz = poloidal_field(ctx, pts[:, 0], pts[:, 1], h=h)
        return np.column_stack([np.atleast_1d(br), np.atleast_1d(bz)])

    return B


def _direction(B: Callable[[Array], Array], points: np.ndarray, normalize: bool) -> np.ndarray:
    v = np.atleast_2d(np.asarray(B(points), dtype=float))
    if normalize:
        v = v / np.maximum(np.hypot(v[:, 0], v[:, 1]), 1e-30)[:, None]
    return v


def trace_poloidal_fieldlines_rk4(
    B: Callable[[Array], Array],
    seeds: Array,
    *,
    ds: float,
    n_steps: int,
    normalize: bool = True,
) -> FieldlineTrace:
    """Follow ``(B_r, B_z)`` from each seed with classical fourth-order Runge-Kutta.

    Parameters
    ----------
    B:
        Callable mapping ``(n, 2)`` points ``(r, z)`` to ``(n, 2)`` field values.
    seeds:
        Start points, shape ``(n, 2)`` or ``(2,)``.
    ds:
        Step length; arc length when ``normalize`` is set.
    n_steps:
        Number of steps per line.
    """
    x = np.atleast_2d(np.asarray(seeds, dtype=float)).copy()
    if x.shape[1] != 2:
        raise ValueError(f"Seeds must be (r, z) pairs; got shape {x.shape}")

    out = np.empty((x.shape[0], n_steps + 1, 2))
    out[:, 0] = x
    half = 0.5 * ds
    for n in range(1, n_steps + 1):
        k1 = _direction(B, x, normalize)
        k2 = _direction(B, x + half * k1, normalize)
        k3 = _direction(B, x + half * k2, normalize)
        k4 = _direction(B, x + ds * k3, normalize)
        x = x + ds * (k1 + 2.0 * (k2 + k3) + k4) / 6.0
        out[:, n] = x
    return FieldlineTrace(trajectories=out, step=float(ds), normalize=bool(normalize))
