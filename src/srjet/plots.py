from __future__ import annotations

from typing import Iterable

import numpy as np

from srjet.grid import CylindricalGrid
from srjet.params import JetContext
from srjet.state import IDN, IVZ, MeshBlockState
from srjet.tracing import FieldlineTrace

__all__ = ["plot_inflow_profiles", "plot_fieldlines", "plot_vector_potential"]


def _require_matplotlib():
    try:
        import matplotlib.pyplot as plt  # type: ignore
    except Exception as exc:  # pragma: no cover
        raise ImportError("matplotlib is required for plotting.") from exc
    return plt


def _band(ax, ctx: JetContext) -> None:
    ax.axvspan(ctx.r_in, ctx.r_out, color="0.85", zorder=0)
    ax.axvline(ctx.r_jet, color="0.5", lw=0.8, ls="--")


def plot_inflow_profiles(
    grid: CylindricalGrid,
    state: MeshBlockState,
    ctx: JetContext | None = None,
    *,
    j: int = 0,
    axes=None,
):
    """Density and u_z across the inner-x3 ghost layers (one line per layer)."""
    plt = _require_matplotlib()
    if axes is None:
        _, axes = plt.subplots(1, 2, figsize=(10, 4))
    r = grid.x1v
    for kk in range(grid.ks):
        label = f"z={grid.x3v[kk]:.3g}"
        axes[0].plot(r, state.prim[IDN, kk, j, :], lw=1.2, label=label)
        axes[1].plot(r, state.prim[IVZ, kk, j, :], lw=1.2, label=label)
    for ax, name in zip(axes, ("rho", "u_z")):
        if ctx is not None:
            _band(ax, ctx)
        ax.set_xlabel("r")
        ax.set_ylabel(name)
    axes[0].set_yscale("log")
    axes[1].legend(fontsize=8)
    axes[0].set_title("Inflow density")
    axes[1].set_title("Inflow vertical four-velocity")
    return axes


def plot_fieldlines(trace: FieldlineTrace, ctx: JetContext | None = None, *, ax=None, alpha: float = 0.8):
    """Plot traced poloidal field lines in the (r, z) plane."""
    plt = _require_matplotlib()
    if ax is None:
        _, ax = plt.subplots(figsize=(5, 6))
    if ctx is not None:
        _band(ax, ctx)
    for traj in trace.trajectories:
        ax.plot(traj[:, 0], traj[:, 1], lw=1.0, alpha=alpha)
    ax.set_xlabel("r")
    ax.set_ylabel("z")
    ax.set_title("Poloidal field lines")
    return ax


def plot_vector_potential(
    grid: CylindricalGrid,
    a2: np.ndarray,
    *,
    ax=None,
    levels: int | Iterable[float] = 20,
):
    """Contours of ``r A2`` (the flux function) on the face corners of a block."""
    plt = _require_matplotlib()
    if ax is None:
        _, ax = plt.subplots(figsize=(5, 6))
    rr, zz = np.meshgrid(grid.x1f, grid.x3f, indexing="xy")
    cs = ax.contour(rr, zz, rr * np.asarray(a2), levels=levels, cmap="viridis", linewidths=0.7)
    ax.set_xlabel("r")
    ax.set_ylabel("z")
    ax.set_title("Flux surfaces r A_phi")
    ax.figure.colorbar(cs, ax=ax)
    return ax
