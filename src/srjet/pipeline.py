from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np

from srjet.config import load_problem
from srjet.problem import apply_inner_x3, init_user_mesh_data
from srjet.refinement import max_magnetization
from srjet.state import IDN, IVZ
from srjet.validation import divergence_cylindrical, flux_quadrature_residual, footpoint_residuals, summary_stats


@dataclass(frozen=True)
class PipelineResult:
    stats: dict[str, Any]
    metadata: dict[str, Any]


__all__ = ["PipelineResult", "run_pipeline"]


def run_pipeline(
    config_path: str | Path,
    *,
    backend: str | None = None,
    outdir: str | Path | None = None,
    save_state: bool | None = None,
    verbose: bool = False,
) -> PipelineResult:
    """Initialize a block, fill the jet inflow boundary and write diagnostics.

    Keyword arguments override the ``[output]`` block of the config.
    """
    params, mesh, cfg = load_problem(config_path)
    refine_cfg = cfg.get("refinement", {})
    output_cfg = cfg.get("output", {})
    backend = backend or str(output_cfg.get("backend", "numpy"))
    adaptive = bool(refine_cfg.get("adaptive", True))

    refinement_options: dict[str, Any] = {"threshold": float(refine_cfg.get("threshold", 0.01))}
    if refine_cfg.get("derefine_threshold") is not None:
        refinement_options["derefine_threshold"] = float(refine_cfg["derefine_threshold"])

    hooks = init_user_mesh_data(
        params,
        mesh,
        adaptive=adaptive,
        backend=backend,
        refinement_options=refinement_options,
        verbose=verbose,
    )
    grid = hooks.grid
    ctx = hooks.context

    state = hooks.problem_generator()
    apply_inner_x3(hooks, state, time=0.0, dt=0.0)

    # divergence over the active block and the filled ghost layers
    kl = grid.ks - grid.ng3
    div_b = divergence_cylindrical(state.b, grid, grid.is_, grid.ie, grid.js, grid.je, kl, grid.ke)
    bscale = np.max(np.abs(state.b.x3f)) + 1e-30
    dx = float(np.min(grid.dx1f[grid.is_ : grid.ie + 1]))

    ghost_rows = slice(kl, grid.ks)
    ghost_r = grid.x1v[None, :]
    ghost_z = grid.x3v[ghost_rows][:, None]
    fp_res = footpoint_residuals(ctx, ghost_r, ghost_z)

    radii = np.linspace(ctx.x1min, 1.5 * ctx.r_out, 16)
    flux_res = flux_quadrature_residual(ctx, radii)

    inflow = state.prim[:, ghost_rows, grid.js : grid.je + 1, :]
    stats: dict[str, Any] = {
        "divergence": summary_stats(np.abs(div_b) * dx / bscale),
        "footpoint_residual": summary_stats(fp_res),
        "flux_quadrature_residual": summary_stats(flux_res),
        "inflow_density": summary_stats(inflow[IDN]),
        "inflow_uz": summary_stats(inflow[IVZ]),
        "max_magnetization": max_magnetization(
            state.prim, state.bcc, (grid.is_, grid.ie, grid.js, grid.je, grid.ks, grid.ke)
        ),
    }
    if hooks.refinement_condition is not None:
        stats["refinement_flag"] = int(hooks.refinement_condition(state))

    out = Path(outdir if outdir is not None else output_cfg.get("dir", "outputs/pipeline"))
    out.mkdir(parents=True, exist_ok=True)
    with (out / "summary.json").open("w") as f:
        json.dump(stats, f, indent=2)

    if save_state if save_state is not None else bool(output_cfg.get("save_state", False)):
        np.savez(
            out / "state.npz",
            prim=state.prim,
            cons=state.cons,
            bcc=state.bcc,
            b1=state.b.x1f,
            b2=state.b.x2f,
            b3=state.b.x3f,
            x1f=grid.x1f,
            x2f=grid.x2f,
            x3f=grid.x3f,
        )

    if verbose:
        print(f"[OK] pipeline complete: block={grid.shape}, outdir={out}")

    metadata = {
        "config": str(config_path),
        "backend": backend,
        "shape": list(grid.shape),
        "adaptive": adaptive,
        "parameters": params.to_dict(),
    }
    return PipelineResult(stats=stats, metadata=metadata)
