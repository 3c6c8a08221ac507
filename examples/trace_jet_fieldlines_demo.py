#!/usr/bin/env python3
from __future__ import annotations

import argparse

import numpy as np

from srjet import JetParameters, derive_context, fieldline_radius
from srjet.tracing import poloidal_field_function, trace_poloidal_fieldlines_rk4


def main() -> None:
    p = argparse.ArgumentParser(description="Trace jet field lines and compare with the analytic footpoint map.")
    p.add_argument("--plot", default=None, help="Optional PNG path for a field-line figure.")
    args = p.parse_args()

    params = JetParameters(
        d=1.0, p=0.01, djet=0.01, pjet=0.01, vxjet=0.1, vzjet=5.0, b0=0.5, z0=4.0, rjet=1.0, drjet=0.2
    )
    ctx = derive_context(params, x1min=0.0)
    seeds = np.array([[0.3, 0.0], [0.6, 0.0], [0.9, 0.0]])
    trace = trace_poloidal_fieldlines_rk4(poloidal_field_function(ctx), seeds, ds=0.05, n_steps=120)
    for seed, traj in zip(seeds, trace.trajectories):
        r_end, z_end = traj[-1]
        r_map = fieldline_radius(ctx, seed[0], z_end)
        print(f"r0={seed[0]:.2f}: traced r={r_end:.4f}, mapped r={r_map:.4f} at z={z_end:.3f}")

    if args.plot:
        from srjet.plots import plot_fieldlines

        ax = plot_fieldlines(trace, ctx)
        ax.figure.savefig(args.plot, dpi=150, bbox_inches="tight")
        print(f"[OK] wrote {args.plot}")


if __name__ == "__main__":
    main()
