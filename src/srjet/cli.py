from __future__ import annotations

import argparse
import json

from srjet.pipeline import run_pipeline


def main() -> None:
    p = argparse.ArgumentParser(description="srjet CLI: initialize a jet block and fill its inflow boundary.")
    p.add_argument("--config", required=True, help="TOML input with [mesh], [hydro] and [problem] blocks.")
    p.add_argument("--backend", choices=["numpy", "jax"], default=None, help="Vector-potential backend.")
    p.add_argument("--outdir", default=None, help="Output directory (overrides [output] dir).")
    p.add_argument("--save-state", action="store_true", help="Also write state.npz.")
    p.add_argument("--verbose", action="store_true")
    args = p.parse_args()

    result = run_pipeline(
        args.config,
        backend=args.backend,
        outdir=args.outdir,
        save_state=True if args.save_state else None,
        verbose=args.verbose,
    )
    print(json.dumps(result.stats, indent=2))


if __name__ == "__main__":
    main()
