from __future__ import annotations

from pathlib import Path
from typing import Any

from srjet.grid import MeshSize
from srjet.params import JetParameters

__all__ = ["load_config", "load_problem"]


def load_config(path: str | Path) -> dict[str, Any]:
    try:
        import tomllib
    except Exception as exc:  # pragma: no cover
        raise ImportError("Python 3.11+ is required for TOML configs.") from exc
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_problem(path: str | Path) -> tuple[JetParameters, MeshSize, dict[str, Any]]:
    """Read jet parameters and mesh extents from a TOML input file.

    Returns the parsed parameters, mesh and the raw config (for the
    ``[refinement]`` and ``[output]`` blocks).
    """
    cfg = load_config(path)
    if "mesh" not in cfg:
        raise ValueError(f"{path}: missing [mesh] block")
    return JetParameters.from_mapping(cfg), MeshSize.from_mapping(cfg["mesh"]), cfg
