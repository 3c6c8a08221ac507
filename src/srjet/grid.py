from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

import numpy as np

__all__ = ["MeshSize", "CylindricalGrid"]


@dataclass(frozen=True)
class MeshSize:
    """Extents and resolution of a cylindrical (r, phi, z) mesh block."""

    nx1: int
    x1min: float
    x1max: float
    nx3: int
    x3min: float
    x3max: float
    nx2: int = 1
    x2min: float = 0.0
    x2max: float = 2.0 * np.pi
    x1rat: float = 1.0
    nghost: int = 2

    @classmethod
    def from_mapping(cls, cfg: Mapping[str, Any]) -> "MeshSize":
        """Build from a ``[mesh]`` block; ``nx1, x1min, x1max, nx3, x3min, x3max`` are required."""
        mesh = cfg.get("mesh", cfg)
        for key in ("nx1", "x1min", "x1max", "nx3", "x3min", "x3max"):
            if key not in mesh:
                raise ValueError(f"Missing required parameter mesh/{key}")
        return cls(
            nx1=int(mesh["nx1"]),
            x1min=float(mesh["x1min"]),
            x1max=float(mesh["x1max"]),
            nx3=int(mesh["nx3"]),
            x3min=float(mesh["x3min"]),
            x3max=float(mesh["x3max"]),
            nx2=int(mesh.get("nx2", 1)),
            x2min=float(mesh.get("x2min", 0.0)),
            x2max=float(mesh.get("x2max", 2.0 * np.pi)),
            x1rat=float(mesh.get("x1rat", 1.0)),
            nghost=int(mesh.get("nghost", 2)),
        )


def _uniform_faces(n: int, xmin: float, xmax: float, ng: int) -> np.ndarray:
    dx = (xmax - xmin) / n
    return xmin + dx * np.arange(-ng, n + ng + 1, dtype=float)


def _radial_faces(n: int, xmin: float, xmax: float, rat: float, ng: int) -> np.ndarray:
    if rat == 1.0:
        interior = np.linspace(xmin, xmax, n + 1)
    else:
        dx0 = (xmax - xmin) * (rat - 1.0) / (rat**n - 1.0)
        widths = dx0 * rat ** np.arange(n, dtype=float)
        interior = xmin + np.concatenate([[0.0], np.cumsum(widths)])
        interior[-1] = xmax
    # ghost faces mirror the first and last interior cells
    inner = xmin - (interior[1 : ng + 1] - xmin)[::-1]
    outer = xmax + (xmax - interior[-ng - 1 : -1])[::-1]
    return np.concatenate([inner, interior, outer])


@dataclass(frozen=True)
class CylindricalGrid:
    """Face and centre coordinates of one mesh block, ghost zones included.

    Arrays on the block are laid out ``(n3, n2, n1)``. Axes with a single
    active cell carry no ghost zones.
    """

    x1f: np.ndarray
    x2f: np.ndarray
    x3f: np.ndarray
    ngh: int
    x1rat: float
    ng1: int
    ng2: int
    ng3: int

    @classmethod
    def from_mesh(cls, mesh: MeshSize) -> "CylindricalGrid":
        if mesh.nx1 < 1 or mesh.nx2 < 1 or mesh.nx3 < 1:
            raise ValueError(f"Mesh needs at least one cell per axis; got {mesh}")
        if mesh.x1max <= mesh.x1min or mesh.x3max <= mesh.x3min or mesh.x2max <= mesh.x2min:
            raise ValueError("Mesh extents must be increasing")
        if mesh.x1rat <= 0.0:
            raise ValueError(f"x1rat must be positive; got {mesh.x1rat}")
        ng = int(mesh.nghost)
        ng1 = ng if mesh.nx1 > 1 else 0
        ng2 = ng if mesh.nx2 > 1 else 0
        ng3 = ng if mesh.nx3 > 1 else 0
        return cls(
            x1f=_radial_faces(mesh.nx1, mesh.x1min, mesh.x1max, mesh.x1rat, ng1),
            x2f=_uniform_faces(mesh.nx2, mesh.x2min, mesh.x2max, ng2),
            x3f=_uniform_faces(mesh.nx3, mesh.x3min, mesh.x3max, ng3),
            ngh=ng,
            x1rat=float(mesh.x1rat),
            ng1=ng1,
            ng2=ng2,
            ng3=ng3,
        )

    # cell counts including ghosts
    @property
    def ncells1(self) -> int:
        return self.x1f.size - 1

    @property
    def ncells2(self) -> int:
        return self.x2f.size - 1

    @property
    def ncells3(self) -> int:
        return self.x3f.size - 1

    @property
    def shape(self) -> tuple[int, int, int]:
        return (self.ncells3, self.ncells2, self.ncells1)

    # active index bounds (inclusive)
    @property
    def is_(self) -> int:
        return self.ng1

    @property
    def ie(self) -> int:
        return self.ncells1 - self.ng1 - 1

    @property
    def js(self) -> int:
        return self.ng2

    @property
    def je(self) -> int:
        return self.ncells2 - self.ng2 - 1

    @property
    def ks(self) -> int:
        return self.ng3

    @property
    def ke(self) -> int:
        return self.ncells3 - self.ng3 - 1

    @property
    def x1min(self) -> float:
        return float(self.x1f[self.ng1])

    @property
    def dx1f(self) -> np.ndarray:
        return np.diff(self.x1f)

    @property
    def dx2f(self) -> np.ndarray:
        return np.diff(self.x2f)

    @property
    def dx3f(self) -> np.ndarray:
        return np.diff(self.x3f)

    @property
    def x1v(self) -> np.ndarray:
        """Volume centroids in r: (2/3)(r+^3 - r-^3)/(r+^2 - r-^2)."""
        rm = self.x1f[:-1]
        rp = self.x1f[1:]
        return (2.0 / 3.0) * (rp**3 - rm**3) / (rp**2 - rm**2)

    @property
    def x2v(self) -> np.ndarray:
        return 0.5 * (self.x2f[:-1] + self.x2f[1:])

    @property
    def x3v(self) -> np.ndarray:
        return 0.5 * (self.x3f[:-1] + self.x3f[1:])

    def edge2_length(self, j: int) -> np.ndarray:
        """Length of azimuthal edges at every radial face: ``r_f dphi``."""
        return self.x1f * self.dx2f[j]

    def face1_area(self, k: int, j: int) -> np.ndarray:
        """Area of radial faces: ``r_f dphi dz``."""
        return self.x1f * self.dx2f[j] * self.dx3f[k]

    def face3_area(self, j: int) -> np.ndarray:
        """Area of vertical faces: ``(r+^2 - r-^2) dphi / 2``."""
        return 0.5 * (self.x1f[1:] ** 2 - self.x1f[:-1] ** 2) * self.dx2f[j]

    def cell_volume(self) -> np.ndarray:
        """Cell volumes, shape ``(n3, n2, n1)``."""
        dv1 = 0.5 * (self.x1f[1:] ** 2 - self.x1f[:-1] ** 2)
        return self.dx3f[:, None, None] * self.dx2f[None, :, None] * dv1[None, None, :]
