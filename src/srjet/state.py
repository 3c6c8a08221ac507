from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from srjet.grid import CylindricalGrid

__all__ = [
    "IDN",
    "IVX",
    "IVY",
    "IVZ",
    "IPR",
    "IM1",
    "IM2",
    "IM3",
    "IEN",
    "IB1",
    "IB2",
    "IB3",
    "NHYDRO",
    "FaceField",
    "MeshBlockState",
    "cell_centered_field",
    "primitive_to_conserved",
]

# primitive variables (velocities are spatial four-velocity components)
IDN, IVX, IVY, IVZ, IPR = 0, 1, 2, 3, 4
# conserved variables
IM1, IM2, IM3, IEN = 1, 2, 3, 4
# cell-centred magnetic field
IB1, IB2, IB3 = 0, 1, 2
NHYDRO = 5


@dataclass
class FaceField:
    """Face-centred magnetic field on a staggered mesh."""

    x1f: np.ndarray  # (n3, n2, n1+1)
    x2f: np.ndarray  # (n3, n2+1, n1)
    x3f: np.ndarray  # (n3+1, n2, n1)

    @classmethod
    def zeros(cls, grid: CylindricalGrid) -> "FaceField":
        n3, n2, n1 = grid.shape
        return cls(
            x1f=np.zeros((n3, n2, n1 + 1)),
            x2f=np.zeros((n3, n2 + 1, n1)),
            x3f=np.zeros((n3 + 1, n2, n1)),
        )

    def copy(self) -> "FaceField":
        return FaceField(x1f=self.x1f.copy(), x2f=self.x2f.copy(), x3f=self.x3f.copy())


@dataclass
class MeshBlockState:
    """Primitive, conserved and magnetic state of one mesh block."""

    prim: np.ndarray  # (NHYDRO, n3, n2, n1)
    cons: np.ndarray  # (NHYDRO, n3, n2, n1)
    b: FaceField
    bcc: np.ndarray  # (3, n3, n2, n1)

    @classmethod
    def empty(cls, grid: CylindricalGrid) -> "MeshBlockState":
        shape = grid.shape
        return cls(
            prim=np.zeros((NHYDRO,) + shape),
            cons=np.zeros((NHYDRO,) + shape),
            b=FaceField.zeros(grid),
            bcc=np.zeros((3,) + shape),
        )


def cell_centered_field(
    b: FaceField,
    grid: CylindricalGrid,
    il: int,
    iu: int,
    jl: int,
    ju: int,
    kl: int,
    ku: int,
    bcc: np.ndarray | None = None,
) -> np.ndarray:
    """Average face fields to cell centres over the inclusive index range.

    The radial component is interpolated linearly in r to the volume centroid
    ``x1v``; the azimuthal and vertical components are face averages.
    """
    if bcc is None:
        bcc = np.zeros((3,) + grid.shape)
    ks, ke = kl, ku + 1
    js, je = jl, ju + 1
    is_, ie = il, iu + 1

    x1f = grid.x1f
    dx1 = grid.dx1f[is_:ie]
    lw = (x1f[is_ + 1 : ie + 1] - grid.x1v[is_:ie]) / dx1
    rw = (grid.x1v[is_:ie] - x1f[is_:ie]) / dx1

    b1 = b.x1f[ks:ke, js:je, :]
    bcc[IB1, ks:ke, js:je, is_:ie] = lw * b1[..., is_:ie] + rw * b1[..., is_ + 1 : ie + 1]
    b2 = b.x2f[ks:ke, :, is_:ie]
    bcc[IB2, ks:ke, js:je, is_:ie] = 0.5 * (b2[:, js:je, :] + b2[:, js + 1 : je + 1, :])
    b3 = b.x3f[:, js:je, is_:ie]
    bcc[IB3, ks:ke, js:je, is_:ie] = 0.5 * (b3[ks:ke] + b3[ks + 1 : ke + 1])
    return bcc


def primitive_to_conserved(prim: np.ndarray, bcc: np.ndarray, gamma: float) -> np.ndarray:
    """Special-relativistic MHD conversion from primitives to conserved variables.

    Primitives carry the spatial four-velocity ``u^i``; the field ``B^i`` is the
    lab-frame cell-centred field. Returns ``(D, M1, M2, M3, E)`` with
    ``E = T^00`` (rest-mass energy included).
    """
    gam_add = gamma / (gamma - 1.0)
    rho = prim[IDN]
    pgas = prim[IPR]
    u = prim[IVX : IVZ + 1]
    u0 = np.sqrt(1.0 + np.sum(u * u, axis=0))
    b0 = np.sum(bcc * u, axis=0)
    bvec = (bcc + b0[None] * u) / u0[None]
    b_sq = (np.sum(bcc * bcc, axis=0) + b0 * b0) / (u0 * u0)
    wtot = rho + gam_add * pgas + b_sq
    ptot = pgas + 0.5 * b_sq

    cons = np.empty_like(prim)
    cons[IDN] = rho * u0
    cons[IM1 : IM3 + 1] = wtot[None] * u0[None] * u - b0[None] * bvec
    cons[IEN] = wtot * u0 * u0 - ptot - b0 * b0
    return cons
