from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Literal, Mapping

import numpy as np

from srjet.boundary import jet_inner_x3
from srjet.grid import CylindricalGrid, MeshSize
from srjet.params import JetContext, JetParameters, derive_context
from srjet.potential import vector_potential
from srjet.refinement import refinement_condition
from srjet.state import IDN, IPR, IVX, IVY, IVZ, MeshBlockState, cell_centered_field, primitive_to_conserved

__all__ = [
    "UserMeshData",
    "face_vector_potential",
    "problem_generator",
    "init_user_mesh_data",
    "apply_inner_x3",
]

Backend = Literal["numpy", "jax"]


@dataclass(frozen=True)
class UserMeshData:
    """Derived context and the callbacks enrolled with the host."""

    context: JetContext
    grid: CylindricalGrid
    boundary_functions: Mapping[str, Callable[..., None]]
    refinement_condition: Callable[[MeshBlockState], int] | None
    problem_generator: Callable[[], MeshBlockState]


def face_vector_potential(ctx: JetContext, grid: CylindricalGrid, *, backend: Backend = "numpy") -> np.ndarray:
    """``A2`` at every (x3f, x1f) face corner, shape ``(n3+1, n1+1)``."""
    r = grid.x1f[None, :]
    z = grid.x3f[:, None]
    if backend == "numpy":
        return np.asarray(vector_potential(ctx, r, z), dtype=float)
    if backend == "jax":
        from srjet.jax_profiles import vector_potential_jax

        return np.asarray(vector_potential_jax(ctx, r, z), dtype=float)
    raise ValueError(f"Unknown backend: {backend}")


def problem_generator(
    ctx: JetContext,
    grid: CylindricalGrid,
    *,
    backend: Backend = "numpy",
    verbose: bool = False,
) -> MeshBlockState:
    """Fill a block with the ambient medium threaded by the jet's poloidal field.

    Primitives are ambient everywhere (ghosts included); face fields come from
    the vector potential through edge lengths and face areas, and the
    conserved variables follow from the centred field.
    """
    state = MeshBlockState.empty(grid)
    prim = state.prim
    prim[IDN] = ctx.amb.d
    prim[IVX] = ctx.amb.u[0]
    prim[IVY] = ctx.amb.u[1]
    prim[IVZ] = ctx.amb.u[2]
    prim[IPR] = ctx.amb.p

    a2 = face_vector_potential(ctx, grid, backend=backend)
    n3, n2, _ = grid.shape
    b = state.b
    for j in range(n2):
        ln = grid.edge2_length(j)
        area1 = np.stack([grid.face1_area(k, j) for k in range(n3)])
        num1 = -(ln[None, :] * a2[1:, :] - ln[None, :] * a2[:-1, :])
        b.x1f[:, j, :] = np.divide(num1, area1, out=np.zeros_like(num1), where=area1 != 0.0)
        area3 = grid.face3_area(j)
        num3 = ln[None, 1:] * a2[:, 1:] - ln[None, :-1] * a2[:, :-1]
        b.x3f[:, j, :] = num3 / area3[None, :]
    b.x2f[...] = ctx.by_amb

    cell_centered_field(b, grid, 0, grid.ncells1 - 1, 0, n2 - 1, 0, n3 - 1, bcc=state.bcc)
    state.cons[...] = primitive_to_conserved(prim, state.bcc, ctx.gamma_ad)
    if verbose:
        bmax = float(np.max(np.sqrt(np.sum(state.bcc**2, axis=0))))
        print(f"[MESH] initialized block {grid.shape} with backend={backend}; max |B| = {bmax:.3e}")
    return state


def apply_inner_x3(
    hooks: UserMeshData,
    state: MeshBlockState,
    *,
    time: float = 0.0,
    dt: float = 0.0,
) -> None:
    """Invoke the enrolled inner-x3 boundary callback the way the host does."""
    grid = hooks.grid
    bc = hooks.boundary_functions["inner_x3"]
    bc(
        grid,
        state.prim,
        state.b,
        time,
        dt,
        0,
        grid.ncells1 - 1,
        0,
        grid.ncells2 - 1,
        grid.ks,
        grid.ke,
        grid.ng3,
    )


def _block_refinement(state: MeshBlockState, *, grid: CylindricalGrid, verbose: bool = False, **kwargs: Any) -> int:
    bounds = (grid.is_, grid.ie, grid.js, grid.je, grid.ks, grid.ke)
    flag = refinement_condition(state.prim, state.bcc, bounds, **kwargs)
    if verbose:
        print(f"[AMR] block {grid.shape}: refinement flag {flag}")
    return flag


def init_user_mesh_data(
    params: JetParameters,
    mesh: MeshSize,
    *,
    adaptive: bool = False,
    backend: Backend = "numpy",
    refinement_options: Mapping[str, Any] | None = None,
    root_options: Mapping[str, Any] | None = None,
    verbose: bool = False,
) -> UserMeshData:
    """Derive the jet context once and enroll the problem callbacks."""
    grid = CylindricalGrid.from_mesh(mesh)
    if grid.ng3 == 0:
        raise ValueError("The inner-x3 inflow boundary needs nx3 > 1 (ghost zones along z).")
    ctx = derive_context(params, x1min=mesh.x1min, x1rat=mesh.x1rat)
    if verbose:
        print(
            f"[MESH] jet: gamma={ctx.jet.lorentz:.4g}, atwood={ctx.jet.atwood:.4g}, "
            f"bernoulli={ctx.bern_jet:.4g}; ambient: gamma={ctx.amb.lorentz:.4g}, atwood={ctx.amb.atwood:.4g}"
        )

    boundary_functions = {
        "inner_x3": partial(jet_inner_x3, ctx, root_options=root_options, verbose=verbose),
    }
    refine = None
    if adaptive:
        refine = partial(_block_refinement, grid=grid, verbose=verbose, **dict(refinement_options or {}))
    return UserMeshData(
        context=ctx,
        grid=grid,
        boundary_functions=boundary_functions,
        refinement_condition=refine,
        problem_generator=partial(problem_generator, ctx, grid, backend=backend, verbose=verbose),
    )
