import numpy as np
import pytest

from srjet.grid import MeshSize
from srjet.params import JetParameters
from srjet.problem import apply_inner_x3, face_vector_potential, init_user_mesh_data
from srjet.refinement import REFINE
from srjet.state import IDN, IEN, IPR, IVZ, primitive_to_conserved
from srjet.validation import divergence_cylindrical


def _params(**overrides) -> JetParameters:
    base = dict(
        d=1.0, p=0.01, djet=0.01, pjet=0.01, vxjet=0.1, vyjet=0.2, vzjet=5.0, b0=0.5, z0=4.0, rjet=1.0, drjet=0.2
    )
    base.update(overrides)
    return JetParameters(**base)


def _mesh(**overrides) -> MeshSize:
    base = dict(nx1=12, x1min=0.0, x1max=1.5, nx3=6, x3min=0.0, x3max=1.5)
    base.update(overrides)
    return MeshSize(**base)


def test_hooks_enrolled():
    hooks = init_user_mesh_data(_params(), _mesh(), adaptive=True)
    assert set(hooks.boundary_functions) == {"inner_x3"}
    assert callable(hooks.refinement_condition)
    assert hooks.context.x1min == 0.0
    plain = init_user_mesh_data(_params(), _mesh())
    assert plain.refinement_condition is None


def test_needs_vertical_ghost_zones():
    with pytest.raises(ValueError, match="nx3"):
        init_user_mesh_data(_params(), _mesh(nx3=1))


def test_initial_block_is_ambient_and_solenoidal():
    hooks = init_user_mesh_data(_params(by=0.05), _mesh())
    grid = hooks.grid
    state = hooks.problem_generator()
    assert np.all(state.prim[IDN] == 1.0)
    assert np.all(state.prim[IVZ] == 0.0)
    assert np.all(state.prim[IPR] == 0.01)
    assert np.all(state.b.x2f == 0.05)

    div = divergence_cylindrical(state.b, grid, grid.is_, grid.ie, 0, 0, grid.ks, grid.ke)
    scale = np.max(np.abs(state.b.x3f))
    assert scale > 0.0
    assert np.max(np.abs(div)) * grid.dx1f[grid.is_] / scale < 1e-10

    cons = primitive_to_conserved(state.prim, state.bcc, hooks.context.gamma_ad)
    assert np.allclose(state.cons, cons)
    assert np.all(state.cons[IEN] > state.cons[IDN])


def test_boundary_callback_fills_ghost_rows():
    hooks = init_user_mesh_data(_params(), _mesh(), adaptive=True)
    grid = hooks.grid
    state = hooks.problem_generator()
    apply_inner_x3(hooks, state, time=0.5, dt=0.01)
    core = grid.x1v < hooks.context.r_in
    # jet material is lighter and moving upward
    assert np.all(state.prim[IDN, : grid.ks][..., core] < 1.0)
    assert np.all(state.prim[IVZ, : grid.ks][..., core] > 1.0)
    assert np.all(state.prim[IDN, grid.ks :] == 1.0)
    assert hooks.refinement_condition(state) == REFINE


def test_backend_choice_checked():
    hooks = init_user_mesh_data(_params(), _mesh())
    with pytest.raises(ValueError, match="backend"):
        face_vector_potential(hooks.context, hooks.grid, backend="torch")  # type: ignore[arg-type]


def test_verbose_logging(capsys):
    hooks = init_user_mesh_data(_params(), _mesh(), verbose=True)
    state = hooks.problem_generator()
    apply_inner_x3(hooks, state)
    out = capsys.readouterr().out
    assert "[MESH]" in out
    assert "[BC]" in out
