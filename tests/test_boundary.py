import numpy as np
import pytest

from srjet.boundary import (
    inflow_state,
    jet_inner_x3,
    lorentz_factor,
    mirror_face_interval,
    radial_face_field,
    reflect_across_inner_boundary,
    vertical_face_field,
)
from srjet.fieldline import FootpointConvergenceError, footpoint_radius
from srjet.grid import CylindricalGrid, MeshSize
from srjet.params import JetParameters, derive_context
from srjet.problem import problem_generator
from srjet.state import IB1, IB3, IDN, IPR, IVX, IVY, IVZ, cell_centered_field
from srjet.validation import divergence_cylindrical


def _params(**overrides) -> JetParameters:
    base = dict(
        d=1.0, p=0.01, djet=0.01, pjet=0.01, vxjet=0.1, vyjet=0.2, vzjet=5.0, b0=0.5, z0=4.0, rjet=1.0, drjet=0.2
    )
    base.update(overrides)
    return JetParameters(**base)


def _grid(x1min: float = 0.0) -> CylindricalGrid:
    mesh = MeshSize(nx1=16, x1min=x1min, x1max=x1min + 2.0, nx3=8, x3min=0.0, x3max=2.0)
    return CylindricalGrid.from_mesh(mesh)


def _fill(ctx, grid):
    state = problem_generator(ctx, grid)
    jet_inner_x3(
        ctx,
        grid,
        state.prim,
        state.b,
        0.0,
        0.0,
        0,
        grid.ncells1 - 1,
        0,
        grid.ncells2 - 1,
        grid.ks,
        grid.ke,
        grid.ng3,
    )
    return state


def test_mirror_helpers():
    assert reflect_across_inner_boundary(-0.25, 0.0) == 0.25
    assert reflect_across_inner_boundary(0.8, 1.0) == 1.2
    lo, hi = mirror_face_interval(-0.2, -0.1, 0.0)
    assert (lo, hi) == pytest.approx((0.1, 0.2))
    lo, hi = mirror_face_interval(0.9, 0.95, 1.0)
    assert lo < hi
    assert (lo, hi) == pytest.approx((1.05, 1.1))


def test_lorentz_factor_recovers_regime():
    ctx = derive_context(_params(b0=0.0), x1min=0.0)
    for regime in (ctx.jet, ctx.amb):
        psi = regime.lorentz * regime.d
        g = lorentz_factor(psi, regime.atwood, regime.p, ctx.gam_add)
        assert np.isclose(g, regime.lorentz, rtol=1e-12)


def test_uniform_medium_reproduced():
    # jet identical to the ambient medium, no field, both at rest
    ctx = derive_context(_params(djet=1.0, vxjet=0.0, vyjet=0.0, vzjet=0.0, b0=0.0), x1min=0.0)
    r0 = np.linspace(0.0, 3.0, 31)
    st = inflow_state(ctx, r0, 0.5, 0.0)
    assert np.allclose(st.rho, 1.0, rtol=1e-12)
    assert np.allclose(st.press, 0.01)
    for u in (st.u1, st.u2, st.u3):
        assert np.allclose(u, 0.0, atol=1e-7)


def test_uniform_moving_medium_reproduced():
    ctx = derive_context(_params(djet=1.0, vz=2.0, vxjet=0.0, vyjet=0.0, vzjet=2.0, b0=0.0), x1min=0.0)
    st = inflow_state(ctx, np.linspace(0.0, 3.0, 31), 1.0, 0.0)
    assert np.allclose(st.rho, 1.0, rtol=1e-12)
    assert np.allclose(st.u3, 2.0, rtol=1e-10)
    assert np.allclose(st.u1, 0.0) and np.allclose(st.u2, 0.0)
    assert np.allclose(st.invariants.gamma, np.sqrt(5.0))


@pytest.mark.parametrize("z", [0.0, 1.0, 6.0])
def test_jet_core_recovered(z):
    ctx = derive_context(_params(b0=0.0), x1min=0.0)
    r0 = np.array([0.1, 0.3, 0.6])
    st = inflow_state(ctx, r0, z, 0.0)
    assert np.allclose(st.invariants.smfnc, 1.0)
    assert np.allclose(st.invariants.gamma_unperturbed, ctx.jet.lorentz, rtol=1e-12)
    assert np.allclose(st.rho, ctx.jet.d, rtol=1e-12)
    u_sq = st.u1**2 + st.u2**2 + st.u3**2
    assert np.allclose(u_sq, ctx.jet.lorentz**2 - 1.0, rtol=1e-10)
    # pitch grows linearly from the inner edge
    assert np.allclose(st.u2 / st.u3, ctx.jet.phang * r0 / ctx.r_jet)


def test_ambient_recovered_outside_band():
    ctx = derive_context(_params(), x1min=0.0)
    st = inflow_state(ctx, np.array([1.25, 2.0, 5.0]), 2.0, 0.0)
    assert np.allclose(st.invariants.smfnc, 0.0)
    assert np.allclose(st.rho, ctx.amb.d, rtol=1e-12)
    assert np.allclose(st.u3, 0.0, atol=1e-7)


def test_lorentz_factor_solves_quadratic():
    ctx = derive_context(_params(), x1min=0.0)
    st = inflow_state(ctx, np.linspace(0.0, 1.5, 16), 1.0, 0.0)
    inv = st.invariants
    g = inv.gamma
    lhs = ctx.gam_add * st.press * g * g + inv.psi * g - inv.atwood
    assert np.allclose(lhs, 0.0, atol=1e-12)


def test_azimuthal_perturbation_only_in_density():
    ctx = derive_context(_params(mang=2.0, dang=0.05), x1min=0.0)
    r0 = np.array([0.95, 1.0, 1.05])
    phi = np.linspace(0.0, np.pi, 5)
    st = inflow_state(ctx, r0[None, :], 1.0, phi[:, None])
    assert st.rho.shape == (5, 3)
    assert np.all(np.ptp(st.rho, axis=0) > 0.0)
    assert np.all(np.ptp(st.u3, axis=0) == 0.0)


def test_ghost_fill_mirrors_and_stays_solenoidal():
    ctx = derive_context(_params(), x1min=0.0)
    grid = _grid()
    state = _fill(ctx, grid)
    ks, is_ = grid.ks, grid.is_
    rows = slice(0, ks)

    assert np.all(np.isfinite(state.prim[:, rows]))
    assert np.all(state.prim[IDN, rows] > 0.0)
    assert np.allclose(state.prim[IPR, rows], ctx.amb.p)
    assert np.all(state.b.x2f[rows] == 0.0)

    for kk in range(ks):
        for m in (1, 2):
            assert np.isclose(state.b.x1f[kk, 0, is_ - m], -state.b.x1f[kk, 0, is_ + m])
        for m in (0, 1):
            assert np.isclose(state.b.x3f[kk, 0, is_ - 1 - m], state.b.x3f[kk, 0, is_ + m])

    div = divergence_cylindrical(state.b, grid, grid.is_, grid.ie, 0, 0, 0, grid.ke)
    scale = np.max(np.abs(state.b.x3f))
    assert np.max(np.abs(div)) * grid.dx1f[is_] / scale < 1e-10


def test_ghost_velocity_follows_field_in_core():
    ctx = derive_context(_params(), x1min=0.0)
    grid = _grid()
    state = _fill(ctx, grid)
    ks = grid.ks
    bc = cell_centered_field(state.b, grid, 0, grid.ncells1 - 1, 0, 0, 0, ks - 1)
    core = grid.x1v <= ctx.r_out
    bz = bc[IB3, :ks, :, core]
    assert np.all(np.abs(bz) > 1e-12)
    expect = state.prim[IVZ, :ks, :, core] * bc[IB1, :ks, :, core] / bz
    assert np.allclose(state.prim[IVX, :ks, :, core], expect)
    # outside the jet the ambient medium is at rest
    outer = ~core
    assert np.allclose(state.prim[IVX, :ks, :, outer], 0.0, atol=1e-7)
    assert np.allclose(state.prim[IVY, :ks, :, outer], 0.0, atol=1e-7)


def test_ghost_fill_without_field():
    ctx = derive_context(_params(b0=0.0), x1min=0.0)
    grid = _grid()
    state = _fill(ctx, grid)
    ks = grid.ks
    assert np.all(state.b.x1f[:ks] == 0.0)
    assert np.all(state.b.x3f[:ks] == 0.0)
    assert np.all(np.isfinite(state.prim[:, :ks]))
    # no field to align with: radial velocity keeps the field-line pitch
    r, z = grid.x1v[grid.is_ + 1], grid.x3v[ks - 1]
    r0 = footpoint_radius(ctx, r, z).r0
    st = inflow_state(ctx, r0, z, grid.x2v[0])
    assert np.isclose(state.prim[IVX, ks - 1, 0, grid.is_ + 1], st.u1)


def test_active_cells_untouched():
    ctx = derive_context(_params(), x1min=0.0)
    grid = _grid()
    before = problem_generator(ctx, grid)
    after = _fill(ctx, grid)
    act = slice(grid.ks, grid.ke + 1)
    assert np.array_equal(before.prim[:, act], after.prim[:, act])
    assert np.array_equal(before.b.x3f[grid.ks :], after.b.x3f[grid.ks :])


def test_ratio_spaced_grid_mirrors_interior_cells():
    ctx = derive_context(_params(), x1min=0.2, x1rat=1.05)
    mesh = MeshSize(nx1=16, x1min=0.2, x1max=2.2, nx3=8, x3min=0.0, x3max=2.0, x1rat=1.05)
    grid = CylindricalGrid.from_mesh(mesh)
    state = _fill(ctx, grid)
    is_ = grid.is_
    for kk in range(grid.ks):
        for m in (0, 1):
            assert np.isclose(state.b.x3f[kk, 0, is_ - 1 - m], state.b.x3f[kk, 0, is_ + m])
    div = divergence_cylindrical(state.b, grid, grid.is_, grid.ie, 0, 0, 0, grid.ke)
    scale = np.max(np.abs(state.b.x3f))
    assert np.max(np.abs(div)) * grid.dx1f[is_] / scale < 1e-10


def test_root_options_reach_face_fields():
    ctx = derive_context(_params(), x1min=0.0)
    grid = _grid()
    tight = {"tol": 1e-14, "width_tol": 0.0, "max_iter": 500}
    loose = problem_generator(ctx, grid)
    exact = problem_generator(ctx, grid)
    args = (0.0, 0.0, 0, grid.ncells1 - 1, 0, grid.ncells2 - 1, grid.ks, grid.ke, grid.ng3)
    jet_inner_x3(ctx, grid, loose.prim, loose.b, *args)
    jet_inner_x3(ctx, grid, exact.prim, exact.b, *args, root_options=tight)

    ks = grid.ks
    assert not np.allclose(loose.b.x1f[:ks], exact.b.x1f[:ks], rtol=0.0, atol=1e-12)
    for kk in range(ks):
        b1 = radial_face_field(ctx, grid.x1f, float(grid.x3f[kk]), float(grid.x3f[kk + 1]), **tight)
        assert np.allclose(exact.b.x1f[kk, 0, :], b1, rtol=1e-12, atol=1e-15)
        b3 = vertical_face_field(ctx, grid.x1f[:-1], grid.x1f[1:], float(grid.x3f[kk]), **tight)
        assert np.allclose(exact.b.x3f[kk, 0, :], b3, rtol=1e-12, atol=1e-15)


def test_raise_policy_covers_face_fields():
    ctx = derive_context(_params(), x1min=0.0)
    grid = _grid()
    opts = {"tol": 1e-15, "width_tol": 0.0, "max_iter": 1, "on_failure": "raise"}
    with pytest.raises(FootpointConvergenceError):
        radial_face_field(ctx, grid.x1f, float(grid.x3f[0]), float(grid.x3f[1]), **opts)
    with pytest.raises(FootpointConvergenceError):
        vertical_face_field(ctx, grid.x1f[:-1], grid.x1f[1:], float(grid.x3f[0]), **opts)
