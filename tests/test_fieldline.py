import numpy as np
import pytest

from srjet.fieldline import (
    FootpointConvergenceError,
    fieldline_radius,
    fieldline_residual,
    footpoint_radii,
    footpoint_radius,
)
from srjet.params import JetParameters, derive_context


def _context(x1min: float = 0.0, **overrides):
    base = dict(
        d=1.0, p=0.01, djet=0.01, pjet=0.01, vxjet=0.1, vyjet=0.2, vzjet=5.0, b0=0.5, z0=4.0, rjet=1.0, drjet=0.2
    )
    base.update(overrides)
    return derive_context(JetParameters(**base), x1min=x1min)


@pytest.mark.parametrize("z", [-0.5, 0.0, 1.0, 25.0])
def test_clamps_at_inner_edge(z):
    ctx = _context(x1min=0.1)
    for r in (0.1, 0.05, -1.0):
        res = footpoint_radius(ctx, r, z)
        assert res.r0 == 0.1
        assert res.converged and res.iterations == 0


def test_identity_outside_transition_band():
    ctx = _context()
    for r in (1.2, 1.5, 40.0):
        res = footpoint_radius(ctx, r, 3.0)
        assert res.r0 == r
        assert res.converged


def test_residual_small_inside_band():
    ctx = _context()
    for r in np.linspace(0.05, 1.19, 12):
        for z in (-0.5, 0.0, 0.7, 4.0, 10.0):
            res = footpoint_radius(ctx, r, z)
            assert res.converged
            assert res.iterations <= 200
            assert ctx.x1min <= res.r0 <= ctx.r_out
            assert abs(fieldline_residual(ctx, res.r0, r, z)) < 2e-4


def test_inverts_fieldline_map():
    ctx = _context()
    r0 = np.linspace(0.1, 0.9, 5)
    for z in (0.0, 1.5, 5.0):
        r = fieldline_radius(ctx, r0, z)
        back = footpoint_radii(ctx, r, z, tol=1e-12, width_tol=0.0)
        assert np.allclose(back, r0, atol=1e-9)


def test_footpoint_radii_broadcasts():
    ctx = _context()
    r = np.linspace(0.0, 2.0, 7)[None, :]
    z = np.array([0.0, 1.0, 2.0])[:, None]
    out = footpoint_radii(ctx, r, z)
    assert out.shape == (3, 7)
    assert np.all(out[:, 0] == ctx.x1min)
    assert np.all(out[:, -1] == 2.0)


def test_iteration_budget_exhausted():
    ctx = _context()
    res = footpoint_radius(ctx, 1.0, 3.0, tol=1e-15, width_tol=0.0, max_iter=1)
    assert not res.converged
    assert res.iterations == 1
    with pytest.raises(FootpointConvergenceError) as excinfo:
        footpoint_radius(ctx, 1.0, 3.0, tol=1e-15, width_tol=0.0, max_iter=1, on_failure="raise")
    assert excinfo.value.result.converged is False


def test_unbracketed_root_reported():
    # strongly inward ambient pitch: f < 0 at both ends of the bracket
    ctx = _context(vx=-1.0, vz=1.0)
    res = footpoint_radius(ctx, 0.5, 10.0)
    assert not res.converged
    assert res.r0 == ctx.x1min
    with pytest.raises(FootpointConvergenceError, match="no sign change"):
        footpoint_radius(ctx, 0.5, 10.0, on_failure="raise")
