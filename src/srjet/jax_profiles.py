from __future__ import annotations

from typing import Any

from srjet.params import JetContext

Array = Any

__all__ = ["smoothstep_jax", "footpoint_radius_jax", "flux_function_jax", "vector_potential_jax"]


def _require_jax():
    try:
        import jax
        import jax.numpy as jnp
    except Exception as exc:  # pragma: no cover
        raise ImportError("JAX is required for the JAX backend.") from exc
    if not jax.config.jax_enable_x64:
        raise RuntimeError(
            "srjet JAX backend requires JAX 64-bit mode to match the numpy root finder. "
            "Set `JAX_ENABLE_X64=1` in your environment or call "
            "`jax.config.update('jax_enable_x64', True)` before importing `srjet`."
        )
    return jax, jnp


def smoothstep_jax(x: Array) -> Array:
    """JAX version of :func:`srjet.profiles.smoothstep`."""
    _, jnp = _require_jax()
    modx = jnp.clip(x, -1.0, 1.0)
    return 0.5 - modx * (3.0 - modx * modx) / 4.0


def _radial_pitch(ctx: JetContext, r0):
    w = smoothstep_jax((r0 - ctx.r_jet) / ctx.dr_jet)
    return ((ctx.jet.rang - ctx.amb.rang) * w + ctx.amb.rang) * (r0 - ctx.x1min) / ctx.r_jet


def footpoint_radius_jax(
    ctx: JetContext,
    r: Array,
    z: Array,
    *,
    tol: float = 1e-5,
    width_tol: float = 1e-4,
    max_iter: int = 200,
) -> Array:
    """Vectorized footpoint search with a fixed-length ``lax.fori_loop``.

    Same bracket and stopping rules as :func:`srjet.fieldline.footpoint_radius`;
    converged lanes are frozen while the others iterate. Unbracketed lanes
    return the endpoint with the smaller residual.
    """
    jax, jnp = _require_jax()
    r = jnp.asarray(r, dtype=jnp.float64)
    z = jnp.asarray(z, dtype=jnp.float64)
    r, z = jnp.broadcast_arrays(r, z)
    lift = ctx.z0 * (1.0 - jnp.exp(-z / ctx.z0))

    def f(r0):
        return r0 + _radial_pitch(ctx, r0) * lift - r

    r1 = jnp.full_like(r, ctx.x1min)
    r2 = jnp.full_like(r, ctx.r_out)
    f1 = f(r1)
    f2 = f(r2)
    hit1 = jnp.abs(f1) < tol
    hit2 = jnp.abs(f2) < tol
    unbracketed = (f1 * f2 > 0.0) & ~hit1 & ~hit2
    start = jnp.where(hit1, r1, jnp.where(hit2 | (unbracketed & (jnp.abs(f2) < jnp.abs(f1))), r2, r1))
    done = hit1 | hit2 | unbracketed

    def body(_, carry):
        r1, r2, f1, f2, r3, done = carry
        denom = f2 - f1
        degenerate = denom == 0.0
        cand = jnp.where(degenerate, 0.5 * (r1 + r2), r1 - f1 * (r2 - r1) / jnp.where(degenerate, 1.0, denom))
        fc = f(cand)
        active = ~done
        hit = jnp.abs(fc) < tol
        to_upper = f1 * fc < 0.0
        r2n = jnp.where(active & to_upper, cand, r2)
        f2n = jnp.where(active & to_upper, fc, f2)
        r1n = jnp.where(active & ~to_upper, cand, r1)
        f1n = jnp.where(active & ~to_upper, fc, f1)
        r3n = jnp.where(active, cand, r3)
        done_n = done | (active & (hit | (jnp.abs(r2n - r1n) < width_tol)))
        return r1n, r2n, f1n, f2n, r3n, done_n

    carry = (r1, r2, f1, f2, start, done)
    _, _, _, _, r3, _ = jax.lax.fori_loop(0, max_iter, body, carry)

    inside = (r > ctx.x1min) & (r < ctx.r_out)
    return jnp.where(inside, r3, jnp.where(r <= ctx.x1min, ctx.x1min, r))


def flux_function_jax(ctx: JetContext, x1: Array) -> Array:
    """JAX version of :func:`srjet.potential.flux_function`."""
    _, jnp = _require_jax()
    a, rj, dr, d = ctx.a, ctx.r_jet, ctx.dr_jet, ctx.d_coef
    a2 = a * a

    def fint1(x):
        return ctx.b0 * (a2 / 2.0) * jnp.log(a2 + x * x)

    def fint2(x):
        poly = x * (-6.0 * a2 - 18.0 * dr * dr + 18.0 * rj * rj - 9.0 * rj * x + 2.0 * x * x)
        arc = 6.0 * a * (a2 + 3.0 * dr * dr - 3.0 * rj * rj) * jnp.arctan(x / a)
        log = (9.0 * rj * a2 + 6.0 * dr**3 + 9.0 * rj * dr * dr - 3.0 * rj**3) * jnp.log(a2 + x * x)
        return ctx.b0 * (d * a2 / 6.0) * (poly + arc + log)

    x1 = jnp.asarray(x1, dtype=jnp.float64)
    r_in = jnp.asarray(ctx.r_in, dtype=jnp.float64)
    r_out = jnp.asarray(ctx.r_out, dtype=jnp.float64)
    base = fint1(jnp.asarray(ctx.x1min, dtype=jnp.float64))
    offset = fint1(r_in) - base - fint2(r_in)
    core = fint1(x1) - base
    band = fint2(x1) + offset
    outer = fint2(r_out) + offset
    return jnp.where(x1 < r_in, core, jnp.where(x1 < r_out, band, outer))


def vector_potential_jax(ctx: JetContext, r: Array, z: Array, **kwargs: Any) -> Array:
    """JAX version of :func:`srjet.potential.vector_potential` (zero at ``r <= 0``)."""
    _, jnp = _require_jax()
    r = jnp.asarray(r, dtype=jnp.float64)
    r0 = footpoint_radius_jax(ctx, r, z, **kwargs)
    phi = flux_function_jax(ctx, r0)
    safe_r = jnp.where(r > 0.0, r, 1.0)
    return jnp.where(r > 0.0, phi / safe_r, 0.0)
