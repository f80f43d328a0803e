import numpy as np
import pytest

from nlsolve.algorithms.nlsolver import (DEStats, IntegratorContext,
                                         IntegratorOptions, NLSolverConfig,
                                         NLSolverState, NLStatus,
                                         NonlinearSolver, nlsolve)
from nlsolve.algorithms.nlsolver.backends import _NLSolverCache
from nlsolve.algorithms.types.exceptions import BackendError, EngineError


class _MapCache(_NLSolverCache):
    """Candidate is ``g(z)`` for a prescribed map ``g``."""

    def __init__(self, g):
        self.g = g
        self.calls = 0
        self.initialized = 0
        self.accepted = []
        self.failed = []

    def initialize(self, state, integrator):
        self.initialized += 1

    def perform_step(self, state, integrator):
        self.calls += 1
        self._store_candidate(state, self.g(state.z))

    def on_accept(self, x, *, iterations, residual_norm):
        self.accepted.append(iterations)

    def on_failure(self, x, *, iterations, residual_norm):
        self.failed.append(iterations)


def _context(**kwargs):
    # unit absolute weighting: the residual norm is |z - gz|
    opts = IntegratorOptions(abstol=1.0, reltol=0.0)
    return IntegratorContext(f=lambda u, p, t: u, t=0.0, dt=1.0, opts=opts, **kwargs)


def _state(z0, g, **config):
    return NLSolverState(z0, np.zeros_like(z0) if np.ndim(z0) else 0.0,
                         gamma=1.0, config=NLSolverConfig(**config), cache=_MapCache(g))


def test_zero_budget_fails_without_iterating():
    state = _state(1.0, lambda z: z / 2, max_iters=0)
    ctx = _context()

    z = nlsolve(state, ctx)

    assert state.status is NLStatus.MAX_ITERS_REACHED
    assert state.iter == 0
    assert state.cache.calls == 0
    assert state.cache.initialized == 0
    assert z == 1.0
    assert ctx.force_stepfail is True
    assert ctx.destats.nnonliniter == 0
    assert ctx.destats.nnonlinconvfail == 1


def test_fixed_point_guess_converges_in_one_iteration():
    state = _state(1.0, lambda z: z)
    ctx = _context()

    nlsolve(state, ctx)

    assert state.status is NLStatus.CONVERGENCE
    assert state.iter == 1
    assert state.cache.calls == 1
    assert state.ndz == 0.0
    assert ctx.force_stepfail is False


def test_fixed_point_guess_with_small_seed_is_fast():
    state = _state(np.array([1.0, -2.0]), lambda z: z.copy(), initial_eta=0.1)

    nlsolve(state, _context())

    assert state.status is NLStatus.FAST_CONVERGENCE
    assert state.iter == 1


def test_halving_map_converges_with_unit_rate():
    state = _state(1.0, lambda z: z / 2)
    ctx = _context()

    z = nlsolve(state, ctx)

    # |dz| = 0.5**k and eta = 1, so eta * |dz| < 1e-2 first holds at k = 7
    assert state.status is NLStatus.CONVERGENCE
    assert state.iter == 7
    assert state.eta == 1.0
    assert z == 0.5 ** 6
    assert state.gz == 0.5 ** 7
    assert ctx.destats.nnonliniter == 7
    assert ctx.destats.nnonlinconvfail == 0


def test_rate_estimate_after_second_iteration():
    state = _state(1.0, lambda z: z / 2, max_iters=2)

    nlsolve(state, _context())

    assert state.iter == 2
    assert state.eta == 1.0
    assert state.status is NLStatus.VERY_SLOW_CONVERGENCE


def test_doubling_map_diverges_at_second_iteration():
    state = _state(np.array([1.0]), lambda z: 2 * z)
    ctx = _context()

    z = nlsolve(state, ctx)

    assert state.status is NLStatus.DIVERGENCE
    assert state.iter == 2
    assert state.eta == 1.0
    np.testing.assert_array_equal(z, [2.0])
    assert ctx.force_stepfail is True
    assert ctx.destats.nnonlinconvfail == 1


@pytest.mark.parametrize("max_iters", [1, 2, 5, 10])
def test_unreachable_tolerance_never_exceeds_budget(max_iters):
    state = _state(1.0, lambda z: 0.9 * z, max_iters=max_iters, kappa=1e-12)

    nlsolve(state, _context())

    assert state.status in (NLStatus.MAX_ITERS_REACHED, NLStatus.VERY_SLOW_CONVERGENCE)
    assert 1 <= state.iter <= max_iters
    assert state.cache.calls == state.iter


def test_single_iteration_budget_reaches_max_iters():
    state = _state(1.0, lambda z: 0.9 * z, max_iters=1, kappa=1e-12)

    nlsolve(state, _context())

    assert state.status is NLStatus.MAX_ITERS_REACHED
    assert state.iter == 1


def test_first_iterate_trusted_after_a_successful_step():
    cold = _state(1e-3, lambda z: z / 2)
    warm = _state(1e-3, lambda z: z / 2)

    nlsolve(cold, _context(success_iter=0))
    nlsolve(warm, _context(success_iter=3))

    assert cold.status is NLStatus.CONVERGENCE
    assert cold.iter == 2
    assert warm.status is NLStatus.CONVERGENCE
    assert warm.iter == 1


def test_array_iterate_is_updated_in_place():
    z0 = np.array([1.0, 2.0])
    state = _state(z0, lambda z: z / 2)
    z_buffer = state.z

    z = nlsolve(state, _context())

    assert z is z_buffer
    assert state.status is NLStatus.CONVERGENCE
    np.testing.assert_allclose(z, z0 * 0.5 ** (state.iter - 1))
    # the caller's guess is copied, never aliased
    np.testing.assert_array_equal(z0, [1.0, 2.0])


def test_reset_makes_solves_repeatable():
    solver = NonlinearSolver.with_default_engine(
        config=NLSolverConfig(initial_eta=0.5), method="newton"
    )
    ctx = IntegratorContext(f=lambda u, p, t: -u ** 3, t=0.0, dt=0.5)
    state = solver.build_state(np.array([0.0, 0.0]), np.array([1.0, 2.0]), gamma=1.0)

    first = solver.solve(state, ctx)
    eta_after_first = state.eta
    state.reset(np.zeros(2))
    second = solver.solve(state, ctx)

    assert eta_after_first != 0.5
    assert first.status is second.status
    assert first.iterations == second.iterations
    np.testing.assert_array_equal(first.z, second.z)


def test_statistics_follow_outcomes():
    ctx = _context()
    ok = _state(1.0, lambda z: z / 2)
    bad = _state(1.0, lambda z: 2 * z)

    nlsolve(ok, ctx)
    assert ctx.destats.nnonliniter == ok.iter
    assert ctx.destats.nnonlinconvfail == 0

    nlsolve(bad, ctx)
    assert ctx.destats.nnonliniter == ok.iter + bad.iter
    assert ctx.destats.nnonlinconvfail == 1
    assert ctx.force_stepfail is True

    ok.reset(1.0)
    nlsolve(ok, ctx)
    assert ctx.destats.nnonlinconvfail == 1
    assert ctx.force_stepfail is False


def test_statistics_are_optional():
    ctx = _context(destats=None)
    state = _state(1.0, lambda z: 2 * z)

    nlsolve(state, ctx)

    assert state.status is NLStatus.DIVERGENCE
    assert ctx.force_stepfail is True


def test_cache_hooks_report_outcome():
    ok = _state(1.0, lambda z: z / 2)
    bad = _state(1.0, lambda z: 2 * z)

    nlsolve(ok, _context())
    nlsolve(bad, _context())

    assert ok.cache.accepted == [7] and ok.cache.failed == []
    assert bad.cache.failed == [2] and bad.cache.accepted == []


def test_initial_eta_hook_seeds_the_rate():
    from nlsolve.algorithms.nlsolver.engine import _NLSolveEngine

    class _FreshEngine(_NLSolveEngine):
        def initial_eta(self, state, integrator):
            return 0.01

    state = _state(1.0, lambda z: z)
    state.eta = 5.0

    nlsolve(state, _context(), engine=_FreshEngine())

    assert state.status is NLStatus.FAST_CONVERGENCE


def test_state_without_cache_is_rejected():
    state = NLSolverState(1.0, 0.0, gamma=1.0)

    with pytest.raises(BackendError):
        nlsolve(state, _context())
    assert state.status is None


def test_zero_budget_needs_no_cache():
    state = NLSolverState(1.0, 0.0, gamma=1.0, config=NLSolverConfig(max_iters=0))
    ctx = _context()

    z = nlsolve(state, ctx)

    assert state.status is NLStatus.MAX_ITERS_REACHED
    assert state.iter == 0
    assert z == 1.0
    assert ctx.force_stepfail is True
    assert ctx.destats.nnonlinconvfail == 1


def test_failing_callback_is_wrapped():
    def boom(z):
        raise RuntimeError("rhs blew up")

    state = _state(1.0, boom)

    with pytest.raises(EngineError) as excinfo:
        nlsolve(state, _context())

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert state.status is None


def test_destats_defaults_are_zero():
    assert DEStats() == DEStats(0, 0, 0, 0, 0, 0)
