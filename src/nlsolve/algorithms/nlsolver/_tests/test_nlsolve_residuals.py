import math

import numpy as np
import pytest

from nlsolve.algorithms.nlsolver import (calculate_residuals, check_tolerances,
                                         ode_default_norm)


def test_scalar_residual_is_weighted_by_larger_iterate():
    r = calculate_residuals(1.0, 0.5, 1e-6, 1e-3)

    assert isinstance(r, float)
    assert r == pytest.approx(0.5 / (1e-6 + 1e-3))


def test_array_residual_with_componentwise_tolerances():
    u0 = np.array([1.0, -4.0, 0.0])
    u1 = np.array([0.0, -2.0, 1e-3])
    abstol = np.array([1.0, 0.0, 1e-3])
    reltol = 0.5

    r = calculate_residuals(u0, u1, abstol, reltol)

    expected = np.array([
        1.0 / (1.0 + 0.5 * 1.0),
        -2.0 / (0.0 + 0.5 * 4.0),
        -1e-3 / (1e-3 + 0.5 * 1e-3),
    ])
    np.testing.assert_allclose(r, expected)
    assert r.shape == u0.shape


def test_identical_iterates_give_exact_zero_even_without_abstol():
    u = np.array([0.0, 2.0, -1.0])

    r = calculate_residuals(u, u.copy(), 0.0, 1e-3)

    np.testing.assert_array_equal(r, np.zeros(3))
    assert calculate_residuals(0.0, 0.0, 0.0, 1e-3) == 0.0


def test_residual_shape_mismatch_is_rejected():
    with pytest.raises(ValueError):
        calculate_residuals(np.zeros(2), np.zeros(3), 1e-6, 1e-3)


def test_default_norm_is_rms_for_arrays_and_abs_for_scalars():
    assert ode_default_norm(np.array([3.0, 4.0]), 0.0) == pytest.approx(math.sqrt(12.5))
    assert ode_default_norm(-2.0, 0.0) == 2.0
    assert ode_default_norm(np.array([]), 0.0) == 0.0


def test_default_norm_is_a_proper_norm():
    rng = np.random.default_rng(7)
    for _ in range(20):
        u = rng.normal(size=5)
        assert ode_default_norm(u, 0.0) > 0.0
        assert ode_default_norm(2.0 * u, 0.0) == pytest.approx(2.0 * ode_default_norm(u, 0.0))
    assert ode_default_norm(np.zeros(5), 0.0) == 0.0


def test_array_tolerance_is_rejected_for_scalar_iterates():
    with pytest.raises(ValueError, match="abstol"):
        calculate_residuals(1.0, 0.5, np.array([1e-6]), 1e-3)
    with pytest.raises(ValueError, match="reltol"):
        calculate_residuals(np.zeros(2), np.ones(2), 1e-6, np.array([1e-3, 1e-3, 1e-3]))


def test_matching_tolerance_shapes_are_accepted():
    check_tolerances(1e-6, 1e-3, ())
    check_tolerances(np.array([1e-6, 1e-8]), 1e-3, (2,))
    check_tolerances(np.array([1e-6]), 1e-3, (3,))
