"""
test_escape.py
"""
import numpy as np
import pytest

from mandelview.escape import EscapeResult, escape_grid, evaluate
from mandelview.viewport import Viewport


@pytest.mark.parametrize('c', [3 + 0j, -3 + 0j, 2.5j, 2 + 2j, complex(-2.1, 0.0), complex(1.5, -1.5)])
def test_points_outside_radius_escape_on_first_check(c):
    result = evaluate(c, 50)
    assert result.escaped
    assert result.iterations == 1


@pytest.mark.parametrize('max_iterations', [1, 2, 10, 1000])
def test_origin_never_escapes(max_iterations):
    assert evaluate(0j, max_iterations) == EscapeResult(escaped=False, iterations=max_iterations)


@pytest.mark.parametrize('max_iterations', [1, 7, 500])
def test_minus_one_is_periodic(max_iterations):
    result = evaluate(-1 + 0j, max_iterations, capture_orbit=True)
    assert not result.escaped
    assert result.iterations == max_iterations
    assert list(result.orbit) == [0j if i % 2 == 0 else -1 + 0j for i in range(max_iterations + 1)]


def test_raising_the_cap_keeps_the_escape_iteration():
    c = 0.26 + 0j
    reference = evaluate(c, 10000)
    assert reference.escaped
    for max_iterations in range(reference.iterations, reference.iterations + 40):
        assert evaluate(c, max_iterations).iterations == reference.iterations


def test_conjugate_symmetry():
    for re in np.linspace(-2.2, 0.8, 23):
        for im in np.linspace(0.0, 1.3, 17):
            upper = evaluate(complex(re, im), 80)
            lower = evaluate(complex(re, -im), 80)
            assert upper.iterations == lower.iterations
            assert upper.escaped == lower.escaped


def test_orbit_is_only_captured_on_request():
    c = 0.3 + 0.5j
    plain = evaluate(c, 100)
    traced = evaluate(c, 100, capture_orbit=True)
    assert plain.orbit == ()
    assert plain.last is None
    assert traced.iterations == plain.iterations
    assert len(traced.orbit) == traced.iterations + 1
    assert traced.orbit[0] == 0j
    assert traced.orbit[1] == c
    assert traced.last == traced.orbit[-1]


def test_escaping_orbit_ends_outside_radius():
    result = evaluate(0.5 + 0.5j, 100, capture_orbit=True)
    assert result.escaped
    last = result.last
    assert last.real ** 2 + last.imag ** 2 > 4.0
    assert all(z.real ** 2 + z.imag ** 2 <= 4.0 for z in result.orbit[:-1])


def test_evaluation_is_deterministic():
    c = -0.7436438870371587 + 0.13182590420531197j
    assert evaluate(c, 300, capture_orbit=True) == evaluate(c, 300, capture_orbit=True)


def test_rejects_non_positive_cap():
    with pytest.raises(ValueError):
        evaluate(0j, 0)


def test_grid_kernel_matches_scalar_evaluation():
    viewport = Viewport(center=-0.6 + 0.1j, scale=0.11, width=29, height=21, max_iterations=64)
    re_values, im_values = viewport.axes()
    iterations, escaped = escape_grid(re_values, im_values, viewport.max_iterations)

    assert iterations.shape == (21, 29)
    for y in range(viewport.height):
        for x in range(viewport.width):
            expected = evaluate(viewport.pixel_to_complex(x, y), viewport.max_iterations)
            assert iterations[y, x] == expected.iterations
            assert bool(escaped[y, x]) == expected.escaped


def test_grid_kernel_known_points():
    iterations, escaped = escape_grid(np.array([-1.0, 0.0, 3.0]), np.array([0.0]), 25)
    assert iterations.tolist() == [[25, 25, 1]]
    assert escaped.tolist() == [[False, False, True]]
