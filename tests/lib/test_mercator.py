import numpy as np

from gpxtrace.lib.mercator import mercator
from gpxtrace.models.trace_bounds import TraceBounds


def test_mercator():
    coords = mercator(np.array([[0, 0], [0.8, 0.2], [1, 1]]), 100, 100).tolist()
    expected = np.array([[0, 100], [80, 80], [100, 0]])
    assert np.isclose(coords, expected, atol=1).all()


def test_mercator_zero():
    coords = mercator(np.array([[0, 0], [0, 0]]), 100, 100).tolist()
    expected = np.array([[50, 50], [50, 50]])
    assert np.isclose(coords, expected, atol=1).all()


def test_mercator_bounds():
    bounds = TraceBounds(min_lat=0, max_lat=1, min_lon=0, max_lon=1)
    coords = mercator(np.array([[0.5, 0.5]]), 100, 100, bounds).tolist()
    expected = np.array([[50, 50]])
    assert np.isclose(coords, expected, atol=1).all()


def test_mercator_keeps_aspect_ratio():
    bounds = TraceBounds(min_lat=0, max_lat=0.5, min_lon=0, max_lon=1)
    coords = mercator(np.array([[0, 0], [1, 0.5]]), 100, 100, bounds).tolist()
    expected = np.array([[0, 75], [100, 25]])
    assert np.isclose(coords, expected, atol=1).all()


def test_mercator_polar_latitude():
    coords = mercator(np.array([[0, -90], [10, 90]]), 100, 100)
    assert np.isfinite(coords).all()
