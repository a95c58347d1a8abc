"""Tests for RouteGeometry."""

from app.core.route_geometry import RouteGeometry


def test_progress_midpoint():
    """A point in the middle of a straight route projects to about half way."""
    geometry = RouteGeometry()

    coords = [
        [9.0120, 38.7500],
        [9.0120, 38.7600],
        [9.0120, 38.7700],
    ]
    geometry.load_route("r", coords)

    progress = geometry.progress("r", 9.0120, 38.7600)
    assert progress is not None
    assert 0.4 < progress < 0.6


def test_unknown_route():
    geometry = RouteGeometry()
    assert geometry.progress("missing", 9.0, 38.7) is None
    assert geometry.geometry("missing") is None
    assert geometry.total_length_km("missing") == 0.0


def test_single_point_route_ignored():
    geometry = RouteGeometry()
    geometry.load_route("r", [[9.0, 38.7]])
    assert geometry.geometry("r") is None


def test_line_length():
    """0.01 degrees of longitude near Addis Ababa is about 1.1 km."""
    coords = [
        [9.0120, 38.7500],
        [9.0120, 38.7600],
    ]
    length = RouteGeometry._line_length_km(coords)
    assert 1.0 < length < 1.2


def test_from_network(network):
    geometry = RouteGeometry.from_network(network)

    coords = geometry.geometry("route-01")
    assert len(coords) == 7
    merkato = network.get_stop("merkato")
    assert coords[0] == [merkato.lat, merkato.lng]
    assert geometry.total_length_km("route-01") > 0
