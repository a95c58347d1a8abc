"""Route polylines and linear referencing using Shapely."""

import logging

from shapely.geometry import LineString, Point

from app.core.geo import haversine_km
from app.core.network import NetworkSnapshot

logger = logging.getLogger(__name__)


class RouteGeometry:
    """Stop-to-stop polylines for every route of a network version."""

    def __init__(self) -> None:
        # route_id -> (LineString in degrees, [[lat, lng], ...], total_length_km)
        self._routes: dict[str, tuple[LineString, list[list[float]], float]] = {}

    @classmethod
    def from_network(cls, network: NetworkSnapshot) -> "RouteGeometry":
        geometry = cls()
        for route in network.routes():
            coords = []
            for sid in route.stop_ids:
                stop = network.stops_by_id[sid]
                coords.append([stop.lat, stop.lng])
            geometry.load_route(route.id, coords)
        return geometry

    def load_route(self, route_id: str, coords: list[list[float]]) -> None:
        """Load route geometry. coords = [[lat, lng], ...]"""
        if len(coords) < 2:
            return
        # Shapely uses (x, y) = (lng, lat)
        line = LineString([(c[1], c[0]) for c in coords])
        self._routes[route_id] = (line, [list(c) for c in coords], self._line_length_km(coords))

    def geometry(self, route_id: str) -> list[list[float]] | None:
        """Route geometry as [[lat, lng], ...] for the API."""
        entry = self._routes.get(route_id)
        return entry[1] if entry else None

    def total_length_km(self, route_id: str) -> float:
        entry = self._routes.get(route_id)
        return entry[2] if entry else 0.0

    def progress(self, route_id: str, lat: float, lng: float) -> float | None:
        """Normalized position (0.0–1.0) of a point projected onto the route."""
        entry = self._routes.get(route_id)
        if entry is None:
            return None
        line = entry[0]
        return line.project(Point(lng, lat), normalized=True)

    @staticmethod
    def _line_length_km(coords: list[list[float]]) -> float:
        total = 0.0
        for i in range(1, len(coords)):
            total += haversine_km(coords[i - 1][0], coords[i - 1][1], coords[i][0], coords[i][1])
        return total
