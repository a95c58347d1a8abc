"""Nearest-stop queries over one network version."""

import logging
import math

from shapely.geometry import Point, box
from shapely.strtree import STRtree

from app.core.geo import EARTH_RADIUS_KM, haversine_km
from app.core.network import NetworkSnapshot, Stop

logger = logging.getLogger(__name__)

_KM_PER_DEG_LAT = math.pi * EARTH_RADIUS_KM / 180.0
# Bounding-box padding so the envelope pre-filter never drops a boundary stop
_BBOX_PAD = 1.05


class ProximityIndex:
    """Spatial index of stops, built once per network version.

    Shapely's STRtree narrows the candidates to a lat/lng bounding box; the
    exact haversine distance then decides membership and ordering.
    """

    def __init__(self, network: NetworkSnapshot) -> None:
        self.version = network.version
        self._stops: list[Stop] = network.stops()
        # Shapely uses (x, y) = (lng, lat)
        self._tree = STRtree([Point(s.lng, s.lat) for s in self._stops])
        logger.debug("Built proximity index for network v%d (%d stops)", self.version, len(self._stops))

    def __len__(self) -> int:
        return len(self._stops)

    def nearby(self, lat: float, lng: float, radius_km: float) -> list[tuple[Stop, float]]:
        """Stops within ``radius_km`` of a point, nearest first (ties by stop id)."""
        if radius_km < 0:
            raise ValueError(f"radius must not be negative, got {radius_km}")
        if not self._stops:
            return []

        if radius_km == 0:
            query = Point(lng, lat)
        else:
            dlat = radius_km / _KM_PER_DEG_LAT * _BBOX_PAD
            cos_lat = max(math.cos(math.radians(lat)), 1e-6)
            dlng = min(180.0, dlat / cos_lat)
            query = box(lng - dlng, lat - dlat, lng + dlng, lat + dlat)

        results = []
        for idx in self._tree.query(query):
            stop = self._stops[int(idx)]
            dist = haversine_km(lat, lng, stop.lat, stop.lng)
            if dist <= radius_km:
                results.append((stop, dist))
        results.sort(key=lambda r: (r[1], r[0].id))
        return results
