"""Stop/route network model with validated, atomically published versions.

A ``NetworkSnapshot`` is an immutable view of one network version: stops,
routes, and the lookup tables derived from them (zone -> stops,
operator -> routes, stop -> serving routes). ``NetworkModel`` owns the
current snapshot and swaps it as a whole when a new document is loaded,
so readers never observe a route whose stops are only partially present.
"""

import datetime
import logging
import threading
from collections import deque
from dataclasses import dataclass, field

from app.core.errors import ConfigInvalid, NotFound

logger = logging.getLogger(__name__)

ROUTE_STATUSES = ("active", "suspended", "maintenance")
LANGUAGES = ("en", "am", "om")


@dataclass(frozen=True)
class Stop:
    id: str
    names: dict[str, str]
    lat: float
    lng: float
    zone: str = ""
    facilities: frozenset[str] = frozenset()

    def display_name(self, lang: str = "en") -> str:
        if self.names.get(lang):
            return self.names[lang]
        if self.names.get("en"):
            return self.names["en"]
        for name in self.names.values():
            if name:
                return name
        return self.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(frozen=True)
class Route:
    id: str
    number: str
    names: dict[str, str]
    operator: str
    stop_ids: tuple[str, ...]
    first_departure: str = "05:00"
    last_departure: str = "22:00"
    headway_minutes: float = 10.0
    fare: float = 0.0
    distance_km: float = 0.0
    duration_minutes: float = 30.0
    status: str = "active"
    color: str = "#22C55E"

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def display_name(self, lang: str = "en") -> str:
        return self.names.get(lang) or self.names.get("en") or self.number

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(frozen=True)
class NetworkSnapshot:
    """One immutable version of the network. Build with ``build_snapshot``."""

    version: int
    stops_by_id: dict[str, Stop]
    routes_by_id: dict[str, Route]
    loaded_at: datetime.datetime
    _zone_index: dict[str, tuple[Stop, ...]] = field(repr=False)
    _operator_index: dict[str, frozenset[Route]] = field(repr=False)
    _serving_index: dict[str, frozenset[Route]] = field(repr=False)
    _positions: dict[str, dict[str, tuple[int, ...]]] = field(repr=False)

    def get_stop(self, stop_id: str) -> Stop:
        try:
            return self.stops_by_id[stop_id]
        except KeyError:
            raise NotFound("stop", stop_id) from None

    def get_route(self, route_id: str) -> Route:
        try:
            return self.routes_by_id[route_id]
        except KeyError:
            raise NotFound("route", route_id) from None

    def stops(self) -> list[Stop]:
        return sorted(self.stops_by_id.values(), key=lambda s: s.id)

    def routes(self) -> list[Route]:
        return sorted(self.routes_by_id.values(), key=lambda r: (r.number, r.id))

    def zones(self) -> list[str]:
        return sorted(self._zone_index)

    def operators(self) -> list[str]:
        return sorted(self._operator_index)

    def stops_by_zone(self, zone: str) -> list[Stop]:
        return list(self._zone_index.get(zone, ()))

    def routes_by_operator(self, operator: str) -> set[Route]:
        return set(self._operator_index.get(operator, ()))

    def stop_sequence(self, route_id: str) -> tuple[str, ...]:
        return self.get_route(route_id).stop_ids

    def routes_serving(self, stop_id: str) -> set[Route]:
        if stop_id not in self.stops_by_id:
            raise NotFound("stop", stop_id)
        return set(self._serving_index.get(stop_id, ()))

    def stop_indices(self, route_id: str, stop_id: str) -> tuple[int, ...]:
        """All positions of a stop in a route's sequence (empty if not visited)."""
        if route_id not in self.routes_by_id:
            raise NotFound("route", route_id)
        return self._positions[route_id].get(stop_id, ())


def _route_stop_positions(route: Route) -> dict[str, tuple[int, ...]]:
    positions: dict[str, list[int]] = {}
    for i, sid in enumerate(route.stop_ids):
        positions.setdefault(sid, []).append(i)
    return {sid: tuple(idx) for sid, idx in positions.items()}


def validate(stops: list[Stop], routes: list[Route]) -> list[str]:
    """Return every invariant violation found in a candidate network."""
    problems: list[str] = []
    stop_ids: set[str] = set()
    for s in stops:
        if not s.id:
            problems.append("stop with empty id")
        elif s.id in stop_ids:
            problems.append(f"duplicate stop id {s.id!r}")
        stop_ids.add(s.id)
        if not -90.0 <= s.lat <= 90.0 or not -180.0 <= s.lng <= 180.0:
            problems.append(f"stop {s.id!r}: coordinate out of range ({s.lat}, {s.lng})")

    route_ids: set[str] = set()
    for r in routes:
        if not r.id:
            problems.append("route with empty id")
        elif r.id in route_ids:
            problems.append(f"duplicate route id {r.id!r}")
        route_ids.add(r.id)
        if len(r.stop_ids) < 2:
            problems.append(f"route {r.id!r}: needs at least 2 stops, has {len(r.stop_ids)}")
        missing = [sid for sid in r.stop_ids if sid not in stop_ids]
        if missing:
            problems.append(f"route {r.id!r}: unknown stops {missing}")
        for a, b in zip(r.stop_ids, r.stop_ids[1:]):
            if a == b:
                problems.append(f"route {r.id!r}: stop {a!r} repeated consecutively")
        if r.status not in ROUTE_STATUSES:
            problems.append(f"route {r.id!r}: unknown status {r.status!r}")
        if r.headway_minutes <= 0:
            problems.append(f"route {r.id!r}: headway must be positive")
        if r.duration_minutes <= 0:
            problems.append(f"route {r.id!r}: duration must be positive")
        if r.fare < 0:
            problems.append(f"route {r.id!r}: fare must not be negative")
        for label, value in (("first departure", r.first_departure), ("last departure", r.last_departure)):
            try:
                datetime.datetime.strptime(value, "%H:%M")
            except (ValueError, TypeError):
                problems.append(f"route {r.id!r}: bad {label} {value!r}")
    return problems


def build_snapshot(stops: list[Stop], routes: list[Route], version: int) -> NetworkSnapshot:
    """Validate and index a network; raises ConfigInvalid on any violation."""
    problems = validate(stops, routes)
    if problems:
        raise ConfigInvalid(problems)

    stops_by_id = {s.id: s for s in stops}
    routes_by_id = {r.id: r for r in routes}

    zones: dict[str, list[Stop]] = {}
    for s in sorted(stops, key=lambda s: s.id):
        zones.setdefault(s.zone, []).append(s)

    operators: dict[str, set[Route]] = {}
    serving: dict[str, set[Route]] = {}
    positions: dict[str, dict[str, tuple[int, ...]]] = {}
    for r in routes:
        operators.setdefault(r.operator, set()).add(r)
        for sid in set(r.stop_ids):
            serving.setdefault(sid, set()).add(r)
        positions[r.id] = _route_stop_positions(r)

    return NetworkSnapshot(
        version=version,
        stops_by_id=stops_by_id,
        routes_by_id=routes_by_id,
        loaded_at=datetime.datetime.now(datetime.timezone.utc),
        _zone_index={z: tuple(sl) for z, sl in zones.items()},
        _operator_index={o: frozenset(rs) for o, rs in operators.items()},
        _serving_index={sid: frozenset(rs) for sid, rs in serving.items()},
        _positions=positions,
    )


# ---------------------------------------------------------------------------
# Document parsing


def _names(item: dict, prefix: str = "name") -> dict[str, str]:
    raw = item.get("names", item.get(prefix))
    if isinstance(raw, dict):
        return {str(k): str(v) for k, v in raw.items() if v}
    names = {}
    if isinstance(raw, str) and raw:
        names["en"] = raw
    for lang in LANGUAGES:
        flat = item.get(f"{prefix}{lang.capitalize()}", item.get(f"{prefix}_{lang}"))
        if flat:
            names[lang] = str(flat)
    return names


def parse_stop(item: dict) -> Stop:
    location = item.get("location") or {}
    lat = item.get("lat", location.get("lat"))
    lng = item.get("lng", item.get("lon", location.get("lng", location.get("lon"))))
    return Stop(
        id=str(item["id"]),
        names=_names(item),
        lat=float(lat),
        lng=float(lng),
        zone=str(item.get("zone") or ""),
        facilities=frozenset(str(f) for f in item.get("facilities") or ()),
    )


def parse_route(item: dict) -> Route:
    schedule = item.get("schedule") or {}
    stop_ids = item.get("stops", item.get("stop_ids", item.get("stopIds", [])))
    return Route(
        id=str(item["id"]),
        number=str(item.get("routeNumber", item.get("number", item["id"]))),
        names=_names(item),
        operator=str(item.get("operator") or ""),
        stop_ids=tuple(str(s) for s in stop_ids),
        first_departure=str(schedule.get("firstBus", item.get("first_departure", "05:00"))),
        last_departure=str(schedule.get("lastBus", item.get("last_departure", "22:00"))),
        headway_minutes=float(schedule.get("frequency", item.get("headway_minutes", 10))),
        fare=float(item.get("price", item.get("fare", 0))),
        distance_km=float(item.get("distance", item.get("distance_km", 0))),
        duration_minutes=float(item.get("duration", item.get("duration_minutes", 30))),
        status=str(item.get("status", "active")),
        color=str(item.get("color", "#22C55E")),
    )


def parse_document(document: dict) -> tuple[list[Stop], list[Route]]:
    """Turn a raw network document into model objects; malformed entries raise ConfigInvalid."""
    if not isinstance(document, dict):
        raise ConfigInvalid(["network document must be a JSON object"])
    problems: list[str] = []
    raw_stops = document.get("stops") or []
    raw_routes = document.get("routes") or []
    for key, value in (("stops", raw_stops), ("routes", raw_routes)):
        if not isinstance(value, list):
            problems.append(f"{key} must be a list, got {type(value).__name__}")
    if problems:
        raise ConfigInvalid(problems)

    stops: list[Stop] = []
    routes: list[Route] = []
    for i, item in enumerate(raw_stops):
        try:
            stops.append(parse_stop(item))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            problems.append(f"stops[{i}]: malformed entry ({type(e).__name__}: {e})")
    for i, item in enumerate(raw_routes):
        try:
            routes.append(parse_route(item))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            problems.append(f"routes[{i}]: malformed entry ({type(e).__name__}: {e})")
    if problems:
        raise ConfigInvalid(problems)
    return stops, routes


class NetworkModel:
    """Holds the current network version; publishes new versions atomically."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current: NetworkSnapshot | None = None
        self._version = 0
        self.rejections: deque[dict] = deque(maxlen=20)

    @property
    def current(self) -> NetworkSnapshot:
        snapshot = self._current
        if snapshot is None:
            raise NotFound("network", "no network loaded")
        return snapshot

    @property
    def loaded(self) -> bool:
        return self._current is not None

    def load(self, document: dict) -> NetworkSnapshot:
        """Parse, validate and publish a network document.

        On failure the previous version stays current and ConfigInvalid is raised.
        """
        with self._lock:
            try:
                stops, routes = parse_document(document)
                snapshot = build_snapshot(stops, routes, self._version + 1)
            except ConfigInvalid as e:
                logger.warning("Rejected network reload (keeping version %d): %s", self._version, e)
                self.rejections.append({
                    "ts": datetime.datetime.now(datetime.timezone.utc).isoformat(),
                    "problems": e.problems,
                })
                raise
            self._version = snapshot.version
            self._current = snapshot
        logger.info(
            "Published network version %d: %d stops, %d routes",
            snapshot.version, len(snapshot.stops_by_id), len(snapshot.routes_by_id),
        )
        return snapshot
