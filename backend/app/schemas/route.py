from pydantic import BaseModel

from app.core.network import Route, Stop


class StopInfo(BaseModel):
    id: str
    name: str
    names: dict[str, str] = {}
    lat: float
    lng: float
    zone: str
    facilities: list[str] = []
    routes: list[str] = []

    @classmethod
    def from_stop(cls, stop: Stop, routes: list[str] | None = None) -> "StopInfo":
        return cls(
            id=stop.id, name=stop.display_name(), names=stop.names,
            lat=stop.lat, lng=stop.lng, zone=stop.zone,
            facilities=sorted(stop.facilities), routes=routes or [],
        )


class NearbyStop(StopInfo):
    distance_km: float


class RouteInfo(BaseModel):
    id: str
    number: str
    name: str
    names: dict[str, str] = {}
    operator: str
    color: str
    status: str
    fare: float
    headway_minutes: float
    first_departure: str
    last_departure: str
    distance_km: float
    duration_minutes: float
    stop_ids: list[str]

    @classmethod
    def from_route(cls, route: Route) -> "RouteInfo":
        return cls(
            id=route.id, number=route.number, name=route.display_name(), names=route.names,
            operator=route.operator, color=route.color, status=route.status, fare=route.fare,
            headway_minutes=route.headway_minutes, first_departure=route.first_departure,
            last_departure=route.last_departure, distance_km=route.distance_km,
            duration_minutes=route.duration_minutes, stop_ids=list(route.stop_ids),
        )


class RouteStopInfo(BaseModel):
    id: str
    name: str
    lat: float
    lng: float
    order: int


class RouteDetail(RouteInfo):
    stops: list[RouteStopInfo] = []
    geometry: list[list[float]] | None = None  # [[lat, lng], ...]
    length_km: float | None = None


class NetworkVersion(BaseModel):
    version: int
    loaded_at: str
    stops: int
    routes: int
