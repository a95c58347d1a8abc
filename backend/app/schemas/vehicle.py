from pydantic import BaseModel

from app.core.arrivals import ArrivalPrediction
from app.core.network import NetworkSnapshot
from app.core.route_geometry import RouteGeometry
from app.core.simulator import VehicleSnapshot


class NextStopInfo(BaseModel):
    id: str
    name: str
    index: int


class BusState(BaseModel):
    id: str
    plate_number: str
    route_id: str
    route_number: str | None = None
    lat: float
    lng: float
    heading: float
    speed_kmh: float
    next_stop: NextStopInfo | None = None
    passenger_count: int
    capacity: int
    load_percent: int
    crowding: str
    delay_minutes: int
    status: str
    progress: float | None = None
    updated_at: str

    @classmethod
    def from_snapshot(
        cls, v: VehicleSnapshot, network: NetworkSnapshot, geometry: RouteGeometry | None = None,
    ) -> "BusState":
        route = network.routes_by_id.get(v.route_id)
        next_stop = None
        if route is not None:
            index = v.next_stop_index % len(route.stop_ids)
            stop = network.stops_by_id[route.stop_ids[index]]
            next_stop = NextStopInfo(id=stop.id, name=stop.display_name(), index=index)
        progress = geometry.progress(v.route_id, v.lat, v.lng) if geometry else None
        return cls(
            id=v.id,
            plate_number=v.plate_number,
            route_id=v.route_id,
            route_number=route.number if route else None,
            lat=v.lat,
            lng=v.lng,
            heading=round(v.heading, 1),
            speed_kmh=v.speed_kmh,
            next_stop=next_stop,
            passenger_count=v.passenger_count,
            capacity=v.capacity,
            load_percent=v.load_percent,
            crowding=v.crowding.value,
            delay_minutes=v.delay_minutes,
            status=v.status,
            progress=round(progress, 4) if progress is not None else None,
            updated_at=v.updated_at.isoformat(),
        )


class FleetState(BaseModel):
    tick: int
    taken_at: str
    network_version: int
    vehicles: list[BusState]


class StopArrival(BaseModel):
    vehicle_id: str
    route_id: str
    route_number: str
    eta_minutes: float
    hops: int
    load_percent: int
    crowding: str

    @classmethod
    def from_prediction(cls, a: ArrivalPrediction) -> "StopArrival":
        return cls(
            vehicle_id=a.vehicle_id, route_id=a.route_id, route_number=a.route_number,
            eta_minutes=a.minutes, hops=a.hops, load_percent=a.load_percent,
            crowding=a.crowding.value,
        )


class StopArrivals(BaseModel):
    stop_id: str
    stop_name: str
    arrivals: list[StopArrival]
