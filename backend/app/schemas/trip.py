from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.core.trip_planner import Endpoint, Preferences, Segment, TripOption


class EndpointIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    lat: float | None = Field(default=None, ge=-90, le=90)
    lng: float | None = Field(default=None, ge=-180, le=180)
    stop_id: str | None = Field(default=None, alias="stopId")

    @model_validator(mode="after")
    def _check_location(self) -> "EndpointIn":
        if self.stop_id is None and (self.lat is None or self.lng is None):
            raise ValueError("provide either stopId or both lat and lng")
        return self

    def to_endpoint(self) -> Endpoint:
        return Endpoint(lat=self.lat, lng=self.lng, stop_id=self.stop_id)


class PreferencesIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    optimize: Literal["balanced", "time", "cost", "comfort", "environment"] = "balanced"
    max_walk_meters: float | None = Field(default=None, ge=0, le=5000, alias="maxWalkMeters")
    avoid_crowded: bool = Field(default=False, alias="avoidCrowded")
    accessibility_required: bool = Field(default=False, alias="accessibilityRequired")
    max_transfers: int = Field(default=1, ge=0, le=1, alias="maxTransfers")
    max_results: int | None = Field(default=None, ge=1, le=20, alias="maxResults")

    def to_preferences(self, default_walk_meters: float, default_results: int) -> Preferences:
        return Preferences(
            optimize=self.optimize,
            max_walk_meters=default_walk_meters if self.max_walk_meters is None else self.max_walk_meters,
            avoid_crowded=self.avoid_crowded,
            accessibility_required=self.accessibility_required,
            max_transfers=self.max_transfers,
            max_results=default_results if self.max_results is None else self.max_results,
        )


class TripPlanRequest(BaseModel):
    origin: EndpointIn
    destination: EndpointIn
    preferences: PreferencesIn = PreferencesIn()


class SegmentOut(BaseModel):
    kind: str
    duration_minutes: float
    from_stop_id: str | None = None
    to_stop_id: str | None = None
    distance_m: float | None = None
    route_id: str | None = None
    route_number: str | None = None
    vehicle_id: str | None = None
    crowding: str | None = None
    fare: float | None = None
    distance_km: float | None = None
    stops: int | None = None

    @classmethod
    def from_segment(cls, s: Segment) -> "SegmentOut":
        return cls(
            kind=s.kind, duration_minutes=s.duration_minutes,
            from_stop_id=s.from_stop_id, to_stop_id=s.to_stop_id, distance_m=s.distance_m,
            route_id=s.route_id, route_number=s.route_number, vehicle_id=s.vehicle_id,
            crowding=s.crowding.value if s.crowding else None,
            fare=s.fare, distance_km=s.distance_km, stops=s.stops,
        )


class TripOptionOut(BaseModel):
    id: str
    segments: list[SegmentOut]
    total_duration_minutes: float
    total_fare: float
    walking_distance_m: float
    transfers: int
    comfort: float
    carbon_saving_kg: float
    accessibility: str
    score: float

    @classmethod
    def from_option(cls, o: TripOption) -> "TripOptionOut":
        return cls(
            id=o.id,
            segments=[SegmentOut.from_segment(s) for s in o.segments],
            total_duration_minutes=o.total_duration_minutes,
            total_fare=o.total_fare,
            walking_distance_m=o.walking_distance_m,
            transfers=o.transfers,
            comfort=o.comfort,
            carbon_saving_kg=o.carbon_saving_kg,
            accessibility=o.accessibility,
            score=o.score,
        )


class TripPlanResponse(BaseModel):
    options: list[TripOptionOut]
    no_route_found: bool
    timed_out: bool
    candidates_considered: int
