from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    redis_url: str = ""
    # Path to a JSON network document or an http(s) URL; empty = built-in Addis Ababa network
    network_source: str = ""
    network_refresh_minutes: int = 0
    tick_interval_seconds: int = 5
    vehicles_per_route: int = 3
    vehicle_capacity: int = 60
    simulation_seed: int | None = None
    minutes_per_hop: float = 2.0
    walking_speed_m_per_min: float = 80.0
    default_max_walk_meters: int = 800
    trip_plan_timeout_ms: int = 2000
    trip_plan_max_results: int = 5

    model_config = {"env_prefix": "", "case_sensitive": False}


settings = Settings()
