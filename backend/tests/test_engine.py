"""Tests for the TransitEngine orchestrator."""

import asyncio
import random
import threading

import orjson
import pytest

from app.core.broadcaster import Broadcaster
from app.core.engine import TransitEngine
from app.core.errors import ConfigInvalid, NotFound
from app.core.network_source import NetworkSourceClient
from app.core.scheduler import create_scheduler
from app.core.seed_network import addis_ababa_network
from app.core.simulator import PositionSimulator


def _engine(source=""):
    return TransitEngine(
        NetworkSourceClient(source=source),
        Broadcaster(redis_url=""),
        simulator=PositionSimulator(random.Random(3)),
    )


def test_not_ready_until_loaded():
    engine = _engine()
    assert not engine.ready
    with pytest.raises(NotFound):
        engine.view()


def test_load_network_from_builtin_source():
    engine = _engine()
    network = asyncio.run(engine.load_network())
    assert network.version == 1
    view = engine.view()
    assert view.fleet.network_version == 1
    assert len(view.proximity) == 22
    assert view.geometry.geometry("route-01") is not None


def test_missing_file_source_keeps_engine_empty(tmp_path):
    engine = _engine(str(tmp_path / "missing.json"))
    assert asyncio.run(engine.load_network()) is None
    assert not engine.ready


def test_tick_publishes_bus_states():
    engine = _engine()
    engine.apply_document(addis_ababa_network())

    async def run():
        q = engine.broadcaster.subscribe()
        await engine.tick()
        return q.get_nowait()

    payload = orjson.loads(asyncio.run(run()))
    assert payload["tick"] == 1
    assert len(payload["vehicles"]) == 33
    bus = payload["vehicles"][0]
    assert bus["id"] == "route-01-bus-1"
    assert bus["next_stop"]["id"] in addis_ababa_network()["routes"][0]["stops"]
    assert bus["crowding"] in {"comfortable", "moderate", "crowded", "full"}


def test_rejected_document_keeps_serving_previous_version():
    engine = _engine()
    engine.apply_document(addis_ababa_network())

    doc = addis_ababa_network()
    doc["routes"][0]["stops"] = ["merkato"]
    with pytest.raises(ConfigInvalid):
        engine.apply_document(doc)

    assert engine.view().network.version == 1
    diag = engine.get_diagnostics()
    assert diag["network"]["version"] == 1
    assert len(diag["rejections"]) == 1


def test_new_network_rebuilds_indexes():
    engine = _engine()
    engine.apply_document(addis_ababa_network())

    doc = addis_ababa_network()
    doc["stops"].append({
        "id": "sarbet", "name": {"en": "Sarbet"}, "location": {"lat": 8.9950, "lng": 38.7390},
        "zone": "Southwest", "facilities": [],
    })
    engine.apply_document(doc)

    view = engine.view()
    assert view.network.version == 2
    assert view.proximity.version == 2
    assert "sarbet" in [s.id for s, _ in view.proximity.nearby(8.9950, 38.7390, 0.1)]


def test_view_during_apply_pairs_network_with_its_fleet():
    """A reader arriving after the fleet sync but before the swap sees the new pair."""
    engine = _engine()
    engine.apply_document(addis_ababa_network())
    seen = []
    reader = threading.Thread(target=lambda: seen.append(engine.view()))
    sync = engine.simulator.sync_network

    def sync_then_read(network):
        fleet = sync(network)
        reader.start()
        reader.join(timeout=0.2)
        return fleet

    engine.simulator.sync_network = sync_then_read
    engine.apply_document(addis_ababa_network())
    engine.simulator.sync_network = sync
    reader.join(timeout=5)

    (view,) = seen
    assert view.network.version == 2
    assert view.fleet.network_version == view.network.version


def test_diagnostics():
    engine = _engine()
    asyncio.run(engine.load_network())
    diag = engine.get_diagnostics()
    assert diag["source"] == "built-in"
    assert diag["fleet"]["vehicles"] == 33
    assert diag["fleet"]["by_status"]["in_service"] == 33
    assert diag["network"]["routes_by_status"] == {"active": 11}


def test_scheduler_registers_tick_job():
    scheduler = create_scheduler(_engine())
    assert [job.id for job in scheduler.get_jobs()] == ["simulation_tick"]
