"""Tests for NetworkSourceClient."""

import asyncio

import httpx
import orjson

from app.core.network_source import NetworkSourceClient
from app.core.seed_network import addis_ababa_network


def test_empty_source_returns_builtin_network():
    doc = asyncio.run(NetworkSourceClient(source="").fetch())
    assert len(doc["stops"]) == 22
    assert len(doc["routes"]) == 11


def test_builtin_network_is_a_fresh_copy():
    doc = addis_ababa_network()
    doc["routes"][0]["stops"].clear()
    assert len(addis_ababa_network()["routes"][0]["stops"]) == 7


def test_reads_json_file(tmp_path):
    path = tmp_path / "network.json"
    path.write_bytes(orjson.dumps(addis_ababa_network()))

    doc = asyncio.run(NetworkSourceClient(source=str(path)).fetch())
    assert doc["routes"][0]["id"] == "route-01"


def test_missing_or_invalid_file(tmp_path):
    assert asyncio.run(NetworkSourceClient(source=str(tmp_path / "nope.json")).fetch()) is None

    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    assert asyncio.run(NetworkSourceClient(source=str(bad)).fetch()) is None


def test_remote_fetch_retries_server_errors():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url)
        if len(calls) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"stops": [], "routes": []})

    async def run():
        client = NetworkSourceClient(source="http://config.local/network", retry_backoff=[0, 0, 0])
        await client.close()
        client._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        try:
            return await client.fetch()
        finally:
            await client.close()

    assert asyncio.run(run()) == {"stops": [], "routes": []}
    assert len(calls) == 3


def test_remote_client_error_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url)
        return httpx.Response(404)

    async def run():
        client = NetworkSourceClient(source="https://config.local/network", retry_backoff=[0, 0, 0])
        await client.close()
        client._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        try:
            return await client.fetch()
        finally:
            await client.close()

    assert asyncio.run(run()) is None
    assert len(calls) == 1
