"""Fetches network documents from the configuration collaborator (file or HTTP)."""

import asyncio
import logging
from pathlib import Path

import httpx
import orjson

from app.config import settings
from app.core.seed_network import addis_ababa_network

logger = logging.getLogger(__name__)

# Retry configuration
MAX_RETRIES = 3
RETRY_BACKOFF = [2, 4, 8]  # seconds between retries


class NetworkSourceClient:
    """Reads the network document from ``settings.network_source``.

    An empty source means the built-in Addis Ababa network. A source starting
    with ``http://`` or ``https://`` is fetched with retries; anything else is
    treated as a path to a JSON file.
    """

    def __init__(self, source: str | None = None, retry_backoff: list[float] | None = None) -> None:
        self.source = settings.network_source if source is None else source
        self._backoff = RETRY_BACKOFF if retry_backoff is None else retry_backoff
        self._client: httpx.AsyncClient | None = None
        if self.is_remote:
            self._client = httpx.AsyncClient(
                timeout=30.0,
                headers={"Accept": "application/json"},
            )

    @property
    def is_remote(self) -> bool:
        return self.source.startswith(("http://", "https://"))

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()

    async def fetch(self) -> dict | None:
        """Return the current network document, or None if it could not be read."""
        if not self.source:
            return addis_ababa_network()
        if self.is_remote:
            return await self._fetch_remote()
        return self._read_file(Path(self.source))

    @staticmethod
    def _read_file(path: Path) -> dict | None:
        try:
            return orjson.loads(path.read_bytes())
        except FileNotFoundError:
            logger.error("Network file %s does not exist", path)
        except orjson.JSONDecodeError as e:
            logger.error("Network file %s is not valid JSON: %s", path, e)
        return None

    async def _fetch_remote(self) -> dict | None:
        """GET request with retry and exponential backoff."""
        for attempt in range(MAX_RETRIES + 1):
            try:
                resp = await self._client.get(self.source)
                resp.raise_for_status()
                return orjson.loads(resp.content)
            except (httpx.ReadTimeout, httpx.ConnectTimeout, httpx.ConnectError) as e:
                if attempt < MAX_RETRIES:
                    wait = self._backoff[attempt]
                    logger.warning(
                        "Network fetch attempt %d/%d failed (%s), retrying in %ss",
                        attempt + 1, MAX_RETRIES + 1, type(e).__name__, wait,
                    )
                    await asyncio.sleep(wait)
                else:
                    logger.error("Network fetch failed after %d attempts: %s", MAX_RETRIES + 1, e)
                    return None
            except httpx.HTTPStatusError as e:
                if e.response.status_code >= 500 and attempt < MAX_RETRIES:
                    wait = self._backoff[attempt]
                    logger.warning(
                        "Network fetch attempt %d/%d got HTTP %d, retrying in %ss",
                        attempt + 1, MAX_RETRIES + 1, e.response.status_code, wait,
                    )
                    await asyncio.sleep(wait)
                else:
                    logger.error("Failed to fetch network from %s: %s", self.source, e)
                    return None
            except orjson.JSONDecodeError as e:
                logger.error("Network source %s returned invalid JSON: %s", self.source, e)
                return None
        return None
