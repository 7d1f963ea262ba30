"""
External collaborators of a game session and their default implementations.

The engine never talks to these directly; the session calls them and feeds
the results back in.

Endpoints used by the HTTP implementations (relative to base_url):
  GET  /planets   returns [{"name": ..., "distance": ...}, ...]
  GET  /vehicles  returns [{"name": ..., "total_no": ..., "max_distance": ..., "speed": ...}, ...]
  POST /token     returns {"token": ...}
  POST /find      sends {"token", "planet_names", "vehicle_names"}, returns {"status", "planet_name"?}
"""

from __future__ import annotations

import logging
from collections import deque
from pathlib import Path
from typing import Protocol

import httpx
import yaml

from engine.catalog import catalog_from_records, default_catalog
from engine.errors import CatalogError, SubmissionFailure
from engine.model import Catalog, SearchResult

log = logging.getLogger("falcone.session")

JSON_HEADERS = {"Accept": "application/json", "Content-Type": "application/json"}


class CatalogLoader(Protocol):
    async def load(self) -> Catalog: ...


class TokenProvider(Protocol):
    async def get_token(self) -> str: ...


class SearchService(Protocol):
    async def submit(self, token: str, planet_names: list[str], vehicle_names: list[str]) -> dict: ...


class Notifier(Protocol):
    def notify(self, message: str) -> None: ...


class ResultPresenter(Protocol):
    def present(self, result: SearchResult) -> None: ...


# ── Catalog loaders ──────────────────────────────────────────────────────────


class StaticCatalogLoader:
    """Serves the built-in catalog, or a catalog handed in directly."""

    def __init__(self, catalog: Catalog | None = None):
        self._catalog = catalog

    async def load(self) -> Catalog:
        return self._catalog if self._catalog is not None else default_catalog()


class YamlCatalogLoader:
    """Reads `planets:` and `vehicles:` record lists from a YAML file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    async def load(self) -> Catalog:
        with open(self.path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise CatalogError(f"{self.path}: expected a mapping with planets and vehicles")
        return catalog_from_records(raw.get("planets", []), raw.get("vehicles", []))


class HttpCatalogLoader:
    def __init__(self, base_url: str, client: httpx.AsyncClient | None = None, timeout_s: float = 5.0):
        self.base_url = base_url
        self._client = client
        self.timeout_s = timeout_s

    async def load(self) -> Catalog:
        try:
            async with _client_for(self) as client:
                planets = await client.get("/planets", headers=JSON_HEADERS)
                vehicles = await client.get("/vehicles", headers=JSON_HEADERS)
                planets.raise_for_status()
                vehicles.raise_for_status()
            planet_records, vehicle_records = planets.json(), vehicles.json()
        except (httpx.HTTPError, ValueError) as e:
            raise CatalogError(f"Catalog request failed: {e}") from e
        return catalog_from_records(planet_records, vehicle_records)


# ── Token / search ───────────────────────────────────────────────────────────


class HttpTokenProvider:
    def __init__(self, base_url: str, client: httpx.AsyncClient | None = None, timeout_s: float = 5.0):
        self.base_url = base_url
        self._client = client
        self.timeout_s = timeout_s

    async def get_token(self) -> str:
        try:
            async with _client_for(self) as client:
                resp = await client.post("/token", headers={"Accept": "application/json"})
                resp.raise_for_status()
                token = resp.json().get("token")
        except (httpx.HTTPError, ValueError) as e:
            raise SubmissionFailure(f"Token request failed: {e}") from e
        if not token:
            raise SubmissionFailure("No token available.")
        return token


class HttpSearchService:
    def __init__(self, base_url: str, client: httpx.AsyncClient | None = None, timeout_s: float = 5.0):
        self.base_url = base_url
        self._client = client
        self.timeout_s = timeout_s

    async def submit(self, token: str, planet_names: list[str], vehicle_names: list[str]) -> dict:
        body = {"token": token, "planet_names": planet_names, "vehicle_names": vehicle_names}
        try:
            async with _client_for(self) as client:
                resp = await client.post("/find", json=body, headers=JSON_HEADERS)
                resp.raise_for_status()
                return resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise SubmissionFailure(f"Search request failed: {e}") from e


class _Borrowed:
    """Async context that hands out a caller-owned client without closing it."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def __aenter__(self) -> httpx.AsyncClient:
        return self.client

    async def __aexit__(self, *exc) -> None:
        return None


def _client_for(owner):
    if owner._client is not None:
        return _Borrowed(owner._client)
    return httpx.AsyncClient(base_url=owner.base_url, timeout=owner.timeout_s)


# ── Notifier / presenter ─────────────────────────────────────────────────────


class LogNotifier:
    """Logs user-facing notices and keeps the most recent ones for display."""

    def __init__(self, keep: int = 50):
        self.notices: deque[str] = deque(maxlen=keep)

    def notify(self, message: str) -> None:
        log.warning(message)
        self.notices.append(message)


class LastResultPresenter:
    """Holds on to the latest search result for whoever renders it."""

    def __init__(self):
        self.result: SearchResult | None = None

    def present(self, result: SearchResult) -> None:
        self.result = result
