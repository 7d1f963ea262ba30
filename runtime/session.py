import asyncio
import logging
from typing import List, Optional

from engine.engine import Engine
from engine.errors import GameError, SubmissionFailure
from engine.model import Event, SearchRequest, SearchResult, State
from .channel import ResetChannel, Subscription
from .collaborators import (CatalogLoader, HttpCatalogLoader, HttpSearchService, HttpTokenProvider,
                            LastResultPresenter, LogNotifier, Notifier, ResultPresenter,
                            SearchService, StaticCatalogLoader, TokenProvider, YamlCatalogLoader)
from .config import AppConfig
from .eventlog import EventLog

log = logging.getLogger("falcone.session")

FALLBACK_NOTICE = "No token available. Mock implementation kicks in."

class GameSession:
    """Async driver that serialises player actions against one engine.

    Rule violations are reported through the notifier and re-raised; a failed
    remote search is never surfaced, the engine's local draw is used instead.
    """

    def __init__(self, engine: Engine,
                 reset_channel: Optional[ResetChannel] = None,
                 token_provider: Optional[TokenProvider] = None,
                 search_service: Optional[SearchService] = None,
                 notifier: Optional[Notifier] = None,
                 presenter: Optional[ResultPresenter] = None,
                 timeout_s: float = 5.0):
        self.engine = engine
        self.reset_channel = reset_channel if reset_channel is not None else ResetChannel()
        self.token_provider = token_provider
        self.search_service = search_service
        self.notifier = notifier if notifier is not None else LogNotifier()
        self.presenter = presenter if presenter is not None else LastResultPresenter()
        self.timeout_s = timeout_s
        self.events = EventLog()
        self._lock = asyncio.Lock()
        self._sub: Subscription | None = None
        self._generation = 0

    async def start(self):
        """Subscribe to the reset channel."""
        if self._sub is not None:
            return
        self._sub = self.reset_channel.subscribe(self.reset)
        log.info(f"Session {self.engine.state.session_id} started "
                 f"({len(self.engine.state.locations)} locations, {len(self.engine.state.units)} units)")

    async def stop(self):
        """Unsubscribe from the reset channel."""
        if self._sub is None:
            return
        self._sub.unsubscribe()
        self._sub = None
        log.info(f"Session {self.engine.state.session_id} stopped")

    async def _apply(self, op, *args) -> List[Event]:
        async with self._lock:
            try:
                evts = op(*args)
            except GameError as e:
                self.notifier.notify(e.message)
                raise
        self.events.append_many(evts)
        return evts

    async def select(self, name: str) -> List[Event]:
        return await self._apply(self.engine.toggle_select, name)

    async def assign(self, name: str, unit_id: str) -> List[Event]:
        return await self._apply(self.engine.assign, name, unit_id)

    async def unassign(self, name: str) -> List[Event]:
        return await self._apply(self.engine.unassign, name)

    async def search(self) -> Optional[SearchResult]:
        """Resolve the search and hand the result to the presenter.

        Returns None if the session was reset while the remote call was in flight.
        """
        async with self._lock:
            try:
                req = self.engine.search_request()
            except GameError as e:
                self.notifier.notify(e.message)
                raise

            generation = self._generation
            result: Optional[SearchResult] = None
            try:
                result = await asyncio.wait_for(self._submit(req), self.timeout_s)
            except Exception as e:
                log.warning(f"Search service failed ({type(e).__name__}: {e}), using local draw")

            if generation != self._generation:
                log.info("Search abandoned: session was reset while waiting on the search service")
                return None
            if result is None:
                self.notifier.notify(FALLBACK_NOTICE)
                result = self.engine.resolve_fallback()

            self.events.append_many([self.engine.record("SearchResolved", result.to_dict())])
        self.presenter.present(result)
        return result

    async def _submit(self, req: SearchRequest) -> SearchResult:
        if self.token_provider is None or self.search_service is None:
            raise SubmissionFailure("No search service configured.")
        token = await self.token_provider.get_token()
        if not token:
            raise SubmissionFailure("No token available.")
        ack = await self.search_service.submit(token, req.planet_names, req.vehicle_names)
        result = self.engine.result_from_ack(ack)
        if result is None:
            raise SubmissionFailure(f"Unrecognised search response: {ack!r}")
        return result

    def reset(self):
        """Reset channel callback; applies immediately, even while a search is awaited."""
        self._generation += 1
        self.events.append_many(self.engine.reset())
        log.info(f"Session {self.engine.state.session_id} reset")

    async def snapshot(self) -> State:
        """Get current state (serialised with pending operations)."""
        async with self._lock:
            return self.engine.snapshot()

def catalog_loader_for(config: AppConfig) -> CatalogLoader:
    if config.game.catalog_path:
        return YamlCatalogLoader(config.game.catalog_path)
    if config.game.catalog_from_service and config.service.base_url:
        return HttpCatalogLoader(config.service.base_url, timeout_s=config.service.timeout_s)
    return StaticCatalogLoader()

async def open_session(config: AppConfig,
                       reset_channel: Optional[ResetChannel] = None,
                       catalog_loader: Optional[CatalogLoader] = None,
                       seed: Optional[int] = None) -> GameSession:
    """Load the catalog, build the engine and start a session wired per config."""
    loader = catalog_loader if catalog_loader is not None else catalog_loader_for(config)
    catalog = await loader.load()
    engine = Engine(seed=config.game.seed if seed is None else seed, catalog=catalog,
                    max_selected=config.game.max_selected)

    token_provider = search_service = None
    if config.service.base_url:
        token_provider = HttpTokenProvider(config.service.base_url, timeout_s=config.service.timeout_s)
        search_service = HttpSearchService(config.service.base_url, timeout_s=config.service.timeout_s)

    session = GameSession(engine, reset_channel=reset_channel, token_provider=token_provider,
                          search_service=search_service, timeout_s=config.service.timeout_s)
    await session.start()
    return session
