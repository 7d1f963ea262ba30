import logging
import math
from typing import Iterable, List, Optional

from .catalog import validate_catalog
from .errors import (CapacityExceeded, IncompatibleRange, IncompleteAssignment,
                     LocationNotSelected, UnitUnavailable, UnknownLocation, UnknownUnit)
from .model import (MAX_SELECTED, Catalog, Event, Location, SearchRequest, SearchResult,
                    State, UnitInstance, UnitType)
from .rng import DRNG, pick

log = logging.getLogger("falcone.engine")

def travel_time(distance: float, speed: float) -> int:
    """Hours needed to cover distance at speed, rounded half away from zero."""
    x = distance / speed
    f = math.floor(x)
    return int(f + (x - f >= 0.5))

def expand_inventory(unit_types: Iterable[UnitType]) -> List[UnitInstance]:
    """Turn unit types into individually assignable instances, total_no per type."""
    return [UnitInstance.from_type(ut, i)
            for ut in unit_types
            for i in range(1, ut.total_no + 1)]

class Engine:
    """Deterministic selection, assignment and search-resolution engine for one session.

    Every mutating operation either raises a GameError without touching state or
    returns the events it produced. Aggregates are always recomputed from the
    location/unit collections, never adjusted incrementally.
    """

    def __init__(self, seed: int, catalog: Catalog, max_selected: int = MAX_SELECTED, rng=None):
        validate_catalog(catalog)
        self.state = State(
            locations={loc.name: Location(name=loc.name, distance=loc.distance)
                       for loc in catalog.locations},
            units={u.id: u for u in expand_inventory(catalog.unit_types)},
        )
        self.max_selected = max_selected
        self._rng = rng if rng is not None else DRNG(seed)
        self._seq = 0
        self.last_bind = False

    def record(self, kind: str, data: dict) -> Event:
        self._seq += 1
        return Event(kind, self._seq, data)

    def location(self, name: str) -> Location:
        loc = self.state.locations.get(name)
        if loc is None:
            raise UnknownLocation(f"Unknown location: {name}")
        return loc

    def unit(self, unit_id: str) -> UnitInstance:
        u = self.state.units.get(unit_id)
        if u is None:
            raise UnknownUnit(f"Unknown unit: {unit_id}")
        return u

    # ── Selection ─────────────────────────────────────────────────────────

    def toggle_select(self, name: str) -> List[Event]:
        """Select or unselect a location; unselecting frees its unit."""
        loc = self.location(name)
        if not loc.is_selected and self.state.selected_count >= self.max_selected:
            raise CapacityExceeded("Please unselect one and select a new planet.")

        evts: List[Event] = []
        loc.is_selected = not loc.is_selected
        evts.append(self.record("LocationSelected" if loc.is_selected else "LocationUnselected",
                                {"location": loc.name}))

        if not loc.is_selected and loc.assigned_unit is not None:
            evts += self._release(loc)
            self.recompute_assigned_count()
            self.recompute_elapsed_time()

        self.recompute_selected_count()
        log.debug(f"Toggled {loc.name} -> selected={loc.is_selected} "
                  f"({self.state.selected_count}/{self.max_selected})")
        return evts

    # ── Assignment ────────────────────────────────────────────────────────

    def assign(self, name: str, unit_id: str) -> List[Event]:
        """Bind a unit to a selected location it can reach, replacing any prior unit."""
        loc = self.location(name)
        u = self.unit(unit_id)

        if u.max_distance < loc.distance:
            self.last_bind = False
            raise IncompatibleRange("The vehicle chosen cannot travel to this planet.")
        if not loc.is_selected:
            self.last_bind = False
            raise LocationNotSelected("This planet has not been chosen for exploration.")

        if loc.assigned_unit is not None and loc.assigned_unit.id == u.id:
            self.last_bind = True
            return []
        if not u.is_available:
            self.last_bind = False
            raise UnitUnavailable(f"{u.id} is already assigned to another planet.")

        evts: List[Event] = []
        if loc.assigned_unit is not None:
            evts += self._release(loc)

        loc.assigned_unit = u
        self.last_bind = True
        self.mark_assigned_unavailable(u, self.last_bind)
        evts.append(self.record("UnitAssigned", {"location": loc.name, "unit_id": u.id}))

        self.recompute_assigned_count()
        self.recompute_elapsed_time()
        log.debug(f"Assigned {u.id} -> {loc.name}, elapsed={self.state.elapsed_time}")
        return evts

    def mark_assigned_unavailable(self, u: UnitInstance, bind_succeeded: bool) -> None:
        """Commit availability only once the bind is confirmed."""
        if bind_succeeded:
            u.is_available = False

    def unassign(self, name: str) -> List[Event]:
        """Free the unit bound to a location, keeping the location selected."""
        loc = self.location(name)
        if loc.assigned_unit is None:
            return []
        evts = self._release(loc)
        self.recompute_assigned_count()
        self.recompute_elapsed_time()
        return evts

    def _release(self, loc: Location) -> List[Event]:
        u = loc.assigned_unit
        u.is_available = True
        loc.assigned_unit = None
        return [self.record("UnitReleased", {"location": loc.name, "unit_id": u.id})]

    # ── Aggregates ────────────────────────────────────────────────────────

    def recompute_selected_count(self) -> int:
        self.state.selected_count = sum(1 for loc in self.state.locations.values()
                                        if loc.is_selected)
        return self.state.selected_count

    def recompute_assigned_count(self) -> int:
        self.state.assigned_count = sum(1 for loc in self.state.locations.values()
                                        if loc.assigned_unit is not None)
        return self.state.assigned_count

    def recompute_elapsed_time(self) -> int:
        """Slowest travel time over selected locations holding a unit, 0 if none."""
        times = [travel_time(loc.distance, loc.assigned_unit.speed)
                 for loc in self.state.locations.values()
                 if loc.is_selected and loc.assigned_unit is not None]
        self.state.elapsed_time = max(times, default=0)
        return self.state.elapsed_time

    # ── Search ────────────────────────────────────────────────────────────

    def check_ready(self) -> None:
        """Raise unless every slot has a location and a unit."""
        if (self.state.selected_count < self.max_selected
                or self.state.assigned_count < self.max_selected):
            raise IncompleteAssignment(
                f"Please choose {self.max_selected} planets & assign appropriate vehicles "
                f"to them to proceed.")

    def search_request(self) -> SearchRequest:
        """Selected location names and their unit names, in catalog order."""
        self.check_ready()
        req = SearchRequest(planet_names=[], vehicle_names=[])
        for loc in self.state.locations.values():
            if loc.is_selected:
                req.planet_names.append(loc.name)
                if loc.assigned_unit is not None:
                    req.vehicle_names.append(loc.assigned_unit.name)
        return req

    def resolve_fallback(self) -> SearchResult:
        """Draw the hidden target from the whole catalog and check it against the selection."""
        self.check_ready()
        winner = pick(self._rng, list(self.state.locations.values()))
        if winner.is_selected:
            result = SearchResult(status="success", location_name=winner.name,
                                  time_taken=self.state.elapsed_time)
        else:
            result = SearchResult(status="failure")
        log.info(f"Fallback search drew {winner.name}: {result.status}")
        return result

    def result_from_ack(self, ack: dict) -> Optional[SearchResult]:
        """Translate a search-service acknowledgement, or None if it is not a verdict."""
        if not isinstance(ack, dict) or "error" in ack:
            return None
        status = ack.get("status")
        if status == "success":
            name = ack.get("planet_name", ack.get("location_name"))
            if name not in self.state.locations:
                return None
            return SearchResult(status="success", location_name=name,
                                time_taken=self.state.elapsed_time)
        if status in ("false", "failure", False):
            return SearchResult(status="failure")
        return None

    # ── Reset ─────────────────────────────────────────────────────────────

    def reset(self) -> List[Event]:
        """Return every location and unit to its initial state."""
        for u in self.state.units.values():
            u.is_available = True
        for loc in self.state.locations.values():
            loc.is_selected = False
            loc.assigned_unit = None
        self.state.selected_count = self.state.assigned_count = 0
        self.state.elapsed_time = 0
        self.last_bind = False
        return [self.record("Reset", {})]

    def snapshot(self) -> State:
        """Return current state."""
        return self.state
