"""Selection, assignment, aggregate and reset rules of the engine."""
import pytest
from engine.engine import Engine, expand_inventory, travel_time
from engine.errors import (CapacityExceeded, CatalogError, IncompatibleRange, LocationNotSelected,
                           UnitUnavailable, UnknownLocation, UnknownUnit)
from engine.model import Catalog, Location, UnitType


def make_catalog() -> Catalog:
    """Six locations A..F at 10..60 and two unit types."""
    return Catalog(
        locations=[Location(name=n, distance=d)
                   for n, d in zip("ABCDEF", [10, 20, 30, 40, 50, 60])],
        unit_types=[
            UnitType(name="Pod", total_no=2, max_distance=20, speed=4),
            UnitType(name="Ship", total_no=3, max_distance=60, speed=10),
        ],
    )


@pytest.fixture
def eng() -> Engine:
    return Engine(seed=1, catalog=make_catalog())


def select(eng, *names):
    for n in names:
        eng.toggle_select(n)


def test_expand_inventory_ids_and_availability():
    units = expand_inventory([
        UnitType(name="Space pod", total_no=2, max_distance=200, speed=2),
        UnitType(name="Empty", total_no=0, max_distance=100, speed=1),
        UnitType(name="Space ship", total_no=1, max_distance=600, speed=10),
    ])
    assert [u.id for u in units] == ["Space pod_1", "Space pod_2", "Space ship_1"]
    assert all(u.is_available for u in units)
    assert units[0] is not units[1]
    assert (units[2].name, units[2].max_distance, units[2].speed) == ("Space ship", 600, 10)


def test_catalog_locations_are_copied():
    catalog = make_catalog()
    e = Engine(seed=1, catalog=catalog)
    e.toggle_select("A")
    assert catalog.locations[0].is_selected is False


def test_fifth_selection_rejected(eng):
    select(eng, "A", "B", "C", "D")
    with pytest.raises(CapacityExceeded):
        eng.toggle_select("E")
    assert eng.state.selected_count == 4
    assert eng.state.locations["E"].is_selected is False


def test_unselect_then_select_another(eng):
    select(eng, "A", "B", "C", "D")
    eng.toggle_select("D")
    eng.toggle_select("E")
    assert eng.state.selected_count == 4
    assert [n for n, l in eng.state.locations.items() if l.is_selected] == ["A", "B", "C", "E"]


def test_unselect_frees_assigned_unit(eng):
    select(eng, "A", "B")
    eng.assign("A", "Pod_1")
    eng.assign("B", "Ship_1")
    assert eng.state.assigned_count == 2

    evts = eng.toggle_select("B")
    assert eng.state.units["Ship_1"].is_available is True
    assert eng.state.locations["B"].assigned_unit is None
    assert eng.state.assigned_count == 1
    assert eng.state.elapsed_time == 3  # only A: 10 / 4 = 2.5 -> 3
    assert [e.kind for e in evts] == ["LocationUnselected", "UnitReleased"]


def test_out_of_range_assignment_is_rejected(eng):
    select(eng, "C")
    with pytest.raises(IncompatibleRange):
        eng.assign("C", "Pod_1")
    assert eng.state.locations["C"].assigned_unit is None
    assert eng.state.units["Pod_1"].is_available is True
    assert eng.last_bind is False


def test_range_check_comes_before_selection_check(eng):
    with pytest.raises(IncompatibleRange):
        eng.assign("F", "Pod_1")


def test_assignment_to_unselected_location_is_rejected(eng):
    with pytest.raises(LocationNotSelected):
        eng.assign("A", "Ship_1")
    assert eng.state.locations["A"].assigned_unit is None
    assert eng.state.units["Ship_1"].is_available is True
    assert eng.state.assigned_count == 0


def test_rebinding_frees_previous_unit(eng):
    select(eng, "B")
    eng.assign("B", "Pod_1")
    evts = eng.assign("B", "Ship_2")

    assert eng.state.locations["B"].assigned_unit.id == "Ship_2"
    assert eng.state.units["Pod_1"].is_available is True
    assert eng.state.units["Ship_2"].is_available is False
    assert eng.state.assigned_count == 1
    assert [e.kind for e in evts] == ["UnitReleased", "UnitAssigned"]


def test_unit_bound_elsewhere_is_unavailable(eng):
    select(eng, "A", "B")
    eng.assign("A", "Ship_1")
    with pytest.raises(UnitUnavailable):
        eng.assign("B", "Ship_1")
    assert eng.state.locations["A"].assigned_unit.id == "Ship_1"
    assert eng.state.locations["B"].assigned_unit is None


def test_redropping_same_unit_is_a_no_op(eng):
    select(eng, "A")
    eng.assign("A", "Ship_1")
    assert eng.assign("A", "Ship_1") == []
    assert eng.state.units["Ship_1"].is_available is False
    assert eng.state.assigned_count == 1


def test_mark_assigned_unavailable_needs_successful_bind(eng):
    u = eng.state.units["Pod_2"]
    eng.mark_assigned_unavailable(u, False)
    assert u.is_available is True
    eng.mark_assigned_unavailable(u, True)
    assert u.is_available is False


def test_unassign_keeps_location_selected(eng):
    select(eng, "A")
    eng.assign("A", "Pod_1")
    eng.unassign("A")
    assert eng.state.locations["A"].is_selected is True
    assert eng.state.units["Pod_1"].is_available is True
    assert eng.state.assigned_count == 0
    assert eng.state.elapsed_time == 0
    assert eng.unassign("A") == []


def test_unknown_names(eng):
    with pytest.raises(UnknownLocation):
        eng.toggle_select("Z")
    with pytest.raises(UnknownUnit):
        eng.assign("A", "Pod_9")


@pytest.mark.parametrize("distance,speed,expected", [
    (10, 4, 3),    # 2.5 rounds up
    (2, 4, 1),     # 0.5 rounds up
    (249, 100, 2),
    (0, 5, 0),
    (600, 10, 60),
    (0.49999999999999994, 1, 0),
    (2**52 + 1, 1, 2**52 + 1),
])
def test_travel_time_rounds_half_away_from_zero(distance, speed, expected):
    assert travel_time(distance, speed) == expected


def test_elapsed_time_is_slowest_assignment(eng):
    assert eng.state.elapsed_time == 0
    select(eng, "A", "B", "E")
    eng.assign("A", "Pod_1")    # 10 / 4  -> 3
    eng.assign("B", "Pod_2")    # 20 / 4  -> 5
    eng.assign("E", "Ship_1")   # 50 / 10 -> 5
    assert eng.state.elapsed_time == 5
    eng.toggle_select("B")
    eng.toggle_select("E")
    assert eng.state.elapsed_time == 3


def test_reset_restores_initial_state(eng):
    select(eng, "A", "B", "C")
    eng.assign("A", "Pod_1")
    eng.assign("C", "Ship_3")
    eng.last_bind = True

    eng.reset()
    s = eng.state
    assert all(u.is_available for u in s.units.values())
    assert all(not l.is_selected and l.assigned_unit is None for l in s.locations.values())
    assert (s.selected_count, s.assigned_count, s.elapsed_time) == (0, 0, 0)
    assert eng.last_bind is False


def test_reset_is_idempotent(eng):
    select(eng, "A", "D")
    eng.assign("D", "Ship_1")
    eng.reset()
    once = _flatten(eng)
    eng.reset()
    assert _flatten(eng) == once


def _flatten(eng):
    s = eng.state
    return (
        [(l.name, l.is_selected, l.assigned_unit) for l in s.locations.values()],
        [(u.id, u.is_available) for u in s.units.values()],
        s.selected_count, s.assigned_count, s.elapsed_time,
    )


@pytest.mark.parametrize("catalog", [
    Catalog(locations=[Location("A", 10), Location("A", 20)], unit_types=[]),
    Catalog(locations=[Location("A", -1)], unit_types=[]),
    Catalog(locations=[], unit_types=[UnitType("X", 1, 10, 0)]),
    Catalog(locations=[], unit_types=[UnitType("X", -1, 10, 1)]),
])
def test_invalid_catalog_rejected(catalog):
    with pytest.raises(CatalogError):
        Engine(seed=1, catalog=catalog)
