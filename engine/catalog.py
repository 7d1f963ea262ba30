from typing import Dict, Iterable, List, Mapping

from .errors import CatalogError
from .model import Catalog, Location, UnitType

# Default game catalog: distances in megamiles, speeds in megamiles per hour
DEFAULT_LOCATIONS: Dict[str, float] = {
    "Donlon": 100,
    "Enchai": 200,
    "Jebing": 300,
    "Sapir": 400,
    "Lerbin": 500,
    "Pingasor": 600,
}

DEFAULT_UNIT_TYPES = [
    UnitType(name="Space pod", total_no=2, max_distance=200, speed=2),
    UnitType(name="Space rocket", total_no=1, max_distance=300, speed=4),
    UnitType(name="Space shuttle", total_no=1, max_distance=400, speed=5),
    UnitType(name="Space ship", total_no=2, max_distance=600, speed=10),
]

def default_catalog() -> Catalog:
    """Build a fresh copy of the built-in catalog."""
    return Catalog(
        locations=[Location(name=n, distance=d) for n, d in DEFAULT_LOCATIONS.items()],
        unit_types=list(DEFAULT_UNIT_TYPES),
    )

def validate_catalog(catalog: Catalog) -> Catalog:
    """Reject catalogs the engine could not keep consistent."""
    seen = set()
    for loc in catalog.locations:
        if loc.name in seen:
            raise CatalogError(f"Duplicate location name: {loc.name}")
        seen.add(loc.name)
        if loc.distance < 0:
            raise CatalogError(f"Invalid distance for {loc.name}: {loc.distance} (must be >= 0)")

    type_names = set()
    for ut in catalog.unit_types:
        if ut.name in type_names:
            raise CatalogError(f"Duplicate unit type: {ut.name}")
        type_names.add(ut.name)
        if ut.total_no < 0:
            raise CatalogError(f"Invalid total_no for {ut.name}: {ut.total_no} (must be >= 0)")
        if ut.max_distance < 0:
            raise CatalogError(f"Invalid max_distance for {ut.name}: {ut.max_distance} (must be >= 0)")
        if ut.speed <= 0:
            raise CatalogError(f"Invalid speed for {ut.name}: {ut.speed} (must be > 0)")
    return catalog

def catalog_from_records(planets: Iterable[Mapping], vehicles: Iterable[Mapping]) -> Catalog:
    """Build a validated catalog from raw planet/vehicle records (JSON or YAML shaped)."""
    try:
        locations: List[Location] = [
            Location(name=str(p["name"]), distance=float(p["distance"])) for p in planets
        ]
        unit_types: List[UnitType] = [
            UnitType(
                name=str(v["name"]),
                total_no=int(v["total_no"]),
                max_distance=float(v["max_distance"]),
                speed=float(v["speed"]),
            )
            for v in vehicles
        ]
    except (KeyError, TypeError, ValueError) as e:
        raise CatalogError(f"Malformed catalog record: {e}") from e
    return validate_catalog(Catalog(locations=locations, unit_types=unit_types))
