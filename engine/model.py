from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional

Status = Literal["success", "failure"]

# Locations a player must fill before a search can run
MAX_SELECTED = 4

@dataclass(frozen=True)
class UnitType:
    """Template defining a kind of vehicle and how many of it exist"""
    name: str
    total_no: int
    max_distance: float
    speed: float

@dataclass
class UnitInstance:
    id: str  # "<type name>_<ordinal>"
    name: str
    max_distance: float
    speed: float
    is_available: bool = True

    @classmethod
    def from_type(cls, unit_type: UnitType, ordinal: int) -> "UnitInstance":
        """Build the ordinal-th instance (1-based) of a unit type."""
        return cls(
            id=f"{unit_type.name}_{ordinal}",
            name=unit_type.name,
            max_distance=unit_type.max_distance,
            speed=unit_type.speed,
        )

@dataclass
class Location:
    name: str
    distance: float
    is_selected: bool = False
    assigned_unit: Optional[UnitInstance] = None

@dataclass(frozen=True)
class Catalog:
    """One-shot snapshot of the playable locations and unit types."""
    locations: List[Location]
    unit_types: List[UnitType]

@dataclass
class Event:
    kind: str
    seq: int
    data: Dict

@dataclass
class SearchRequest:
    """Payload forwarded to the search service."""
    planet_names: List[str]
    vehicle_names: List[str]

@dataclass
class SearchResult:
    status: Status
    location_name: Optional[str] = None
    time_taken: Optional[int] = None

    def to_dict(self) -> Dict:
        """Result record as handed to the presenter; failures carry only the status."""
        if self.status == "success":
            return {"location_name": self.location_name, "time_taken": self.time_taken,
                    "status": self.status}
        return {"status": self.status}

@dataclass
class State:
    locations: Dict[str, Location] = field(default_factory=dict)  # catalog order
    units: Dict[str, UnitInstance] = field(default_factory=dict)  # expansion order
    selected_count: int = 0
    assigned_count: int = 0
    elapsed_time: int = 0
    session_id: str = "local"
