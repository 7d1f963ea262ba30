from typing import Literal, Optional
from pydantic import BaseModel, Field

class StartRequest(BaseModel):
    """Game start request schema; seed defaults to the configured one."""
    seed: Optional[int] = None

class SelectIn(BaseModel):
    location: str

class AssignIn(BaseModel):
    location: str
    unit_id: str

class ResultOut(BaseModel):
    """Search result; failures carry only the status."""
    status: Literal["success", "failure"]
    location_name: Optional[str] = None
    time_taken: Optional[int] = None

class EventsResponse(BaseModel):
    """Events response schema."""
    next_offset: int
    events: list[dict] = Field(default_factory=list)
