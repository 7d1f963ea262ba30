class GameError(Exception):
    """Base class for rule violations reported back to the player."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CapacityExceeded(GameError):
    """A location was selected while the selection limit was already reached."""


class IncompatibleRange(GameError):
    """The unit's max distance is shorter than the location's distance."""


class LocationNotSelected(GameError):
    """A unit was dropped on a location that is not selected."""


class IncompleteAssignment(GameError):
    """Search requested before every slot has a location and a unit."""


class SubmissionFailure(GameError):
    """The external token/search round trip failed."""


class UnknownLocation(GameError):
    pass


class UnknownUnit(GameError):
    pass


class UnitUnavailable(GameError):
    """The unit is already bound to another location."""


class CatalogError(GameError):
    """The catalog handed to the engine is malformed."""
