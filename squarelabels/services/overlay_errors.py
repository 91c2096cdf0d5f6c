"""Error taxonomy for the coordinate overlay engine.

None of these errors is allowed to reach the host application. Each is
raised close to where it is detected and handled by the component that
owns the fallback behavior.
"""


class OverlayError(Exception):
    """Base class for all overlay engine errors."""


class BoardNotFound(OverlayError):
    """The board widget could not be located (or is no longer attached)."""


class OrientationAmbiguous(OverlayError):
    """Orientation heuristics were inconclusive; last known orientation is kept."""


class MalformedTransform(OverlayError):
    """A piece transform could not be parsed; the piece is ignored."""

    def __init__(self, transform: str) -> None:
        super().__init__(f"Unparsable piece transform: {transform!r}")
        self.transform = transform


class UnknownAction(OverlayError):
    """An inbound message carried an action the engine does not handle."""

    def __init__(self, action: object) -> None:
        super().__init__(f"Unknown action: {action!r}")
        self.action = action
