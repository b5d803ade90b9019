"""Exception definitions for the narration core.

Geometry problems found while *querying* (out of bounds, blocked target)
are not exceptions: they come back as structured results so callers can
offer alternatives. These exceptions cover lookups that fail and writes
that would break an invariant.
"""


class SpatialDMError(Exception):
    """Base exception for narration core operations."""

    pass


class NotFoundError(SpatialDMError):
    """A referenced record does not exist.

    Attributes:
        kind: Record kind ("session", "character", "location", ...).
        identifier: The id that failed to resolve.
    """

    def __init__(self, kind: str, identifier: str) -> None:
        super().__init__(f"{kind.capitalize()} not found: {identifier}")
        self.kind = kind
        self.identifier = identifier


class InvalidGeometryError(SpatialDMError):
    """A location or feature definition is geometrically invalid."""

    pass


class InvalidMovementError(SpatialDMError):
    """A movement was committed without passing validation.

    Attributes:
        issues: Validation messages explaining the rejection.
    """

    def __init__(self, message: str, issues: list[str] | None = None) -> None:
        super().__init__(message)
        self.issues = issues or []


class SessionInactiveError(SpatialDMError):
    """Narration was requested for a session that is not active."""

    def __init__(self, session_id: str, status: str) -> None:
        super().__init__(f"Session {session_id} is not active (status: {status})")
        self.session_id = session_id
        self.status = status
