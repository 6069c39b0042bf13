"""Domain errors surfaced to CLI, MCP and HTTP callers."""


class NomNomError(Exception):
    """Base class for expected application errors."""


class ValidationError(NomNomError):
    """Input violates a documented constraint."""


class NotFoundError(NomNomError):
    """Referenced meal or food does not exist."""


class StoreUnavailableError(NomNomError):
    """Backing store or upstream API could not be reached."""
