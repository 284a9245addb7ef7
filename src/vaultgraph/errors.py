"""Exception hierarchy for the graph engine."""


class VaultGraphError(Exception):
    """Base class for all vaultgraph errors."""


class DimensionMismatchError(VaultGraphError, ValueError):
    """Two vectors of different length were compared."""

    def __init__(self, left: int, right: int) -> None:
        super().__init__(f"Vectors must have the same length (got {left} and {right})")
        self.left = left
        self.right = right


class MalformedTagFieldError(VaultGraphError, ValueError):
    """An AI-tag frontmatter value is neither a list nor a JSON array."""


class RemoteServiceError(VaultGraphError):
    """The embedding service (or remote vector store) returned a failure."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SimulationStateError(VaultGraphError, RuntimeError):
    """An operation was attempted in a simulation state that does not allow it."""
